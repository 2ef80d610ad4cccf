"""
Project configuration management
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator


class DatabaseSettings(BaseModel):
    url: str = "sqlite+aiosqlite:///./cornerapp.db"
    echo: bool = False


class Settings(BaseSettings):
    """Project settings"""

    # Basics
    PROJECT_NAME: str = Field(default="CornerApp POS Gateway")
    VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="development")

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    # Request body logging (bodies are sanitized and truncated)
    LOG_REQUEST_BODY_ENABLE_BY_DEFAULT: bool = Field(default=False)
    LOG_REQUEST_BODY_MAX_BYTES: int = Field(default=2048)
    LOG_REQUEST_BODY_ALLOW_MULTIPART: bool = Field(default=False)

    # CORS
    CORS_ORIGINS: list = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """Accept either a JSON array string or a comma separated string."""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                import json
                try:
                    arr = json.loads(s)
                    if isinstance(arr, list):
                        return arr
                except ValueError:
                    pass
            if "," in s:
                return [item.strip() for item in s.split(",") if item.strip()]
            return [s]
        return v


settings = Settings()
