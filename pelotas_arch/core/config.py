from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="allow",
    )

    DATABASE_URL: str = Field(default="sqlite:///./tracker.db")
    SQL_ECHO: bool = Field(default=False)

    LOG_LEVEL: str = Field(default="INFO")


settings = Settings()
