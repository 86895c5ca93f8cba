# server/config.py
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Key Directory"

    database_path: str = Field(default="keys.sqlite", validation_alias="KEYREG_DATABASE")
    host: str = Field(default="127.0.0.1", validation_alias="KEYREG_HOST")
    port: int = Field(default=3030, validation_alias="KEYREG_PORT")
    log_level: str = Field(default="info", validation_alias="KEYREG_LOG_LEVEL")

    # smallest RSA modulus accepted at /challenge
    min_rsa_bits: int = Field(default=2048, ge=1024, validation_alias="KEYREG_MIN_RSA_BITS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


def get_settings() -> Settings:
    return Settings()
