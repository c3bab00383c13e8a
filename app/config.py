from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    pokeapi_base_url: str = "https://pokeapi.co/api/v2"
    request_timeout: Optional[float] = None
    log_level: str = "INFO"
    environment: str = "development"
    app_version: str = "1.0.0"

    model_config = {"env_file": ".env"}


settings = Settings()
