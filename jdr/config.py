from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = "sqlite+aiosqlite:///./jdr.db"
    environment: str = "local"
    debug: bool = True
    session_secret_key: str = "dev-secret-change-me"
    log_level: str = "INFO"

    # Dice history pagination: default page size and the cap a client may request.
    dice_history_page_size: int = 20
    dice_history_max_page_size: int = 100


settings = Settings()
