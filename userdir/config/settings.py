from pydantic_settings import BaseSettings
from dotenv import load_dotenv, find_dotenv
from os import getenv
from typing import Optional

_env_path = find_dotenv(usecwd=True)  # locate a .env file in this folder or parent folders
if _env_path:
    load_dotenv(_env_path)


class Settings(BaseSettings):
    # Database related
    # DB_URL wins over the individual postgres parts when set
    DB_URL: Optional[str] = getenv('DB_URL')
    DB_HOST_IP: Optional[str] = getenv('DB_HOST_IP')
    DB_USER: Optional[str] = getenv('DB_USER')
    DB_PASSWORD: Optional[str] = getenv('DB_PASSWORD')
    DB_NAME: Optional[str] = getenv('DB_NAME')
    DB_CREATE_TABLES: bool = True
    STORE_TIMEOUT_SECONDS: float = 10.0

    # Page cache
    CACHE_SLIDING_MINUTES: float = 5.0
    CACHE_ABSOLUTE_MINUTES: float = 30.0
    CACHE_MAX_ENTRIES: int = 1024
    # 0 disables the background sweep; expiry is still checked on access
    CACHE_SWEEP_SECONDS: int = 60

    # Pagination
    DEFAULT_PAGE_SIZE: int = 100
    MAX_PAGE_SIZE: int = 1000

    # Ingestion
    INGEST_BATCH_SIZE: int = 1000
    BULK_USER_COUNT: int = 10000
    MAX_BULK_USER_COUNT: int = 100000

    @property
    def database_url(self) -> str:
        if self.DB_URL:
            return self.DB_URL
        if self.DB_HOST_IP and self.DB_USER and self.DB_NAME:
            return f"postgresql+psycopg2://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST_IP}:5432/{self.DB_NAME}"
        return "sqlite:///./userdir.db"


settings = Settings()
