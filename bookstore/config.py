from typing import List, Optional
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ENV: str = "local"
    LOG_LEVEL: str = "INFO"

    # full URL wins over the postgres parts below
    DATABASE_URL: Optional[str] = None

    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_db: str = "bookstore"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    CHECKOUT_RETRY_ATTEMPTS: int = 2
    LOW_STOCK_THRESHOLD: int = 5

    @property
    def database_url(self):
        if self.DATABASE_URL:
            return self.DATABASE_URL
        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"


settings = Settings()
