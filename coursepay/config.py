from typing import List, Optional
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "coursepay"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    # full URL wins over the postgres_* parts (sqlite in tests)
    sqlalchemy_database_url: Optional[str] = None

    secret_key: str
    algorithm: str = "HS256"

    env: str = "local"
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:8080"]

    # Paymob
    paymob_api_key: str
    paymob_base_url: str = "https://accept.paymob.com/api"
    paymob_card_integration_id: int
    paymob_voucher_integration_id: int
    paymob_card_iframe_id: int
    paymob_voucher_iframe_id: int
    paymob_hmac_secret: str = ""
    paymob_environment: str = "sandbox"  # sandbox | production
    paymob_enforce_hmac: Optional[bool] = None
    paymob_redirect_url: Optional[str] = None
    paymob_currency: str = "EGP"
    paymob_country: str = "EG"
    paymob_request_timeout: float = 15.0

    payment_poll_interval_seconds: float = 3.0
    payment_poll_timeout_seconds: float = 600.0

    @property
    def database_url(self):
        if self.sqlalchemy_database_url:
            return self.sqlalchemy_database_url
        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def hmac_enforced(self) -> bool:
        if self.paymob_enforce_hmac is not None:
            return self.paymob_enforce_hmac
        return self.paymob_environment == "production"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"


settings = Settings()
