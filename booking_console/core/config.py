from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ADMIN_API_BASE_URL: str = "http://localhost:5000/admin"
    ADMIN_API_TOKEN: str | None = None
    ADMIN_AUTH_HEADER: str = "admin-auth-token"
    HTTP_TIMEOUT_SECONDS: float = 10.0

    SEARCH_DEBOUNCE_SECONDS: float = 0.5
    PHONE_SEARCH_MIN_LENGTH: int = 4
    SEARCH_PAGE_SIZE: int = 10

    GST_RATE: float = 0.18
    CURRENCY_SYMBOL: str = "₹"

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"


settings = Settings()
