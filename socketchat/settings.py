import os
import re

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True)

    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FILE_PATH: str = "logs/errors.log"
    LOG_EXCLUDED_PATHS: list[str] = ["/metrics", "/health"]

    # HTTP settings
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8080",
    ]
    STATIC_DIR: str = os.path.join(
        os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "public"
    )

    # Chat settings
    WELCOME_MESSAGE: str = "Welcome to SocketChat!"
    SHUTDOWN_MESSAGE: str = (
        "Server is restarting. Please reconnect in a moment."
    )
    DEFAULT_USERNAME_PREFIX: str = "User_"
    DEFAULT_USERNAME_ID_CHARS: int = 6
    MAX_MESSAGE_LENGTH: int = 1000
    MAX_USERNAME_LENGTH: int = 30
    TRUST_CLIENT_USERNAME: bool = True
    TIME_FORMAT: str = "%I:%M:%S %p"

    # Rate limit settings (HTTP /api/ routes only)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMITED_PATHS: re.Pattern = re.compile(r"^/api/")
    API_RATE_LIMIT: int = 100
    API_RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60


app_settings = Settings()
