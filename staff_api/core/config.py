import sys

from pydantic_settings import BaseSettings

_ENV_FILE = None if "pytest" in sys.modules else ".env"


class Settings(BaseSettings):
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    HOST: str = "0.0.0.0"
    PORT: int = 8080

    MONGODB_URI: str = ""
    MONGODB_DATABASE: str = "new_company"
    MONGODB_CONNECT_TIMEOUT_SECONDS: float = 10.0

    CORS_ALLOWED_ORIGIN: str = "http://localhost:5173"

    CREATE_TIMEOUT_SECONDS: float = 5.0
    LIST_TIMEOUT_SECONDS: float = 10.0
    ID_ALLOCATION_RETRIES: int = 3

    model_config = {
        "env_file": _ENV_FILE,
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }


settings = Settings()
