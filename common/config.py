import logging
import os
from pydantic_settings import BaseSettings
from typing import List, Optional
from dotenv import load_dotenv
import sys


# ------------------------------------------------------------------
# Environment loading
# ------------------------------------------------------------------

load_dotenv(dotenv_path="local.env")


class Settings(BaseSettings):
    APP_NAME: str = "Longevity Assessment API"
    API_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None
    CORS_ALLOW_ORIGINS: List[str] = ["*"]
    RATE_LIMIT_ENABLED: bool = True
    ASSESSMENT_RATE_LIMIT: str = "60/minute"

    class Config:
        env_file = "local.env"
        env_file_encoding = "utf-8"
        extra = "ignore"

settings = Settings()


# ------------------------------------------------------------------
# Logging
# ------------------------------------------------------------------

LOG_LEVEL = settings.LOG_LEVEL.upper()

handlers = [
    logging.StreamHandler(sys.stdout),
]

if settings.LOG_FILE:
    os.makedirs(os.path.dirname(settings.LOG_FILE) or ".", exist_ok=True)
    handlers.append(logging.FileHandler(settings.LOG_FILE))

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    handlers=handlers,
)

logger = logging.getLogger("longevity")
logger.setLevel(LOG_LEVEL)

# ------------------------------------------------------------------
# Silence noisy dependencies
# ------------------------------------------------------------------

logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
