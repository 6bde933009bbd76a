from pydantic import BaseModel
from functools import lru_cache
from typing import List
import os
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseModel):
    database_url: str = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
    database_name: str = os.getenv("DATABASE_NAME", "curated_folders")
    logger_config: str = os.getenv("LOGGER_CONFIG", "logger_config.yaml")
    logger_name: str = os.getenv("LOGGER_NAME", "dev")
    port: int = int(os.getenv("PORT", 8000))
    cors_origins: List[str] = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
