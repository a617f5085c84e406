from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List
import os
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://127.0.0.1:27017/pedalmap")
    MONGO_DB_NAME: str = os.getenv("MONGO_DB_NAME", "pedalmap")
    # "mongo" or "memory"
    HAZARD_STORE: str = os.getenv("HAZARD_STORE", "mongo")
    PORT: int = int(os.getenv("PORT", "8080"))

    GEOAPIFY_BASE_URL: str = os.getenv("GEOAPIFY_BASE_URL", "https://api.geoapify.com")
    GEOAPIFY_ROUTING_API_KEY: str = os.getenv("GEOAPIFY_ROUTING_API_KEY", "")
    GEOAPIFY_PLACES_API_KEY: str = os.getenv("GEOAPIFY_PLACES_API_KEY", "")
    UPSTREAM_TIMEOUT: float = float(os.getenv("UPSTREAM_TIMEOUT", "15"))

    ALLOWED_ORIGINS: str = os.getenv("ALLOWED_ORIGINS", "*")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    class Config:
        case_sensitive = True

    @property
    def allowed_origins(self) -> List[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

@lru_cache()
def get_settings():
    return Settings()
