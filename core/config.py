# core/config.py

from typing import Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Loads application settings from .env file."""
    mongo_uri: Optional[str] = None
    mongo_user: Optional[str] = None
    mongo_password: Optional[str] = None
    mongo_host: str = "localhost"
    mongo_port: int = 27017
    db_name: str = "field_visits_db"

    # Visits view
    visits_page_size: int = 5
    recent_visits_limit: int = 10
    resolver_concurrency: int = 8
    local_timezone: Optional[str] = None  # IANA name, host timezone when unset
    export_dir: str = "exports"

    # Nominatim requires a user-agent
    nominatim_user_agent: str = "FieldVisitTracker/1.0"

    @property
    def final_mongo_uri(self) -> str:
        """Constructs safe MongoDB URI from components (preferred) or returns the provided one."""
        if self.mongo_user and self.mongo_password:
            import urllib.parse
            user = urllib.parse.quote_plus(self.mongo_user)
            password = urllib.parse.quote_plus(self.mongo_password)
            return f"mongodb+srv://{user}:{password}@{self.mongo_host}/"

        if self.mongo_uri:
            return self.mongo_uri

        return f"mongodb://{self.mongo_host}:{self.mongo_port}/"

    class Config:
        env_file = ".env"

# Create a single, reusable instance of the settings
settings = Settings()
