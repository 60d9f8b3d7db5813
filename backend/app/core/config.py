"""
Centralized application configuration
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application configuration"""

    # API Settings
    API_TITLE: str = "Comanda API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Backend for menu, PDV, kitchen display and delivery"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_DEBUG: bool = True

    # Database
    DATABASE_URL: str = ""
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""

    # Auth
    AUTH_SECRET: str = ""

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:5173,https://cardapio.example.com" or '["http://localhost:5173"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:5173,http://localhost:3000"

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:5173"]

        # Try JSON parse first (for array format)
        import json
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        # Fall back to comma-separated string
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    # Realtime change feed (Supabase postgres_changes)
    REALTIME_ENABLED: bool = False

    # Kitchen / order list polling happens every 5-10s, keep reads just under that
    CACHE_TTL_SECONDS: float = 4.0

    # Business hours are evaluated in the restaurant's local time
    STORE_TIMEZONE: str = "America/Sao_Paulo"

    # Driver dashboard
    DRIVER_SEEN_DIR: str = ".driver_seen"
    PUSH_WEBHOOK_URL: str = ""
    DRIVER_COMMISSION_RATE: float = 0.05

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
