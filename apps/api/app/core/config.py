"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
    
    # Environment
    ENV: str = "dev"
    TESTING: bool = False
    
    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"
    
    # Database
    DATABASE_URL: str
    
    # Session Token (supports key rotation)
    JWT_SECRET: str = "change-this-in-production"
    JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    JWT_EXPIRES_HOURS: int = 24
    
    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"
    
    # Platform operators (comma-separated pubkeys)
    SUPER_ADMINS: str = ""
    
    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""
    LOG_LEVEL: str = "INFO"
    
    # Rate Limiting (requests per minute)
    RATE_LIMIT_API: int = 120  # General API
    RATE_LIMIT_WRITE: int = 30  # Creates (workspaces, bounties, requests, comments)
    REDIS_URL: str = "redis://localhost:6379/0"  # Shared rate-limit counters
    
    # Bounty amounts (satoshis)
    MIN_BOUNTY_AMOUNT: int = 1
    MAX_BOUNTY_AMOUNT: int = 100_000_000
    
    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]
    
    @property
    def super_admins_list(self) -> list[str]:
        """Parse SUPER_ADMINS into lowercase pubkeys."""
        if not self.SUPER_ADMINS:
            return []
        return [p.strip().lower() for p in self.SUPER_ADMINS.split(",") if p.strip()]
    
    @property
    def jwt_secrets(self) -> list[str]:
        """Returns list of valid secrets (current first, then previous if set)."""
        secrets = [self.JWT_SECRET]
        if self.JWT_SECRET_PREVIOUS:
            secrets.append(self.JWT_SECRET_PREVIOUS)
        return secrets


settings = Settings()
