"""Application settings and configuration"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "GitHub Searcher"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./github_searcher.db"

    # GitHub API
    GITHUB_API_BASE_URL: str = "https://api.github.com"
    GITHUB_SEARCH_REPOSITORIES_PATH: str = "/search/repositories"
    GITHUB_TIMEOUT_SECONDS: float = 30.0
    USER_AGENT: str = "GitHubSearcher/1.0"

    # Blocking store I/O runs on its own bounded pool
    STORE_MAX_WORKERS: int = 4

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env


settings = Settings()
