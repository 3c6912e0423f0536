from typing import Optional, Dict, Any, Union
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, PostgresDsn, field_validator
from pathlib import Path

# Define the root directory of the recommendation_service package
SERVICE_ROOT_DIR = Path(__file__).parent.parent.resolve()
# Path to the repository root (two levels up from this settings.py)
PROJECT_ROOT_DIR = SERVICE_ROOT_DIR.parent

class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = "RecommendationService"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # CORS settings
    CORS_ORIGINS: Union[str, list[str]] = "http://localhost:3000"
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: Union[str, list[str]] = "GET,POST"
    CORS_ALLOW_HEADERS: Union[str, list[str]] = "*"

    # Database settings (query cache store)
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "user"
    DB_PASSWORD: str = "password"
    DB_NAME: str = "recommendations_db"
    DATABASE_URL: Optional[str] = Field(default=None, validate_default=True)
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_COMMAND_TIMEOUT_SECONDS: float = 5.0

    @field_validator("DATABASE_URL", mode='before')
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], values: Dict[str, Any]) -> Any:
        if isinstance(v, str):
            return v
        return str(PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=values.data.get("DB_USER"),
            password=values.data.get("DB_PASSWORD"),
            host=values.data.get("DB_HOST"),
            port=int(values.data.get("DB_PORT")),
            path=f"{values.data.get('DB_NAME') or ''}",
        ))

    def model_post_init(self, __context) -> None:
        """Parse comma-separated strings into lists after model initialization."""
        if isinstance(self.CORS_ORIGINS, str):
            self.CORS_ORIGINS = [origin.strip() for origin in self.CORS_ORIGINS.split(',') if origin.strip()]

        if isinstance(self.CORS_ALLOW_METHODS, str):
            self.CORS_ALLOW_METHODS = [method.strip() for method in self.CORS_ALLOW_METHODS.split(',') if method.strip()]

        if isinstance(self.CORS_ALLOW_HEADERS, str):
            if self.CORS_ALLOW_HEADERS == "*":
                self.CORS_ALLOW_HEADERS = ["*"]
            else:
                self.CORS_ALLOW_HEADERS = [header.strip() for header in self.CORS_ALLOW_HEADERS.split(',') if header.strip()]

    # SerpAPI (thread discovery)
    SERPAPI_KEY: str = ""
    SERPAPI_URL: str = "https://serpapi.com/search.json"
    SERPAPI_NUM_RESULTS: int = 10

    # Reddit API (comment retrieval)
    REDDIT_CLIENT_ID: str = ""
    REDDIT_CLIENT_SECRET: str = ""
    REDDIT_USERNAME: str = ""
    REDDIT_PASSWORD: str = ""
    REDDIT_USER_AGENT: str = "RecommendationService/0.1"
    REDDIT_TOKEN_URL: str = "https://www.reddit.com/api/v1/access_token"
    REDDIT_API_BASE_URL: str = "https://oauth.reddit.com"
    REDDIT_TOKEN_REFRESH_MARGIN_SECONDS: int = 10

    # OpenAI (recommendation extraction)
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-3.5-turbo"
    OPENAI_TEMPERATURE: float = 0.7
    OPENAI_TIMEOUT_SECONDS: float = 60.0

    # Amazon search links
    AMAZON_SEARCH_URL: str = "https://www.amazon.com/s"
    AMAZON_AFFILIATE_TAG: Optional[str] = None
    GIFT_AMAZON_AFFILIATE_TAG: Optional[str] = None

    # Pipeline settings
    MAX_THREADS_PER_QUERY: int = 5
    MAX_COMMENTS_PER_THREAD: int = 15
    MIN_COMMENT_LENGTH: int = 20
    MAX_RESULTS: int = 12
    HTTP_TIMEOUT_SECONDS: float = 15.0
    THREAD_TASK_TIMEOUT_SECONDS: float = 90.0

    # Logging configuration path (can be overridden by env var)
    LOGGING_CONFIG_PATH: str = str(SERVICE_ROOT_DIR / "config" / "logging_config.yaml")

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT_DIR / ".env"),  # Load variables from project root .env
        env_file_encoding='utf-8',
        extra='ignore'
    )


# Instantiate settings
settings = Settings()
