from pydantic_settings import BaseSettings
from dotenv import load_dotenv
import logging
import os
from pathlib import Path

_logger = logging.getLogger(__name__)

# Look for .env in api directory (parent of app directory)
api_dir = Path(__file__).parent.parent.parent
env_path = api_dir / ".env"

if env_path.exists():
    load_dotenv(env_path, override=True)
    _logger.info(f"Loaded .env file from: {env_path}")
else:
    # Fallback to current directory
    current_env = Path(".env")
    if current_env.exists():
        load_dotenv(current_env, override=True)
        _logger.info(f"Loaded .env file from: {current_env.absolute()}")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database - hosting platforms provide DATABASE_URL (uppercase)
    database_url: str = ""

    # API
    api_v1_prefix: str = "/api/v1"

    # CORS
    cors_origins: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"

    # Gym sessions
    gym_default_target_count: int = 20
    gym_max_target_count: int = 50
    gym_seconds_per_exercise: int = 45  # Used for the session duration estimate

    # FSRS scheduler
    gym_desired_retention: float = 0.9
    gym_maximum_interval: int = 36500  # days
    gym_enable_fuzzing: bool = True
    gym_enable_short_term: bool = False  # Minute-level learning steps; off so reviewed words leave for days

    # Penalise stability when a word moves up to a harder practice type
    gym_apply_transition_penalty: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = False

    def __init__(self, **kwargs):
        # Ensure we read DATABASE_URL from environment
        if not kwargs.get("database_url"):
            kwargs["database_url"] = os.getenv("DATABASE_URL", "")
        super().__init__(**kwargs)


# Create settings instance
settings = Settings()

# Validate required DATABASE_URL
if not settings.database_url:
    raise ValueError("DATABASE_URL environment variable is required")
