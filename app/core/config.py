import os
import logging
from pydantic import BaseModel, Field
from typing import List
from dotenv import load_dotenv

load_dotenv()

class GamificationSettings(BaseModel):
    xp_goal_created: int = Field(default=int(os.getenv("XP_GOAL_CREATED", "10")))
    xp_goal_completed: int = Field(default=int(os.getenv("XP_GOAL_COMPLETED", "50")))
    xp_per_level: int = Field(default=int(os.getenv("XP_PER_LEVEL", "100")))
    # Completions closer together than this extend the streak
    streak_window_days: int = Field(default=int(os.getenv("STREAK_WINDOW_DAYS", "7")))

class Config(BaseModel):
    app_name: str = "Skills Matrix"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./skills_matrix.db")

    # Auth is delegated to the upstream provider, which forwards the profile id
    user_id_header: str = os.getenv("USER_ID_HEADER", "X-User-Id")

    gamification: GamificationSettings = GamificationSettings()
    leaderboard_default_limit: int = int(os.getenv("LEADERBOARD_DEFAULT_LIMIT", "8"))
    leaderboard_max_limit: int = int(os.getenv("LEADERBOARD_MAX_LIMIT", "50"))
    recent_actions_limit: int = 20
    notifications_page_size: int = 50

    # Bootstrap admin created on first start when set
    bootstrap_admin_email: str = os.getenv("BOOTSTRAP_ADMIN_EMAIL", "")

    version: str = "1.0.0"
    build_id: str = os.getenv("BUILD_ID", "local")
    request_id_header: str = "X-Request-ID"

    # CORS: comma-separated origins loaded from env.
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:5173,http://localhost:3000,"
                "http://127.0.0.1:5173,http://127.0.0.1:3000",
            ).split(",")
            if o.strip()
        ]
    )

settings = Config()

_logger = logging.getLogger(__name__)
if settings.environment == "development" and "sqlite" in settings.database_url:
    _logger.info("Using local SQLite database, only acceptable in development.")
