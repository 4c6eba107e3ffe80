from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # App
    APP_NAME: str = "U-Lingo"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./ulingo.db"

    # Security
    SECRET_KEY: str = "your-secret-key-here-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours

    # Groq AI (chat assistant)
    GROQ_API_KEY: str = ""
    GROQ_MODEL: str = "qwen/qwen3-32b"

    # ElevenLabs (text-to-speech)
    ELEVENLABS_API_KEY: str = ""
    ELEVENLABS_BASE_URL: str = "https://api.elevenlabs.io/v1"
    ELEVENLABS_VOICE_ID: str = "pNInz6obpgDQGcFmaJgB"  # Adam (multilingual)
    ELEVENLABS_MODEL_ID: str = "eleven_multilingual_v2"

    # Outbound calls
    HTTP_TIMEOUT_SECONDS: float = 15.0

    # Progression
    PASS_THRESHOLD: float = 0.70  # share of correct answers for "Great Job!"
    PROGRESS_WRITE_RETRIES: int = 3
    STREAK_BADGE_DAYS: int = 7
    LEVELS_BADGE_COUNT: int = 5
    GRADUATE_BADGE_COUNT: int = 10
    LEADERBOARD_SIZE: int = 5
    SESSION_TTL_MINUTES: int = 120  # unfinished quiz / practice sessions are dropped after this

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
