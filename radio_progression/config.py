"""Application configuration and environment settings"""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """Progression settings loaded from environment variables"""
    # Storage
    DATABASE_URL: str = Field("sqlite:///radio_progression.db", description="SQLAlchemy URL of the profile store")

    # Listening clock
    TICK_SECONDS: float = Field(1.0, description="Seconds between listening ticks")

    # Points rules
    SECONDS_PER_POINT: int = Field(60, description="Listening seconds needed for one point")
    MILESTONE_POINTS: int = Field(10, description="Milestone toast when points reach a multiple of this")
    PERIODIC_NOTIFY_SECONDS: int = Field(300, description="Periodic points toast every this many listening seconds")
    VOTE_POINTS: int = Field(1, description="Points for the first vote on a song")
    MUSIC_SUBMISSION_COST: int = Field(50, description="Points spent on a music submission")

    # History and community votes
    HISTORY_LIMIT: int = Field(50, description="Maximum song history entries kept")
    VOTE_SEED_MAX: int = Field(10, description="Upper bound of seeded likes/dislikes for new songs (0 disables)")

    # Notifications and delayed actions
    TOAST_DISPLAY_SECONDS: float = Field(4.0, description="Seconds a toast stays visible")
    TOAST_EXIT_SECONDS: float = Field(0.3, description="Seconds of toast exit transition before removal")
    RAID_DELAY_SECONDS: float = Field(5.0, description="Seconds between starting a raid and switching station")

    # Now playing lookups
    NOW_PLAYING_API_URL: str = Field("https://music-station.live/api/nowplaying", description="Now playing API base URL")
    NOW_PLAYING_TIMEOUT: float = Field(10.0, description="HTTP timeout for now playing lookups")

    LOG_LEVEL: str = Field("INFO", description="Log level for the command line entry point")

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra='ignore'
    )

settings = Settings()
