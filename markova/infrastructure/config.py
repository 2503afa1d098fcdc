import os

class Config:
    """Application configuration"""

    # Remote generation service
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", os.getenv("API_KEY", ""))
    CREDENTIAL_SOURCE: str = os.getenv("CREDENTIAL_SOURCE", "environment")

    # Model selection
    CAMPAIGN_MODEL: str = os.getenv("CAMPAIGN_MODEL", "gemini-3-pro-preview")
    IMAGE_MODEL: str = os.getenv("IMAGE_MODEL", "gemini-2.5-flash-image")
    VIDEO_MODEL: str = os.getenv("VIDEO_MODEL", "veo-3.1-fast-generate-preview")
    VIDEO_REFERENCE_MODEL: str = os.getenv("VIDEO_REFERENCE_MODEL", "veo-3.1-generate-preview")
    STRATEGY_MODEL: str = os.getenv("STRATEGY_MODEL", "gemini-3-pro-preview")
    THINKING_BUDGET: int = int(os.getenv("THINKING_BUDGET", "4096"))

    # Persistence and media
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./markova.db")
    MEDIA_DIR: str = os.getenv("MEDIA_DIR", "./media")
    MEDIA_TTL_SECONDS: int = int(os.getenv("MEDIA_TTL_SECONDS", "3600"))

    # Video delivery: "rehost" keeps the key server-side, "passthrough" hands out the signed URI
    VIDEO_DELIVERY_MODE: str = os.getenv("VIDEO_DELIVERY_MODE", "rehost")
    VIDEO_POLL_INTERVAL_SECONDS: float = float(os.getenv("VIDEO_POLL_INTERVAL_SECONDS", "10"))
    VIDEO_POLL_TIMEOUT_SECONDS: float = float(os.getenv("VIDEO_POLL_TIMEOUT_SECONDS", "0"))
    VIDEO_JOB_RETENTION_SECONDS: float = float(os.getenv("VIDEO_JOB_RETENTION_SECONDS", "3600"))

    # Campaign flow
    INTER_POST_DELAY_SECONDS: float = float(os.getenv("INTER_POST_DELAY_SECONDS", "0.8"))
    MAX_REFERENCE_IMAGE_BYTES: int = int(os.getenv("MAX_REFERENCE_IMAGE_BYTES", str(4 * 1024 * 1024)))

    # Logging Configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "markova")

    # Application Settings
    APP_TITLE: str = os.getenv("APP_TITLE", "Markova Marketing Content API")
    APP_VERSION: str = os.getenv("APP_VERSION", "1.0.0")
    DEFAULT_HOST: str = os.getenv("DEFAULT_HOST", "localhost:8000")
    NODE_NAME: str = os.getenv("NODE_NAME", "markova-core")
    ENGINE_LABEL: str = "Gemini 3.0 Pro + Veo 3.1"

# Global config instance
config = Config()
