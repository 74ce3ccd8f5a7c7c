"""
Application Settings — All via environment variables with sensible defaults.
"""
import os


class Settings:
    # ── Server ──
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8002"))
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # ── CORS ──
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:8000,http://localhost:3000,*")

    # ── Sessions (in-memory only, nothing persisted) ──
    MAX_SESSIONS: int = int(os.getenv("MAX_SESSIONS", "100"))
    SESSION_TTL_SECONDS: int = int(os.getenv("SESSION_TTL_SECONDS", "3600"))
    MAX_UPLOAD_ROWS: int = int(os.getenv("MAX_UPLOAD_ROWS", "200000"))

    # ── Analysis ──
    TYPE_SAMPLE_SIZE: int = int(os.getenv("TYPE_SAMPLE_SIZE", "100"))


settings = Settings()
