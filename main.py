"""
Tabular Explorer Engine — FastAPI Server (Port 8002)
=====================================================
Upload parsed tabular records, then profile, clean, filter, summarise and
question them. All state lives in memory, one session per uploaded dataset.

Run:
  uvicorn main:app --host 0.0.0.0 --port 8002 --reload
  # or
  python main.py
"""

import logging
import os
from contextlib import asynccontextmanager

# Load .env file BEFORE anything reads os.getenv()
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from explorer.config import settings  # noqa: E402

# ── Logging ──
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s | %(name)-30s | %(levelname)-7s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("tabular_explorer")


# ── Lifespan: warm up the session store ──
@asynccontextmanager
async def lifespan(app: FastAPI):
    from explorer.core.session_store import get_store

    store = get_store()
    logger.info(
        f"Session store ready: max {settings.MAX_SESSIONS} sessions, "
        f"idle expiry {settings.SESSION_TTL_SECONDS}s"
    )
    yield
    logger.info(f"Shutting down Tabular Explorer Engine, dropping {len(store)} sessions")
    store.clear()


# ── Create FastAPI app ──
app = FastAPI(
    title="Tabular Explorer Engine",
    description=(
        "In-memory tabular data explorer: column type inference, "
        "descriptive statistics, data-quality report (missing / duplicates / IQR outliers), "
        "remediation fixes, categorical filters, insight narrative, "
        "rule-based question answering and CSV / text / JSON exports."
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS ──
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Mount all API routes ──
from explorer.api.router import api_router  # noqa: E402
app.include_router(api_router, prefix="/api/v1")


# ── Root ──
@app.get("/", tags=["Root"])
async def root():
    return {
        "service": "Tabular Explorer Engine",
        "version": "1.0.0",
        "docs": "/docs",
        "endpoints": {
            "sessions": "/api/v1/explorer/sessions",
        },
        "health": "/api/v1/explorer/health",
    }


# ── Direct run ──
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=os.getenv("RELOAD", "true").lower() == "true",
        log_level="info",
    )
