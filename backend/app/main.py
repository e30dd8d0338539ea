# backend/app/main.py
from fastapi import FastAPI

from job_copilot.config.log import setup_logging
from job_copilot.config.paths import LOGS_DIR, CREDENTIALS_PATH
from backend.app.api.applications import router as applications_router
from backend.app.api.auth import router as auth_router
from backend.app.api.sync import router as sync_router
from backend.app.deps import get_settings

setup_logging(get_settings().log_level, LOGS_DIR)

app = FastAPI(title="job-copilot API")
app.include_router(applications_router, prefix="/api")
app.include_router(auth_router, prefix="/api")
app.include_router(sync_router, prefix="/api")


@app.get("/api/health")
def health() -> dict:
    return {"ok": True, "message": "Backend is running"}


@app.get("/api/config")
def config() -> dict:
    return {"gmailConfigured": CREDENTIALS_PATH.exists()}
