from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse
from google_auth_oauthlib.flow import InstalledAppFlow

from job_copilot.app.run import load_gmail_config
from job_copilot.config.paths import CREDENTIALS_PATH, TOKEN_PATH
from job_copilot.context import SyncContext
from job_copilot.gmail.client import SCOPES
from backend.app.deps import get_context

logger = logging.getLogger(__name__)

router = APIRouter()

# Consent flows started by /auth/gmail/oauth, keyed by their OAuth state.
_pending: dict[str, InstalledAppFlow] = {}


def _gmail_flow(request: Request, state: Optional[str] = None) -> InstalledAppFlow:
    try:
        cfg = load_gmail_config()
    except RuntimeError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    flow = InstalledAppFlow.from_client_secrets_file(str(cfg.credentials_path), SCOPES, state=state)
    flow.redirect_uri = str(request.url_for("gmail_oauth_callback"))
    return flow


@router.get("/auth/gmail/status")
def gmail_status(ctx: SyncContext = Depends(get_context)) -> dict:
    return {
        "connected": ctx.connected,
        "email": ctx.mailbox_identity,
        "credentials_present": CREDENTIALS_PATH.exists(),
        "token_present": TOKEN_PATH.exists(),
    }


@router.post("/auth/gmail/oauth")
def start_gmail_oauth(request: Request) -> dict:
    flow = _gmail_flow(request)
    # Offline access plus forced consent, otherwise Google omits the refresh token.
    auth_url, state = flow.authorization_url(
        access_type="offline",
        include_granted_scopes="true",
        prompt="consent",
    )
    _pending[state] = flow
    return {"ok": True, "auth_url": auth_url}


@router.get("/auth/gmail/oauth/callback", name="gmail_oauth_callback")
def gmail_oauth_callback(request: Request, state: str, code: str) -> HTMLResponse:
    flow = _pending.pop(state, None) or _gmail_flow(request, state=state)

    try:
        flow.fetch_token(code=code)
    except Exception as exc:
        logger.warning("Gmail token exchange failed: %s", exc)
        raise HTTPException(status_code=400, detail=f"Gmail token exchange failed: {exc}") from exc

    TOKEN_PATH.parent.mkdir(parents=True, exist_ok=True)
    TOKEN_PATH.write_text(flow.credentials.to_json(), encoding="utf-8")
    logger.info("Gmail connected, token saved to %s", TOKEN_PATH)

    return HTMLResponse("<h2>Gmail connected</h2><p>Close this window and start a sync.</p>")
