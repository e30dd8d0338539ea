from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from job_copilot.errors import MailboxUnavailable

logger = logging.getLogger(__name__)

# Readonly is all the sync needs, we never modify the mailbox.
SCOPES = ["https://www.googleapis.com/auth/gmail.readonly"]

# Simple recent-inbox query (complex Gmail queries tend to return nothing).
RECENT_QUERY = "newer_than:90d"


class Mailbox(Protocol):
    """The two calls the sync pipeline needs from a mailbox provider."""

    def list_recent_message_ids(self, max_results: int, query: str = RECENT_QUERY) -> List[str]: ...

    def get_full_message(self, message_id: str) -> Dict[str, Any]: ...


@dataclass(frozen=True)
class GmailClientConfig:
    # Path to OAuth client credentials downloaded from Google Cloud Console.
    credentials_path: Path
    # Token cache will be created here after first login.
    token_path: Path
    # Gmail userId, "me" refers to the authenticated user.
    user_id: str = "me"
    label_ids: Sequence[str] = ("INBOX",)


class GmailClient:
    def __init__(self, cfg: GmailClientConfig):
        self._cfg = cfg
        self._creds: Optional[Credentials] = None
        self._service = None

    def has_token(self) -> bool:
        return self._cfg.token_path.exists()

    def connect(self, *, interactive: bool = True) -> None:
        """
        Create an authenticated Gmail API service client.

        With interactive=False a missing or unusable token raises
        MailboxUnavailable instead of opening a browser login.
        """
        creds = None

        if self._cfg.token_path.exists():
            try:
                creds = Credentials.from_authorized_user_file(str(self._cfg.token_path), SCOPES)
            except ValueError as exc:
                raise MailboxUnavailable(f"Unreadable Gmail token at {self._cfg.token_path}: {exc}") from exc

        # If there are no (valid) credentials available, let the user log in.
        if not creds or not creds.valid:
            if creds and creds.expired and creds.refresh_token:
                try:
                    creds.refresh(Request())
                except GoogleAuthError as exc:
                    # RefreshError and TransportError (network down) alike.
                    raise MailboxUnavailable(f"Gmail token refresh failed: {exc}") from exc
            elif not interactive:
                raise MailboxUnavailable(f"No usable Gmail token at {self._cfg.token_path}")
            else:
                flow = InstalledAppFlow.from_client_secrets_file(
                    str(self._cfg.credentials_path),
                    SCOPES,
                )
                creds = flow.run_local_server(port=0)

            # Save the credentials for the next run.
            self._cfg.token_path.parent.mkdir(parents=True, exist_ok=True)
            self._cfg.token_path.write_text(creds.to_json(), encoding="utf-8")

        self._creds = creds
        self._service = build("gmail", "v1", credentials=creds, cache_discovery=False)

    @property
    def service(self):
        if self._service is None:
            raise RuntimeError("GmailClient is not connected. Call connect() first.")
        return self._service

    def list_messages(
        self,
        query: str = "",
        max_results: int = 10,
        label_ids: Optional[Sequence[str]] = None,
    ) -> List[str]:
        """
        List message IDs matching a Gmail search query.
        Example query: 'newer_than:90d'
        """
        params: Dict[str, Any] = {
            "userId": self._cfg.user_id,
            "q": query,
            "maxResults": max_results,
        }
        if label_ids:
            params["labelIds"] = list(label_ids)
        resp = self.service.users().messages().list(**params).execute()
        msgs = resp.get("messages", [])
        return [m["id"] for m in msgs]

    def list_recent_message_ids(self, max_results: int, query: str = RECENT_QUERY) -> List[str]:
        # Gmail lists newest first; the pipeline relies on that ordering.
        return self.list_messages(
            query=query or RECENT_QUERY,
            max_results=max_results,
            label_ids=self._cfg.label_ids,
        )

    def get_message(self, message_id: str, fmt: str = "full") -> Dict[str, Any]:
        """
        Fetch a full message resource.
        fmt: 'full' | 'metadata' | 'minimal' | 'raw'
        """
        return (
            self.service.users()
            .messages()
            .get(userId=self._cfg.user_id, id=message_id, format=fmt)
            .execute()
        )

    def get_full_message(self, message_id: str) -> Dict[str, Any]:
        return self.get_message(message_id, fmt="full")

    def get_profile(self) -> Dict[str, Any]:
        """Get the Gmail profile of the authenticated user."""
        return self.service.users().getProfile(userId=self._cfg.user_id).execute()

    def email_address(self) -> Optional[str]:
        address = (self.get_profile().get("emailAddress") or "").strip().lower()
        return address or None
