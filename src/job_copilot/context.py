from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from googleapiclient.errors import HttpError

from job_copilot.errors import MailboxUnavailable
from job_copilot.gmail.client import GmailClient, GmailClientConfig, Mailbox

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncContext:
    """
    Everything a sync needs to know about the mailbox, passed explicitly.

    mailbox is None when no credential is stored or the login is unusable.
    """
    mailbox: Optional[Mailbox]
    mailbox_identity: Optional[str] = None

    @property
    def connected(self) -> bool:
        return self.mailbox is not None

    @classmethod
    def disconnected(cls) -> "SyncContext":
        return cls(mailbox=None, mailbox_identity=None)


def connect_context(cfg: GmailClientConfig) -> SyncContext:
    """Build a context from the stored Gmail token, never prompting a login."""
    client = GmailClient(cfg)
    if not client.has_token():
        return SyncContext.disconnected()
    try:
        client.connect(interactive=False)
    except MailboxUnavailable as exc:
        logger.warning("Gmail not connected: %s", exc)
        return SyncContext.disconnected()
    try:
        identity = client.email_address()
    except (HttpError, GoogleAuthError, httplib2.HttpLib2Error, OSError) as exc:
        # Token rejected, DNS failure or socket error while reaching Gmail.
        logger.warning("Gmail profile lookup failed: %s", exc)
        return SyncContext.disconnected()
    return SyncContext(mailbox=client, mailbox_identity=identity)
