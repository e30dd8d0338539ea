from __future__ import annotations

import base64
import binascii
import html
import logging
import re
from typing import Any, Dict, List, Optional

from job_copilot.models import RawMessage

logger = logging.getLogger(__name__)

# Characters of body text forwarded to the models.
EMAIL_CONTENT_BODY_LIMIT = 1500


def decode_base64url(data: Optional[str]) -> str:
    """
    Decode Gmail's base64url body data.
    Malformed input yields "" so one broken part never fails the sync.
    """
    if not data:
        return ""
    try:
        padded = data + "=" * (-len(data) % 4)
        return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError, UnicodeEncodeError) as exc:
        logger.debug("Could not decode body part: %s", exc)
        return ""


def html_to_text(markup: str) -> str:
    text = re.sub(r"<(style|script)[^>]*>.*?</\1>", " ", markup, flags=re.DOTALL | re.IGNORECASE)
    text = re.sub(r"<[^>]+>", " ", text)
    text = html.unescape(text)
    return re.sub(r"\s+", " ", text).strip()


def _part_data(part: dict) -> Optional[str]:
    return (part.get("body") or {}).get("data")


def _collect_parts(part: dict, mime_type: str) -> List[dict]:
    # Depth-first search through multipart payloads.
    found: List[dict] = []
    if part.get("mimeType") == mime_type and _part_data(part):
        found.append(part)
    for child in part.get("parts", []) or []:
        found.extend(_collect_parts(child, mime_type))
    return found


def extract_body_from_payload(payload: dict) -> str:
    """
    Extract plain text body from Gmail message payload.

    Order: top-level body, then every text/plain part concatenated,
    then the first text/html part with tags stripped.
    """
    if _part_data(payload):
        top = decode_base64url(_part_data(payload))
        if payload.get("mimeType") == "text/html":
            return html_to_text(top)
        if top:
            return top

    plain = [decode_base64url(_part_data(p)) for p in _collect_parts(payload, "text/plain")]
    text = "".join(plain)
    if text:
        return text

    for part in _collect_parts(payload, "text/html"):
        return html_to_text(decode_base64url(_part_data(part)))

    return ""


def get_header(payload: dict, name: str) -> str:
    wanted = name.lower()
    for header in payload.get("headers", []) or []:
        if (header.get("name") or "").lower() == wanted:
            return header.get("value") or ""
    return ""


def normalize_message(resource: Dict[str, Any]) -> RawMessage:
    """Turn a Gmail 'full' message resource into a RawMessage."""
    payload = resource.get("payload") or {}
    headers = {
        h.get("name"): h.get("value") or ""
        for h in payload.get("headers", []) or []
        if h.get("name")
    }
    snippet = html.unescape(resource.get("snippet") or "")
    body_text = extract_body_from_payload(payload) or snippet

    return RawMessage(
        message_id=str(resource.get("id") or ""),
        thread_id=str(resource.get("threadId") or ""),
        body_text=body_text,
        snippet=snippet,
        headers=headers,
        label_ids=[str(x) for x in (resource.get("labelIds") or [])],
    )


def build_email_content(message: RawMessage, subject: Optional[str] = None) -> str:
    """The normalized text both model calls see."""
    return "\n".join(
        [
            f"Subject: {subject if subject is not None else message.subject}",
            f"From: {message.sender}",
            f"Body: {message.body_text[:EMAIL_CONTENT_BODY_LIMIT]}",
        ]
    )
