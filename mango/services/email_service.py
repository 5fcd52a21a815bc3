"""Summary email rendering and delivery through Resend."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import markdown
import requests
from flask import render_template

from mango.errors import InvalidRecipient, NoRecipients, SendFailed, TooManyRecipients, ValidationFailed

logger = logging.getLogger(__name__)

NO_SUMMARY_HTML = "<p>No summary provided.</p>"
EMAIL_RE = re.compile(r"^[^@\s,;<>]+@[^@\s,;<>]+\.[^@\s,;<>]+$")


@dataclass
class EmailMessage:
    sender: str
    recipients: List[str]
    subject: str
    html: str

    def to_payload(self) -> Dict[str, Any]:
        return {
            "from": self.sender,
            "to": list(self.recipients),
            "subject": self.subject,
            "html": self.html,
        }


def is_email(address: str) -> bool:
    return bool(EMAIL_RE.match(address or ""))


def normalize_recipients(recipients: Any, limit: int = 10) -> List[str]:
    if recipients is None:
        recipients = []
    if not isinstance(recipients, (list, tuple)):
        raise ValidationFailed("recipients must be a list of email addresses")
    cleaned = [str(r).strip() for r in recipients if r is not None and str(r).strip()]
    if not cleaned:
        raise NoRecipients()
    if len(cleaned) > limit:
        raise TooManyRecipients(f"Too many recipients (max {limit}).")
    for address in cleaned:
        if not is_email(address):
            raise InvalidRecipient(f"Invalid email address: {address}")
    return cleaned


def markdown_to_html(text: str) -> str:
    return markdown.markdown(text, extensions=["extra", "sane_lists"])


def resolve_body(html: Optional[str] = None, summary: Optional[str] = None) -> str:
    """Pick the email body: explicit html, then rendered Markdown, then a placeholder."""
    if html and html.strip():
        return html
    if summary and summary.strip():
        return markdown_to_html(summary)
    return NO_SUMMARY_HTML


def render_email(body_html: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now().astimezone()
    sent_at = now.strftime("%B %d, %Y at %I:%M %p %Z").strip()
    return render_template("email/summary.html", body_html=body_html, sent_at=sent_at)


class ResendMailer:
    def __init__(self, api_key: str, api_url: str = "https://api.resend.com/emails",
                 timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def send(self, message: EmailMessage) -> Dict[str, Any]:
        try:
            r = self.session.post(
                self.api_url,
                headers={"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"},
                json=message.to_payload(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise SendFailed(details=str(e)) from e

        try:
            data = r.json()
        except ValueError:
            data = {}
        if not r.ok:
            detail = data.get("message") if isinstance(data, dict) else ""
            raise SendFailed(details=detail or f"HTTP {r.status_code}: {r.text[:200]}")
        return data if isinstance(data, dict) else {}


def send_summary_email(mailer, recipients: Any, *, sender: str, subject: Optional[str] = None,
                       html: Optional[str] = None, summary: Optional[str] = None,
                       default_subject: str = "Your AI Meeting Summary", max_recipients: int = 10,
                       now: Optional[datetime] = None) -> Dict[str, Any]:
    """Validate recipients, render the branded body and hand one message to the mailer.

    Returns the provider result; a result without a delivery id is a failure.
    """
    to = normalize_recipients(recipients, limit=max_recipients)
    message = EmailMessage(
        sender=sender,
        recipients=to,
        subject=(subject or "").strip() or default_subject,
        html=render_email(resolve_body(html, summary), now=now),
    )

    try:
        result = mailer.send(message)
    except SendFailed:
        raise
    except Exception as e:
        raise SendFailed(details=f"{type(e).__name__}: {e}") from e

    if not (result or {}).get("id"):
        raise SendFailed(details="Email provider returned no delivery id")
    logger.info("Summary email %s sent to %d recipient(s)", result["id"], len(to))
    return result
