"""
Outbound e-mail (Resend HTTP API over httpx) and the contact form e-mail template.
"""
import html
import logging
from datetime import datetime, timedelta, timezone

import httpx

from acda_site.config import HTTP_TIMEOUT, RESEND_API_KEY

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"
_IST = timezone(timedelta(hours=5, minutes=30))


class EmailError(Exception):
    pass


class ResendMailer:
    def __init__(self, api_key: str = RESEND_API_KEY, timeout: float = HTTP_TIMEOUT):
        self.api_key = api_key
        self.timeout = timeout

    def send(self, *, sender: str, to: str, subject: str, html_body: str, reply_to: str | None = None) -> str:
        """Send one HTML e-mail; returns the provider's message id."""
        if not self.api_key or not to:
            raise EmailError("Email configuration is missing")
        payload = {"from": sender, "to": [to], "subject": subject, "html": html_body}
        if reply_to:
            payload["reply_to"] = reply_to
        try:
            r = httpx.post(
                RESEND_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise EmailError(f"Email request failed: {e}") from e
        if r.status_code not in (200, 201):
            raise EmailError(f"Email rejected ({r.status_code}): {r.text[:200]}")
        try:
            body = r.json()
        except ValueError as e:
            raise EmailError(f"Unreadable email response: {r.text[:200]}") from e
        if not isinstance(body, dict) or not body.get("id"):
            raise EmailError(f"Email response missing id: {r.text[:200]}")
        return body["id"]


_mailer: ResendMailer | None = None


def get_mailer() -> ResendMailer:
    """Dependency: shared mailer."""
    global _mailer
    if _mailer is None:
        _mailer = ResendMailer()
    return _mailer


def render_contact_email(data: dict, received_at: datetime | None = None) -> str:
    """HTML body for a contact form submission. All user input is escaped."""
    received_at = (received_at or datetime.now(timezone.utc)).astimezone(_IST)

    def e(s: str | None) -> str:
        return html.escape(s or "")

    phone_html = ""
    if data.get("phone"):
        phone_html = f"""
    <div class="field">
      <div class="label">Phone Number</div>
      <div class="value"><a href="tel:{e(data["phone"])}">{e(data["phone"])}</a></div>
    </div>"""
    message_html = e(data.get("message")).replace("\n", "<br>")
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>New Contact Form Submission</title>
  <style>
    body {{ font-family: system-ui, sans-serif; color: #333; max-width: 600px; margin: 0 auto; padding: 20px; }}
    .header {{ background: #111184; color: #fff; padding: 20px; border-radius: 8px 8px 0 0; }}
    .field {{ margin-bottom: 20px; padding-bottom: 20px; border-bottom: 1px solid #e5e5e5; }}
    .label {{ font-weight: 600; color: #111184; font-size: 14px; text-transform: uppercase; }}
    .message-box {{ background: #f8f9fa; padding: 15px; border-left: 4px solid #111184; }}
    .footer {{ margin-top: 30px; text-align: center; color: #666; font-size: 14px; }}
  </style>
</head>
<body>
  <div class="header">
    <h1>New Contact Form Submission</h1>
    <p>Asansol Coalfield Diabetes Association</p>
  </div>
  <div class="field">
    <div class="label">Name</div>
    <div class="value">{e(data.get("name"))}</div>
  </div>
  <div class="field">
    <div class="label">Email Address</div>
    <div class="value"><a href="mailto:{e(data.get("email"))}">{e(data.get("email"))}</a></div>
  </div>{phone_html}
  <div class="field">
    <div class="label">Subject</div>
    <div class="value">{e(data.get("subject"))}</div>
  </div>
  <div class="field">
    <div class="label">Message</div>
    <div class="message-box">{message_html}</div>
  </div>
  <div class="footer">
    <p>Received on {received_at.strftime("%A, %d %B %Y at %I:%M %p")} IST</p>
    <p>This is an automated message from the ACDA website.</p>
  </div>
</body>
</html>"""
