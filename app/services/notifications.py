"""
Outbound email for moderation decisions.

Sent from FastAPI background tasks after the response; delivery problems are
logged and swallowed so a mail outage never blocks a listing change.
"""

import logging
import smtplib
from email.message import EmailMessage
from html import escape

from app.core.config import settings

logger = logging.getLogger(__name__)


def send_email(to: str, subject: str, html: str) -> bool:
    """Send one HTML email. Returns True if handed to the SMTP server, False otherwise."""
    if not settings.email_enabled:
        logger.info(f"Email not configured; skipping '{subject}' to {to}")
        return False

    message = EmailMessage()
    message["From"] = settings.email_from or f"CityLocal <{settings.smtp_user}>"
    message["To"] = to
    message["Subject"] = subject
    message.set_content("This message requires an HTML-capable mail client.")
    message.add_alternative(html, subtype="html")

    try:
        with smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, timeout=10) as smtp:
            if settings.smtp_user and settings.smtp_password:
                smtp.login(settings.smtp_user, settings.smtp_password)
            smtp.send_message(message)
        logger.info(f"Email sent: '{subject}' to {to}")
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.warning(f"Email send failed for '{subject}' to {to}: {e}")
        return False


def approval_email(owner_name: str, business_name: str) -> tuple[str, str]:
    subject = f"Your Business Listing Has Been Approved! - {business_name}"
    html = (
        f"<p>Hello <strong>{escape(owner_name or 'there')}</strong>,</p>"
        f"<p>Your business listing <strong>\"{escape(business_name)}\"</strong> has been approved "
        f"and is now live.</p>"
        f"<p><a href=\"{settings.frontend_url}/business-dashboard\">View My Dashboard</a></p>"
    )
    return subject, html


def rejection_email(owner_name: str, business_name: str, reason: str) -> tuple[str, str]:
    subject = f"Business Listing Review - {business_name}"
    html = (
        f"<p>Hello <strong>{escape(owner_name or 'there')}</strong>,</p>"
        f"<p>We've reviewed your business listing <strong>\"{escape(business_name)}\"</strong> "
        f"and need some corrections before we can approve it.</p>"
        f"<p><strong>Reason:</strong><br>{escape(reason).replace(chr(10), '<br>')}</p>"
        f"<p>Update your listing and resubmit it for review: "
        f"<a href=\"{settings.frontend_url}/business-dashboard\">Update My Listing</a></p>"
    )
    return subject, html
