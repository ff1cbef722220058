from __future__ import annotations
import smtplib
from email.message import EmailMessage
import structlog
from entrydesk.config import settings

log = structlog.get_logger()

def build_message(to: str, subject: str, body: str) -> EmailMessage:
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = settings.mail_from
    message["To"] = to
    message.set_content(body)
    return message

def send_mail(to: str, subject: str, body: str) -> bool:
    """RQ job: deliver one message. Returns False when SMTP is not configured (dev)."""
    message = build_message(to, subject, body)
    if not settings.smtp_host:
        log.info("mail_skipped", to=to, subject=subject, reason="smtp_not_configured")
        return False
    with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
        if settings.smtp_use_tls:
            server.starttls()
        if settings.smtp_username and settings.smtp_password:
            server.login(settings.smtp_username, settings.smtp_password)
        server.send_message(message)
    log.info("mail_sent", to=to, subject=subject)
    return True
