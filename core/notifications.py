# core/notifications.py
import requests
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import List, Optional
from core.config import settings
from core.logging_config import logger


# -----------------------------------------------------
# Send webhook (Slack, Discord, etc.)
# -----------------------------------------------------
def send_webhook_message(message: str):
    webhook_url = settings.OPS_WEBHOOK_URL
    if not webhook_url:
        logger.debug("Webhook URL not configured, skipping.")
        return

    try:
        response = requests.post(webhook_url, json={"content": message, "text": message}, timeout=10)
        logger.info(f"Webhook sent (status {response.status_code})")
    except requests.RequestException as e:
        logger.warning(f"Webhook failed: {e}")


# -----------------------------------------------------
# Send email (SMTP)
# -----------------------------------------------------
def send_email(
    subject: str,
    body: str,
    recipients: Optional[List[str]] = None,
    html_body: Optional[str] = None,
) -> bool:
    """
    Send email via SMTP.

    Falls back to SMTP_TO when no recipients are given. Returns False
    (and logs) when email is not configured; raises on SMTP failures.
    """
    smtp_host = settings.SMTP_HOST
    smtp_port = settings.SMTP_PORT
    smtp_user = settings.SMTP_USER
    smtp_pass = settings.SMTP_PASS

    recipient_list = [r for r in (recipients or [settings.SMTP_TO]) if r]

    if not recipient_list:
        logger.warning("No recipients specified, skipping email.")
        return False

    if not all([smtp_host, smtp_port, smtp_user, smtp_pass]):
        logger.warning("Email credentials missing, skipping email.")
        return False

    try:
        msg = MIMEMultipart("alternative")
        msg["From"] = smtp_user
        msg["To"] = ", ".join(recipient_list)
        msg["Subject"] = subject

        msg.attach(MIMEText(body, "plain"))
        if html_body:
            msg.attach(MIMEText(html_body, "html"))

        with smtplib.SMTP_SSL(smtp_host, smtp_port) as server:
            server.login(smtp_user, smtp_pass)
            server.send_message(msg)

        logger.info(f"Email sent to {', '.join(recipient_list)}")
        return True

    except Exception as e:
        logger.error(f"Email failed: {e}")
        raise
