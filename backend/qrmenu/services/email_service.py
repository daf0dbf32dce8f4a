"""
Email Service
Sends OTP codes and password-reset links via SMTP, or logs them when the
console backend is configured (default outside production).
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from flask import current_app

logger = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, body_text: str, body_html: str | None = None) -> bool:
    """
    Send an email.

    Args:
        to_email: Recipient email address
        subject: Email subject
        body_text: Plain text body
        body_html: Optional HTML body

    Returns:
        True if sent (or logged by the console backend), False otherwise
    """
    config = current_app.config
    backend = config.get("MAIL_BACKEND", "console")

    if backend == "console":
        logger.info("[EMAIL] console backend, to=%s subject=%s\n%s", to_email, subject, body_text)
        return True

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = config["MAIL_FROM"]
    msg["To"] = to_email
    msg.attach(MIMEText(body_text, "plain", "utf-8"))
    if body_html:
        msg.attach(MIMEText(body_html, "html", "utf-8"))

    try:
        with smtplib.SMTP(config["SMTP_HOST"], config["SMTP_PORT"]) as server:
            if config.get("SMTP_USE_TLS"):
                server.starttls()
            if config.get("SMTP_USER"):
                server.login(config["SMTP_USER"], config["SMTP_PASSWORD"])
            server.sendmail(config["MAIL_FROM"], to_email, msg.as_string())
    except smtplib.SMTPAuthenticationError as e:
        logger.error("[EMAIL] Authentication failed: %s", e)
        return False
    except (smtplib.SMTPException, OSError) as e:
        logger.error("[EMAIL] SMTP error sending to %s: %s", to_email, e)
        return False

    logger.info("[EMAIL] Sent successfully to %s: %s", to_email, subject)
    return True


def send_otp_email(to_email: str, code: str) -> bool:
    minutes = int(current_app.config["OTP_TTL"].total_seconds() // 60)
    body_text = (
        f"Your login code is {code}.\n\n"
        f"It expires in {minutes} minutes. If you did not try to sign in, ignore this email."
    )
    body_html = (
        f"<p>Your login code is <strong>{code}</strong>.</p>"
        f"<p>It expires in {minutes} minutes. If you did not try to sign in, ignore this email.</p>"
    )
    return send_email(to_email, "Your login code", body_text, body_html)


def send_password_reset_email(to_email: str, token: str) -> bool:
    link = f"{current_app.config['FRONTEND_URL'].rstrip('/')}/reset-password/{token}"
    minutes = int(current_app.config["PASSWORD_RESET_TTL"].total_seconds() // 60)
    body_text = (
        f"Use the link below to choose a new password:\n\n{link}\n\n"
        f"The link expires in {minutes} minutes."
    )
    body_html = (
        f'<p>Use the link below to choose a new password:</p><p><a href="{link}">{link}</a></p>'
        f"<p>The link expires in {minutes} minutes.</p>"
    )
    return send_email(to_email, "Reset your password", body_text, body_html)
