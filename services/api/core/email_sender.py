# services/api/core/email_sender.py
from __future__ import annotations
import aiosmtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)


def _clean_cc(cc_emails: Optional[List[str]], to_email: str) -> List[str]:
    if not cc_emails:
        return []
    return sorted(
        {
            addr.strip()
            for addr in cc_emails
            if addr and addr.strip() and addr.strip().lower() != to_email.lower()
        }
    )


def build_message(
    *,
    to_email: str,
    subject: str,
    body_text: str,
    body_html: str,
    from_email: str,
    from_name: str,
    cc_emails: Optional[List[str]] = None,
) -> MIMEMultipart:
    """multipart/alternative: plaintext first, HTML preferred by capable clients."""
    msg = MIMEMultipart("alternative")
    msg['From'] = f"{from_name} <{from_email}>"
    msg['To'] = to_email
    msg['Subject'] = subject

    clean_cc = _clean_cc(cc_emails, to_email)
    if clean_cc:
        msg["Cc"] = ", ".join(clean_cc)

    msg.attach(MIMEText(body_text, 'plain', 'utf-8'))
    msg.attach(MIMEText(body_html, 'html', 'utf-8'))
    return msg


async def send_email(
    *,
    to_email: str,
    subject: str,
    body_text: str,
    body_html: str,
    smtp_host: str,
    smtp_port: int,
    smtp_user: str,
    smtp_password: str,
    from_email: str,
    from_name: str,
    cc_emails: Optional[List[str]] = None,
) -> bool:
    """
    Send a text + HTML email via SMTP (STARTTLS).
    Returns True on success, False on failure.
    """
    try:
        msg = build_message(
            to_email=to_email,
            subject=subject,
            body_text=body_text,
            body_html=body_html,
            from_email=from_email,
            from_name=from_name,
            cc_emails=cc_emails,
        )
        recipients = [to_email] + _clean_cc(cc_emails, to_email)

        await aiosmtplib.send(
            msg,
            hostname=smtp_host,
            port=smtp_port,
            username=smtp_user,
            password=smtp_password,
            start_tls=True,
            recipients=recipients,
        )

        logger.info(f"✓ Email sent to {to_email}")
        return True

    except Exception as e:
        logger.error(f"✗ Email send failed to {to_email}: {e}")
        return False
