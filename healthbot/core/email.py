import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional

from .config import settings
from .exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)

class SMTPEmailSender:
    """Deliver HTML mail through an SMTP relay with STARTTLS."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        sender: str = settings.EMAIL_FROM,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender

    def send(self, to: str, subject: str, html: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to
        msg.attach(MIMEText(html, "html"))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=30) as server:
                server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.sendmail(self.sender, [to], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to}: {str(e)}")
            raise EmailDeliveryError(str(e)) from e

        logger.info(f"Email sent to {to} | Subject: {subject}")

class OutboxEmailSender:
    """Keep messages in memory; used in tests and when SMTP is not configured."""

    def __init__(self):
        self.sent: List[dict] = []

    def send(self, to: str, subject: str, html: str) -> None:
        self.sent.append({"to": to, "subject": subject, "html": html})
        logger.info(f"Email queued in outbox for {to} | Subject: {subject}")

    def clear(self):
        self.sent.clear()

if settings.TESTING or not settings.SMTP_HOST:
    email_sender = OutboxEmailSender()
else:
    email_sender = SMTPEmailSender(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USER,
        password=settings.SMTP_PASSWORD,
    )

# Email dependency
def get_email_sender():
    """Get the configured email sender."""
    return email_sender
