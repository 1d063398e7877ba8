"""
Mailer - Sends templated emails from the system account via SMTP.
"""
import os
import logging
import smtplib
import uuid
from datetime import datetime
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Any, Dict, List, Optional
from khe.modules import config

logger = logging.getLogger("khe.mailer")

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "templates")


class Message:
    """
    A single email built from a plain-text template in khe/templates.

    Recipients are dicts with at least an "email" key; every key is available
    to the template as a {placeholder}.
    """

    def __init__(
        self,
        template: str,
        subject: str,
        recipients: List[Dict[str, Any]],
        sender: Optional[str] = None
    ):
        self.template = template
        self.subject = subject
        self.recipients = recipients
        self.sender = sender or config.SYSTEM_EMAIL

    def render(self, recipient: Dict[str, Any]) -> str:
        path = os.path.join(TEMPLATE_DIR, f"{self.template}.txt")
        with open(path, "r") as f:
            return f.read().format(**recipient)

    def build(self, recipient: Dict[str, Any]) -> MIMEMultipart:
        msg = MIMEMultipart()
        msg['From'] = self.sender
        msg['To'] = recipient["email"]
        msg['Subject'] = self.subject
        msg.attach(MIMEText(self.render(recipient), 'plain'))
        return msg

    def send(self) -> Dict[str, Any]:
        """
        Sends one email per recipient.

        Returns:
            Dict with send status and message details
        """
        if not config.EMAIL_PASSWORD:
            raise ValueError("System email password not configured (EMAIL_PASSWORD or EMAIL_APP_PASSWORD). Cannot send email.")

        message_id = f"EMAIL_{uuid.uuid4().hex[:8]}"

        with smtplib.SMTP(config.SMTP_SERVER, config.SMTP_PORT) as server:
            server.starttls()
            server.login(self.sender, config.EMAIL_PASSWORD)
            for recipient in self.recipients:
                server.send_message(self.build(recipient))

        logger.info(f"Email '{self.template}' sent to {len(self.recipients)} recipient(s), message_id: {message_id}")

        return {
            "message_id": message_id,
            "from": self.sender,
            "to": [r["email"] for r in self.recipients],
            "subject": self.subject,
            "sent_at": datetime.now().isoformat(),
            "status": "sent",
        }


def send_registration_email(email: str):
    """
    Fire-and-forget registration email. Runs as a background task after the
    response has gone out, so failures are logged rather than raised.
    """
    message = Message(
        template="registration",
        subject="Kent Hack Enough Registration",
        recipients=[{"email": email}],
    )
    try:
        message.send()
    except Exception as e:
        logger.error(f"Failed to send registration email to {email}: {e}")
