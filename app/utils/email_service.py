"""
Email Service for the squares score pipeline

Sends winner, owner and final-summary notifications through the Resend HTTP
API. Delivery problems are logged and reported as False; nothing is raised
past send_email().
"""

import logging

import requests
from flask import current_app

from app.utils.email_templates import render_notification

logger = logging.getLogger(__name__)


class EmailService:
    """Handles all email sending functionality"""

    def __init__(self, api_key=None, from_email=None, api_url=None, timeout=None):
        self.api_key = api_key or current_app.config.get("RESEND_API_KEY")
        self.from_email = from_email or current_app.config.get("RESEND_FROM_EMAIL")
        self.api_url = api_url or current_app.config.get(
            "RESEND_API_URL", "https://api.resend.com/emails"
        )
        self.timeout = timeout or current_app.config.get("EMAIL_TIMEOUT", 15)
        self.session = requests.Session()

    def send_email(self, to_email, template):
        """Send a rendered template.

        Returns:
            bool: True iff the transport accepted the message
        """
        if not self.api_key:
            logger.warning("Email API key not configured. Email not sent.")
            return False

        try:
            response = self.session.post(
                self.api_url,
                json={
                    "from": self.from_email,
                    "to": to_email,
                    "subject": template.subject,
                    "html": template.html,
                },
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )

            if not response.ok:
                logger.error(
                    f"Failed to send email to {to_email}: "
                    f"{response.status_code} {response.text}"
                )
                return False

            logger.info(f"Email sent to {to_email}: {template.subject}")
            return True

        except requests.exceptions.RequestException as e:
            logger.error(f"Error sending email to {to_email}: {str(e)}")
            return False

    def send_notification(self, recipient, kind, notice):
        """Render a notification template and send it to one recipient"""
        template = render_notification(kind, notice)
        return self.send_email(recipient, template)
