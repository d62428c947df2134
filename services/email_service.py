"""
Email service for sending emails via SMTP.
"""
import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from pathlib import Path
from typing import Dict, Any
from jinja2 import Environment, FileSystemLoader
from core.config import settings
from core.exceptions import ExternalServiceException
from core.logging import get_logger
from schemas.system_settings import EmailSettings

logger = get_logger("email_service")

TEMPLATES_DIR = Path(__file__).parent.parent / "templates" / "emails"


class EmailService:
    """Service for sending emails with the SMTP configuration held in system settings."""

    def __init__(self, email_settings: EmailSettings):
        self.smtp_server = email_settings.smtp_host
        self.smtp_port = email_settings.smtp_port
        self.smtp_username = email_settings.smtp_user
        self.smtp_password = email_settings.smtp_password
        self.sender_email = email_settings.from_email
        self.sender_header = f"{email_settings.from_name} <{email_settings.from_email}>"
        self.templates_dir = TEMPLATES_DIR

        self.jinja_env = Environment(
            loader=FileSystemLoader(self.templates_dir),
            autoescape=True
        )

    async def send_email(
        self,
        to_email: str,
        subject: str,
        template_name: str,
        context: Dict[str, Any]
    ) -> None:
        """
        Send an email using a template.

        Args:
            to_email: Recipient email address
            subject: Email subject
            template_name: Name of the template file (without extension)
            context: Context data for the template

        Raises:
            ExternalServiceException: if the SMTP exchange fails
        """
        template = self.jinja_env.get_template(f"{template_name}.html")
        html_content = template.render(**context)

        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = self.sender_header
        message["To"] = to_email
        message.attach(MIMEText(html_content, "html"))

        try:
            async with aiosmtplib.SMTP(hostname=self.smtp_server, port=self.smtp_port, use_tls=self.smtp_port == 465) as server:
                if self.smtp_username:
                    await server.login(self.smtp_username, self.smtp_password)
                await server.sendmail(self.sender_email, [to_email], message.as_string())
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(
                "Failed to send email",
                error=str(e),
                to_email=to_email,
                subject=subject,
                template=template_name
            )
            raise ExternalServiceException("Failed to send email", service="smtp")

        logger.info(
            "Email sent successfully",
            to_email=to_email,
            subject=subject,
            template=template_name
        )

    async def send_test_email(self, to_email: str, site_name: str) -> None:
        """Send the admin panel's SMTP check message."""
        context = {
            "site_name": site_name,
            "app_name": settings.app_name,
            "smtp_host": self.smtp_server,
            "smtp_port": self.smtp_port,
        }
        await self.send_email(
            to_email=to_email,
            subject=f"{site_name} test email",
            template_name="test_email",
            context=context
        )
