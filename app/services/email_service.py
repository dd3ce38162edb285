"""
Email service - renders and dispatches job alert notifications.

Dispatch is pass/fail: any SMTP or network failure raises
EmailDeliveryError so the delivery step can leave matches unsent and let
the queue retry.
"""
import asyncio
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Callable, Optional

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError, select_autoescape

from app.core.config import settings
from app.core.exceptions import EmailDeliveryError
from app.core.logging import get_logger
from app.schemas.notification import JobAlertEmailPayload

logger = get_logger(__name__)

DESCRIPTION_EXCERPT_LENGTH = 200


def excerpt(text: Optional[str], length: int = DESCRIPTION_EXCERPT_LENGTH) -> str:
    """First `length` characters, with an ellipsis when cut."""
    if not text:
        return ""
    return text[:length] + ("..." if len(text) > length else "")


def build_subject(alert_name: str, total_matches: int) -> str:
    noun = "Match" if total_matches == 1 else "Matches"
    return f'{total_matches} New Job {noun} for "{alert_name}"'


@dataclass
class RenderedEmail:
    subject: str
    html_body: str
    text_body: str


class EmailService:
    """Renders alert emails from Jinja2 templates and sends them over SMTP."""

    HTML_TEMPLATE = "job_alert_notification.html.j2"
    TEXT_TEMPLATE = "job_alert_notification.txt.j2"

    def __init__(
        self,
        smtp_factory: Optional[Callable[..., smtplib.SMTP]] = None,
        smtp_ssl_factory: Optional[Callable[..., smtplib.SMTP_SSL]] = None,
    ):
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL
        self.env = Environment(
            loader=PackageLoader("app", "templates"),
            autoescape=select_autoescape(enabled_extensions=("html", "html.j2")),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["excerpt"] = excerpt

    def render_job_alert(self, payload: JobAlertEmailPayload) -> RenderedEmail:
        subject = build_subject(payload.alert_name, payload.total_matches)
        context = {
            "subject": subject,
            "full_name": payload.full_name,
            "alert_name": payload.alert_name,
            "matches": payload.matches,
            "total_matches": payload.total_matches,
            "more_matches": max(payload.total_matches - len(payload.matches), 0),
            "frontend_url": settings.frontend_url.rstrip("/"),
        }
        try:
            html_body = self.env.get_template(self.HTML_TEMPLATE).render(context)
            text_body = self.env.get_template(self.TEXT_TEMPLATE).render(context)
        except TemplateError as e:
            raise EmailDeliveryError(f"Template rendering failed: {e}") from e
        return RenderedEmail(subject=subject, html_body=html_body, text_body=text_body)

    async def send_job_alert_notification(self, payload: JobAlertEmailPayload) -> None:
        """Render and send one alert email. Raises EmailDeliveryError on failure."""
        rendered = self.render_job_alert(payload)
        await self.send_email(
            to=str(payload.email),
            subject=rendered.subject,
            html_body=rendered.html_body,
            text_body=rendered.text_body,
        )
        logger.info(
            "job_alert_email_sent",
            user_id=str(payload.user_id),
            alert_id=str(payload.alert_id),
            jobs_listed=len(payload.matches),
            total_matches=payload.total_matches,
        )

    async def send_email(self, to: str, subject: str, html_body: str, text_body: str) -> None:
        message = EmailMessage()
        message["From"] = settings.smtp_from_email
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text_body)
        message.add_alternative(html_body, subtype="html")

        await asyncio.to_thread(self._send, message)

    def _send(self, message: EmailMessage) -> None:
        smtp = None
        try:
            if settings.smtp_port == 465:
                smtp = self.smtp_ssl_factory(
                    settings.smtp_host,
                    settings.smtp_port,
                    context=ssl.create_default_context(),
                    timeout=settings.smtp_timeout_seconds,
                )
            else:
                smtp = self.smtp_factory(
                    settings.smtp_host,
                    settings.smtp_port,
                    timeout=settings.smtp_timeout_seconds,
                )
                if settings.smtp_use_tls:
                    smtp.starttls(context=ssl.create_default_context())

            if settings.smtp_user and settings.smtp_password:
                smtp.login(settings.smtp_user, settings.smtp_password)

            smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("smtp_send_failed", to=message["To"], error=str(e))
            raise EmailDeliveryError(f"SMTP delivery failed: {e}") from e
        finally:
            if smtp is not None:
                try:
                    smtp.quit()
                except (smtplib.SMTPException, OSError) as e:
                    logger.debug("smtp_quit_failed", error=str(e))
