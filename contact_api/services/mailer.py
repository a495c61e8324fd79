"""
Email dispatcher.

Sends the owner notification and the submitter autoresponder over one
authenticated SMTP connection. Port 465 uses implicit TLS, any other port
upgrades with STARTTLS. smtplib is blocking, so the SMTP work runs in the
event loop's executor and stops before any further send once the caller
gives up or the delivery deadline passes.
"""

import asyncio
import logging
import smtplib
import ssl
import threading
import time
from email.message import EmailMessage
from email.utils import formataddr
from typing import Callable, List, Optional, Tuple

from contact_api.core.config import Settings, SmtpConfig
from contact_api.core.errors import DeliveryError
from contact_api.models.contact import ContactSubmission
from contact_api.services.templates import EmailRenderer, RenderedEmail, header_text

logger = logging.getLogger(__name__)

OWNER_NOTIFICATION = "owner notification"
AUTORESPONDER = "autoresponder"


def build_message(rendered: RenderedEmail, sender: str, to: str, reply_to: Optional[str] = None) -> EmailMessage:
    message = EmailMessage()
    message["Subject"] = rendered.subject
    message["From"] = sender
    message["To"] = to
    if reply_to:
        message["Reply-To"] = reply_to
    message.set_content(rendered.text)
    message.add_alternative(rendered.html, subtype="html")
    return message


class EmailDispatcher:
    def __init__(self, settings: Settings, renderer: Optional[EmailRenderer] = None):
        self.settings = settings
        self.renderer = renderer or EmailRenderer(
            variant=settings.mail_template_variant,
            links=settings.service_links(),
            booking_link=settings.booking_link,
        )

    def _connect(self, config: SmtpConfig) -> smtplib.SMTP:
        timeout = self.settings.delivery_timeout_seconds
        context = ssl.create_default_context()
        if config.use_implicit_tls:
            server = smtplib.SMTP_SSL(config.host, config.port, timeout=timeout, context=context)
        else:
            server = smtplib.SMTP(config.host, config.port, timeout=timeout)
            server.starttls(context=context)
        try:
            server.login(config.user, config.password.get_secret_value())
        except Exception:
            server.close()
            raise
        return server

    def verify(self, config: SmtpConfig):
        """Connect and authenticate without sending anything"""
        try:
            server = self._connect(config)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"SMTP verify failed: {str(e) or type(e).__name__}") from e
        try:
            server.noop()
        finally:
            server.quit()

    def _send_all(
        self,
        config: SmtpConfig,
        messages: List[Tuple[str, Callable[[], EmailMessage]]],
        deadline: float,
        cancelled: threading.Event,
    ) -> List[Tuple[str, str]]:
        """Build and send each message independently; returns (label, error) for every failure"""
        try:
            server = self._connect(config)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"SMTP connection failed: {str(e) or type(e).__name__}") from e

        failures = []
        try:
            for label, build in messages:
                if cancelled.is_set() or time.monotonic() >= deadline:
                    logger.warning(f"⚠️ Skipped {label}: email delivery deadline passed")
                    failures.append((label, "not sent before the delivery deadline"))
                    continue
                try:
                    message = build()
                except ValueError as e:
                    logger.error(f"❌ Could not build {label}: {str(e)}")
                    failures.append((label, str(e)))
                    continue
                try:
                    server.send_message(message)
                    logger.info(f"✅ Sent {label} to {message['To']}")
                except (smtplib.SMTPException, OSError) as e:
                    logger.error(f"❌ Failed to send {label} to {message['To']}: {str(e)}")
                    failures.append((label, str(e) or type(e).__name__))
        finally:
            try:
                server.quit()
            except (smtplib.SMTPException, OSError):
                server.close()
        return failures

    def _deliver(self, config: SmtpConfig, submission: ContactSubmission, cancelled: Optional[threading.Event] = None):
        cancelled = cancelled or threading.Event()
        deadline = time.monotonic() + self.settings.delivery_timeout_seconds
        if config.verify:
            self.verify(config)
        if cancelled.is_set():
            raise DeliveryError("email delivery cancelled before sending")

        sender = formataddr((config.from_name, config.user))

        def owner() -> EmailMessage:
            return build_message(
                self.renderer.owner_notification(submission),
                sender=sender,
                to=config.owner_address,
                reply_to=formataddr((header_text(submission.name), submission.email)),
            )

        def autoresponder() -> EmailMessage:
            return build_message(self.renderer.autoresponder(submission), sender=sender, to=submission.email)

        failures = self._send_all(
            config, [(OWNER_NOTIFICATION, owner), (AUTORESPONDER, autoresponder)], deadline, cancelled
        )
        if failures:
            raise DeliveryError("; ".join(f"{label} failed: {error}" for label, error in failures))

    async def send_submission(self, submission: ContactSubmission):
        """
        Send the owner notification and the autoresponder.

        When the caller stops waiting (e.g. a timeout), messages not yet
        handed to the relay are skipped. A message already in flight may
        still be delivered.

        Raises:
            ConfigurationError: SMTP credentials are missing
            DeliveryError: verification failed or either message was not sent
        """
        config = self.settings.smtp_config()

        cancelled = threading.Event()
        try:
            await asyncio.get_running_loop().run_in_executor(None, self._deliver, config, submission, cancelled)
        except asyncio.CancelledError:
            cancelled.set()
            raise
