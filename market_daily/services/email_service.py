from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
import logging
import smtplib

from django.conf import settings
from django.utils import timezone

from market_daily.exceptions import EmailNotConfigured

logger = logging.getLogger(__name__)


@dataclass
class OutgoingEmail:
    to: str
    subject: str
    html: str
    text: str = ""


class SmtpTransport:
    def __init__(
        self,
        host: str,
        port: int = 587,
        user: str = "",
        password: str = "",
        from_email: str = "",
        timeout: int = 30,
        use_tls: bool = True,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_email = from_email or user
        self.timeout = timeout
        self.use_tls = use_tls

    @classmethod
    def from_settings(cls) -> "SmtpTransport":
        return cls(
            host=settings.EMAIL_HOST,
            port=settings.EMAIL_PORT,
            user=settings.EMAIL_USER,
            password=settings.EMAIL_PASS,
            from_email=settings.EMAIL_FROM,
            timeout=settings.EMAIL_TIMEOUT,
            use_tls=settings.EMAIL_USE_TLS,
        )

    @property
    def configured(self) -> bool:
        return bool(self.host)

    def _connect(self) -> smtplib.SMTP:
        if not self.configured:
            raise EmailNotConfigured("EMAIL_HOST is not set")
        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        try:
            if self.use_tls:
                server.starttls()
            if self.user:
                server.login(self.user, self.password)
        except (smtplib.SMTPException, OSError):
            server.close()
            raise
        return server

    def build_message(self, email: OutgoingEmail) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["From"] = self.from_email
        msg["To"] = email.to
        msg["Subject"] = email.subject
        if email.text:
            msg.attach(MIMEText(email.text, "plain", "utf-8"))
        msg.attach(MIMEText(email.html, "html", "utf-8"))
        return msg

    def send(self, email: OutgoingEmail) -> dict:
        """
        Deliver one message.  SMTP and socket errors propagate so the caller
        can record the failure against the recipient.
        """
        msg = self.build_message(email)
        server = self._connect()
        try:
            refused = server.sendmail(self.from_email, [email.to], msg.as_string())
        finally:
            try:
                server.quit()
            except smtplib.SMTPException:
                logger.debug("SMTP quit failed after sending to %s", email.to)

        logger.info("Email sent to %s", email.to)
        return {
            "recipient": email.to,
            "subject": email.subject,
            "refused": refused,
            "sent_at": timezone.now(),
        }

    def verify(self) -> bool:
        """Connect and authenticate without sending anything."""
        try:
            server = self._connect()
            server.quit()
        except EmailNotConfigured:
            logger.warning("Email is not configured")
            return False
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP verification failed: %s", e)
            return False
        logger.info("SMTP configuration verified")
        return True
