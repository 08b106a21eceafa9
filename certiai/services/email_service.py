# certiai/services/email_service.py
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional, Protocol

from certiai.core.logging_config import logger
from certiai.core.settings import Settings


@dataclass(frozen=True)
class MailConfig:
    host: Optional[str] = None
    port: int = 465
    user: Optional[str] = None
    password: Optional[str] = None
    use_ssl: bool = True
    timeout_seconds: float = 10.0
    from_email: str = "hello@certiai.com"
    from_name: str = "CertiAI"
    code_ttl_minutes: int = 10

    @classmethod
    def from_settings(cls, s: Settings) -> "MailConfig":
        return cls(
            host=s.SMTP_HOST,
            port=s.SMTP_PORT,
            user=s.SMTP_USER,
            password=s.SMTP_PASSWORD,
            use_ssl=s.SMTP_USE_SSL,
            timeout_seconds=s.SMTP_TIMEOUT_SEC,
            from_email=s.SMTP_FROM_EMAIL,
            from_name=s.SMTP_FROM_NAME,
            code_ttl_minutes=s.CODE_TTL_MINUTES,
        )


class NotificationSender(Protocol):
    def send_verification_email(self, to_email: str, code: str) -> None: ...

    def send_password_reset_email(self, to_email: str, code: str) -> None: ...


def _code_template(title: str, intro: str, code: str, ttl_minutes: int, footer: str) -> str:
    return f"""
    <html>
      <body style="font-family: Arial; background:#f9f9f9; padding:20px">
        <div style="max-width:600px;margin:auto;background:#fff;border-radius:8px;padding:30px">
          <h2>{title}</h2>
          <p>{intro}</p>
          <h1 style="letter-spacing:8px">{code}</h1>
          <p>This code expires in {ttl_minutes} minutes.</p>
          <small>{footer}</small>
        </div>
      </body>
    </html>
    """


class MailService:
    """
    SMTP verzending van verificatie- en resetcodes.
    Zonder SMTP host loggen we de mail alleen (dev mode).
    """

    def __init__(self, config: MailConfig):
        self.config = config

    def send_verification_email(self, to_email: str, code: str) -> None:
        html = _code_template(
            "Verify your email",
            "Your verification code:",
            code,
            self.config.code_ttl_minutes,
            "If you didn't sign up, ignore this email.",
        )
        self._send(to_email, f"Verify your email - {self.config.from_name}", html)

    def send_password_reset_email(self, to_email: str, code: str) -> None:
        html = _code_template(
            "Password Reset",
            "Your reset code:",
            code,
            self.config.code_ttl_minutes,
            "If you didn't request this, ignore this email.",
        )
        self._send(to_email, f"Reset your password - {self.config.from_name}", html)

    def _send(self, to_email: str, subject: str, html: str) -> None:
        cfg = self.config

        # Als er geen SMTP-host staat -> alleen loggen (dev mode)
        if not cfg.host:
            logger.info("email_dev_mode", to=to_email, subject=subject)
            return

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = formataddr((cfg.from_name, cfg.from_email))
        msg["To"] = to_email
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(html, subtype="html")

        smtp_cls = smtplib.SMTP_SSL if cfg.use_ssl else smtplib.SMTP
        with smtp_cls(cfg.host, cfg.port, timeout=cfg.timeout_seconds) as server:
            if not cfg.use_ssl:
                server.starttls()
            if cfg.user and cfg.password:
                server.login(cfg.user, cfg.password)
            server.send_message(msg)

        logger.info("email_sent", to=to_email, subject=subject)
