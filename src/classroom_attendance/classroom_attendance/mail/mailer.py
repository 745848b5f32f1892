from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional, Protocol, Sequence

from ..core.exceptions import DeliveryError

logger = logging.getLogger(__name__)

XLSX_MIME = ("application", "vnd.openxmlformats-officedocument.spreadsheetml.sheet")


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    maintype: str = XLSX_MIME[0]
    subtype: str = XLSX_MIME[1]


@dataclass
class MailConfig:
    host: str
    port: int
    username: str
    password: str
    sender: str
    use_ssl: bool = True

    @classmethod
    def from_mapping(cls, mail_config: dict) -> "MailConfig":
        username = str(mail_config.get("username", ""))
        return cls(
            host=str(mail_config.get("host", "smtp.gmail.com")),
            port=int(mail_config.get("port", 465)),
            username=username,
            password=str(mail_config.get("password", "")),
            sender=str(mail_config.get("sender") or username),
            use_ssl=bool(mail_config.get("use_ssl", True)),
        )


class Mailer(Protocol):
    def send(self, *, to: str, subject: str, body: str, attachments: Sequence[Attachment] = ()) -> None:
        raise NotImplementedError


class SmtpMailer(Mailer):
    """Plain-text mail over SMTP (SSL by default, STARTTLS otherwise)."""

    def __init__(self, config: MailConfig):
        self._config = config

    def _build(self, *, to: str, subject: str, body: str, attachments: Sequence[Attachment]) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self._config.sender
        msg["To"] = to
        msg.set_content(body)
        for a in attachments:
            msg.add_attachment(a.content, maintype=a.maintype, subtype=a.subtype, filename=a.filename)
        return msg

    def send(self, *, to: str, subject: str, body: str, attachments: Sequence[Attachment] = ()) -> None:
        msg = self._build(to=to, subject=subject, body=body, attachments=attachments)
        server: Optional[smtplib.SMTP] = None
        try:
            if self._config.use_ssl:
                server = smtplib.SMTP_SSL(self._config.host, self._config.port, timeout=20)
            else:
                server = smtplib.SMTP(self._config.host, self._config.port, timeout=20)
                server.starttls()
            if self._config.username:
                server.login(self._config.username, self._config.password)
            server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Email send to %s failed: %s", to, e)
            raise DeliveryError(str(e)) from e
        finally:
            if server is not None:
                try:
                    server.quit()
                except (smtplib.SMTPException, OSError):
                    pass
        logger.info("Email '%s' sent to %s", subject, to)
