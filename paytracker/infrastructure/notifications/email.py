"""
Email senders.

- _TEMPLATES: subject/body per template kind
- LoggingEmailSender: stub, logs the message instead of sending it
- SmtpEmailSender: delivers through an SMTP relay
"""
import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from typing import Any

from paytracker.utils.money import format_money

logger = logging.getLogger(__name__)

WELCOME = "welcome"
BILL_REMINDER = "bill_reminder"
TEST = "test"

_TEMPLATES: dict[str, dict[str, str]] = {
    WELCOME: {
        "subject": "Welcome to PayTracker",
        "body": "Hi {name},\n\nYour account is ready. Add your upcoming bills to see how far your money goes.",
    },
    BILL_REMINDER: {
        "subject": "Reminder: {bill_name} is due {due_date}",
        "body": "Your bill \"{bill_name}\" of {amount} is due on {due_date}.",
    },
    TEST: {
        "subject": "PayTracker test email",
        "body": "Email reminders are working.",
    },
}


class EmailDeliveryError(RuntimeError):
    pass


def render_email(template_kind: str, payload: dict[str, Any]) -> tuple[str, str]:
    """
    Render (subject, body) for a template kind.

    Raises:
        EmailDeliveryError: unknown kind or missing payload field
    """
    tmpl = _TEMPLATES.get(template_kind)
    if tmpl is None:
        raise EmailDeliveryError(f"Unknown email template: {template_kind}")
    ctx = dict(payload)
    if "amount" in ctx:
        ctx["amount"] = format_money(ctx["amount"], ctx.get("currency", "USD"))
    ctx.setdefault("name", ctx.get("email", "there"))
    try:
        return tmpl["subject"].format(**ctx), tmpl["body"].format(**ctx)
    except KeyError as exc:
        raise EmailDeliveryError(f"Template {template_kind} needs field {exc.args[0]}") from exc


class EmailSender(ABC):

    @abstractmethod
    def send_email(self, recipient: str, template_kind: str, payload: dict[str, Any]) -> None:
        """Deliver one email. Raises EmailDeliveryError on failure."""


class LoggingEmailSender(EmailSender):
    """Email delivery stub, logs only"""

    def send_email(self, recipient: str, template_kind: str, payload: dict[str, Any]) -> None:
        subject, _ = render_email(template_kind, payload)
        logger.info("EMAIL stub: to=%s kind=%s subject=%s", recipient, template_kind, subject)


class SmtpEmailSender(EmailSender):

    def __init__(self, host: str, port: int, user: str = "", password: str = "",
                 sender: str = "no-reply@localhost", timeout: float = 10.0):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender
        self.timeout = timeout

    def send_email(self, recipient: str, template_kind: str, payload: dict[str, Any]) -> None:
        subject, body = render_email(template_kind, payload)
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = recipient
        msg["Subject"] = subject
        msg.set_content(body)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                smtp.starttls()
                if self.user:
                    smtp.login(self.user, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise EmailDeliveryError(f"SMTP delivery to {recipient} failed: {exc}") from exc
        logger.info("Email sent: to=%s kind=%s", recipient, template_kind)
