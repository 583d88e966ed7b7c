"""
Best-effort notification policy.

Side effects such as the welcome email must never fail or roll back the
operation that triggered them: errors are logged with traceback and
swallowed here, and nowhere else.
"""
import logging
from typing import Any

from paytracker.infrastructure.notifications.email import EmailSender

logger = logging.getLogger(__name__)


def send_best_effort(sender: EmailSender, recipient: str, template_kind: str, payload: dict[str, Any]) -> bool:
    """
    Send an email without propagating failures.

    Returns:
        True if the sender accepted the message, False otherwise
    """
    try:
        sender.send_email(recipient, template_kind, payload)
        return True
    except Exception:
        logger.exception("Best-effort %s email to %s failed", template_kind, recipient)
        return False
