"""
Tests for email templates, senders and the best-effort policy
"""
import logging
import smtplib
from decimal import Decimal
from unittest.mock import MagicMock, Mock, patch

import pytest

from paytracker.application.notifications import send_best_effort
from paytracker.infrastructure.notifications.email import (
    BILL_REMINDER,
    WELCOME,
    EmailDeliveryError,
    LoggingEmailSender,
    SmtpEmailSender,
    render_email,
)


class TestRenderEmail:
    def test_bill_reminder_formats_amount(self):
        subject, body = render_email(BILL_REMINDER, {
            "bill_name": "Rent", "amount": Decimal("1200"), "due_date": "2026-04-01",
        })

        assert subject == "Reminder: Rent is due 2026-04-01"
        assert "$1,200.00" in body

    def test_welcome_defaults_name_to_email(self):
        _, body = render_email(WELCOME, {"email": "a@b.com"})

        assert body.startswith("Hi a@b.com,")

    def test_missing_field(self):
        with pytest.raises(EmailDeliveryError, match="bill_name"):
            render_email(BILL_REMINDER, {"amount": Decimal("5")})

    def test_unknown_kind(self):
        with pytest.raises(EmailDeliveryError):
            render_email("newsletter", {})


def test_logging_sender_logs_subject(caplog):
    with caplog.at_level(logging.INFO, logger="paytracker.infrastructure.notifications.email"):
        LoggingEmailSender().send_email("a@b.com", WELCOME, {"email": "a@b.com"})

    assert "EMAIL stub: to=a@b.com kind=welcome" in caplog.text


class TestSmtpSender:
    def test_sends_message(self):
        smtp = MagicMock()
        with patch("paytracker.infrastructure.notifications.email.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.__enter__.return_value = smtp
            SmtpEmailSender("smtp.example.com", 587, user="bot", password="pw", sender="bills@example.com") \
                .send_email("a@b.com", WELCOME, {"email": "a@b.com"})

        smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=10.0)
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("bot", "pw")
        msg = smtp.send_message.call_args.args[0]
        assert msg["To"] == "a@b.com"
        assert msg["From"] == "bills@example.com"

    def test_wraps_smtp_errors(self):
        with patch("paytracker.infrastructure.notifications.email.smtplib.SMTP") as smtp_cls:
            smtp_cls.side_effect = smtplib.SMTPConnectError(421, "busy")
            with pytest.raises(EmailDeliveryError, match="a@b.com"):
                SmtpEmailSender("smtp.example.com", 587).send_email("a@b.com", WELCOME, {"email": "a@b.com"})


class TestSendBestEffort:
    def test_success(self):
        sender = Mock()

        assert send_best_effort(sender, "a@b.com", WELCOME, {"email": "a@b.com"}) is True
        sender.send_email.assert_called_once_with("a@b.com", WELCOME, {"email": "a@b.com"})

    def test_failure_is_logged_not_raised(self, caplog):
        sender = Mock()
        sender.send_email.side_effect = EmailDeliveryError("SMTP down")

        assert send_best_effort(sender, "a@b.com", WELCOME, {}) is False
        assert "Best-effort welcome email to a@b.com failed" in caplog.text
        assert caplog.records[-1].exc_info is not None
