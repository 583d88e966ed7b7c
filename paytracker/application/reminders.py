"""
Bill reminders.

A reminder is enabled per bill; its date is derived from the bill's
notification frequency (due date minus 1/3/7/14 days). The daily job
sends one bill_reminder email per enabled bill whose reminder date is
today.
"""
import logging
from datetime import date

from paytracker.application.bills import BillNotFoundError, BillService
from paytracker.application.notifications import send_best_effort
from paytracker.domain.bill import Bill
from paytracker.infrastructure.notifications.email import BILL_REMINDER, TEST, EmailSender
from paytracker.infrastructure.store.base import BILLS, USERS, RecordStore

logger = logging.getLogger(__name__)


class ReminderService:

    def __init__(self, bills: BillService, store: RecordStore, email_sender: EmailSender):
        self.bills = bills
        self.store = store
        self.email_sender = email_sender

    def schedule_reminder(self, user_id: str, bill_id: str) -> Bill:
        return self.bills.update_bill(user_id, bill_id, reminder_enabled=True)

    def cancel_reminder(self, user_id: str, bill_id: str) -> Bill:
        return self.bills.update_bill(user_id, bill_id, reminder_enabled=False)

    def get_reminder_status(self, user_id: str, bill_id: str) -> bool:
        bill = self.bills.get_bill(user_id, bill_id)
        if bill is None:
            raise BillNotFoundError(bill_id)
        return bill.reminder_enabled

    def send_test_reminder(self, email: str) -> None:
        """Raises EmailDeliveryError: the user asked for it, so failures are reported"""
        self.email_sender.send_email(email, TEST, {"email": email})

    def due_reminders(self, today: date) -> list[Bill]:
        rows = self.store.select_eq(BILLS, "reminder_enabled", True)
        return [b for b in map(Bill.from_row, rows) if b.reminder_date() == today]

    def dispatch_due_reminders(self, today: date) -> int:
        """
        Send reminder emails for bills whose reminder falls on `today`.

        Returns:
            number of emails accepted by the sender
        """
        sent = 0
        for bill in self.due_reminders(today):
            owners = self.store.select_eq(USERS, "id", bill.user_id)
            if not owners:
                logger.warning("Bill %s has no owner profile (%s), skipping reminder", bill.id, bill.user_id)
                continue
            payload = {
                "bill_name": bill.name,
                "amount": bill.amount,
                "due_date": bill.due_date.isoformat(),
            }
            if send_best_effort(self.email_sender, owners[0]["email"], BILL_REMINDER, payload):
                sent += 1
        logger.info("Dispatched %d bill reminder(s) for %s", sent, today.isoformat())
        return sent
