"""
Trip Reminder Evaluator - decides which trip emails are due today
"""
import logging
from datetime import date
from typing import Optional, Tuple

from travelle.schemas.email import EmailResult
from travelle.schemas.trip_list import ReminderCounts, ReminderRunResult, TripList
from travelle.schemas.user import AuthSession
from travelle.services.notification_service import NotificationService
from travelle.services.trip_list_store import TripListStore

logger = logging.getLogger(__name__)

# Days before departure -> reminder kind
REMINDER_OFFSETS = {
    0: "today",
    1: "tomorrow",
    3: "three_days",
}


class TripReminderEvaluator:
    """
    Walks a user's trip lists and sends the reminder or congratulations
    email each one is due for.

    Runs only when invoked and keeps no record of what it sent, so two runs
    on the same day send the same emails twice.
    """

    def __init__(self, store: TripListStore, notifications: NotificationService):
        self.store = store
        self.notifications = notifications

    async def _dispatch(self, email: str, trip_list: TripList, offset: int) -> Optional[Tuple[str, EmailResult]]:
        """Send whatever is due for one list; None when nothing is"""
        complete = trip_list.completion >= 100

        if offset == 0 and complete:
            result = await self.notifications.send_trip_congratulations(email, trip_list)
            kind = "congratulations"
        elif offset in REMINDER_OFFSETS and not complete:
            result = await self.notifications.send_trip_reminder(email, trip_list, REMINDER_OFFSETS[offset])
            kind = "reminder"
        else:
            return None

        return kind, result

    async def check_trips_and_notify(
        self,
        session: Optional[AuthSession],
        today: Optional[date] = None,
    ) -> ReminderRunResult:
        if session is None:
            return ReminderRunResult(success=False, reason="user-not-authenticated")

        today = today or date.today()
        await self.store.load()
        if not self.store.lists:
            return ReminderRunResult(success=True, reason="no-lists-available")

        counts = ReminderCounts()
        email = session.user.email

        for trip_list in self.store.sorted_lists():
            if trip_list.start_date is None:
                continue

            offset = (trip_list.start_date - today).days
            try:
                outcome = await self._dispatch(email, trip_list, offset)
            except Exception as e:
                logger.error(f"Trip email for list {trip_list.id} raised: {e}", exc_info=True)
                counts.errors += 1
                continue

            if outcome is None:
                continue
            sent, result = outcome
            if not result.success:
                logger.warning(f"Trip email for list {trip_list.id} was not delivered: {result.error}")
                counts.errors += 1
            elif sent == "congratulations":
                counts.congratulations_sent += 1
            elif sent == "reminder":
                counts.reminders_sent += 1

        logger.info(
            f"Trip check for user {session.user.id}: {counts.reminders_sent} reminders, "
            f"{counts.congratulations_sent} congratulations, {counts.errors} errors"
        )
        return ReminderRunResult(success=True, results=counts, lists_checked=len(self.store.lists))
