from datetime import date, timedelta

import pytest

from travelle.schemas.email import EmailResult
from travelle.services.trip_list_store import TripListStore
from travelle.services.trip_reminders import TripReminderEvaluator

TODAY = date(2024, 6, 10)


@pytest.fixture
async def store(redis_client, alice):
    store = TripListStore(redis_client, alice)
    await store.load()
    return store


@pytest.fixture
def evaluator(store, notifications):
    return TripReminderEvaluator(store, notifications)


async def _trip(store, destination, days_ahead, items=(), done=()):
    trip = await store.create_list(f"Trip to {destination}", destination, TODAY + timedelta(days=days_ahead))
    for text in items:
        item = await store.add_item(trip.id, text)
        if text in done:
            await store.toggle_item(trip.id, item.id)
    return trip


async def test_requires_session(evaluator):
    result = await evaluator.check_trips_and_notify(None, TODAY)
    assert result.success is False
    assert result.reason == "user-not-authenticated"


async def test_no_lists(evaluator, alice, mailer):
    result = await evaluator.check_trips_and_notify(alice, TODAY)
    assert result.success is True
    assert result.reason == "no-lists-available"
    assert mailer.sent == []


async def test_today_with_everything_packed_congratulates(evaluator, store, alice, mailer):
    await _trip(store, "Paris", 0, items=["Passport"], done=["Passport"])

    result = await evaluator.check_trips_and_notify(alice, TODAY)
    assert result.results.congratulations_sent == 1
    assert result.results.reminders_sent == 0
    assert mailer.subjects() == ["Happy trip to Paris! 🎉✈️"]


async def test_today_with_empty_list_congratulates(evaluator, store, alice):
    await _trip(store, "Rome", 0)
    result = await evaluator.check_trips_and_notify(alice, TODAY)
    assert result.results.congratulations_sent == 1


async def test_today_with_pending_items_sends_urgent_reminder(evaluator, store, alice, mailer):
    await _trip(store, "Paris", 0, items=["Passport", "Tickets"], done=["Passport"])

    result = await evaluator.check_trips_and_notify(alice, TODAY)
    assert result.results.reminders_sent == 1
    assert "URGENT" in mailer.sent[0].subject
    assert "Tickets" in mailer.sent[0].html
    assert "50%" in mailer.sent[0].html


async def test_reminder_schedule(evaluator, store, alice, mailer):
    await _trip(store, "Tomorrow", 1, items=["Socks"])
    await _trip(store, "Two days", 2, items=["Socks"])
    await _trip(store, "Three days", 3, items=["Socks"])
    await _trip(store, "Past", -1, items=["Socks"])
    await _trip(store, "Packed", 1, items=["Socks"], done=["Socks"])
    await store.create_list("Someday", "Nowhere")

    result = await evaluator.check_trips_and_notify(alice, TODAY)
    assert result.success is True
    assert result.lists_checked == 6
    assert result.results.reminders_sent == 2
    assert result.results.congratulations_sent == 0
    assert result.results.errors == 0
    assert len(mailer.sent) == 2
    assert all(email.to == "alice@example.com" for email in mailer.sent)


async def test_reminder_lists_at_most_five_items(evaluator, store, alice, mailer):
    await _trip(store, "Paris", 1, items=[f"Item {n}" for n in range(1, 9)])

    await evaluator.check_trips_and_notify(alice, TODAY)
    html = mailer.sent[0].html
    assert "Item 5" in html
    assert "Item 6" not in html
    assert "and 3 more items" in html


async def test_failed_send_counts_as_error_and_continues(evaluator, store, alice, mailer):
    await _trip(store, "Paris", 1, items=["Socks"])
    await _trip(store, "Rome", 3, items=["Socks"])
    mailer.fail_with = "quota exceeded"

    result = await evaluator.check_trips_and_notify(alice, TODAY)
    assert result.success is True
    assert result.results.errors == 2
    assert result.results.reminders_sent == 0


async def test_raising_send_counts_as_error(store, alice, notifications):
    await _trip(store, "Paris", 1, items=["Socks"])
    await _trip(store, "Rome", 0)

    calls = []

    async def broken_reminder(email, trip_list, kind):
        calls.append(kind)
        raise RuntimeError("template exploded")

    notifications.send_trip_reminder = broken_reminder
    evaluator = TripReminderEvaluator(store, notifications)

    result = await evaluator.check_trips_and_notify(alice, TODAY)
    assert calls == ["tomorrow"]
    assert result.results.errors == 1
    assert result.results.congratulations_sent == 1


async def test_repeated_runs_send_again(evaluator, store, alice, mailer):
    await _trip(store, "Paris", 3, items=["Socks"])
    await evaluator.check_trips_and_notify(alice, TODAY)
    await evaluator.check_trips_and_notify(alice, TODAY)
    assert len(mailer.sent) == 2


async def test_unsuccessful_result_without_exception(store, alice, notifications):
    await _trip(store, "Paris", 0, items=["Socks"], done=["Socks"])

    async def soft_failure(email, trip_list):
        return EmailResult(success=False, error="rejected")

    notifications.send_trip_congratulations = soft_failure
    result = await TripReminderEvaluator(store, notifications).check_trips_and_notify(alice, TODAY)
    assert result.results.errors == 1
    assert result.results.congratulations_sent == 0
