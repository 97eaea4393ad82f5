from datetime import date

from carhire.models.enums import ChangeType
from carhire.services.availability import DateRange
from carhire.services.booking_workflow import BookingWorkflow
from carhire.services.realtime import ChangeEvent, ChangeFeed, TableWatcher


async def test_subscribers_get_events_for_their_table():
    feed = ChangeFeed()
    bookings, cars = [], []
    feed.subscribe("bookings", bookings.append)
    feed.subscribe("cars", cars.append)

    await feed.publish(ChangeEvent(table="bookings", change_type=ChangeType.INSERT))

    assert len(bookings) == 1
    assert cars == []


async def test_async_callbacks_are_awaited():
    feed = ChangeFeed()
    seen = []

    async def on_change(event):
        seen.append(event.change_type)

    feed.subscribe("bookings", on_change)
    await feed.publish(ChangeEvent(table="bookings", change_type=ChangeType.UPDATE))

    assert seen == [ChangeType.UPDATE]


async def test_failing_subscriber_is_skipped():
    feed = ChangeFeed()
    seen = []

    def broken(event):
        raise RuntimeError("boom")

    feed.subscribe("bookings", broken)
    feed.subscribe("bookings", seen.append)
    await feed.publish(ChangeEvent(table="bookings", change_type=ChangeType.DELETE))

    assert len(seen) == 1


async def test_unsubscribe():
    feed = ChangeFeed()
    seen = []
    subscription = feed.subscribe("bookings", seen.append)

    subscription.unsubscribe()
    subscription.unsubscribe()
    await feed.publish(ChangeEvent(table="bookings", change_type=ChangeType.INSERT))

    assert seen == []
    assert feed.subscriber_count("bookings") == 0


async def test_table_watcher_is_scoped():
    feed = ChangeFeed()

    async with TableWatcher(feed, "bookings") as watcher:
        assert feed.subscriber_count("bookings") == 1
        await feed.publish(ChangeEvent(table="bookings", change_type=ChangeType.INSERT))
        event = await watcher.next_change(timeout=1)
        assert event.change_type == ChangeType.INSERT
        assert await watcher.next_change(timeout=0.01) is None

    assert feed.subscriber_count("bookings") == 0


async def test_backend_publishes_after_commit(backend, feed, car, customer_session):
    seen = []
    feed.subscribe("bookings", seen.append)

    booking = await BookingWorkflow(backend, customer_session).create_booking(
        car.id, DateRange(date(2024, 6, 1), date(2024, 6, 2))
    )

    assert [(e.change_type, e.record_id) for e in seen] == [(ChangeType.INSERT, booking.id)]
    assert seen[0].to_dict()["record_id"] == str(booking.id)


async def test_replace_publishes_delete_then_insert(backend, feed, blocked_car):
    seen = []
    feed.subscribe("car_availability", seen.append)

    await backend.replace_unavailability(blocked_car.id, date(2024, 7, 1), date(2024, 7, 2))

    assert [e.change_type for e in seen] == [ChangeType.DELETE, ChangeType.INSERT]
