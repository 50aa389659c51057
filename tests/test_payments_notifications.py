from datetime import datetime

import pytest

from physio.errors import ForbiddenError, NotFoundError, UnprocessableError
from physio.identity import Actor
from physio.models.generated import Bookings, Notifications
from physio.services.bookings.constants import PaymentMethod, PaymentStatus
from physio.services.events import EMAIL_QUEUE, P2P_QUEUE, emit_event
from physio.services.mailer import CONFIRMED, NEW_BOOKING_ADMIN_ALERT, REJECTED, BookingMailer
from physio.services.notifications import TYPE_BOOKING
from physio.services.payments import PaymentService

from conftest import FakeRedis


@pytest.fixture
def payments(db, notifier, clock):
    return PaymentService(db, notifier=notifier, now=clock)


# ── Payments ─────────────────────────────────────────────────────────────


def test_mark_paid_sets_paid_at_and_notifies(db, seeded, make_booking, payments, clock):
    booking = make_booking(status="completed")
    clock.set(datetime(2026, 3, 6, 11, 5))

    payment = payments.update_status(booking.id, PaymentStatus.PAID, "Cash received")
    assert payment.status == "paid"
    assert payment.paid_at == "2026-03-06T11:05:00"
    assert payment.note == "Cash received"

    notification = db.query(Notifications).filter(Notifications.booking_id == booking.id).one()
    assert notification.type == "payment"
    assert notification.title == "Payment received"


def test_mark_failed_keeps_paid_at_empty(db, seeded, make_booking, payments):
    booking = make_booking(status="completed")
    payment = payments.update_status(booking.id, PaymentStatus.FAILED)
    assert payment.status == "failed"
    assert payment.paid_at is None


def test_payment_status_unknown_booking(seeded, payments):
    with pytest.raises(NotFoundError):
        payments.update_status(999, PaymentStatus.PAID)


def test_change_method_while_pending(db, seeded, make_booking, payments):
    booking = make_booking()
    actor = Actor(user_id=seeded["patient_id"])

    payment = payments.update_method(booking.id, PaymentMethod.TRANSFER_ON_VISIT, actor)
    assert payment.method == "transfer_on_visit"
    db.expire_all()
    assert db.get(Bookings, booking.id).payment_method == "transfer_on_visit"


def test_change_method_after_confirmation(seeded, make_booking, payments):
    booking = make_booking(status="confirmed")
    with pytest.raises(UnprocessableError):
        payments.update_method(booking.id, PaymentMethod.TRANSFER_ON_VISIT, Actor(user_id=seeded["patient_id"]))


def test_payment_ownership(seeded, make_booking, payments):
    booking = make_booking()
    assert payments.get_for_booking(booking.id, Actor(user_id=seeded["patient_id"])).amount == 250000
    assert payments.get_for_booking(booking.id, Actor(user_id=seeded["admin_id"], is_admin=True))
    with pytest.raises(ForbiddenError):
        payments.get_for_booking(booking.id, Actor(user_id=seeded["other_id"]))
    with pytest.raises(ForbiddenError):
        payments.update_method(booking.id, PaymentMethod.TRANSFER_ON_VISIT, Actor(user_id=seeded["other_id"]))


def test_list_payments_filters(seeded, make_booking, payments):
    first = make_booking(start_time="09:00", status="completed")
    make_booking(start_time="10:00")
    payments.update_status(first.id, PaymentStatus.PAID)

    paid = payments.list_payments(status=PaymentStatus.PAID)
    assert [p["booking_code"] for p in paid] == [first.booking_code]
    assert len(payments.list_payments(method=PaymentMethod.CASH_ON_VISIT)) == 2
    assert payments.list_payments(method=PaymentMethod.TRANSFER_ON_VISIT) == []


# ── Notifications ────────────────────────────────────────────────────────


def test_notify_persists_and_emits(db, seeded, notifier, fake_redis):
    notification = notifier.notify(seeded["patient_id"], None, TYPE_BOOKING, "Hello", "World", "/inbox")

    assert notification.id is not None
    assert notification.is_read == 0
    event = fake_redis.messages(P2P_QUEUE)[0]
    assert event["type"] == "notification_created"
    assert event["notification_id"] == notification.id
    assert event["user_id"] == seeded["patient_id"]


def test_notify_survives_redis_outage(db, seeded):
    from physio.services.notifications import NotificationService

    notifier = NotificationService(db, redis=FakeRedis(fail=True))
    notification = notifier.notify(seeded["patient_id"], None, TYPE_BOOKING, "Hello", "World")
    assert db.get(Notifications, notification.id) is not None


def test_inbox_operations(db, seeded, notifier):
    patient_id = seeded["patient_id"]
    first = notifier.notify(patient_id, None, TYPE_BOOKING, "One", "1")
    second = notifier.notify(patient_id, None, TYPE_BOOKING, "Two", "2")
    notifier.notify(seeded["other_id"], None, TYPE_BOOKING, "Other", "x")

    assert [n.title for n in notifier.list_for_user(patient_id)] == ["Two", "One"]
    assert notifier.unread_count(patient_id) == 2

    notifier.mark_read(first.id, patient_id)
    assert notifier.unread_count(patient_id) == 1
    assert [n.id for n in notifier.list_for_user(patient_id, unread_only=True)] == [second.id]

    assert notifier.mark_all_read(patient_id) == 1
    assert notifier.unread_count(patient_id) == 0
    assert notifier.unread_count(seeded["other_id"]) == 1

    notifier.delete(second.id, patient_id)
    assert [n.id for n in notifier.list_for_user(patient_id)] == [first.id]


def test_inbox_ownership(seeded, notifier):
    notification = notifier.notify(seeded["patient_id"], None, TYPE_BOOKING, "Mine", "m")
    with pytest.raises(ForbiddenError):
        notifier.mark_read(notification.id, seeded["other_id"])
    with pytest.raises(ForbiddenError):
        notifier.delete(notification.id, seeded["other_id"])
    with pytest.raises(NotFoundError):
        notifier.mark_read(999, seeded["patient_id"])


# ── Events / mailer ──────────────────────────────────────────────────────


def test_emit_event_reports_failure():
    assert emit_event("ping", {"a": 1}, redis=FakeRedis(fail=True)) is False
    redis = FakeRedis()
    assert emit_event("ping", {"a": 1}, redis=redis) is True
    assert redis.messages(P2P_QUEUE)[0]["a"] == 1


SNAPSHOT = {
    "booking_code": "CVA-20260306-001",
    "date": "2026-03-06",
    "start_time": "10:00",
    "service_name": "Home physiotherapy",
    "patient_name": "Ayu",
    "patient_email": "ayu@example.com",
    "address": "Jl. Kenanga 12",
    "complaint": "Knee pain",
}


def test_mailer_admin_alert(fake_redis, mailer):
    assert mailer.send_booking_email(SNAPSHOT, NEW_BOOKING_ADMIN_ALERT) is True
    message = fake_redis.messages(EMAIL_QUEUE)[0]
    assert message["to"] == "admin@example.com"
    assert "Knee pain" in message["body"]
    assert "Jl. Kenanga 12" in message["body"]


def test_mailer_confirmed_includes_contact(fake_redis, mailer):
    mailer.send_booking_email(SNAPSHOT, CONFIRMED)
    message = fake_redis.messages(EMAIL_QUEUE)[0]
    assert message["to"] == "ayu@example.com"
    assert "Test Physio" in message["body"]
    assert "http://front.test/booking/CVA-20260306-001" in message["body"]


def test_mailer_rejected_reason(fake_redis, mailer):
    mailer.send_booking_email(SNAPSHOT, REJECTED, {"rejection_reason": "Out of service area"})
    mailer.send_booking_email(SNAPSHOT, REJECTED)
    custom, default = fake_redis.messages(EMAIL_QUEUE)
    assert "Out of service area" in custom["body"]
    assert "The requested time is not available" in default["body"]


def test_mailer_failures_are_swallowed(test_settings):
    mailer = BookingMailer(redis=FakeRedis(fail=True), settings=test_settings)
    assert mailer.send_booking_email(SNAPSHOT, CONFIRMED) is False
    assert mailer.send_booking_email(SNAPSHOT, "newsletter") is False
    assert mailer.send_booking_email({**SNAPSHOT, "patient_email": None}, CONFIRMED) is False


def test_mailer_admin_alert_maps_link(fake_redis, mailer):
    mailer.send_booking_email({**SNAPSHOT, "coordinates": "-8.65, 115.21"}, NEW_BOOKING_ADMIN_ALERT)
    mailer.send_booking_email({**SNAPSHOT, "coordinates": "https://maps.app.goo.gl/abc"}, NEW_BOOKING_ADMIN_ALERT)
    mailer.send_booking_email(SNAPSHOT, NEW_BOOKING_ADMIN_ALERT)
    pair, url, missing = fake_redis.messages(EMAIL_QUEUE)
    assert "Maps: https://www.google.com/maps?q=-8.65,115.21" in pair["body"]
    assert "Maps: https://maps.app.goo.gl/abc" in url["body"]
    assert "Maps:" not in missing["body"]
