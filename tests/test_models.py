from decimal import Decimal

from theroom_studio.models import (
    Booking,
    BookingStatus,
    ClassDefinition,
    MembershipType,
    Product,
    ScheduleEntry,
    User,
)


def test_user_row_ignores_unknown_columns():
    user = User.model_validate(
        {
            "id": "user-1",
            "email": "member@example.com",
            "credits_remaining": 3,
            "membership_type": "3_times_weekly",
            "avatar_url": "https://example.com/a.png",
        }
    )

    assert user.membership_type == MembershipType.THREE_TIMES_WEEKLY
    assert not user.is_unlimited
    assert user.is_admin is False


def test_class_definition_defaults():
    definition = ClassDefinition.model_validate({"id": "class-1", "name": "Reformer Flow"})

    assert definition.description is None
    assert definition.capacity == 0


def test_schedule_entry_without_embedded_class():
    entry = ScheduleEntry.model_validate(
        {
            "id": "sched-1",
            "class_id": "class-1",
            "start_time": "2026-10-17T13:00:00+00:00",
            "instructor_name": "Maya",
        }
    )

    assert entry.class_name is None


def test_booking_with_partial_embeds():
    booking = Booking.model_validate(
        {
            "id": "booking-1",
            "user_id": "user-1",
            "schedule_id": "sched-1",
            "status": "no_show",
            "schedule": {"start_time": "2026-10-17T13:00:00+00:00"},
            "users": {"email": "member@example.com"},
        }
    )

    assert booking.status == BookingStatus.NO_SHOW
    assert booking.schedule.class_name is None
    assert booking.users.full_name is None


def test_product_price_is_decimal():
    product = Product.model_validate(
        {"id": "p-1", "name": "Drop In", "price": 35.5, "type": "drop_in"}
    )

    assert product.price == Decimal("35.5")
    assert product.credits_included == 0
