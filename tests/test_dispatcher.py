"""Tests for notification dispatch and live pushes."""

import pytest

from urbansprout.domain.entities import NotificationKind
from urbansprout.domain.errors import ForbiddenError
from urbansprout.infrastructure.notifications import (
    ConnectionRegistry,
    NotificationDispatcher,
)
from urbansprout.infrastructure.repositories import NotificationStore

pytestmark = pytest.mark.anyio


@pytest.fixture
def store(session_factory):
    return NotificationStore(session_factory)


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def dispatcher(store, registry, session_factory):
    return NotificationDispatcher(store, registry, session_factory)


async def _connect(registry, user_id, channel, *, is_admin=False):
    await registry.bind(user_id, channel, is_admin=is_admin)
    await registry.join(registry.group_for(user_id), channel)


async def test_send_stores_then_pushes_to_live_channel(
    dispatcher, registry, store, make_user, fake_channel
):
    user = make_user()
    channel = fake_channel()
    await _connect(registry, user.id, channel)

    notification = await dispatcher.send(
        user.id,
        NotificationKind.ORDER_SHIPPED,
        "Order shipped",
        "Your seeds are on the way",
        related_id=12,
        related_model="order",
    )

    assert store.unread_count(user.id) == 1
    assert channel.events() == ["new_notification", "unread_count_update"]
    pushed = channel.sent[0]["data"]
    assert pushed["id"] == notification.id
    assert pushed["type"] == "order_shipped"
    assert pushed["message"] == "Your seeds are on the way"
    assert pushed["relatedModel"] == "order"
    assert channel.sent[1]["data"] == {"unreadCount": 1}


async def test_send_without_connection_only_stores(dispatcher, store, make_user):
    user = make_user()

    await dispatcher.send(user.id, NotificationKind.GENERAL, "Hello", "Welcome aboard")

    assert store.unread_count(user.id) == 1


async def test_push_failure_does_not_fail_send(
    dispatcher, registry, store, make_user, fake_channel
):
    user = make_user()
    await registry.bind(user.id, fake_channel(fail=True))

    notification = await dispatcher.send(
        user.id, NotificationKind.LIKE, "New like", "Someone liked your post"
    )

    assert notification.id is not None
    assert store.unread_count(user.id) == 1


async def test_send_bulk_deduplicates_and_isolates_failures(
    dispatcher, store, make_user, monkeypatch
):
    good = make_user("Good")
    bad = make_user("Bad")
    original_create = store.create

    def flaky_create(recipient_id, *args, **kwargs):
        if recipient_id == bad.id:
            raise RuntimeError("disk full")
        return original_create(recipient_id, *args, **kwargs)

    monkeypatch.setattr(store, "create", flaky_create)

    delivered = await dispatcher.send_bulk(
        [good.id, bad.id, good.id], NotificationKind.GENERAL, "News", "Fresh seeds"
    )

    assert [item.recipient_id for item in delivered] == [good.id]
    assert store.unread_count(good.id) == 1
    assert store.unread_count(bad.id) == 0


async def test_send_to_role_targets_active_users_with_role(
    dispatcher, store, make_user, make_admin
):
    admin = make_admin()
    inactive_admin = make_admin(is_active=False)
    customer = make_user()

    delivered = await dispatcher.send_to_role(
        "admin", NotificationKind.GENERAL, "Low stock", "Restock the trowels"
    )

    assert [item.recipient_id for item in delivered] == [admin.id]
    assert store.unread_count(inactive_admin.id) == 0
    assert store.unread_count(customer.id) == 0


async def test_mark_read_reaches_every_device(
    dispatcher, registry, store, make_user, fake_channel
):
    user = make_user()
    notification = store.create(user.id, NotificationKind.COMMENT, "Comment", "Nice roses")
    store.create(user.id, NotificationKind.COMMENT, "Comment", "Lovely basil")
    phone, laptop = fake_channel(), fake_channel()
    await _connect(registry, user.id, phone)
    await registry.join(registry.group_for(user.id), laptop)

    await dispatcher.mark_read(user.id, notification.id)

    for channel in (phone, laptop):
        assert channel.events() == ["notification_read", "unread_count_update"]
        assert channel.sent[0]["data"] == {"notificationId": notification.id}
        assert channel.sent[1]["data"] == {"unreadCount": 1}


async def test_mark_read_of_foreign_notification_pushes_nothing(
    dispatcher, registry, store, make_user, fake_channel
):
    owner = make_user("Owner")
    intruder = make_user("Intruder")
    notification = store.create(owner.id, NotificationKind.GENERAL, "Hi", "Private")
    channel = fake_channel()
    await _connect(registry, intruder.id, channel)

    with pytest.raises(ForbiddenError):
        await dispatcher.mark_read(intruder.id, notification.id)

    assert channel.sent == []
    assert store.unread_count(owner.id) == 1


async def test_mark_all_read_announces_zero(
    dispatcher, registry, store, make_user, fake_channel
):
    user = make_user()
    for _ in range(2):
        store.create(user.id, NotificationKind.GENERAL, "Hi", "Hello")
    channel = fake_channel()
    await _connect(registry, user.id, channel)

    assert await dispatcher.mark_all_read(user.id) == 2

    assert channel.events() == ["all_notifications_read", "unread_count_update"]
    assert channel.sent[1]["data"] == {"unreadCount": 0}


async def test_admin_activity_only_reaches_admins(dispatcher, registry, fake_channel):
    admin_channel, customer_channel = fake_channel(), fake_channel()
    await registry.bind(1, admin_channel, is_admin=True)
    await registry.bind(2, customer_channel)

    await dispatcher.broadcast_admin_activity({"action": "discount_created"})

    assert admin_channel.events() == ["admin_activity"]
    assert customer_channel.sent == []
