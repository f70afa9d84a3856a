"""Tests for the in-memory connection registry."""

import pytest

from urbansprout.infrastructure.notifications import ConnectionRegistry

pytestmark = pytest.mark.anyio


async def test_reconnect_is_not_undone_by_late_disconnect(fake_channel):
    registry = ConnectionRegistry()
    first, second = fake_channel(), fake_channel()

    first_token = await registry.bind(5, first)
    second_token = await registry.bind(5, second)
    assert second_token != first_token
    assert registry.get(5) is second

    assert await registry.unbind(5, first_token) is False
    assert registry.get(5) is second
    assert registry.is_connected(5)

    assert await registry.unbind(5, second_token) is True
    assert registry.get(5) is None
    assert registry.connected_count() == 0


async def test_unbind_without_token_removes_current_entry(fake_channel):
    registry = ConnectionRegistry()
    await registry.bind(1, fake_channel())

    assert await registry.unbind(1) is True
    assert await registry.unbind(1) is False


async def test_groups_track_members(fake_channel):
    registry = ConnectionRegistry()
    phone, laptop = fake_channel(), fake_channel()
    group = registry.group_for(3)
    assert group == "user_3"

    await registry.join(group, phone)
    await registry.join(group, laptop)
    assert set(registry.members(group)) == {phone, laptop}

    await registry.leave(group, phone)
    assert registry.members(group) == [laptop]
    await registry.leave(group, laptop)
    assert registry.members(group) == []


async def test_admin_channels_and_listing(fake_channel):
    registry = ConnectionRegistry()
    admin_channel = fake_channel()
    await registry.bind(2, fake_channel())
    await registry.bind(1, admin_channel, is_admin=True)

    assert registry.admin_channels() == [admin_channel]
    assert registry.connected_ids() == [1, 2]
    assert registry.connected_count() == 2
