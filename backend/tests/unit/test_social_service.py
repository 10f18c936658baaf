import pytest

from snapshoot.domain.errors import AlreadyExists, NotFound, SelfReference
from snapshoot.domain.social import audit
from snapshoot.domain.social.models import EdgeStatus
from snapshoot.domain.social.service import FriendService


@pytest.mark.asyncio
async def test_request_then_accept_makes_symmetric_friendship(store, make_user, fake_redis):
    alice = await make_user("alice")
    bob = await make_user("bob")
    service = FriendService(store)

    edge = await service.send_request(alice.id, bob.id)
    assert edge.status is EdgeStatus.PENDING
    assert not await service.are_friends(alice.id, bob.id)
    assert [e.id for e in await service.list_incoming_requests(bob.id)] == [edge.id]

    accepted = await service.accept_request(edge.id, bob.id)
    assert accepted.status is EdgeStatus.ACCEPTED
    assert await service.are_friends(alice.id, bob.id)
    assert await service.are_friends(bob.id, alice.id)
    assert [u.id for u in await service.list_friends(alice.id)] == [bob.id]
    assert [u.id for u in await service.list_friends(bob.id)] == [alice.id]

    events = await fake_redis.xrange(audit.FRIEND_STREAM)
    assert [fields["event"] for _, fields in events] == ["requested", "accepted"]


@pytest.mark.asyncio
async def test_self_request_rejected(store, make_user):
    alice = await make_user("alice")
    with pytest.raises(SelfReference):
        await FriendService(store).send_request(alice.id, alice.id)


@pytest.mark.asyncio
async def test_request_to_unknown_user_not_found(store, make_user):
    alice = await make_user("alice")
    with pytest.raises(NotFound):
        await FriendService(store).send_request(alice.id, "00000000-0000-0000-0000-000000000000")


@pytest.mark.asyncio
async def test_duplicate_request_rejected_in_either_direction(store, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    service = FriendService(store)
    await service.send_request(alice.id, bob.id)

    with pytest.raises(AlreadyExists):
        await service.send_request(alice.id, bob.id)
    with pytest.raises(AlreadyExists):
        await service.send_request(bob.id, alice.id)


@pytest.mark.asyncio
async def test_only_recipient_can_accept(store, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    service = FriendService(store)
    edge = await service.send_request(alice.id, bob.id)

    with pytest.raises(NotFound):
        await service.accept_request(edge.id, alice.id)
    await service.accept_request(edge.id, bob.id)
    with pytest.raises(NotFound):
        await service.accept_request(edge.id, bob.id)


@pytest.mark.asyncio
async def test_remove_deletes_edge_and_allows_new_request(store, make_user, befriend):
    alice = await make_user("alice")
    bob = await make_user("bob")
    await befriend(alice, bob)
    service = FriendService(store)

    removed = await service.remove_friend(bob.id, alice.id)
    assert removed.status is EdgeStatus.ACCEPTED
    assert not await service.are_friends(alice.id, bob.id)
    with pytest.raises(NotFound):
        await service.remove_friend(alice.id, bob.id)

    again = await service.send_request(bob.id, alice.id)
    assert again.status is EdgeStatus.PENDING


@pytest.mark.asyncio
async def test_pending_request_can_be_cancelled_by_requester(store, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    service = FriendService(store)
    await service.send_request(alice.id, bob.id)

    cancelled = await service.remove_friend(alice.id, bob.id)
    assert cancelled.status is EdgeStatus.PENDING
    assert await service.list_incoming_requests(bob.id) == []


@pytest.mark.asyncio
async def test_deleted_friend_is_skipped_in_listing(store, make_user, befriend):
    alice = await make_user("alice")
    bob = await make_user("bob")
    carol = await make_user("carol")
    await befriend(alice, bob)
    await befriend(carol, alice)
    await store.users.delete(bob.id)

    assert [u.id for u in await FriendService(store).list_friends(alice.id)] == [carol.id]


@pytest.mark.asyncio
async def test_find_user_by_email_is_case_insensitive(store, make_user):
    alice = await make_user("alice")
    service = FriendService(store)
    assert (await service.find_user(email="  ALICE@example.com ")).id == alice.id
    assert (await service.find_user(user_id=alice.id)).username == "alice"
    with pytest.raises(NotFound):
        await service.find_user(email="nobody@example.com")


@pytest.mark.asyncio
async def test_audit_failure_does_not_break_request(store, make_user, monkeypatch):
    from redis.exceptions import ConnectionError as RedisConnectionError

    alice = await make_user("alice")
    bob = await make_user("bob")

    async def broken_xadd(*_args, **_kwargs):
        raise RedisConnectionError("down")

    monkeypatch.setattr(audit.redis_client, "xadd", broken_xadd)
    edge = await FriendService(store).send_request(alice.id, bob.id)
    assert edge.status is EdgeStatus.PENDING
