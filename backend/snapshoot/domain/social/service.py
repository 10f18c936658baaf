"""Friendship flows: requests, acceptance, removal and friend listings."""

from __future__ import annotations

import logging
from typing import Optional
from uuid import uuid4

from snapshoot.domain.errors import AlreadyExists, NotFound, SelfReference
from snapshoot.domain.identity.models import User
from snapshoot.domain.social import audit, policy
from snapshoot.domain.social.models import EdgeStatus, FriendEdge
from snapshoot.infra.store import Store, get_store
from snapshoot.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


class FriendService:
	def __init__(self, store: Store) -> None:
		self._users = store.users
		self._friends = store.friends

	async def are_friends(self, user_a: str, user_b: str) -> bool:
		return await policy.are_friends(self._friends, user_a, user_b)

	async def friend_ids(self, user_id: str) -> list[str]:
		edges = await self._friends.list_accepted(user_id)
		return [edge.other(user_id) for edge in edges if edge.other(user_id) != user_id]

	async def list_friends(self, user_id: str) -> list[User]:
		# Users deleted after the edge was accepted are skipped.
		return await self._users.get_many(await self.friend_ids(user_id))

	async def list_incoming_requests(self, user_id: str) -> list[FriendEdge]:
		return await self._friends.list_incoming(user_id)

	async def find_user(self, *, email: Optional[str] = None, user_id: Optional[str] = None) -> User:
		user = None
		if email is not None:
			user = await self._users.find_by_email(email.strip().lower())
		elif user_id is not None:
			user = await self._users.get(user_id)
		if user is None:
			raise NotFound("user_not_found", "No user found")
		return user

	async def send_request(self, from_id: str, to_id: str) -> FriendEdge:
		if from_id == to_id:
			obs_metrics.inc_friend_request("self")
			raise SelfReference("self_friend_request", "Cannot send a friend request to yourself")
		if await self._users.get(to_id) is None:
			raise NotFound("user_not_found", "No user found")
		if await self._friends.find_between(from_id, to_id) is not None:
			obs_metrics.inc_friend_request("duplicate")
			raise AlreadyExists("friend_edge_exists", "Friend request already exists or users are already friends")
		edge = FriendEdge(id=str(uuid4()), user_id=from_id, friend_id=to_id, status=EdgeStatus.PENDING)
		try:
			created = await self._friends.insert_pending(edge)
		except AlreadyExists:
			obs_metrics.inc_friend_request("duplicate")
			raise
		obs_metrics.inc_friend_request("sent")
		await audit.log_friend_event("requested", {"edge_id": created.id, "user_id": from_id, "friend_id": to_id})
		return created

	async def accept_request(self, edge_id: str, acting_user_id: str) -> FriendEdge:
		edge = await self._friends.accept(edge_id, acting_user_id)
		if edge is None:
			raise NotFound("friend_request_not_found", "Friend request not found or already accepted")
		obs_metrics.inc_friend_accept()
		logger.info("friend_request_accepted", extra={"edge_id": edge.id})
		await audit.log_friend_event("accepted", {"edge_id": edge.id, "user_id": edge.user_id, "friend_id": edge.friend_id})
		return edge

	async def remove_friend(self, user_a: str, user_b: str) -> FriendEdge:
		edge = await self._friends.delete_between(user_a, user_b)
		if edge is None:
			raise NotFound("friendship_not_found", "Friend relationship not found")
		obs_metrics.inc_friend_remove()
		await audit.log_friend_event(
			"removed",
			{"edge_id": edge.id, "by": user_a, "other": user_b, "status": edge.status.value},
		)
		return edge


async def get_friend_service() -> FriendService:
	return FriendService(await get_store())
