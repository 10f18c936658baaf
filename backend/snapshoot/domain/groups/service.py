"""Group membership rules.

The creator is always a member and cannot be removed; a group never drops to
zero members. Only the creator renames, adds members or deletes the group,
while any member may leave.
"""

from __future__ import annotations

import logging
from typing import Iterable
from uuid import uuid4

from snapshoot.domain.errors import Forbidden, NotFound, ValidationFailed
from snapshoot.domain.groups.models import Group, ordered_members
from snapshoot.domain.social import audit, policy
from snapshoot.infra.store import Store, get_store
from snapshoot.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


class GroupService:
	def __init__(self, store: Store) -> None:
		self._groups = store.groups

	async def load_visible(self, group_id: str, user_id: str) -> Group:
		"""Group the user belongs to; non-members get the same NotFound as a missing id."""
		group = await self._groups.get(group_id)
		if group is None or not policy.can_view_group_content(user_id, group):
			raise NotFound("group_not_found", "Group not found or user is not a member")
		return group

	async def _load_for_creator(self, group_id: str, user_id: str) -> Group:
		group = await self.load_visible(group_id, user_id)
		if group.creator_id != user_id:
			raise Forbidden("not_group_creator", "Only the group creator can do this")
		return group

	async def list_my_groups(self, user_id: str) -> list[Group]:
		return await self._groups.list_for_member(user_id)

	async def get_group(self, group_id: str, user_id: str) -> Group:
		return await self.load_visible(group_id, user_id)

	async def create_group(self, creator_id: str, name: str, member_ids: Iterable[str]) -> Group:
		group = Group(
			id=str(uuid4()),
			name=name,
			creator_id=creator_id,
			members=ordered_members(creator_id, member_ids),
		)
		created = await self._groups.create(group)
		obs_metrics.inc_group_op("create")
		await audit.log_group_event("created", {"group_id": created.id, "by": creator_id})
		return created

	async def rename_group(self, group_id: str, actor_id: str, name: str) -> Group:
		await self._load_for_creator(group_id, actor_id)
		renamed = await self._groups.rename(group_id, name)
		if renamed is None:
			raise NotFound("group_not_found", "Group not found or user is not a member")
		obs_metrics.inc_group_op("rename")
		return renamed

	async def add_members(self, group_id: str, actor_id: str, member_ids: Iterable[str]) -> Group:
		group = await self._load_for_creator(group_id, actor_id)
		new_ids = [m for m in ordered_members(group.creator_id, member_ids) if not group.has_member(m)]
		if not new_ids:
			return group
		updated = await self._groups.add_members(group_id, new_ids)
		if updated is None:
			raise NotFound("group_not_found", "Group not found or user is not a member")
		obs_metrics.inc_group_op("add_members")
		await audit.log_group_event("members_added", {"group_id": group_id, "by": actor_id, "members": ",".join(new_ids)})
		return updated

	async def remove_member(self, group_id: str, actor_id: str, member_id: str) -> Group:
		group = await self.load_visible(group_id, actor_id)
		if not group.has_member(member_id):
			raise NotFound("member_not_found", "Member is not in the group")
		if actor_id != group.creator_id and actor_id != member_id:
			raise Forbidden("not_group_creator", "Only the group creator can remove other members")
		if len(group.members) <= 1:
			raise ValidationFailed("last_member", "Cannot remove the last member from a group")
		if member_id == group.creator_id:
			raise ValidationFailed("creator_immune", "The creator cannot be removed from the group")
		if not await self._groups.remove_member(group_id, member_id):
			# lost a race with another removal
			raise ValidationFailed("last_member", "Cannot remove the last member from a group")
		obs_metrics.inc_group_op("remove_member")
		logger.info("group_member_removed", extra={"group_id": group_id, "member_id": member_id, "by": actor_id})
		await audit.log_group_event("member_removed", {"group_id": group_id, "by": actor_id, "member_id": member_id})
		return await self.load_visible(group_id, group.creator_id)

	async def delete_group(self, group_id: str, actor_id: str) -> Group:
		await self._load_for_creator(group_id, actor_id)
		deleted = await self._groups.delete(group_id)
		if deleted is None:
			raise NotFound("group_not_found", "Group not found or user is not a member")
		obs_metrics.inc_group_op("delete")
		await audit.log_group_event("deleted", {"group_id": group_id, "by": actor_id})
		return deleted


async def get_group_service() -> GroupService:
	return GroupService(await get_store())
