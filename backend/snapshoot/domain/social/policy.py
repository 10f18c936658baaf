"""Visibility predicates built on the friendship graph.

Everything except ``are_friends`` is a pure function of already-loaded data.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from snapshoot.domain.groups.models import Group
from snapshoot.domain.social.models import EdgeStatus, FriendEdge
from snapshoot.domain.social.repo import FriendRepository
from snapshoot.domain.stories.models import Story


def is_friendship(edge: Optional[FriendEdge]) -> bool:
	return edge is not None and edge.status is EdgeStatus.ACCEPTED


async def are_friends(friends: FriendRepository, user_a: str, user_b: str) -> bool:
	"""Accepted edge in either direction; symmetric by construction."""
	if user_a == user_b:
		return False
	return is_friendship(await friends.find_between(user_a, user_b))


def can_view_group_content(user_id: str, group: Group) -> bool:
	return group.has_member(user_id)


def can_view_story(viewer_id: str, story: Story, *, is_friend: bool, now: datetime) -> bool:
	# Unexpired stories stay visible to anyone who can reference them.
	if viewer_id == story.user_id or is_friend:
		return True
	return not story.is_expired(now)


def can_message_direct(is_friend: bool) -> bool:
	return is_friend


def can_message_group(sender_id: str, group: Group) -> bool:
	return can_view_group_content(sender_id, group)
