"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, Summary


REQUEST_COUNTER = Counter(
	"snapshoot_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"snapshoot_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

AUTH_REJECTED = Counter(
	"snapshoot_auth_rejected_total",
	"Requests rejected by the authentication dependency",
	["reason"],
)

LOGINS = Counter(
	"snapshoot_logins_total",
	"Login attempts by outcome",
	["result"],
)

FRIEND_REQUESTS = Counter(
	"snapshoot_friend_requests_total",
	"Friend requests by outcome",
	["result"],
)

FRIENDSHIPS_ACCEPTED = Counter(
	"snapshoot_friendships_accepted_total",
	"Friend requests accepted",
)

FRIENDSHIPS_REMOVED = Counter(
	"snapshoot_friendships_removed_total",
	"Friend edges removed (accepted or pending)",
)

GROUP_OPS = Counter(
	"snapshoot_group_ops_total",
	"Group mutations",
	["op"],
)

MESSAGES_SENT = Counter(
	"snapshoot_messages_sent_total",
	"Messages persisted",
	["kind"],
)

MESSAGES_DELETED = Counter(
	"snapshoot_messages_deleted_total",
	"Messages deleted by their sender",
	["kind"],
)

STORIES_CREATED = Counter(
	"snapshoot_stories_created_total",
	"Stories created",
)

STORIES_DELETED = Counter(
	"snapshoot_stories_deleted_total",
	"Stories deleted by their owner",
)

NEARBY_QUERIES = Counter(
	"snapshoot_nearby_queries_total",
	"Geospatial nearby queries",
	["target"],
)

MEDIA_OPS = Counter(
	"snapshoot_media_ops_total",
	"Media object store operations",
	["op", "result"],
)

MEDIA_ORPHANS = Counter(
	"snapshoot_media_orphans_total",
	"Media objects left behind after a failed release",
)

AUDIT_FAILURES = Counter(
	"snapshoot_audit_append_failures_total",
	"Audit stream appends that failed",
	["stream"],
)

REDIS_UP = Gauge("snapshoot_redis_up", "Redis availability (1=up,0=down)")
REDIS_LATENCY = Summary("snapshoot_redis_latency_seconds", "Redis ping latency (seconds)")

POSTGRES_UP = Gauge("snapshoot_postgres_up", "Postgres availability (1=up,0=down)")
POSTGRES_LATENCY = Summary("snapshoot_postgres_latency_seconds", "Postgres ping latency (seconds)")


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def inc_auth_rejected(reason: str) -> None:
	AUTH_REJECTED.labels(reason=reason).inc()


def inc_login(result: str) -> None:
	LOGINS.labels(result=result).inc()


def inc_friend_request(result: str) -> None:
	FRIEND_REQUESTS.labels(result=result).inc()


def inc_friend_accept() -> None:
	FRIENDSHIPS_ACCEPTED.inc()


def inc_friend_remove() -> None:
	FRIENDSHIPS_REMOVED.inc()


def inc_group_op(op: str) -> None:
	GROUP_OPS.labels(op=op).inc()


def inc_message_sent(kind: str) -> None:
	MESSAGES_SENT.labels(kind=kind).inc()


def inc_message_deleted(kind: str) -> None:
	MESSAGES_DELETED.labels(kind=kind).inc()


def inc_story_created() -> None:
	STORIES_CREATED.inc()


def inc_story_deleted() -> None:
	STORIES_DELETED.inc()


def inc_nearby_query(target: str) -> None:
	NEARBY_QUERIES.labels(target=target).inc()


def inc_media_op(op: str, result: str) -> None:
	MEDIA_OPS.labels(op=op, result=result).inc()


def inc_media_orphan() -> None:
	MEDIA_ORPHANS.inc()


def inc_audit_failure(stream: str) -> None:
	AUDIT_FAILURES.labels(stream=stream).inc()


def mark_redis(ok: bool, *, latency_seconds: float | None = None) -> None:
	REDIS_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		REDIS_LATENCY.observe(latency_seconds)


def mark_postgres(ok: bool, *, latency_seconds: float | None = None) -> None:
	POSTGRES_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		POSTGRES_LATENCY.observe(latency_seconds)
