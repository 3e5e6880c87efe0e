"""
Status-Change Events

Every committed application status change, document review and report
review is published as a JSON message on a Redis pub/sub channel. The
notification and admin-review surfaces subscribe to these channels; delivery
is their concern.

Publishing never fails the calling operation: the state change has already
been committed when the event is emitted.
"""

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from uuid import UUID

from redis.exceptions import RedisError

from iskolar.core.redis import get_redis

logger = logging.getLogger(__name__)

APPLICATION_STATUS_CHANNEL = "iskolar:application-status"
REVIEW_STATUS_CHANNEL = "iskolar:review-status"


@dataclass(frozen=True)
class StatusChangeEvent:
    """An application moved from one status to another."""

    application_id: UUID
    student_profile_id: UUID
    old_status: str
    new_status: str
    action: str
    occurred_at: datetime


@dataclass(frozen=True)
class ReviewEvent:
    """A document upload, service report or service entry received a review decision."""

    application_id: UUID
    subject: str  # "document", "service_report" or "service_entry"
    subject_id: UUID
    old_status: str
    new_status: str
    occurred_at: datetime
    rejection_reason: str | None = None


def _encode(event: StatusChangeEvent | ReviewEvent) -> str:
    payload = asdict(event)
    for key, value in payload.items():
        if isinstance(value, UUID):
            payload[key] = str(value)
        elif isinstance(value, datetime):
            payload[key] = value.isoformat()
    return json.dumps(payload)


async def _publish(channel: str, event: StatusChangeEvent | ReviewEvent) -> bool:
    client = get_redis()
    if client is None:
        logger.debug(f"Redis not connected, dropping event on {channel}")
        return False

    try:
        await client.publish(channel, _encode(event))
    except RedisError as e:
        logger.error(f"Failed to publish event on {channel}: {e}")
        return False

    return True


async def publish_status_change(event: StatusChangeEvent) -> bool:
    if event.old_status == event.new_status:
        return False
    return await _publish(APPLICATION_STATUS_CHANNEL, event)


async def publish_review(event: ReviewEvent) -> bool:
    return await _publish(REVIEW_STATUS_CHANNEL, event)
