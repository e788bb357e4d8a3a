from __future__ import annotations

import logging
from typing import Sequence

from church_admin.models.event import Event, EventState
from church_admin.models.identity import Identity, IdentityRole
from church_admin.models.ministry import Ministry

logger = logging.getLogger(__name__)


def notify_event_created(event: Event, actor_id: int) -> None:
    logger.info(
        "event_created",
        extra={
            "event_id": event.id,
            "ministry_id": event.ministry_id,
            "starts_at": event.starts_at.isoformat() if event.starts_at else None,
            "actor_id": actor_id,
        },
    )


def notify_event_state_changed(event: Event, previous: EventState, actor_id: int) -> None:
    """Placeholder hook for telling ministry leaders about review outcomes."""

    logger.info(
        "event_state_changed",
        extra={
            "event_id": event.id,
            "ministry_id": event.ministry_id,
            "old_state": previous.value,
            "new_state": EventState(event.state).value,
            "rejection_reason": event.rejection_reason,
            "actor_id": actor_id,
        },
    )


def notify_ministry_leaders_replaced(ministry: Ministry, previous_ids: Sequence[int], current_ids: Sequence[int], actor_id: int) -> None:
    logger.info(
        "ministry_leaders_replaced",
        extra={
            "ministry_id": ministry.id,
            "previous_identity_ids": list(previous_ids),
            "identity_ids": list(current_ids),
            "actor_id": actor_id,
        },
    )


def notify_identity_issued(identity: Identity, actor_id: int) -> None:
    # Never log the one-time credential.
    logger.info(
        "identity_issued",
        extra={
            "identity_id": identity.id,
            "person_id": identity.person_id,
            "handle": identity.handle,
            "role": IdentityRole(identity.role).value,
            "actor_id": actor_id,
        },
    )


def notify_identity_role_changed(identity: Identity, previous: IdentityRole, actor_id: int) -> None:
    logger.info(
        "identity_role_changed",
        extra={
            "identity_id": identity.id,
            "old_role": previous.value,
            "new_role": IdentityRole(identity.role).value,
            "actor_id": actor_id,
        },
    )


def notify_handle_collision(handle: str, attempt: int) -> None:
    logger.warning("handle_collision_retried", extra={"handle": handle, "attempt": attempt})
