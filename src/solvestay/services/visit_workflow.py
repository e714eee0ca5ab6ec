"""Visit request state machine: validates transitions and applies them.

Lifecycle:
    pending -> confirmed | rejected | cancelled
    confirmed -> completed | rejected | cancelled | confirmed (reschedule)
rejected, cancelled and completed are terminal.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from solvestay.domain.enums import VisitActor, VisitStatus
from solvestay.domain.models import VisitRequest

logger = logging.getLogger(__name__)


class InvalidTransitionError(Exception):
    """Raised when a visit request state transition is not allowed."""

    def __init__(self, current_status: VisitStatus, target_status: VisitStatus, reason: str):
        self.current_status = current_status
        self.target_status = target_status
        self.reason = reason
        super().__init__(
            f"Invalid transition from {current_status.value} to {target_status.value}: {reason}"
        )


# ---------------------------------------------------------------------------
# Transition map: from_status -> {to_status: set_of_allowed_actors}
# ---------------------------------------------------------------------------

S = VisitStatus
A = VisitActor

TRANSITION_MAP: dict[VisitStatus, dict[VisitStatus, set[VisitActor]]] = {
    S.PENDING: {
        S.CONFIRMED: {A.OWNER},
        S.REJECTED: {A.OWNER},
        S.CANCELLED: {A.CUSTOMER, A.OWNER},
    },
    S.CONFIRMED: {
        S.CONFIRMED: {A.OWNER},  # reschedule
        S.COMPLETED: {A.OWNER},
        S.REJECTED: {A.OWNER},
        S.CANCELLED: {A.CUSTOMER, A.OWNER},
    },
}

TERMINAL_STATES: set[VisitStatus] = {S.REJECTED, S.CANCELLED, S.COMPLETED}

# Customer-facing notification title per target status
UPDATE_TITLES: dict[VisitStatus, str] = {
    S.CONFIRMED: "Visit Confirmed",
    S.REJECTED: "Visit Rejected",
    S.CANCELLED: "Visit Cancelled",
    S.COMPLETED: "Visit Completed",
}


class VisitStateMachine:
    """Validates visit request transitions."""

    def validate_transition(
        self,
        current_status: VisitStatus,
        target_status: VisitStatus,
        actor: VisitActor,
        confirmed_date=None,
    ) -> bool:
        """Return True if the transition is valid. Raise InvalidTransitionError if not."""
        if current_status in TERMINAL_STATES:
            raise InvalidTransitionError(
                current_status,
                target_status,
                f"Visit request is already {current_status.value}",
            )

        allowed_targets = TRANSITION_MAP.get(current_status, {})
        if target_status not in allowed_targets:
            raise InvalidTransitionError(
                current_status,
                target_status,
                f"Transition from {current_status.value} to {target_status.value} is not allowed",
            )

        allowed_actors = allowed_targets[target_status]
        if actor not in allowed_actors:
            raise InvalidTransitionError(
                current_status,
                target_status,
                f"Actor {actor.value} is not permitted for this transition "
                f"(allowed: {', '.join(sorted(a.value for a in allowed_actors))})",
            )

        # confirmed -> confirmed is only meaningful as a reschedule
        if current_status == S.CONFIRMED and target_status == S.CONFIRMED and confirmed_date is None:
            raise InvalidTransitionError(
                current_status,
                target_status,
                "Visit is already confirmed; provide confirmed_date to reschedule",
            )

        return True

    def is_terminal(self, status: VisitStatus) -> bool:
        return status in TERMINAL_STATES


def parse_status(value: str) -> VisitStatus | None:
    try:
        return VisitStatus(value)
    except ValueError:
        return None


async def apply_transition(
    db: AsyncSession,
    visit: VisitRequest,
    target_status: VisitStatus,
    actor: VisitActor,
    owner_message: str | None = None,
    confirmed_date=None,
    confirmed_time: str | None = None,
) -> VisitRequest:
    """Validate and persist a transition, guarded on the status we read.

    A concurrent update that already moved the request away from its current
    status makes this raise InvalidTransitionError.
    """
    current_status = VisitStatus(visit.status)
    VisitStateMachine().validate_transition(
        current_status, target_status, actor, confirmed_date=confirmed_date
    )

    values: dict = {
        "status": target_status.value,
        "updated_at": datetime.now(timezone.utc),
    }
    if owner_message is not None:
        values["owner_message"] = owner_message
    if confirmed_date is not None:
        values["confirmed_date"] = confirmed_date
    if confirmed_time is not None:
        values["confirmed_time"] = confirmed_time

    result = await db.execute(
        update(VisitRequest)
        .where(VisitRequest.id == visit.id, VisitRequest.status == current_status.value)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await db.rollback()
        raise InvalidTransitionError(
            current_status,
            target_status,
            "Visit request was updated concurrently",
        )

    await db.commit()
    await db.refresh(visit)
    logger.info(
        "Visit %s: %s -> %s by %s",
        visit.id, current_status.value, target_status.value, actor.value,
    )
    return visit
