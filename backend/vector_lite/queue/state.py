"""Queue entry status and its legal transitions."""

from __future__ import annotations

from enum import Enum

from vector_lite.core.errors import IllegalTransition


class QueueStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


_LEGAL: dict[QueueStatus, frozenset[QueueStatus]] = {
    QueueStatus.PENDING: frozenset({QueueStatus.PROCESSING}),
    # processing -> pending is only used to recover entries stranded by a crash.
    QueueStatus.PROCESSING: frozenset(
        {QueueStatus.COMPLETED, QueueStatus.FAILED, QueueStatus.PENDING}
    ),
    QueueStatus.COMPLETED: frozenset(),
    QueueStatus.FAILED: frozenset({QueueStatus.PENDING}),
}


def can_transition(current: QueueStatus, target: QueueStatus) -> bool:
    return target in _LEGAL[QueueStatus(current)]


def transition(current: QueueStatus | str, target: QueueStatus | str) -> QueueStatus:
    """Return ``target`` if moving there from ``current`` is legal, else raise."""
    current = QueueStatus(current)
    target = QueueStatus(target)
    if not can_transition(current, target):
        raise IllegalTransition(f"Queue entry cannot move from {current.value} to {target.value}")
    return target


__all__ = ["QueueStatus", "can_transition", "transition"]
