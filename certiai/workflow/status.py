# certiai/workflow/status.py
from __future__ import annotations

from datetime import datetime, timezone

from certiai.core.errors import InvalidStatusTransition
from certiai.models.verification import Verification, VerificationStatus

TERMINAL = frozenset(
    {
        VerificationStatus.AUTHENTIC,
        VerificationStatus.SUSPICIOUS,
        VerificationStatus.FORGED,
    }
)

# PENDING -> PROCESSING -> terminal. PENDING may also fail straight to FORGED
# when dispatch breaks before the classifier is called.
TRANSITIONS: dict[VerificationStatus, frozenset[VerificationStatus]] = {
    VerificationStatus.PENDING: frozenset({VerificationStatus.PROCESSING, VerificationStatus.FORGED}),
    VerificationStatus.PROCESSING: TERMINAL,
    VerificationStatus.AUTHENTIC: frozenset(),
    VerificationStatus.SUSPICIOUS: frozenset(),
    VerificationStatus.FORGED: frozenset(),
}


def is_terminal(status: VerificationStatus) -> bool:
    return status in TERMINAL


def can_transition(current: VerificationStatus, target: VerificationStatus) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def status_from_label(authenticity: object) -> VerificationStatus:
    """
    Map het classifier-label op een eindstatus.
    AUTHENTIC en SUSPICIOUS komen 1-op-1 door, al het andere wordt FORGED.
    """
    if authenticity == VerificationStatus.AUTHENTIC.value:
        return VerificationStatus.AUTHENTIC
    if authenticity == VerificationStatus.SUSPICIOUS.value:
        return VerificationStatus.SUSPICIOUS
    return VerificationStatus.FORGED


def advance(record: Verification, target: VerificationStatus) -> None:
    """Move `record` to `target`, refusing anything but a forward step."""
    current = VerificationStatus(record.status)
    if not can_transition(current, target):
        raise InvalidStatusTransition(
            f"{record.id}: {current.value} -> {target.value} not allowed"
        )
    record.status = target
    record.updated_at = datetime.now(timezone.utc)
