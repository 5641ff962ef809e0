"""Upload lifecycle transitions.

Defines which :class:`UploadStage` may follow which, so that every step of
the pipeline can only move a request forward.  Prevents, for instance,
reporting a URL for an upload that was never registered.
"""

from __future__ import annotations

from shopstage.models import UploadStage

VALID_TRANSITIONS: dict[UploadStage, frozenset[UploadStage]] = {
    UploadStage.RECEIVED: frozenset({UploadStage.VALIDATED, UploadStage.FAILED}),
    UploadStage.VALIDATED: frozenset({UploadStage.STAGED, UploadStage.FAILED}),
    UploadStage.STAGED: frozenset({UploadStage.TRANSMITTED, UploadStage.FAILED}),
    UploadStage.TRANSMITTED: frozenset({UploadStage.REGISTERED, UploadStage.FAILED}),
    UploadStage.REGISTERED: frozenset({
        UploadStage.READY,
        UploadStage.PENDING,
        UploadStage.FAILED,
    }),
    UploadStage.READY: frozenset(),
    UploadStage.PENDING: frozenset(),
    UploadStage.FAILED: frozenset(),
}
"""Valid transitions::

    RECEIVED    -> VALIDATED   | FAILED
    VALIDATED   -> STAGED      | FAILED
    STAGED      -> TRANSMITTED | FAILED
    TRANSMITTED -> REGISTERED  | FAILED
    REGISTERED  -> READY | PENDING | FAILED
    READY, PENDING, FAILED -> (terminal)
"""


def is_terminal(stage: UploadStage) -> bool:
    """Return ``True`` if no transition leaves *stage*."""
    return not VALID_TRANSITIONS[stage]


def check_transition(current: UploadStage, new: UploadStage) -> None:
    """Raise ``ValueError`` unless ``current -> new`` is allowed."""
    allowed = VALID_TRANSITIONS[current]
    if new not in allowed:
        raise ValueError(
            f"Invalid state transition: {current.value} -> {new.value}. "
            f"Allowed transitions from {current.value}: "
            f"{{{', '.join(sorted(s.value for s in allowed))}}}"
        )
