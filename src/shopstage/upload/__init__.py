"""Upload orchestration: stage, transmit, register and poll.

Exports
-------
negotiate_staged_target
    Reserve a one-time upload target.
transmit
    POST the bytes to a staged target.
register_asset
    Register a staged resource as a managed file.
poll_for_url
    Follow a registered file until it has a URL.
UploadPipeline / PipelineState
    Sequence the stages for one request.
"""

from .pipeline import PipelineState, UploadPipeline, outcome_for
from .poll import poll_for_url
from .register import register_asset
from .stage import negotiate_staged_target
from .state import check_transition, is_terminal
from .transmit import transmit

__all__ = [
    "PipelineState",
    "UploadPipeline",
    "check_transition",
    "is_terminal",
    "negotiate_staged_target",
    "outcome_for",
    "poll_for_url",
    "register_asset",
    "transmit",
]
