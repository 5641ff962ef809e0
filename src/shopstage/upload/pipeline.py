"""Upload orchestrator.

Sequences the five upload stages for one request::

    validate -> stage -> transmit -> register -> poll (only without a URL)

Progress is carried by a frozen :class:`PipelineState` that each step
receives and returns.  A step either advances the state to the next
:class:`UploadStage` or fails it; the runner stops as soon as the state is
terminal and turns it into a single :class:`OrchestrationOutcome`.

Every step can be exercised on its own by handing it a hand-built state.
"""

from __future__ import annotations

import asyncio
import dataclasses
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from shopstage.config import ShopstageConfig
from shopstage.errors import (
    ErrorCode,
    ShopstageError,
    ShopstageImageSizeError,
    ShopstageImageTypeError,
    ShopstageInternalError,
    ShopstageProcessingError,
)
from shopstage.image.validate import validate_image
from shopstage.models import (
    Accepted,
    OrchestrationOutcome,
    PollResult,
    PollState,
    RemoteAsset,
    StagedTarget,
    UploadCandidate,
    UploadStage,
)
from shopstage.observability import NoopMetricsHook, get_logger

from .poll import Sleep, poll_for_url
from .register import register_asset
from .stage import negotiate_staged_target
from .state import check_transition, is_terminal
from .transmit import transmit

log = get_logger("shopstage.pipeline")


# ---------------------------------------------------------------------------
# Pipeline state
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PipelineState:
    """Everything known about one upload at a given stage."""

    candidate: UploadCandidate
    stage: UploadStage = UploadStage.RECEIVED
    accepted: Accepted | None = None
    filename: str | None = None
    target: StagedTarget | None = None
    asset: RemoteAsset | None = None
    poll: PollResult | None = None
    error: ShopstageError | None = None

    @property
    def terminal(self) -> bool:
        return is_terminal(self.stage)

    def advance(self, stage: UploadStage, **changes: Any) -> PipelineState:
        """Return a copy moved to *stage*, with *changes* applied.

        Raises ``ValueError`` if the transition is not allowed.
        """
        check_transition(self.stage, stage)
        return dataclasses.replace(self, stage=stage, **changes)

    def fail(self, error: ShopstageError) -> PipelineState:
        return self.advance(UploadStage.FAILED, error=error)


def outcome_for(state: PipelineState) -> OrchestrationOutcome:
    """Map a terminal state to the response envelope."""
    if state.stage == UploadStage.READY and state.asset is not None and state.asset.url:
        return OrchestrationOutcome.success(state.asset.url)
    if state.stage == UploadStage.PENDING:
        return OrchestrationOutcome.pending(state.asset.id if state.asset else None)
    if state.stage == UploadStage.FAILED and state.error is not None:
        return OrchestrationOutcome.from_error(state.error)
    raise ValueError(f"No outcome for non-terminal stage {state.stage.value}")


Step = Callable[[PipelineState], Awaitable[PipelineState]]


def _code_name(code: str) -> str:
    return code.value if isinstance(code, ErrorCode) else str(code)


def _require(state: PipelineState, *fields: str) -> None:
    missing = [name for name in fields if getattr(state, name) is None]
    if missing:
        raise ValueError(
            f"Stage {state.stage.value} is missing {', '.join(missing)}"
        )


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class UploadPipeline:
    """Run one upload through validation, staging, transfer and registration.

    Parameters
    ----------
    config:
        Service configuration (limits, poll budget, upstream naming).
    files:
        A :class:`~shopstage.admin_api.FileAPI` bound to the caller's shop.
    storage:
        A :class:`~shopstage.admin_api.StorageUploader`.
    sleep:
        Coroutine function used between poll attempts.
    """

    def __init__(
        self,
        config: ShopstageConfig,
        files: Any,
        storage: Any,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._config = config
        self._files = files
        self._storage = storage
        self._sleep = sleep
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

    @property
    def steps(self) -> list[tuple[str, Step]]:
        return [
            ("validate", self.validate),
            ("stage", self.stage),
            ("transmit", self.transmit),
            ("register", self.register),
            ("poll", self.poll),
        ]

    async def run(self, candidate: UploadCandidate) -> OrchestrationOutcome:
        """Run every step until the state is terminal and return the envelope."""
        state = PipelineState(candidate=candidate)
        for name, step in self.steps:
            if state.terminal:
                break
            state = await self._run_step(name, step, state)

        outcome = outcome_for(state)
        self._record(state)
        return outcome

    async def _run_step(self, name: str, step: Step, state: PipelineState) -> PipelineState:
        """Run *step*, converting any exception into a failed state."""
        t0 = time.monotonic()
        try:
            return await step(state)
        except ShopstageError as exc:
            log.warning(
                "Upload stage failed",
                extra={
                    "extra_fields": {
                        "op": "upload",
                        "stage": name,
                        "code": _code_name(exc.code),
                        "error": exc.message,
                    }
                },
            )
            return state.fail(exc)
        except Exception as exc:
            log.error(
                "Unexpected error during upload",
                exc_info=True,
                extra={"extra_fields": {"op": "upload", "stage": name}},
            )
            return state.fail(
                ShopstageInternalError(
                    message=str(exc) or "Upload failed",
                    context={"stage": name, "exception_type": type(exc).__name__},
                    cause=exc,
                )
            )
        finally:
            self._metrics.timing(
                "shopstage.stage_duration_ms",
                (time.monotonic() - t0) * 1000,
                tags={"stage": name},
            )

    def _record(self, state: PipelineState) -> None:
        if state.stage == UploadStage.READY:
            self._metrics.increment("shopstage.upload_success_total")
        elif state.stage == UploadStage.PENDING:
            self._metrics.increment("shopstage.upload_pending_total")
        elif state.error is not None:
            self._metrics.increment(
                "shopstage.upload_failure_total",
                tags={"code": _code_name(state.error.code)},
            )
        if state.poll is not None:
            self._metrics.gauge("shopstage.poll_attempts", state.poll.attempts)

        log.info(
            "Upload finished",
            extra={
                "extra_fields": {
                    "op": "upload",
                    "stage": state.stage.value,
                    "file_id": state.asset.id if state.asset else None,
                    "poll_attempts": state.poll.attempts if state.poll else 0,
                }
            },
        )

    # -- steps ---------------------------------------------------------------

    async def validate(self, state: PipelineState) -> PipelineState:
        """RECEIVED -> VALIDATED, or FAILED for oversized / unknown content."""
        candidate = state.candidate
        result = validate_image(candidate.data, candidate.size, self._config.max_upload_bytes)
        if isinstance(result, Accepted):
            return state.advance(
                UploadStage.VALIDATED,
                accepted=result,
                filename=f"{self._config.filename_stem}.{result.extension}",
            )

        context = {"size_bytes": candidate.size, "max_bytes": self._config.max_upload_bytes}
        if result.code == ErrorCode.IMAGE_SIZE_ERROR:
            return state.fail(ShopstageImageSizeError(message=result.reason, context=context))
        return state.fail(ShopstageImageTypeError(message=result.reason, context=context))

    async def stage(self, state: PipelineState) -> PipelineState:
        """VALIDATED -> STAGED."""
        _require(state, "accepted", "filename")
        target = await negotiate_staged_target(
            self._files,
            state.filename,
            state.accepted.mime,
            resource=self._config.staged_resource,
        )
        return state.advance(UploadStage.STAGED, target=target)

    async def transmit(self, state: PipelineState) -> PipelineState:
        """STAGED -> TRANSMITTED."""
        _require(state, "target", "accepted", "filename")
        await transmit(
            self._storage,
            state.target,
            state.candidate.data,
            state.filename,
            state.accepted.mime,
        )
        return state.advance(UploadStage.TRANSMITTED)

    async def register(self, state: PipelineState) -> PipelineState:
        """TRANSMITTED -> REGISTERED, or straight to READY for an inline URL."""
        _require(state, "target")
        asset = await register_asset(
            self._files,
            state.target.resource_url,
            alt=self._config.file_alt,
        )
        registered = state.advance(UploadStage.REGISTERED, asset=asset)
        if asset.url:
            return registered.advance(UploadStage.READY)
        return registered

    async def poll(self, state: PipelineState) -> PipelineState:
        """REGISTERED -> READY | PENDING | FAILED."""
        _require(state, "asset")
        if state.asset.id is None:
            log.warning(
                "File create returned no file; reporting pending",
                extra={"extra_fields": {"op": "poll"}},
            )
            return state.advance(UploadStage.PENDING)
        result = await poll_for_url(
            self._files,
            state.asset,
            max_attempts=self._config.poll_max_attempts,
            delay=self._config.poll_delay_seconds,
            sleep=self._sleep,
        )
        state = dataclasses.replace(state, asset=result.asset, poll=result)
        if result.state == PollState.READY:
            return state.advance(UploadStage.READY)
        if result.state == PollState.FAILED:
            return state.fail(
                ShopstageProcessingError(
                    context={"file_id": result.asset.id, "attempt": result.attempts},
                )
            )
        return state.advance(UploadStage.PENDING)
