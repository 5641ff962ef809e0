"""Metrics hook protocol and no-op default implementation.

shopstage emits counters and timings at key points of an upload request.
By default a :class:`NoopMetricsHook` is used so there is zero overhead.
Deployments can supply any object satisfying :class:`MetricsHook` through
``ShopstageConfig.metrics`` to route data points to StatsD, Prometheus, etc.

Emitted metric names:

* ``shopstage.requests_total``          -- counter (tag ``status``)
* ``shopstage.request_duration_ms``     -- timing
* ``shopstage.admin_requests_total``    -- counter (tag ``operation``, ``status``)
* ``shopstage.admin_request_duration_ms`` -- timing
* ``shopstage.stage_duration_ms``       -- timing (tag ``stage``)
* ``shopstage.upload_success_total``    -- counter
* ``shopstage.upload_pending_total``    -- counter
* ``shopstage.upload_failure_total``    -- counter (tag ``code``)
* ``shopstage.poll_attempts``           -- gauge
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict whose keys and values are
    strings.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to an absolute value."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that silently discards all data points."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
