"""
Health endpoints.

- /health: overall status from all registered checks
- /health/ready: readiness probe (store reachable, startup complete)
- /health/live: liveness probe (process alive)
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

# --- Types ---


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class CheckResult:
    name: str
    status: HealthStatus
    message: str = ""
    latency_ms: float = 0.0


class HealthCheck(Protocol):
    name: str

    def check(self) -> CheckResult: ...


# --- Startup Tracker ---


class StartupTracker:
    """Tracks application startup time for uptime calculation."""

    def __init__(self) -> None:
        self._start_time: float | None = None

    def mark_started(self) -> None:
        self._start_time = time.time()

    def uptime_seconds(self) -> float:
        if self._start_time is None:
            return 0.0
        return time.time() - self._start_time

    def is_started(self) -> bool:
        return self._start_time is not None


# --- Health Check Registry ---


class HealthCheckRegistry:
    """Checks keyed by name; registering a name again replaces the check."""

    def __init__(self) -> None:
        self._checks: dict[str, HealthCheck] = {}

    def register(self, check: HealthCheck) -> None:
        self._checks[check.name] = check

    def run_all(self) -> list[CheckResult]:
        return [check.check() for check in self._checks.values()]


# --- Built-in Checks ---


class StartupCheck:
    name = "startup"

    def __init__(self, tracker: StartupTracker) -> None:
        self._tracker = tracker

    def check(self) -> CheckResult:
        if self._tracker.is_started():
            return CheckResult(self.name, HealthStatus.HEALTHY, "Startup complete")
        return CheckResult(self.name, HealthStatus.UNHEALTHY, "Startup not complete")


class StoreCheck:
    """Credential store connectivity."""

    name = "store"

    def __init__(self, ping: Callable[[], bool]) -> None:
        self._ping = ping

    def check(self) -> CheckResult:
        start = time.time()
        ok = self._ping()
        latency = (time.time() - start) * 1000
        if ok:
            return CheckResult(self.name, HealthStatus.HEALTHY, "Store reachable", latency)
        return CheckResult(self.name, HealthStatus.UNHEALTHY, "Store unreachable", latency)


# --- FastAPI Router ---


def create_health_router(
    registry: HealthCheckRegistry,
    tracker: StartupTracker,
    version: str = "0.0.0",
) -> APIRouter:
    router = APIRouter(tags=["health"])

    def _payload(results: list[CheckResult]) -> list[dict[str, object]]:
        return [
            {
                "name": r.name,
                "status": r.status.value,
                "message": r.message,
                "latency_ms": r.latency_ms,
            }
            for r in results
        ]

    @router.get("/health", response_model=None)
    def health_check() -> JSONResponse:
        results = registry.run_all()
        healthy = all(r.status == HealthStatus.HEALTHY for r in results)
        overall = HealthStatus.HEALTHY if healthy else HealthStatus.UNHEALTHY

        return JSONResponse(
            content={
                "status": overall.value,
                "version": version,
                "uptime_seconds": tracker.uptime_seconds(),
                "checks": _payload(results),
            },
            status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    @router.get("/health/ready", response_model=None)
    def readiness_check() -> JSONResponse:
        results = registry.run_all()
        is_ready = all(r.status == HealthStatus.HEALTHY for r in results)

        return JSONResponse(
            content={"ready": is_ready, "checks": _payload(results)},
            status_code=status.HTTP_200_OK if is_ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    @router.get("/health/live", response_model=None)
    def liveness_check() -> JSONResponse:
        return JSONResponse(
            content={"alive": True, "uptime_seconds": tracker.uptime_seconds()},
            status_code=status.HTTP_200_OK,
        )

    return router
