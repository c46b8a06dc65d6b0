"""
Health Check System for the Event Dead Letter Store
Reports pending dead letters and backend reachability
"""

import asyncio
import json
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Dict, Optional

import structlog

from event_dead_letters.dlq.base import EventDeadLetters

logger = structlog.get_logger(__name__)

COMPONENT_NAME = "EventDeadLettersHealthCheck"


class ResultStatus(str, Enum):
    """Health of one component"""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass(frozen=True)
class HealthCheckResult:
    """
    Result of one health check run

    Attributes:
        component: Checked component name
        status: Health status
        cause: Human readable reason when not healthy
        latency_ms: Time taken by the check
    """

    component: str
    status: ResultStatus
    cause: Optional[str] = None
    latency_ms: float = 0.0

    @property
    def is_healthy(self) -> bool:
        return self.status == ResultStatus.HEALTHY


class EventDeadLettersHealthCheck:
    """
    Degraded while dead letters are pending, unhealthy when the backend fails

    Pending dead letters mean some listener group missed events and needs
    an operator to redeliver them.
    """

    def __init__(self, dead_letters: EventDeadLetters):
        self.dead_letters = dead_letters

    async def check(self) -> HealthCheckResult:
        start_time = time.time()

        try:
            contains_events = await self.dead_letters.contain_events()
        except Exception as e:
            logger.error("Dead letters health check failed", error=str(e))
            return HealthCheckResult(
                component=COMPONENT_NAME,
                status=ResultStatus.UNHEALTHY,
                cause=f"Error checking EventDeadLetters: {e}",
                latency_ms=(time.time() - start_time) * 1000,
            )

        latency_ms = (time.time() - start_time) * 1000

        if contains_events:
            logger.warning("Dead letters are pending redelivery")
            return HealthCheckResult(
                component=COMPONENT_NAME,
                status=ResultStatus.DEGRADED,
                cause="EventDeadLetters contain events. This might indicate transient failure on event processing.",
                latency_ms=latency_ms,
            )

        return HealthCheckResult(component=COMPONENT_NAME, status=ResultStatus.HEALTHY, latency_ms=latency_ms)


class HealthStatus:
    """
    Tracks the latest health check result of each component
    """

    def __init__(self):
        self.components: Dict[str, Dict[str, Any]] = {}
        self.start_time = datetime.now(timezone.utc)
        self.version = "1.0.0"

    def update(self, result: HealthCheckResult) -> None:
        """
        Record the latest result of one component

        Args:
            result: Health check result
        """
        self.components[result.component] = {
            "status": result.status.value,
            "cause": result.cause,
            "latency_ms": round(result.latency_ms, 2),
            "last_check": datetime.now(timezone.utc).isoformat(),
        }

    def get_overall_status(self) -> str:
        """
        Get overall health status

        Returns:
            The worst component status; "unhealthy" before the first check
        """
        if not self.components:
            return ResultStatus.UNHEALTHY.value

        statuses = {component["status"] for component in self.components.values()}
        for status in (ResultStatus.UNHEALTHY, ResultStatus.DEGRADED):
            if status.value in statuses:
                return status.value
        return ResultStatus.HEALTHY.value

    def get_uptime_seconds(self) -> float:
        return (datetime.now(timezone.utc) - self.start_time).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert health status to dictionary for JSON response

        Returns:
            Dict with status, components, uptime, version
        """
        return {
            "status": self.get_overall_status(),
            "uptime_seconds": round(self.get_uptime_seconds(), 2),
            "version": self.version,
            "components": self.components,
        }


# Global health status instance
_health_status = HealthStatus()


def get_health_status() -> Dict[str, Any]:
    """
    Get current health status as dict

    Returns:
        Health status dictionary
    """
    return _health_status.to_dict()


async def update_health_status(health_check: EventDeadLettersHealthCheck) -> HealthCheckResult:
    """
    Run the health check once and record its result globally
    """
    result = await health_check.check()
    _health_status.update(result)
    return result


class HealthHTTPHandler(BaseHTTPRequestHandler):
    """
    HTTP handler for /health endpoint
    """

    def do_GET(self):
        """Handle GET requests"""
        if self.path == "/health":
            health_data = get_health_status()

            # Degraded still serves traffic
            status_code = 503 if health_data["status"] == ResultStatus.UNHEALTHY.value else 200

            self.send_response(status_code)
            self.send_header("Content-Type", "application/json")
            self.end_headers()
            self.wfile.write(json.dumps(health_data, indent=2).encode())

        else:
            self.send_response(404)
            self.end_headers()

    def log_message(self, format, *args):
        """Suppress default logging"""
        pass


def start_health_server(port: int = 8080) -> HTTPServer:
    """
    Start HTTP server for /health endpoint in a background thread

    Args:
        port: HTTP port to expose /health endpoint

    Returns:
        Running server; call shutdown() to stop it
    """
    server = HTTPServer(("0.0.0.0", port), HealthHTTPHandler)

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    logger.info("Health check server started", port=port)
    return server


async def run_periodic_health_checks(
    health_check: EventDeadLettersHealthCheck,
    interval_seconds: int = 30,
) -> None:
    """
    Run health checks periodically in the background

    Args:
        health_check: Check to run
        interval_seconds: Interval between health checks
    """
    logger.info("Starting periodic health checks", interval_seconds=interval_seconds)

    while True:
        await update_health_status(health_check)
        await asyncio.sleep(interval_seconds)
