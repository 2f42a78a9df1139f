"""
Health checks for the stringing shop services.

Liveness, readiness and startup probes in the Health Check Response Format
for HTTP APIs, plus a small metrics endpoint. Readiness also probes the
hosted collaborators (payment provider) with a bounded timeout.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import create_engine, inspect, text
from typing import Callable, Dict, Any, List, Optional
from dataclasses import dataclass, field
import os
import time
from datetime import datetime, timezone
from enum import Enum
import httpx
import psutil
import logging

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def mask_secret(value: Optional[str]) -> str:
    """Show only the first 8 and last 3 characters of a credential."""
    if not value or len(value) < 12:
        return "***"
    return f"{value[:8]}...{value[-3:]}"


class HealthStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"


@dataclass
class ExternalProbe:
    """An HTTP dependency checked during readiness."""
    name: str
    url: str
    secret: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)


class ServiceHealth:
    """
    Builds the health router for one service.

    `database_url` is resolved lazily so tests can swap the engine after
    the application module is imported.
    """

    def __init__(
        self,
        service_name: str,
        version: str = "1.0.0",
        database_url: Optional[Callable[[], str]] = None,
        required_env: Optional[List[str]] = None,
        probes: Optional[Callable[[], List[ExternalProbe]]] = None,
        probe_timeout: float = 5.0,
    ):
        self.service_name = service_name
        self.version = version
        self.database_url = database_url
        self.required_env = required_env or []
        self.probes = probes
        self.probe_timeout = probe_timeout
        self.start_time = time.time()
        self.checks_performed = 0
        self.last_check_time = None

    def create_health_router(self) -> APIRouter:
        router = APIRouter(tags=["health"])

        @router.get("/health", status_code=status.HTTP_200_OK)
        async def health_check() -> Dict[str, Any]:
            """Liveness probe used by the platform load balancer."""
            return {
                "status": HealthStatus.PASS,
                "service": self.service_name,
                "version": self.version,
                "releaseId": os.getenv("RELEASE_ID", "unknown"),
                "timestamp": _now()
            }

        @router.get("/health/live", status_code=status.HTTP_200_OK)
        async def liveness() -> Dict[str, Any]:
            return {"status": "alive"}

        @router.get("/health/ready")
        async def readiness() -> JSONResponse:
            """Checks every dependency and returns detailed status."""
            checks = await self._perform_readiness_checks()
            overall_status = self._calculate_overall_status(checks)
            status_code = (
                status.HTTP_503_SERVICE_UNAVAILABLE
                if overall_status == HealthStatus.FAIL
                else status.HTTP_200_OK
            )

            response = {
                "status": overall_status,
                "version": self.version,
                "releaseId": os.getenv("RELEASE_ID", "unknown"),
                "notes": [],
                "output": "",
                "checks": checks,
                "links": {},
                "serviceId": self.service_name,
                "description": f"{self.service_name} service",
                "timestamp": _now()
            }

            return JSONResponse(status_code=status_code, content=response)

        @router.get("/health/startup")
        async def startup() -> Any:
            checks = {
                "database:migrations": self._check_migrations(),
                "config:environment": self._check_environment(),
            }
            if self._calculate_overall_status(checks) == HealthStatus.FAIL:
                return JSONResponse(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    content={"status": "starting", "checks": checks}
                )
            return {"status": "started", "checks": checks}

        @router.get("/metrics")
        async def metrics() -> Dict[str, Any]:
            process = psutil.Process()
            memory = process.memory_info()

            return {
                "service": self.service_name,
                "version": self.version,
                "uptime_seconds": time.time() - self.start_time,
                "checks_performed": self.checks_performed,
                "timestamp": _now(),
                "system": {
                    "memory_rss_bytes": memory.rss,
                    "memory_vms_bytes": memory.vms,
                    "cpu_percent": process.cpu_percent(),
                    "num_threads": process.num_threads()
                }
            }

        return router

    async def _perform_readiness_checks(self) -> Dict[str, Dict[str, Any]]:
        self.checks_performed += 1
        self.last_check_time = time.time()

        checks = {
            "database:connectivity": self._check_database(),
            "storage:disk_space": self._check_disk_space(),
            "system:memory": self._check_memory(),
            "config:environment": self._check_environment(),
        }

        if self.probes:
            async with httpx.AsyncClient(timeout=self.probe_timeout) as client:
                for probe in self.probes():
                    checks[f"upstream:{probe.name}"] = await self._check_external(client, probe)

        return checks

    def _check_database(self) -> Dict[str, Any]:
        if self.database_url is None:
            return {"status": HealthStatus.WARN, "componentType": "datastore",
                    "output": "No database configured", "time": _now()}
        engine = None
        try:
            start_time = time.time()
            engine = create_engine(self.database_url(), pool_pre_ping=True)
            with engine.connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            response_time = (time.time() - start_time) * 1000

            return {
                "status": HealthStatus.PASS,
                "componentType": "datastore",
                "observedValue": f"{response_time:.2f}ms",
                "observedUnit": "ms",
                "time": _now()
            }
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return {
                "status": HealthStatus.FAIL,
                "componentType": "datastore",
                "output": str(e),
                "time": _now()
            }
        finally:
            if engine is not None:
                engine.dispose()

    async def _check_external(self, client: httpx.AsyncClient, probe: ExternalProbe) -> Dict[str, Any]:
        """A timeout or 5xx is a warning; the order flow degrades, it does not stop."""
        if probe.secret is None:
            return {
                "status": HealthStatus.WARN,
                "componentType": "component",
                "output": "Missing credentials",
                "time": _now()
            }

        start_time = time.time()
        try:
            response = await client.get(probe.url, headers=probe.headers)
        except httpx.HTTPError as e:
            return {
                "status": HealthStatus.WARN,
                "componentType": "component",
                "output": f"{type(e).__name__}: {e}",
                "secretKeyMasked": mask_secret(probe.secret),
                "time": _now()
            }

        response_time = (time.time() - start_time) * 1000
        status_val = HealthStatus.PASS if response.status_code < 400 else HealthStatus.WARN
        return {
            "status": status_val,
            "componentType": "component",
            "observedValue": f"{response_time:.2f}ms",
            "observedUnit": "ms",
            "output": "" if status_val == HealthStatus.PASS else f"HTTP {response.status_code}",
            "secretKeyMasked": mask_secret(probe.secret),
            "time": _now()
        }

    def _check_disk_space(self) -> Dict[str, Any]:
        try:
            disk = psutil.disk_usage('/')
            free_gb = disk.free / (1024 ** 3)

            if free_gb < 1:
                status_val = HealthStatus.FAIL
            elif free_gb < 5:
                status_val = HealthStatus.WARN
            else:
                status_val = HealthStatus.PASS

            return {
                "status": status_val,
                "componentType": "system",
                "observedValue": f"{free_gb:.2f}",
                "observedUnit": "GB",
                "time": _now()
            }
        except Exception as e:
            return {
                "status": HealthStatus.WARN,
                "componentType": "system",
                "output": str(e),
                "time": _now()
            }

    def _check_memory(self) -> Dict[str, Any]:
        try:
            memory = psutil.virtual_memory()
            available_mb = memory.available / (1024 ** 2)

            if available_mb < 100:
                status_val = HealthStatus.FAIL
            elif available_mb < 500:
                status_val = HealthStatus.WARN
            else:
                status_val = HealthStatus.PASS

            return {
                "status": status_val,
                "componentType": "system",
                "observedValue": f"{available_mb:.2f}",
                "observedUnit": "MB",
                "time": _now()
            }
        except Exception as e:
            return {
                "status": HealthStatus.WARN,
                "componentType": "system",
                "output": str(e),
                "time": _now()
            }

    def _check_migrations(self) -> Dict[str, Any]:
        if self.database_url is None:
            return {"status": HealthStatus.WARN, "componentType": "datastore", "time": _now()}
        engine = None
        try:
            engine = create_engine(self.database_url())
            with engine.connect() as conn:
                exists = inspect(conn).has_table("alembic_version")
        except Exception as e:
            return {
                "status": HealthStatus.FAIL,
                "componentType": "datastore",
                "output": str(e),
                "time": _now()
            }
        finally:
            if engine is not None:
                engine.dispose()

        if exists:
            return {"status": HealthStatus.PASS, "componentType": "datastore", "time": _now()}
        return {
            "status": HealthStatus.WARN,
            "componentType": "datastore",
            "output": "Migrations table not found",
            "time": _now()
        }

    def _check_environment(self) -> Dict[str, Any]:
        missing = [var for var in self.required_env if not os.getenv(var)]

        if missing:
            return {
                "status": HealthStatus.WARN,
                "componentType": "configuration",
                "output": f"Missing environment variables: {', '.join(missing)}",
                "time": _now()
            }

        return {
            "status": HealthStatus.PASS,
            "componentType": "configuration",
            "time": _now()
        }

    def _calculate_overall_status(self, checks: Dict[str, Dict[str, Any]]) -> HealthStatus:
        statuses = [check.get("status", HealthStatus.PASS) for check in checks.values()]

        if HealthStatus.FAIL in statuses:
            return HealthStatus.FAIL
        if HealthStatus.WARN in statuses:
            return HealthStatus.WARN
        return HealthStatus.PASS
