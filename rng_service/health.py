"""
Health checks for liveness and readiness probes.
"""
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any
import psutil
from .logging import SERVICE_NAME, get_logger
from .store.base import EventStore

logger = get_logger()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class HealthChecker:
    """
    Health checker for the RNG service.

    Provides:
    - Liveness checks (is the service running?)
    - Readiness checks (can the service handle traffic?)
    """

    def __init__(self, store: EventStore, service_name: str = SERVICE_NAME, version: str = "0.1.0"):
        self.store = store
        self.service_name = service_name
        self.version = version

    def liveness(self) -> Dict[str, Any]:
        return {
            "status": "ok",
            "service": self.service_name,
            "version": self.version,
            "timestamp": _now(),
        }

    def readiness(self) -> Dict[str, Any]:
        """
        Readiness check.

        Checks:
        - Database connectivity
        - Free disk space where the database file lives

        Returns:
            dict: Readiness status with detailed check results
        """
        checks = {
            "database": self._check_store(),
            "disk_space": self._check_disk_space(),
        }
        ready = all(check["status"] != "error" for check in checks.values())

        return {
            "status": "ready" if ready else "not_ready",
            "service": self.service_name,
            "version": self.version,
            "timestamp": _now(),
            "checks": checks,
        }

    def _check_store(self) -> Dict[str, Any]:
        if self.store.health_check():
            return {"status": "ok"}
        return {"status": "error", "error": "database unreachable"}

    def _check_disk_space(self, threshold_mb: float = 100.0) -> Dict[str, Any]:
        """
        Check available disk space for the database file.

        Args:
            threshold_mb: Minimum available space in MB (default: 100.0)

        Returns:
            dict: Disk space health check result
        """
        database_path = getattr(self.store, "database_path", None)
        if database_path is None:
            return {"status": "skipped", "message": "Database is not file backed"}

        directory = Path(database_path).resolve().parent
        try:
            disk = psutil.disk_usage(str(directory))
        except OSError as e:
            logger.warning("disk_health_check_failed", error=str(e))
            return {"status": "error", "error": str(e)}

        available_mb = disk.free / (1024**2)
        if available_mb < threshold_mb:
            status = "error"
        elif available_mb < threshold_mb * 2:
            status = "warning"
        else:
            status = "ok"

        return {
            "status": status,
            "available_mb": round(available_mb, 2),
            "used_percent": disk.percent,
        }
