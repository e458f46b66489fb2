"""
Health check endpoints for operations monitoring.

Provides health checks for:
- Database connectivity (all configured databases)
- Celery broker (redis) connectivity
- Ledger pairing consistency (FX and transfer legs)

Endpoints:
- /_health/live    - liveness probe (is the process running?)
- /_health/ready   - readiness probe (can we serve traffic?)
- /_health/full    - full health report (for debugging/dashboards)
"""
import logging
import time
from typing import Dict, Any

import redis
from django.conf import settings
from django.db import connections
from django.http import JsonResponse
from django.views import View

logger = logging.getLogger(__name__)


class HealthCheck:
    """Health check implementation."""

    @staticmethod
    def check_database(alias: str = "default") -> Dict[str, Any]:
        """Check database connectivity."""
        start = time.time()
        try:
            conn = connections[alias]
            conn.ensure_connection()
            with conn.cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()
            duration_ms = (time.time() - start) * 1000
            return {
                "status": "healthy",
                "alias": alias,
                "duration_ms": round(duration_ms, 2),
            }
        except Exception as e:
            logger.warning("Database health check failed", extra={"alias": alias, "error": str(e)})
            duration_ms = (time.time() - start) * 1000
            return {
                "status": "unhealthy",
                "alias": alias,
                "error": str(e),
                "duration_ms": round(duration_ms, 2),
            }

    @staticmethod
    def check_all_databases() -> Dict[str, Any]:
        """Check all configured databases."""
        results = {}
        all_healthy = True

        for alias in settings.DATABASES.keys():
            result = HealthCheck.check_database(alias)
            results[alias] = result
            if result["status"] != "healthy":
                all_healthy = False

        return {
            "status": "healthy" if all_healthy else "degraded",
            "databases": results,
        }

    @staticmethod
    def check_broker() -> Dict[str, Any]:
        """Check the Celery broker (redis) when one is configured."""
        broker_url = getattr(settings, "CELERY_BROKER_URL", None)
        if not broker_url or not broker_url.startswith("redis"):
            return {"status": "skipped", "reason": "Redis broker not configured"}

        start = time.time()
        try:
            client = redis.from_url(broker_url)
            client.ping()
            duration_ms = (time.time() - start) * 1000
            return {
                "status": "healthy",
                "duration_ms": round(duration_ms, 2),
            }
        except redis.RedisError as e:
            duration_ms = (time.time() - start) * 1000
            return {
                "status": "unhealthy",
                "error": str(e),
                "duration_ms": round(duration_ms, 2),
            }

    @staticmethod
    def check_ledger_pairs() -> Dict[str, Any]:
        """
        Check that every incoming FX/transfer leg points at an outgoing leg.

        A to-leg without a linked from-leg means a pair was half written.
        """
        from accounting.models import Transaction

        paired_types = [Transaction.Type.FX_EXCHANGE, Transaction.Type.TRANSFER]
        orphans = Transaction.objects.filter(
            type__in=paired_types,
            destination_account__isnull=False,
            linked_transaction__isnull=True,
        ).count()
        unmatched = Transaction.objects.filter(
            type__in=paired_types,
            source_account__isnull=False,
            linked_from__isnull=True,
        ).count()

        if orphans == 0 and unmatched == 0:
            return {"status": "healthy", "orphan_legs": 0}
        return {
            "status": "degraded",
            "orphan_legs": orphans,
            "unmatched_legs": unmatched,
        }

    @staticmethod
    def get_full_health() -> Dict[str, Any]:
        """Get comprehensive health report."""
        checks = {
            "databases": HealthCheck.check_all_databases(),
            "broker": HealthCheck.check_broker(),
            "ledger_pairs": HealthCheck.check_ledger_pairs(),
        }

        statuses = [c.get("status", "unknown") for c in checks.values()]
        if all(s == "healthy" or s == "skipped" for s in statuses):
            overall = "healthy"
        elif any(s == "unhealthy" for s in statuses):
            overall = "unhealthy"
        else:
            overall = "degraded"

        return {
            "status": overall,
            "checks": checks,
            "version": getattr(settings, "VERSION", "unknown"),
            "environment": "production" if not settings.DEBUG else "development",
        }


class LivenessView(View):
    """
    Liveness probe.

    Returns 200 if the process is running.
    """

    def get(self, request):
        return JsonResponse({"status": "alive"})


class ReadinessView(View):
    """
    Readiness probe.

    Returns 200 if the database answers.
    """

    def get(self, request):
        db_check = HealthCheck.check_database("default")

        if db_check["status"] == "healthy":
            return JsonResponse({
                "status": "ready",
                "database": db_check,
            })
        return JsonResponse({
            "status": "not_ready",
            "database": db_check,
        }, status=503)


class FullHealthView(View):
    """Full health check. Protect at network level in production."""

    def get(self, request):
        health = HealthCheck.get_full_health()

        status_code = 200 if health["status"] == "healthy" else 503
        return JsonResponse(health, status=status_code)
