# backend/qrmenu/routes/system.py
"""
System health endpoint.

Reports database connectivity and session-table health for deployment
monitoring.
"""

import time
from flask import Blueprint, current_app, jsonify
from ..extensions import db
from ..models import User
from ..services import session_service
from qrmenu.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        user_count = db.session.query(User).count()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"users": user_count},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


def check_session_health() -> dict:
    start_time = time.time()
    try:
        active_sessions = session_service.count_active_sessions()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"active_sessions": active_sessions},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Session health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Session store error",
        }


@system_bp.get("/health")
def health():
    """200 when every check is healthy, 503 otherwise."""
    checks = {
        "database": check_database_health(),
        "sessions": check_session_health(),
    }
    healthy = all(check["status"] == "healthy" for check in checks.values())
    return jsonify({
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "checks": checks,
    }), 200 if healthy else 503
