# backend/logistics/routes/system.py
"""
System health and maintenance endpoints.
"""

from flask import Blueprint, current_app

from ..services import seed_service
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


@system_bp.get("/health")
def health():
    return {"status": "ok", "timestamp": to_utc_z(utcnow())}


@system_bp.post("/system/seed")
def seed():
    """Create demo accounts (idempotent). Disabled when SEED_ENABLED is false."""
    if not current_app.config.get("SEED_ENABLED", False):
        return {"error": "Seeding is disabled"}, 403

    try:
        result = seed_service.seed_database()
    except Exception:
        current_app.logger.exception("Failed to seed database")
        return {"error": "Internal server error"}, 500

    return result
