# Overview: Service-layer operations for seeding; idempotent demo accounts.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import User
from ..time_utils import utcnow
from .auth_service import hash_password
from .concurrency import transaction

DEMO_PASSWORD = "demo123"

DEMO_USERS = (
    {
        "email": "admin@demo.com",
        "first_name": "Admin",
        "last_name": "User",
        "role": "admin",
        "company_name": None,
        "phone": None,
        "address": None,
    },
    {
        "email": "client@demo.com",
        "first_name": "Demo",
        "last_name": "Client",
        "role": "client",
        "company_name": "Demo Logistics Inc.",
        "phone": "1-800-DEMO-LOG",
        "address": "123 Demo St, Demo City, DC 00000",
    },
)


def seed_database() -> dict:
    """
    Create the demo admin and client accounts if missing.

    Safe to run repeatedly; existing emails are left untouched.
    """
    created = 0
    with transaction():
        for demo in DEMO_USERS:
            exists = db.session.query(User.id).filter(User.email == demo["email"]).first()
            if exists:
                continue
            now = utcnow()
            db.session.add(
                User(
                    password_hash=hash_password(DEMO_PASSWORD),
                    is_active=True,
                    created_at=now,
                    updated_at=now,
                    **demo,
                )
            )
            created += 1

    current_app.logger.info("Seeding completed, %s new users", created)
    return {
        "success": True,
        "message": f"Database seeding completed. Created {created} new users.",
    }
