"""Seed a demo organization with users and audit history."""
from __future__ import annotations

import sys
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
load_dotenv()

from app import models
from app.config import get_settings
from app.db import get_engine, get_sessionmaker
from app.models.audit import AuditAction, AuditEntityType
from app.utils.audit import describe_action, record_audit
from app.utils.time import utcnow


def main() -> None:
    settings = get_settings()
    print(f"Using database: {settings.database_url}")

    models.Base.metadata.create_all(bind=get_engine())
    session = get_sessionmaker()()

    try:
        org = models.Organization(
            name="Acme Demo",
            plan=models.SubscriptionPlan.professional,
            subscription_status=models.SubscriptionStatus.active,
        )
        session.add(org)
        session.flush()

        alice = models.User(
            organization_id=org.id, username="alice", email="alice@example.com", firstname="Alice", lastname="Martin"
        )
        bob = models.User(
            organization_id=org.id, username="bob", email="bob@example.com", firstname="Bob", lastname="Durand"
        )
        session.add_all([alice, bob])
        session.flush()

        now = utcnow()
        events = [
            (AuditAction.ORGANIZATION_CREATED, AuditEntityType.ORGANIZATION, org.id, org.name, None, 10),
            (AuditAction.USER_CREATED, AuditEntityType.USER, alice.id, alice.username, None, 9),
            (AuditAction.USER_CREATED, AuditEntityType.USER, bob.id, bob.username, alice, 9),
            (AuditAction.USER_LOGIN, AuditEntityType.USER, alice.id, alice.username, alice, 3),
            (AuditAction.PROJECT_CREATED, AuditEntityType.PROJECT, 1, "Website", alice, 2),
            (AuditAction.TASK_CREATED, AuditEntityType.TASK, 1, "Draft homepage", bob, 1),
            (AuditAction.USER_LOGIN, AuditEntityType.USER, bob.id, bob.username, bob, 0),
        ]
        for action, entity_type, entity_id, name, actor, days_ago in events:
            entry = record_audit(
                session,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                entity_name=name,
                description=describe_action(
                    action.value, entity_type.value, name, actor.username if actor else None
                ),
                organization_id=org.id,
                performed_by=actor.id if actor else None,
            )
            entry.created_at = now - timedelta(days=days_ago)
        session.commit()
        print("Seed data inserted.")
    finally:
        session.close()


if __name__ == "__main__":
    main()
