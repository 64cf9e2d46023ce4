from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import func

from app.models.audit import AuditAction, AuditLog
from app.services.audit_stats import get_audit_log_stats


@pytest.mark.anyio
async def test_stats_scenario(client, tenant, make_audit_log):
    org = tenant.organization
    make_audit_log(org, "USER_LOGIN", datetime(2024, 1, 1, tzinfo=UTC))
    make_audit_log(org, "USER_LOGIN", datetime(2024, 1, 2, tzinfo=UTC))
    make_audit_log(org, "TASK_CREATED", datetime(2024, 1, 3, tzinfo=UTC), entity_type="Task")

    response = await client.get("/audit-logs/stats", headers=tenant.headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["totalLogs"] == 3
    assert data["actionCounts"] == [
        {"action": "USER_LOGIN", "count": 2},
        {"action": "TASK_CREATED", "count": 1},
    ]
    assert data["entityCounts"] == [{"entity": "User", "count": 2}, {"entity": "Task", "count": 1}]
    assert data["recentActivity"] == []


def test_totals_are_consistent_and_top_actions_truncated(db_session, make_organization, make_audit_log):
    org = make_organization()
    actions = [action.value for action in AuditAction][:12]
    for index, action in enumerate(actions):
        for _ in range(index + 1):
            make_audit_log(org, action, entity_type="Other" if index % 2 else "User")

    stats = get_audit_log_stats(db_session, org.id)

    total = sum(range(1, 13))
    assert stats["totalLogs"] == total
    assert len(stats["actionCounts"]) == 10
    assert [row["count"] for row in stats["actionCounts"]] == list(range(12, 2, -1))
    assert sum(row["count"] for row in stats["entityCounts"]) == total

    # Somme sur toutes les actions, pas seulement le top 10
    every_action = (
        db_session.query(func.count(AuditLog.id))
        .filter(AuditLog.organization_id == org.id)
        .group_by(AuditLog.action)
        .all()
    )
    assert sum(count for (count,) in every_action) == stats["totalLogs"]


def test_equal_counts_are_ordered_by_name(db_session, make_organization, make_audit_log):
    org = make_organization()
    for action in ("USER_LOGOUT", "ROLE_CREATED", "GRIEVANCE_CREATED"):
        make_audit_log(org, action)

    stats = get_audit_log_stats(db_session, org.id)
    assert [row["action"] for row in stats["actionCounts"]] == [
        "GRIEVANCE_CREATED",
        "ROLE_CREATED",
        "USER_LOGOUT",
    ]


def test_recent_activity_is_sparse_and_ascending(db_session, make_organization, make_audit_log):
    org = make_organization()
    now = datetime(2024, 3, 10, 12, 0, tzinfo=UTC)
    make_audit_log(org, created_at=now - timedelta(hours=1))
    make_audit_log(org, created_at=now - timedelta(hours=3))
    make_audit_log(org, created_at=datetime(2024, 3, 7, 10, 0, tzinfo=UTC))
    make_audit_log(org, created_at=datetime(2024, 3, 1, 10, 0, tzinfo=UTC))

    stats = get_audit_log_stats(db_session, org.id, now=now)
    assert stats["recentActivity"] == [
        {"date": "2024-03-07", "count": 1},
        {"date": "2024-03-10", "count": 2},
    ]
    assert stats["totalLogs"] == 4


@pytest.mark.anyio
async def test_stats_fail_as_a_whole(monkeypatch, client, tenant, make_audit_log):
    make_audit_log(tenant.organization)
    monkeypatch.setattr(
        "app.services.audit_stats._day_bucket",
        lambda dialect_name: func.no_such_function(AuditLog.created_at),
    )

    response = await client.get("/audit-logs/stats", headers=tenant.headers)
    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "STORE_ERROR"
    assert "data" not in body
    assert "no_such_function" not in response.text
