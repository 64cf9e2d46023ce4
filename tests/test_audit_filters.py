from datetime import UTC, datetime, timedelta

import pytest

from app.services.audit_filters import build_audit_filter
from app.services.audit_logs import list_audit_logs, resolve_pagination
from app.utils.errors import AuthorizationError, ValidationError


def _ids(db_session, audit_filter, limit=200):
    page = list_audit_logs(db_session, audit_filter, resolve_pagination(1, limit))
    return [record.id for record in page["records"]]


def test_tenant_scope_is_always_applied(db_session, make_organization, make_audit_log):
    org_a = make_organization()
    org_b = make_organization()
    own = make_audit_log(org_a, "USER_LOGIN", description="shared term")
    make_audit_log(org_b, "USER_LOGIN", description="shared term")

    for params in ({}, {"action": "USER_LOGIN"}, {"search": "shared"}, {"entity_type": "User"}):
        audit_filter = build_audit_filter(org_a.id, **params)
        assert _ids(db_session, audit_filter) == [own.id]


def test_missing_tenant_is_rejected():
    with pytest.raises(AuthorizationError) as excinfo:
        build_audit_filter(None)
    assert excinfo.value.code == "ORGANIZATION_REQUIRED"


def test_unknown_action_matches_nothing(db_session, make_organization, make_audit_log):
    org = make_organization()
    make_audit_log(org, "USER_LOGIN")

    audit_filter = build_audit_filter(org.id, action="USER_TELEPORTED")
    assert audit_filter.matches_nothing
    assert _ids(db_session, audit_filter) == []

    assert _ids(db_session, build_audit_filter(org.id, entity_type="Spaceship")) == []


def test_all_means_no_filter(db_session, make_organization, make_audit_log):
    org = make_organization()
    make_audit_log(org, "USER_LOGIN")
    make_audit_log(org, "TASK_CREATED", entity_type="Task")

    audit_filter = build_audit_filter(org.id, action="all", entity_type="")
    assert len(_ids(db_session, audit_filter)) == 2


def test_performed_by_filters_and_rejects_garbage(db_session, make_organization, make_user, make_audit_log):
    org = make_organization()
    user = make_user(org)
    mine = make_audit_log(org, performed_by=user.id)
    make_audit_log(org, performed_by=None)

    assert _ids(db_session, build_audit_filter(org.id, performed_by=str(user.id))) == [mine.id]
    assert _ids(db_session, build_audit_filter(org.id, performed_by="not-a-user")) == []


def test_date_bounds_are_inclusive(db_session, make_organization, make_audit_log):
    org = make_organization()
    start = datetime(2024, 1, 10, 8, 0, tzinfo=UTC)
    end = datetime(2024, 1, 12, 18, 30, tzinfo=UTC)
    millisecond = timedelta(milliseconds=1)

    at_start = make_audit_log(org, created_at=start)
    at_end = make_audit_log(org, created_at=end)
    make_audit_log(org, created_at=start - millisecond)
    make_audit_log(org, created_at=end + millisecond)

    audit_filter = build_audit_filter(
        org.id,
        start_date=start.isoformat(),
        end_date=end.isoformat().replace("+00:00", "Z"),
    )
    assert sorted(_ids(db_session, audit_filter)) == sorted([at_start.id, at_end.id])


def test_single_sided_date_ranges(db_session, make_organization, make_audit_log):
    org = make_organization()
    old = make_audit_log(org, created_at=datetime(2024, 1, 1, tzinfo=UTC))
    new = make_audit_log(org, created_at=datetime(2024, 2, 1, tzinfo=UTC))

    assert _ids(db_session, build_audit_filter(org.id, start_date="2024-01-15")) == [new.id]
    assert _ids(db_session, build_audit_filter(org.id, end_date="2024-01-15")) == [old.id]


def test_reversed_range_is_empty(db_session, make_organization, make_audit_log):
    org = make_organization()
    make_audit_log(org, created_at=datetime(2024, 1, 5, tzinfo=UTC))

    audit_filter = build_audit_filter(org.id, start_date="2024-01-10", end_date="2024-01-01")
    assert _ids(db_session, audit_filter) == []


@pytest.mark.parametrize("field", ["start_date", "end_date"])
def test_invalid_date_raises_validation_error(field):
    with pytest.raises(ValidationError) as excinfo:
        build_audit_filter(1, **{field: "yesterday-ish"})
    expected = "startDate" if field == "start_date" else "endDate"
    assert excinfo.value.details == {"field": expected}


def test_search_matches_description_or_entity_name(db_session, make_organization, make_audit_log):
    org = make_organization()
    by_description = make_audit_log(org, description="Project FooBar renamed")
    by_name = make_audit_log(org, description="Task created", entity_name="the foo task")
    make_audit_log(org, description="Nothing to see", entity_name="bar")

    found = _ids(db_session, build_audit_filter(org.id, search="FOO"))
    assert sorted(found) == sorted([by_description.id, by_name.id])


def test_search_treats_wildcards_literally(db_session, make_organization, make_audit_log):
    org = make_organization()
    literal = make_audit_log(org, description="quota at 100% reached")
    make_audit_log(org, description="quota at 1000 reached")

    assert _ids(db_session, build_audit_filter(org.id, search="100%")) == [literal.id]
    assert _ids(db_session, build_audit_filter(org.id, search="_")) == []


@pytest.mark.parametrize("raw", ["99999999999999999999", 2**63, 0, -4])
def test_performed_by_outside_integer_range_matches_nothing(raw):
    audit_filter = build_audit_filter(1, performed_by=raw)
    assert audit_filter.matches_nothing is True
    assert audit_filter.performed_by is None


def test_largest_performer_id_is_kept():
    assert build_audit_filter(1, performed_by=str(2**63 - 1)).performed_by == 2**63 - 1


def test_date_that_overflows_in_utc_raises_validation_error():
    with pytest.raises(ValidationError) as excinfo:
        build_audit_filter(1, end_date="0001-01-01T00:00:00+05:00")
    assert excinfo.value.details == {"field": "endDate"}


def test_oversized_page_raises_validation_error():
    with pytest.raises(ValidationError) as excinfo:
        resolve_pagination("99999999999999999999", 20)
    assert excinfo.value.details == {"field": "page"}


def test_search_term_is_not_trimmed(db_session, make_organization, make_audit_log):
    org = make_organization()
    spaced = make_audit_log(org, description="foo bar deleted")
    make_audit_log(org, description="foobar deleted")

    audit_filter = build_audit_filter(org.id, search="foo ")
    assert audit_filter.search == "foo "
    assert _ids(db_session, audit_filter) == [spaced.id]


def test_empty_search_is_no_filter():
    assert build_audit_filter(1, search="").search is None
    assert build_audit_filter(1, search=None).search is None
    assert build_audit_filter(1, search="  ").search == "  "
