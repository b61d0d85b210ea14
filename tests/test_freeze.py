import pytest
from unittest.mock import Mock

from hrcloud.billing.freeze import CompanyFreezeService
from hrcloud.errors import Forbidden, ValidationError
from hrcloud.extensions import db
from hrcloud.models import AuditLog, BillingLog, Company, CompanySubscription, SecurityEvent

pytestmark = pytest.mark.billing


def log_counts(company_id):
    return (
        AuditLog.query.filter_by(company_id=company_id).count(),
        SecurityEvent.query.filter_by(company_id=company_id).count(),
        BillingLog.query.filter_by(company_id=company_id).count(),
    )


def test_freeze_twice_writes_one_log_triple(app, sink, make_company, make_member, make_subscription):
    """Test freeze is idempotent: the second call is a no-op"""
    company = make_company()
    owner = make_member(company, role="owner")
    make_subscription(company, status="active")
    service = CompanyFreezeService(sink)

    first = service.apply(owner.id, company.id, "freeze", reason="Non-payment")
    second = service.apply(owner.id, company.id, "freeze")

    assert first.changed is True
    assert first.message == "Company frozen successfully"
    assert second.changed is False
    assert second.message == "Company is already frozen"
    assert db.session.get(Company, company.id).is_active is False
    assert log_counts(company.id) == (1, 1, 1)


def test_freeze_pauses_subscription(app, sink, make_company, make_member, make_subscription):
    """Test freezing moves the subscription to paused"""
    company = make_company()
    owner = make_member(company)
    make_subscription(company, status="active")

    CompanyFreezeService(sink).apply(owner.id, company.id, "freeze")

    subscription = CompanySubscription.query.filter_by(company_id=company.id).one()
    assert subscription.status == "paused"


def test_freeze_log_contents(app, sink, make_company, make_member):
    """Test the audit, security and billing rows written on freeze"""
    company = make_company()
    owner = make_member(company)

    CompanyFreezeService(sink).apply(owner.id, company.id, "freeze", reason="Chargeback")

    audit = AuditLog.query.filter_by(company_id=company.id).one()
    assert audit.severity == "warn"
    assert audit.old_values == {"is_active": True}
    assert audit.new_values["is_active"] is False

    security = SecurityEvent.query.filter_by(company_id=company.id).one()
    assert security.event_type == "company_frozen"
    assert security.severity == "high"
    assert security.description == "Company frozen: Chargeback"

    billing = BillingLog.query.filter_by(company_id=company.id).one()
    assert billing.event_type == "company_frozen"
    assert billing.meta == {"reason": "Chargeback", "manual": True}


def test_unfreeze_restores_flag_only(app, sink, make_company, make_member, make_subscription):
    """Test unfreeze leaves subscription status for the sweep"""
    company = make_company(is_active=False)
    owner = make_member(company)
    make_subscription(company, status="paused")

    result = CompanyFreezeService(sink).apply(owner.id, company.id, "unfreeze")

    assert result.message == "Company unfrozen successfully"
    assert db.session.get(Company, company.id).is_active is True
    assert CompanySubscription.query.filter_by(company_id=company.id).one().status == "paused"
    security = SecurityEvent.query.filter_by(company_id=company.id).one()
    assert security.event_type == "company_unfrozen"
    assert security.severity == "low"


def test_unfreeze_active_company_is_noop(app, sink, make_company, make_member):
    """Test unfreezing an active company changes nothing"""
    company = make_company()
    owner = make_member(company)

    result = CompanyFreezeService(sink).apply(owner.id, company.id, "unfreeze")

    assert result.changed is False
    assert result.message == "Company is already active"
    assert log_counts(company.id) == (0, 0, 0)


@pytest.mark.parametrize("role", ["admin", "hr_manager", "employee"])
def test_only_owner_may_freeze(app, sink, make_company, make_member, role):
    """Test non-owners are rejected without any writes"""
    company = make_company()
    member = make_member(company, role=role)

    with pytest.raises(Forbidden) as exc:
        CompanyFreezeService(sink).apply(member.id, company.id, "freeze")

    assert exc.value.message == "Only company owners can freeze/unfreeze"
    assert db.session.get(Company, company.id).is_active is True
    assert log_counts(company.id) == (0, 0, 0)


def test_inactive_membership_is_rejected(app, sink, make_company, make_member):
    """Test deactivated owners are treated as non-members"""
    company = make_company()
    owner = make_member(company, is_active=False)

    with pytest.raises(Forbidden):
        CompanyFreezeService(sink).apply(owner.id, company.id, "freeze")


def test_invalid_action(app, sink):
    """Test unknown actions are a validation error"""
    with pytest.raises(ValidationError) as exc:
        CompanyFreezeService(sink).apply("user", "company", "delete")

    assert exc.value.message == "Action must be 'freeze' or 'unfreeze'"


def test_unknown_company_without_membership_is_forbidden(app, sink, make_profile):
    """Test membership is checked before the company lookup"""
    user = make_profile()

    with pytest.raises(Forbidden):
        CompanyFreezeService(sink).apply(user.id, "missing-company", "freeze")


def test_log_failure_does_not_undo_freeze(app, make_company, make_member):
    """Test the freeze sticks even when every log write fails"""
    company = make_company()
    owner = make_member(company)
    failing_sink = Mock()
    failing_sink.emit.return_value = False

    result = CompanyFreezeService(failing_sink).apply(owner.id, company.id, "freeze")

    assert result.changed is True
    assert failing_sink.emit.call_count == 3
    assert db.session.get(Company, company.id).is_active is False


def test_freeze_endpoint(client, auth_headers, make_company, make_member):
    """Test freeze-company over HTTP"""
    company = make_company()
    owner = make_member(company)

    response = client.post(
        "/functions/freeze-company",
        json={"company_id": company.id, "action": "freeze", "reason": "Requested by owner"},
        headers=auth_headers(owner),
    )

    assert response.status_code == 200
    body = response.get_json()
    assert body["success"] is True
    assert body["company"] == {"id": company.id, "name": company.name, "is_active": False}


def test_freeze_endpoint_rejects_non_json_body(client, auth_headers, make_profile):
    """Test a non-object body is a 400"""
    user = make_profile()

    response = client.post("/functions/freeze-company", json=["freeze"], headers=auth_headers(user))

    assert response.status_code == 400
    assert response.get_json()["error"] == "Validation Error"


def test_freeze_endpoint_noop_body(client, auth_headers, make_company, make_member):
    """Test a repeated freeze answers with success and a message only"""
    company = make_company(is_active=False)
    owner = make_member(company)

    response = client.post(
        "/functions/freeze-company",
        json={"company_id": company.id, "action": "freeze"},
        headers=auth_headers(owner),
    )

    assert response.status_code == 200
    assert response.get_json() == {"success": True, "message": "Company is already frozen"}
