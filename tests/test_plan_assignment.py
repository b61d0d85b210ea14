import pytest
from datetime import timedelta

from hrcloud.billing.plan_assignment import PlanAssignmentService, plan_transition
from hrcloud.errors import Forbidden, NotFound, ValidationError
from hrcloud.extensions import db
from hrcloud.models import AuditLog, BillingLog, CompanySubscription

pytestmark = pytest.mark.billing


def test_transition_table():
    """Test the plan change decision table"""
    trial_end = object()

    created = plan_transition(None, None, plan_is_paid=True, has_subscription=False)
    assert (created.status, created.billing_event) == ("active", "subscription_created")

    upgrade_from_trial = plan_transition("trialing", trial_end, plan_is_paid=True)
    assert upgrade_from_trial.status == "active"
    assert upgrade_from_trial.trial_ends_at is None
    assert upgrade_from_trial.trial_ended is True
    assert upgrade_from_trial.billing_event == "subscription_created"

    upgrade = plan_transition("active", None, plan_is_paid=True)
    assert upgrade.trial_ended is False
    assert upgrade.billing_event == "subscription_upgraded"

    free_during_trial = plan_transition("trialing", trial_end, plan_is_paid=False)
    assert free_during_trial.status == "trialing"
    assert free_during_trial.trial_ends_at is trial_end
    assert free_during_trial.billing_event == "subscription_downgraded"

    downgrade = plan_transition("active", None, plan_is_paid=False)
    assert (downgrade.status, downgrade.billing_event) == ("active", "subscription_downgraded")


@pytest.mark.parametrize("days_left", [1, 10, 29])
def test_paid_plan_ends_trial(app, sink, now, make_company, make_member, make_plan, make_subscription, days_left):
    """Test a paid plan on a trialing tenant always lands on active with no trial"""
    company = make_company()
    owner = make_member(company, role="owner")
    make_subscription(company, status="trialing", trial_ends_at=now + timedelta(days=days_left))
    paid = make_plan(price_monthly=49, price_yearly=490, name="Business")

    result = PlanAssignmentService(sink).assign(owner.id, company.id, paid.id, now=now)

    subscription = CompanySubscription.query.filter_by(company_id=company.id).one()
    assert subscription.status == "active"
    assert subscription.trial_ends_at is None
    assert subscription.plan_id == paid.id
    assert result.trial_ended is True
    assert result.message == "Upgraded to Business. Your trial has ended."


def test_free_plan_preserves_trial_end(app, sink, now, make_company, make_member, make_plan, make_subscription):
    """Test a free plan leaves a running trial and its end date untouched"""
    company = make_company()
    admin = make_member(company, role="admin")
    trial_end = now + timedelta(days=9)
    make_subscription(company, status="trialing", trial_ends_at=trial_end)
    free = make_plan(price_monthly=0, price_yearly=0)

    result = PlanAssignmentService(sink).assign(admin.id, company.id, free.id, now=now)

    subscription = CompanySubscription.query.filter_by(company_id=company.id).one()
    assert subscription.status == "trialing"
    assert subscription.trial_ends_at == trial_end
    assert result.trial_ended is False
    assert result.message == "Plan updated successfully"


def test_first_assignment_creates_subscription(app, sink, now, make_company, make_member, make_plan):
    """Test a tenant without a subscription gets a new active one"""
    company = make_company()
    owner = make_member(company)
    plan = make_plan(price_monthly=10, price_yearly=100)

    result = PlanAssignmentService(sink).assign(owner.id, company.id, plan.id, billing_interval="yearly", now=now)

    subscription = CompanySubscription.query.filter_by(company_id=company.id).one()
    assert result.created is True
    assert subscription.status == "active"
    assert subscription.billing_interval == "yearly"
    assert subscription.current_period_start == now
    assert subscription.current_period_end.year == now.year + 1

    billing = BillingLog.query.filter_by(company_id=company.id).one()
    assert billing.event_type == "subscription_created"
    audit = AuditLog.query.filter_by(company_id=company.id).one()
    assert audit.action == "create"
    assert audit.actor_role == "owner"


def test_update_writes_audit_and_billing_logs(app, sink, now, make_company, make_member, make_plan, make_subscription):
    """Test an update records the previous plan"""
    company = make_company()
    owner = make_member(company)
    old = make_subscription(company, status="active")
    old_plan_id = old.plan_id
    plan = make_plan(price_monthly=99, price_yearly=990)

    PlanAssignmentService(sink).assign(owner.id, company.id, plan.id, now=now)

    billing = BillingLog.query.filter_by(company_id=company.id).one()
    assert billing.event_type == "subscription_upgraded"
    assert billing.previous_plan_id == old_plan_id
    audit = AuditLog.query.filter_by(company_id=company.id).one()
    assert audit.old_values["plan_id"] == old_plan_id
    assert audit.new_values["plan_id"] == plan.id


def test_rejects_non_admin_role(app, sink, make_company, make_member, make_plan):
    """Test employees cannot change plans and nothing is written"""
    company = make_company()
    employee = make_member(company, role="employee")
    plan = make_plan()

    with pytest.raises(Forbidden) as exc:
        PlanAssignmentService(sink).assign(employee.id, company.id, plan.id)

    assert exc.value.message == "Only admins can change plans"
    assert CompanySubscription.query.count() == 0
    assert AuditLog.query.count() == 0


def test_rejects_inactive_plan(app, sink, make_company, make_member, make_plan):
    """Test inactive plans cannot be assigned"""
    company = make_company()
    owner = make_member(company)
    plan = make_plan(is_active=False)

    with pytest.raises(NotFound):
        PlanAssignmentService(sink).assign(owner.id, company.id, plan.id)


def test_rejects_bad_billing_interval(app, sink, make_company, make_member, make_plan):
    """Test billing_interval validation happens before any lookup"""
    company = make_company()
    owner = make_member(company)
    plan = make_plan()

    with pytest.raises(ValidationError):
        PlanAssignmentService(sink).assign(owner.id, company.id, plan.id, billing_interval="weekly")


def test_endpoint_returns_201_then_200(client, auth_headers, make_company, make_member, make_plan):
    """Test assign-plan responds 201 on create and 200 on update"""
    company = make_company()
    owner = make_member(company)
    plan = make_plan(price_monthly=19, price_yearly=190)

    first = client.post(
        "/functions/assign-plan",
        json={"company_id": company.id, "plan_id": plan.id},
        headers=auth_headers(owner),
    )
    assert first.status_code == 201
    assert first.get_json()["success"] is True
    assert first.get_json()["message"] == "Plan assigned successfully"

    second = client.post(
        "/functions/assign-plan",
        json={"company_id": company.id, "plan_id": plan.id, "billing_interval": "yearly"},
        headers=auth_headers(owner),
    )
    assert second.status_code == 200
    assert second.get_json()["subscription"]["billing_interval"] == "yearly"


def test_endpoint_requires_token(client):
    """Test assign-plan without a bearer token is rejected"""
    response = client.post("/functions/assign-plan", json={"company_id": "x", "plan_id": "y"})

    assert response.status_code == 401
    assert response.get_json()["error"] == "Unauthorized"


def test_endpoint_validates_body(client, auth_headers, make_profile):
    """Test missing ids are a 400"""
    user = make_profile()

    response = client.post("/functions/assign-plan", json={"plan_id": "y"}, headers=auth_headers(user))

    assert response.status_code == 400
    assert response.get_json() == {"error": "Validation Error", "message": "Company ID is required"}


def test_endpoint_non_member_is_forbidden(client, auth_headers, make_company, make_profile, make_plan):
    """Test callers outside the company get 403"""
    company = make_company()
    outsider = make_profile()
    plan = make_plan()

    response = client.post(
        "/functions/assign-plan",
        json={"company_id": company.id, "plan_id": plan.id},
        headers=auth_headers(outsider),
    )

    assert response.status_code == 403
    assert response.get_json()["message"] == "You are not a member of this company"
    assert db.session.query(CompanySubscription).count() == 0
