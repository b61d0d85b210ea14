import pytest
from datetime import timedelta
from unittest.mock import Mock

from faker import Faker
from flask_jwt_extended import create_access_token

from hrcloud import create_app
from hrcloud.audit.sink import DirectEventSink
from hrcloud.extensions import db
from hrcloud.models import Company, CompanySubscription, CompanyUser, Plan, Profile
from hrcloud.utils.timeutils import add_months, utcnow

# Initialize Faker for generating test data
fake = Faker()

SERVICE_KEY = "test-service-role-key"


@pytest.fixture()
def app():
    """Create a fresh application and in-memory database per test"""
    app = create_app("testing")

    with app.app_context():
        db.create_all()

        yield app

        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def now():
    return utcnow().replace(microsecond=0)


@pytest.fixture()
def sink(app):
    """Inline sink writing through the test session"""
    return DirectEventSink()


@pytest.fixture()
def mailer():
    return Mock()


@pytest.fixture()
def service_headers():
    return {"X-Service-Key": SERVICE_KEY}


@pytest.fixture()
def auth_headers(app):
    """Bearer headers for a given profile"""

    def _headers(profile):
        token = create_access_token(identity=profile.id, expires_delta=timedelta(hours=1))
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def make_company(app):
    def _make(**overrides):
        name = overrides.pop("name", fake.company())
        company = Company(
            name=name,
            slug=overrides.pop("slug", fake.unique.slug()),
            is_active=overrides.pop("is_active", True),
            **overrides,
        )
        db.session.add(company)
        db.session.commit()
        return company

    return _make


@pytest.fixture()
def make_profile(app):
    def _make(**overrides):
        profile = Profile(
            email=overrides.pop("email", fake.unique.email()),
            full_name=overrides.pop("full_name", fake.name()),
            **overrides,
        )
        db.session.add(profile)
        db.session.commit()
        return profile

    return _make


@pytest.fixture()
def make_member(app, make_profile):
    """Create a profile and attach it to the company with the given role"""

    def _make(company, role="owner", is_active=True, profile=None):
        profile = profile or make_profile()
        db.session.add(CompanyUser(
            company_id=company.id,
            user_id=profile.id,
            role=role,
            is_active=is_active,
        ))
        db.session.commit()
        return profile

    return _make


@pytest.fixture()
def make_plan(app):
    def _make(price_monthly=0, price_yearly=0, **overrides):
        plan = Plan(
            name=overrides.pop("name", fake.word().title()),
            price_monthly=price_monthly,
            price_yearly=price_yearly,
            **overrides,
        )
        db.session.add(plan)
        db.session.commit()
        return plan

    return _make


@pytest.fixture()
def make_subscription(app, make_plan, now):
    def _make(company, status="active", plan=None, **overrides):
        plan = plan or make_plan(price_monthly=29, price_yearly=290)
        if "current_period_end" in overrides:
            end = overrides.pop("current_period_end")
            start = overrides.pop("current_period_start", end - timedelta(days=30) if end else None)
        else:
            start = overrides.pop("current_period_start", now - timedelta(days=5))
            end = add_months(start, 1)
        subscription = CompanySubscription(
            company_id=company.id,
            plan_id=plan.id,
            status=status,
            billing_interval=overrides.pop("billing_interval", "monthly"),
            current_period_start=start,
            current_period_end=end,
            **overrides,
        )
        db.session.add(subscription)
        db.session.commit()
        return subscription

    return _make
