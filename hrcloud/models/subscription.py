# subscription.py
import uuid

from sqlalchemy import CheckConstraint, Index

from hrcloud.extensions import db
from hrcloud.utils.timeutils import isoformat, utcnow


class Plan(db.Model):
    __tablename__ = "plans"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(100), nullable=False)
    price_monthly = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    price_yearly = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    # Trial defaults
    trial_enabled = db.Column(db.Boolean, nullable=False, default=False)
    trial_default_days = db.Column(db.Integer, nullable=False, default=14)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("price_monthly >= 0", name="non_negative_price_monthly"),
        CheckConstraint("price_yearly >= 0", name="non_negative_price_yearly"),
    )

    @property
    def is_paid(self):
        return (self.price_monthly or 0) > 0 or (self.price_yearly or 0) > 0

    @property
    def is_free(self):
        return not self.is_paid

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "price_monthly": float(self.price_monthly or 0),
            "price_yearly": float(self.price_yearly or 0),
            "is_active": self.is_active,
            "trial_enabled": self.trial_enabled,
            "trial_default_days": self.trial_default_days,
        }


class CompanySubscription(db.Model):
    __tablename__ = "company_subscriptions"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Exactly one subscription per company, replaced in place on change
    company_id = db.Column(
        db.String(36), db.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    plan_id = db.Column(db.String(36), db.ForeignKey("plans.id"), nullable=False, index=True)

    status = db.Column(db.String(20), nullable=False, default="trialing")
    billing_interval = db.Column(db.String(10), nullable=False, default="monthly")

    current_period_start = db.Column(db.DateTime, nullable=True)
    current_period_end = db.Column(db.DateTime, nullable=True)

    # Non-null only while status == trialing
    trial_ends_at = db.Column(db.DateTime, nullable=True)
    trial_total_days = db.Column(db.Integer, nullable=True)

    # Payment-provider references are stored, never called
    stripe_customer_id = db.Column(db.String(255), nullable=True)
    stripe_subscription_id = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    company = db.relationship("Company", back_populates="subscription")
    plan = db.relationship("Plan")

    __table_args__ = (
        CheckConstraint(
            "status IN ('trialing', 'active', 'past_due', 'paused', 'canceled', 'trial_expired')",
            name="valid_subscription_status",
        ),
        CheckConstraint(
            "billing_interval IN ('monthly', 'yearly')",
            name="valid_billing_interval",
        ),
        CheckConstraint(
            "current_period_end IS NULL OR current_period_start IS NULL "
            "OR current_period_end >= current_period_start",
            name="valid_period_range",
        ),
        Index("idx_company_subscriptions_status", "status"),
        Index("idx_company_subscriptions_trial_ends", "status", "trial_ends_at"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "company_id": self.company_id,
            "plan_id": self.plan_id,
            "status": self.status,
            "billing_interval": self.billing_interval,
            "current_period_start": isoformat(self.current_period_start),
            "current_period_end": isoformat(self.current_period_end),
            "trial_ends_at": isoformat(self.trial_ends_at),
            "stripe_customer_id": self.stripe_customer_id,
            "stripe_subscription_id": self.stripe_subscription_id,
            "updated_at": isoformat(self.updated_at),
        }
