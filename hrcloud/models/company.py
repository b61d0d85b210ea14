import uuid

from hrcloud.extensions import db
from hrcloud.utils.timeutils import isoformat, utcnow


def _uuid():
    return str(uuid.uuid4())


class Company(db.Model):
    __tablename__ = "companies"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(120), nullable=False, unique=True)
    # Authoritative freeze flag: False means every write for the tenant is rejected
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    subscription = db.relationship("CompanySubscription", back_populates="company", uselist=False)
    members = db.relationship("CompanyUser", back_populates="company", lazy="dynamic")

    __table_args__ = (
        db.Index("idx_companies_is_active", "is_active"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "is_active": self.is_active,
            "created_at": isoformat(self.created_at),
        }


class Profile(db.Model):
    __tablename__ = "profiles"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    email = db.Column(db.String(255), nullable=False, unique=True)
    full_name = db.Column(db.String(255), nullable=True)
    is_platform_admin = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
        }


class CompanyUser(db.Model):
    __tablename__ = "company_users"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    company_id = db.Column(db.String(36), db.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    role = db.Column(db.String(30), nullable=False, default="employee")
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    company = db.relationship("Company", back_populates="members")
    profile = db.relationship("Profile")

    __table_args__ = (
        db.UniqueConstraint("company_id", "user_id", name="uq_company_users_company_user"),
        db.CheckConstraint(
            "role IN ('owner', 'admin', 'hr_manager', 'manager', 'employee')",
            name="valid_company_role",
        ),
        db.Index("idx_company_users_user", "user_id"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "company_id": self.company_id,
            "user_id": self.user_id,
            "role": self.role,
            "is_active": self.is_active,
        }
