import uuid

from hrcloud.extensions import db
from hrcloud.utils.timeutils import isoformat, utcnow


class TrialExtensionRequest(db.Model):
    __tablename__ = "trial_extension_requests"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = db.Column(db.String(36), db.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False)
    requested_by = db.Column(db.String(36), nullable=False)
    requested_days = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), nullable=False, default="pending")
    extension_number = db.Column(db.Integer, nullable=False, default=1)

    reviewed_by = db.Column(db.String(36), nullable=True)
    reviewed_at = db.Column(db.DateTime, nullable=True)
    review_notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        db.CheckConstraint("requested_days > 0", name="positive_requested_days"),
        db.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="valid_extension_status"),
        db.Index("idx_trial_extension_company_status", "company_id", "status"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "company_id": self.company_id,
            "requested_by": self.requested_by,
            "requested_days": self.requested_days,
            "reason": self.reason,
            "status": self.status,
            "extension_number": self.extension_number,
            "reviewed_by": self.reviewed_by,
            "reviewed_at": isoformat(self.reviewed_at),
            "review_notes": self.review_notes,
            "created_at": isoformat(self.created_at),
        }
