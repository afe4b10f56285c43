"""
Subscription & billing models.

One Subscription per user, created lazily on the first checkout and then
mutated only by webhook reconciliation. Cancelling never deletes the row.
"""
from __future__ import annotations

from datetime import datetime

from ..extensions import db


PLAN_CODES = ("free", "basic", "pro")


class Subscription(db.Model):
    __tablename__ = "subscriptions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)

    stripe_customer_id = db.Column(db.String(128), nullable=False, unique=True)
    stripe_subscription_id = db.Column(db.String(128), nullable=True)
    stripe_price_id = db.Column(db.String(128), nullable=True)

    plan = db.Column(db.String(16), nullable=False, default="free")
    status = db.Column(db.String(32), nullable=False, default="inactive")  # provider-defined
    current_period_end = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship("User", back_populates="subscription")

    def is_active(self) -> bool:
        return self.status in ("active", "trialing")

    def __repr__(self):
        return f"<Subscription user={self.user_id} {self.plan}/{self.status}>"


class BillingEvent(db.Model):
    """Ledger of verified provider events (one row per provider event id)."""

    __tablename__ = "billing_events"

    id = db.Column(db.Integer, primary_key=True)
    stripe_event_id = db.Column(db.String(255), nullable=False, unique=True, index=True)
    event_type = db.Column(db.String(64), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self):
        return f"<BillingEvent {self.event_type} {self.stripe_event_id}>"
