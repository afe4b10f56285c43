"""
Subscription Service

Plan limits, Stripe checkout and webhook reconciliation.
The Subscription row is keyed by user and only ever upserted, so replaying
a provider event converges on the same state.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import stripe
from flask import current_app
from sqlalchemy.exc import IntegrityError

from gridbase.errors import ConfigError, InvalidSignature, PlanLimitExceeded, ValidationError
from gridbase.extensions import db
from gridbase.models import BillingEvent, Subscription, User


UNLIMITED = -1


@dataclass(frozen=True)
class PlanLimits:
    workspaces: int
    tables: int
    rows_per_table: int

    def to_dict(self) -> dict:
        return {
            "workspaces": self.workspaces,
            "tables": self.tables,
            "rowsPerTable": self.rows_per_table,
        }


PLANS = {
    "free": PlanLimits(workspaces=1, tables=3, rows_per_table=100),
    "basic": PlanLimits(workspaces=5, tables=20, rows_per_table=10000),
    "pro": PlanLimits(workspaces=UNLIMITED, tables=UNLIMITED, rows_per_table=UNLIMITED),
}

# Checkout accepts the upper-case plan names used by the pricing page.
CHECKOUT_PLANS = {"BASIC": "basic", "PRO": "pro"}

ACTIVE_STATUSES = ("active", "trialing")


def _lookup(obj: Any, *path: Any) -> Any:
    """Walk nested keys of a dict or StripeObject, returning None when absent."""
    for key in path:
        if obj is None:
            return None
        try:
            obj = obj[key]
        except (KeyError, IndexError, TypeError):
            return None
    return obj


def _from_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc).replace(tzinfo=None)


class SubscriptionService:
    """Plans, checkout and provider event reconciliation."""

    # -----------------
    # Plans & limits
    # -----------------

    @staticmethod
    def price_plan_map() -> dict[str, str]:
        """Explicit price id -> plan table built from configuration."""
        mapping = {}
        basic = current_app.config.get("STRIPE_PRICE_ID_BASIC")
        pro = current_app.config.get("STRIPE_PRICE_ID_PRO")
        if basic:
            mapping[basic] = "basic"
        if pro:
            mapping[pro] = "pro"
        return mapping

    @staticmethod
    def plan_for_price(price_id: Optional[str]) -> str:
        plan = SubscriptionService.price_plan_map().get(price_id or "")
        if plan is None:
            current_app.logger.warning("Unknown Stripe price %s, falling back to free plan", price_id)
            return "free"
        return plan

    @staticmethod
    def price_for_plan(plan: str) -> str:
        key = f"STRIPE_PRICE_ID_{plan.upper()}"
        price_id = current_app.config.get(key)
        if not price_id:
            raise ConfigError("Price ID not configured")
        return price_id

    @staticmethod
    def effective_plan(user_id: int) -> str:
        subscription = Subscription.query.filter_by(user_id=user_id).first()
        if not subscription or subscription.status not in ACTIVE_STATUSES:
            return "free"
        return subscription.plan if subscription.plan in PLANS else "free"

    @staticmethod
    def limits_for(user_id: int) -> PlanLimits:
        return PLANS[SubscriptionService.effective_plan(user_id)]

    @staticmethod
    def check_limit(user_id: int, resource: str, current: int, adding: int = 1) -> None:
        """
        Raise PlanLimitExceeded if ``current + adding`` exceeds the user's limit.

        Args:
            user_id: user whose plan applies (the workspace owner for tables/rows)
            resource: workspaces, tables or rows_per_table
            current: existing count
            adding: number of records about to be created
        """
        limit = getattr(SubscriptionService.limits_for(user_id), resource)
        if limit != UNLIMITED and current + adding > limit:
            raise PlanLimitExceeded(resource, limit, current)

    @staticmethod
    def describe(user_id: int) -> dict:
        subscription = Subscription.query.filter_by(user_id=user_id).first()
        plan = SubscriptionService.effective_plan(user_id)
        return {
            "plan": subscription.plan if subscription else "free",
            "status": subscription.status if subscription else "inactive",
            "effectivePlan": plan,
            "currentPeriodEnd": (
                subscription.current_period_end.isoformat()
                if subscription and subscription.current_period_end
                else None
            ),
            "limits": PLANS[plan].to_dict(),
        }

    # -----------------
    # Checkout
    # -----------------

    @staticmethod
    def create_checkout_session(user_id: int, plan_name: str) -> str:
        """
        Create a Stripe Checkout session for BASIC or PRO.

        Provisions the Stripe customer on first use and stores the mapping in
        a free/inactive Subscription row.

        Returns:
            Checkout redirect URL
        """
        plan = CHECKOUT_PLANS.get(plan_name)
        if plan is None:
            raise ValidationError("Invalid plan", details=[{"field": "plan", "message": "must be BASIC or PRO"}])
        price_id = SubscriptionService.price_for_plan(plan)

        stripe.api_key = current_app.config.get("STRIPE_SECRET_KEY")

        user = db.session.get(User, user_id)
        subscription = Subscription.query.filter_by(user_id=user_id).first()
        customer_id = subscription.stripe_customer_id if subscription else None

        if not customer_id:
            customer = stripe.Customer.create(
                email=user.email if user else None,
                metadata={"user_id": str(user_id)},
            )
            customer_id = customer["id"]
            subscription = Subscription(
                user_id=user_id,
                stripe_customer_id=customer_id,
                plan="free",
                status="inactive",
            )
            db.session.add(subscription)
            db.session.commit()
            current_app.logger.info("Created Stripe customer %s for user %s", customer_id, user_id)

        app_url = current_app.config.get("APP_URL", "").rstrip("/")
        session = stripe.checkout.Session.create(
            customer=customer_id,
            mode="subscription",
            payment_method_types=["card"],
            line_items=[{"price": price_id, "quantity": 1}],
            success_url=f"{app_url}/dashboard?success=true",
            cancel_url=f"{app_url}/pricing?canceled=true",
            metadata={"user_id": str(user_id)},
        )
        return session["url"]

    # -----------------
    # Webhooks
    # -----------------

    @staticmethod
    def construct_event(payload: bytes, sig_header: Optional[str]) -> Any:
        """Verify the Stripe signature and timestamp, then decode the payload.

        Nothing in the body is read before verification succeeds. Signatures
        older than Stripe's default tolerance (5 minutes) are rejected.
        """
        if not sig_header:
            raise InvalidSignature("No signature provided")
        secret = current_app.config.get("STRIPE_WEBHOOK_SECRET")
        if not secret:
            raise ConfigError("Webhook secret not configured")

        try:
            return stripe.Webhook.construct_event(payload, sig_header, secret)
        except ValueError as e:
            current_app.logger.error(f"Invalid Stripe webhook payload: {e}")
            raise InvalidSignature("Invalid payload")
        except stripe.SignatureVerificationError as e:
            current_app.logger.error(f"Invalid Stripe webhook signature: {e}")
            raise InvalidSignature()

    @staticmethod
    def handle_event(event: Any) -> None:
        """Apply one verified provider event. Errors propagate to the caller."""
        event_type = _lookup(event, "type")
        obj = _lookup(event, "data", "object") or {}

        stripe.api_key = current_app.config.get("STRIPE_SECRET_KEY")

        if event_type == "checkout.session.completed":
            user_id = SubscriptionService._apply_checkout_completed(obj)
        elif event_type == "customer.subscription.updated":
            user_id = SubscriptionService._apply_subscription_updated(obj)
        elif event_type == "customer.subscription.deleted":
            user_id = SubscriptionService._apply_subscription_deleted(obj)
        else:
            current_app.logger.info(f"Unhandled Stripe event type: {event_type}")
            return

        SubscriptionService._record_event(event, user_id)

    @staticmethod
    def _apply_checkout_completed(session: Any) -> int:
        user_id = _lookup(session, "metadata", "user_id")
        if not user_id:
            raise ValueError("No user_id in checkout session metadata")
        user_id = int(user_id)

        remote = stripe.Subscription.retrieve(_lookup(session, "subscription"))
        SubscriptionService._upsert(
            user_id,
            customer_id=_lookup(session, "customer"),
            subscription_id=_lookup(remote, "id"),
            **SubscriptionService._subscription_fields(remote),
        )
        return user_id

    @staticmethod
    def _apply_subscription_updated(remote: Any) -> Optional[int]:
        user_id = SubscriptionService._user_for_customer(_lookup(remote, "customer"))
        if user_id is None:
            return None
        SubscriptionService._upsert(
            user_id,
            customer_id=_lookup(remote, "customer"),
            **SubscriptionService._subscription_fields(remote),
        )
        return user_id

    @staticmethod
    def _apply_subscription_deleted(remote: Any) -> Optional[int]:
        user_id = SubscriptionService._user_for_customer(_lookup(remote, "customer"))
        if user_id is None:
            return None
        SubscriptionService._upsert(
            user_id,
            customer_id=_lookup(remote, "customer"),
            status="canceled",
            plan="free",
        )
        return user_id

    @staticmethod
    def _subscription_fields(remote: Any) -> dict:
        price_id = _lookup(remote, "items", "data", 0, "price", "id")
        # Newer API versions moved the period end onto the subscription item.
        period_end = _lookup(remote, "current_period_end")
        if period_end is None:
            period_end = _lookup(remote, "items", "data", 0, "current_period_end")
        return {
            "price_id": price_id,
            "current_period_end": _from_timestamp(period_end),
            "status": _lookup(remote, "status"),
            "plan": SubscriptionService.plan_for_price(price_id),
        }

    @staticmethod
    def _user_for_customer(customer_id: Optional[str]) -> Optional[int]:
        """Resolve the owning user from customer metadata.

        Returns None when the customer was deleted upstream or carries no
        user_id; such events cannot be correlated and are skipped.
        """
        if not customer_id:
            return None
        customer = stripe.Customer.retrieve(customer_id)
        if _lookup(customer, "deleted"):
            current_app.logger.info("Skipping event for deleted Stripe customer %s", customer_id)
            return None
        user_id = _lookup(customer, "metadata", "user_id")
        if not user_id:
            current_app.logger.info("Skipping event for Stripe customer %s without user_id", customer_id)
            return None
        return int(user_id)

    @staticmethod
    def _upsert(
        user_id: int,
        customer_id: Optional[str] = None,
        subscription_id: Optional[str] = None,
        price_id: Optional[str] = None,
        current_period_end: Optional[datetime] = None,
        status: Optional[str] = None,
        plan: Optional[str] = None,
    ) -> Subscription:
        subscription = Subscription.query.filter_by(user_id=user_id).first()
        if subscription is None:
            if not customer_id:
                raise ValueError(f"No subscription record for user {user_id}")
            subscription = Subscription(user_id=user_id, stripe_customer_id=customer_id)
            db.session.add(subscription)

        if subscription_id is not None:
            subscription.stripe_subscription_id = subscription_id
        if price_id is not None:
            subscription.stripe_price_id = price_id
        if current_period_end is not None:
            subscription.current_period_end = current_period_end
        if status is not None:
            subscription.status = status
        if plan is not None:
            subscription.plan = plan

        db.session.commit()
        current_app.logger.info(
            "Subscription for user %s is now %s/%s", user_id, subscription.plan, subscription.status
        )
        return subscription

    @staticmethod
    def _record_event(event: Any, user_id: Optional[int]) -> None:
        event_id = _lookup(event, "id")
        if not event_id:
            return
        if BillingEvent.query.filter_by(stripe_event_id=event_id).first():
            return
        db.session.add(BillingEvent(stripe_event_id=event_id, event_type=_lookup(event, "type"), user_id=user_id))
        try:
            db.session.commit()
        except IntegrityError:
            # Concurrent delivery of the same event already recorded it.
            db.session.rollback()
