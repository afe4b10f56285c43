"""
Billing Routes

Checkout initiation, subscription status and the Stripe webhook.
"""
from flask import current_app, jsonify, request
from flask_login import login_required

from ...errors import AppError
from ...extensions import csrf, db
from ...schemas import CheckoutIn, parse
from ...services.subscription_service import SubscriptionService
from ...tenancy import RequestContext
from . import bp


@bp.route("/checkout", methods=["POST"])
@login_required
def checkout():
    """Create a Stripe checkout session and return its URL."""
    ctx = RequestContext.from_session()
    payload = parse(CheckoutIn, request.get_json(silent=True))
    url = SubscriptionService.create_checkout_session(ctx.user_id, payload.plan)
    return jsonify({"url": url})


@bp.route("/subscription", methods=["GET"])
@login_required
def subscription():
    ctx = RequestContext.from_session()
    return jsonify(SubscriptionService.describe(ctx.user_id))


@bp.route("/webhook", methods=["POST"])
@csrf.exempt
def stripe_webhook():
    """
    Handle Stripe webhooks.

    Public endpoint: the signature is verified before the payload is read.
    Any failure after verification answers 500 so that Stripe retries.
    """
    event = SubscriptionService.construct_event(
        request.get_data(),
        request.headers.get("Stripe-Signature"),
    )

    try:
        SubscriptionService.handle_event(event)
    except AppError:
        raise
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Error processing Stripe webhook: {e}")
        return jsonify({"error": "Webhook handler failed"}), 500

    return jsonify({"received": True}), 200
