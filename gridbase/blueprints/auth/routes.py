from __future__ import annotations

from datetime import datetime

from flask import current_app, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user
from flask_wtf.csrf import generate_csrf

from ...errors import Unauthenticated, ValidationError
from ...extensions import db
from ...models.core import User
from ...schemas import LoginIn, RegisterIn, parse
from . import bp


def _user_json(user: User) -> dict:
    return {"id": user.id, "email": user.email, "name": user.name}


@bp.route("/csrf-token", methods=["GET"])
def csrf_token():
    """Token to send back in the X-CSRFToken header on mutating requests."""
    return jsonify({"csrfToken": generate_csrf()})


@bp.route("/register", methods=["POST"])
def register():
    payload = parse(RegisterIn, request.get_json(silent=True))

    if User.query.filter_by(email=payload.email).first():
        raise ValidationError(
            "Email already registered",
            details=[{"field": "email", "message": "already registered"}],
        )

    user = User(email=payload.email, name=payload.name)
    user.set_password(payload.password)
    db.session.add(user)
    db.session.commit()

    login_user(user)
    current_app.logger.info(f"Registered user {user.id}")
    return jsonify(_user_json(user)), 201


@bp.route("/login", methods=["POST"])
def login():
    payload = parse(LoginIn, request.get_json(silent=True))

    user = User.query.filter_by(email=payload.email).first()
    if not user or not user.check_password(payload.password) or user.status != "active":
        current_app.logger.warning("event=auth.login.failed email=%s", payload.email)
        raise Unauthenticated("Invalid credentials")

    login_user(user)
    user.last_login_at = datetime.utcnow()
    db.session.commit()
    return jsonify(_user_json(user))


@bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"success": True})


@bp.route("/me", methods=["GET"])
@login_required
def me():
    return jsonify(_user_json(current_user))
