"""
Auth Blueprint

JSON session login for API clients (Flask-Login cookie session).
"""
from flask import Blueprint

bp = Blueprint("auth", __name__, url_prefix="/auth")

from . import routes  # noqa: E402,F401
