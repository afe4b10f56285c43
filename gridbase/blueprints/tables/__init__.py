"""
Tables Blueprint

Columns, rows and CSV import of a single table.
"""
from flask import Blueprint

bp = Blueprint("tables", __name__, url_prefix="/tables")

from . import routes  # noqa: E402,F401
