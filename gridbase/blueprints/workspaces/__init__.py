"""
Workspaces Blueprint

Workspaces, membership and the tables of a workspace.
"""
from flask import Blueprint

bp = Blueprint("workspaces", __name__, url_prefix="/workspaces")

from . import routes  # noqa: E402,F401
