"""
Request context and workspace authorization guard.

Routes build a ``RequestContext`` from the Flask-Login session and pass it
explicitly into the service layer. The guard answers membership questions;
a missing workspace/table and a non-member caller both yield ``Forbidden``
so that resource existence is never observable outside the tenant.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from flask_login import current_user

from .errors import Forbidden, Unauthenticated
from .extensions import db
from .models import Table, Workspace, WorkspaceMember


@dataclass(frozen=True)
class RequestContext:
    user_id: int
    email: Optional[str] = None

    @classmethod
    def from_session(cls) -> "RequestContext":
        if not current_user.is_authenticated:
            raise Unauthenticated()
        return cls(user_id=int(current_user.id), email=current_user.email)


def can_access_workspace(user_id: int, workspace_id: int) -> bool:
    member = (
        db.session.query(WorkspaceMember.id)
        .filter_by(workspace_id=workspace_id, user_id=user_id)
        .first()
    )
    return member is not None


def can_access_table(user_id: int, table_id: int) -> bool:
    member = (
        db.session.query(WorkspaceMember.id)
        .join(Table, Table.workspace_id == WorkspaceMember.workspace_id)
        .filter(Table.id == table_id, WorkspaceMember.user_id == user_id)
        .first()
    )
    return member is not None


def require_workspace(ctx: RequestContext, workspace_id: int) -> Workspace:
    """Return the workspace if the caller is a member, else raise Forbidden."""
    if not can_access_workspace(ctx.user_id, workspace_id):
        raise Forbidden()
    return db.session.get(Workspace, workspace_id)


def require_table(ctx: RequestContext, table_id: int) -> Table:
    """Return the table if the caller belongs to its workspace, else raise Forbidden."""
    if not can_access_table(ctx.user_id, table_id):
        raise Forbidden()
    return db.session.get(Table, table_id)
