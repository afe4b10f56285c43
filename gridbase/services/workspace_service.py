"""
Workspace Service

Workspaces, membership, tables and columns. Every method takes the caller's
RequestContext first and runs the authorization guard before touching data.
"""

from typing import Optional

from flask import current_app
from sqlalchemy import func

from gridbase.errors import Forbidden, NotFound, ValidationError
from gridbase.extensions import db
from gridbase.models import Table, TableColumn, TableRow, User, Workspace, WorkspaceMember
from gridbase.services.ordering import next_order
from gridbase.services.subscription_service import SubscriptionService
from gridbase.tenancy import RequestContext, require_table, require_workspace


class WorkspaceService:
    """Tenancy-scoped CRUD for workspaces, tables and columns."""

    # -----------------
    # Workspaces
    # -----------------

    @staticmethod
    def create_workspace(ctx: RequestContext, name: str, description: Optional[str] = None) -> Workspace:
        """Create a workspace owned by the caller, who becomes its first member."""
        owned = Workspace.query.filter_by(owner_id=ctx.user_id).count()
        SubscriptionService.check_limit(ctx.user_id, "workspaces", owned)

        workspace = Workspace(name=name, description=description, owner_id=ctx.user_id)
        db.session.add(workspace)
        db.session.flush()
        db.session.add(WorkspaceMember(workspace_id=workspace.id, user_id=ctx.user_id))
        db.session.commit()

        current_app.logger.info(f"Created workspace {workspace.id} for user {ctx.user_id}")
        return workspace

    @staticmethod
    def list_workspaces(ctx: RequestContext) -> list[tuple[Workspace, int]]:
        """Workspaces the caller belongs to, newest first, with table counts."""
        table_count = (
            db.session.query(Table.workspace_id, func.count(Table.id).label("n"))
            .group_by(Table.workspace_id)
            .subquery()
        )
        rows = (
            db.session.query(Workspace, func.coalesce(table_count.c.n, 0))
            .join(WorkspaceMember, WorkspaceMember.workspace_id == Workspace.id)
            .outerjoin(table_count, table_count.c.workspace_id == Workspace.id)
            .filter(WorkspaceMember.user_id == ctx.user_id)
            .order_by(Workspace.created_at.desc(), Workspace.id.desc())
            .all()
        )
        return [(ws, int(n)) for ws, n in rows]

    @staticmethod
    def get_workspace(ctx: RequestContext, workspace_id: int) -> Workspace:
        return require_workspace(ctx, workspace_id)

    @staticmethod
    def delete_workspace(ctx: RequestContext, workspace_id: int) -> None:
        """Delete a workspace and everything under it. Owner only."""
        workspace = require_workspace(ctx, workspace_id)
        if workspace.owner_id != ctx.user_id:
            raise Forbidden()
        db.session.delete(workspace)
        db.session.commit()
        current_app.logger.warning(f"Deleted workspace {workspace_id} (user {ctx.user_id})")

    @staticmethod
    def add_member(ctx: Optional[RequestContext], workspace_id: int, email: str) -> WorkspaceMember:
        """
        Grant an existing user access to the workspace.

        ``ctx`` may be None for administrative callers (CLI), which skip the
        membership check. Adding an existing member returns the existing grant.
        """
        if ctx is not None:
            require_workspace(ctx, workspace_id)
        elif db.session.get(Workspace, workspace_id) is None:
            raise ValidationError(f"Workspace {workspace_id} not found")

        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            raise ValidationError(
                "Unknown user",
                details=[{"field": "email", "message": "no user with this email"}],
            )

        member = WorkspaceMember.query.filter_by(workspace_id=workspace_id, user_id=user.id).first()
        if member:
            return member

        member = WorkspaceMember(workspace_id=workspace_id, user_id=user.id)
        db.session.add(member)
        db.session.commit()
        return member

    # -----------------
    # Tables
    # -----------------

    @staticmethod
    def create_table(
        ctx: RequestContext,
        workspace_id: int,
        name: str,
        columns: list[dict],
        description: Optional[str] = None,
    ) -> Table:
        """
        Create a table with its initial columns at orders 0..n-1.

        Args:
            columns: list of {"name", "type"}; must not be empty
        """
        workspace = require_workspace(ctx, workspace_id)
        if not columns:
            raise ValidationError(details=[{"field": "columns", "message": "at least one column is required"}])

        existing = Table.query.filter_by(workspace_id=workspace_id).count()
        SubscriptionService.check_limit(workspace.owner_id, "tables", existing)

        table = Table(workspace_id=workspace_id, name=name, description=description)
        for index, col in enumerate(columns):
            table.columns.append(TableColumn(name=col["name"], type=col.get("type") or "text", order=index))
        db.session.add(table)
        db.session.commit()
        return table

    @staticmethod
    def list_tables(ctx: RequestContext, workspace_id: int) -> list[tuple[Table, int]]:
        """Tables of a workspace, newest first, with their row counts."""
        require_workspace(ctx, workspace_id)
        row_count = (
            db.session.query(TableRow.table_id, func.count(TableRow.id).label("n"))
            .group_by(TableRow.table_id)
            .subquery()
        )
        rows = (
            db.session.query(Table, func.coalesce(row_count.c.n, 0))
            .outerjoin(row_count, row_count.c.table_id == Table.id)
            .filter(Table.workspace_id == workspace_id)
            .order_by(Table.created_at.desc(), Table.id.desc())
            .all()
        )
        return [(table, int(n)) for table, n in rows]

    @staticmethod
    def get_table(ctx: RequestContext, table_id: int) -> Table:
        return require_table(ctx, table_id)

    @staticmethod
    def delete_table(ctx: RequestContext, table_id: int) -> None:
        table = require_table(ctx, table_id)
        db.session.delete(table)
        db.session.commit()

    # -----------------
    # Columns
    # -----------------

    @staticmethod
    def add_column(ctx: RequestContext, table_id: int, name: str, type_: str = "text") -> TableColumn:
        """Append a column after the current last one."""
        require_table(ctx, table_id)
        try:
            column = TableColumn(table_id=table_id, name=name, type=type_, order=next_order(TableColumn, table_id))
            db.session.add(column)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return column

    @staticmethod
    def delete_column(ctx: RequestContext, table_id: int, column_id: int) -> None:
        """Delete a column together with its cells. Sibling orders are kept as-is."""
        require_table(ctx, table_id)
        column = db.session.get(TableColumn, column_id)
        if column is None or column.table_id != table_id:
            raise NotFound("Column not found")
        db.session.delete(column)
        db.session.commit()
