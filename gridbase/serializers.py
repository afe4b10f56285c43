"""JSON shapes returned by the API (camelCase keys)."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from .models import Table, TableColumn, Workspace, WorkspaceMember


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def member_json(member: WorkspaceMember) -> dict:
    return {
        "userId": member.user_id,
        "email": member.user.email if member.user else None,
        "joinedAt": _iso(member.created_at),
    }


def workspace_json(workspace: Workspace, table_count: Optional[int] = None, members: bool = False) -> dict:
    out = {
        "id": workspace.id,
        "name": workspace.name,
        "description": workspace.description,
        "ownerId": workspace.owner_id,
        "createdAt": _iso(workspace.created_at),
        "updatedAt": _iso(workspace.updated_at),
    }
    if table_count is not None:
        out["tableCount"] = table_count
    if members:
        out["members"] = [member_json(m) for m in workspace.members]
    return out


def column_json(column: TableColumn) -> dict:
    return {
        "id": column.id,
        "tableId": column.table_id,
        "name": column.name,
        "type": column.type,
        "order": column.order,
    }


def table_json(table: Table, row_count: Optional[int] = None) -> dict:
    out = {
        "id": table.id,
        "workspaceId": table.workspace_id,
        "name": table.name,
        "description": table.description,
        "columns": [column_json(c) for c in sorted(table.columns, key=lambda c: c.order)],
        "createdAt": _iso(table.created_at),
        "updatedAt": _iso(table.updated_at),
    }
    if row_count is not None:
        out["rowCount"] = row_count
    return out
