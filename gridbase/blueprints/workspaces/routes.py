from __future__ import annotations

from flask import jsonify, request
from flask_login import login_required

from ...schemas import MemberAdd, TableCreate, WorkspaceCreate, parse
from ...serializers import member_json, table_json, workspace_json
from ...services.workspace_service import WorkspaceService
from ...tenancy import RequestContext
from . import bp


@bp.route("", methods=["GET"])
@login_required
def list_workspaces():
    ctx = RequestContext.from_session()
    items = WorkspaceService.list_workspaces(ctx)
    return jsonify([workspace_json(ws, table_count=n) for ws, n in items])


@bp.route("", methods=["POST"])
@login_required
def create_workspace():
    ctx = RequestContext.from_session()
    payload = parse(WorkspaceCreate, request.get_json(silent=True))
    workspace = WorkspaceService.create_workspace(ctx, payload.name, payload.description)
    return jsonify(workspace_json(workspace, members=True)), 201


@bp.route("/<int:workspace_id>", methods=["GET"])
@login_required
def get_workspace(workspace_id: int):
    ctx = RequestContext.from_session()
    workspace = WorkspaceService.get_workspace(ctx, workspace_id)
    return jsonify(workspace_json(workspace, members=True))


@bp.route("/<int:workspace_id>", methods=["DELETE"])
@login_required
def delete_workspace(workspace_id: int):
    ctx = RequestContext.from_session()
    WorkspaceService.delete_workspace(ctx, workspace_id)
    return jsonify({"success": True})


@bp.route("/<int:workspace_id>/members", methods=["POST"])
@login_required
def add_member(workspace_id: int):
    ctx = RequestContext.from_session()
    payload = parse(MemberAdd, request.get_json(silent=True))
    member = WorkspaceService.add_member(ctx, workspace_id, payload.email)
    return jsonify(member_json(member)), 201


@bp.route("/<int:workspace_id>/tables", methods=["GET"])
@login_required
def list_tables(workspace_id: int):
    ctx = RequestContext.from_session()
    items = WorkspaceService.list_tables(ctx, workspace_id)
    return jsonify([table_json(table, row_count=n) for table, n in items])


@bp.route("/<int:workspace_id>/tables", methods=["POST"])
@login_required
def create_table(workspace_id: int):
    ctx = RequestContext.from_session()
    # Membership is checked before the body is validated.
    WorkspaceService.get_workspace(ctx, workspace_id)
    payload = parse(TableCreate, request.get_json(silent=True))
    table = WorkspaceService.create_table(
        ctx,
        workspace_id,
        name=payload.name,
        description=payload.description,
        columns=[c.model_dump() for c in payload.columns],
    )
    return jsonify(table_json(table)), 201
