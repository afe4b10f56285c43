from __future__ import annotations

from flask import current_app, jsonify, request
from flask_login import login_required

from ...errors import ValidationError
from ...schemas import ColumnIn, RowCells, RowsQuery, parse
from ...serializers import column_json, table_json
from ...services.csv_import import import_csv
from ...services.row_service import RowService
from ...services.workspace_service import WorkspaceService
from ...tenancy import RequestContext, require_table
from . import bp


def _guarded(table_id: int) -> RequestContext:
    """Session context for a table route; membership is checked before any body parsing."""
    ctx = RequestContext.from_session()
    require_table(ctx, table_id)
    return ctx


@bp.route("/<int:table_id>", methods=["GET"])
@login_required
def get_table(table_id: int):
    ctx = RequestContext.from_session()
    table = WorkspaceService.get_table(ctx, table_id)
    return jsonify(table_json(table))


@bp.route("/<int:table_id>", methods=["DELETE"])
@login_required
def delete_table(table_id: int):
    ctx = RequestContext.from_session()
    WorkspaceService.delete_table(ctx, table_id)
    return jsonify({"success": True})


@bp.route("/<int:table_id>/columns", methods=["POST"])
@login_required
def add_column(table_id: int):
    ctx = _guarded(table_id)
    payload = parse(ColumnIn, request.get_json(silent=True))
    column = WorkspaceService.add_column(ctx, table_id, payload.name, payload.type)
    return jsonify(column_json(column)), 201


@bp.route("/<int:table_id>/columns/<int:column_id>", methods=["DELETE"])
@login_required
def delete_column(table_id: int, column_id: int):
    ctx = RequestContext.from_session()
    WorkspaceService.delete_column(ctx, table_id, column_id)
    return jsonify({"success": True})


@bp.route("/<int:table_id>/rows", methods=["GET"])
@login_required
def list_rows(table_id: int):
    ctx = _guarded(table_id)
    query = parse(RowsQuery, request.args.to_dict())
    max_limit = current_app.config.get("ROWS_PAGE_MAX_LIMIT", 500)
    if query.limit > max_limit:
        raise ValidationError(details=[{"field": "limit", "message": f"must be at most {max_limit}"}])
    page = RowService.list_rows(ctx, table_id, page=query.page, limit=query.limit)
    return jsonify(page.to_dict())


@bp.route("/<int:table_id>/rows", methods=["POST"])
@login_required
def create_row(table_id: int):
    ctx = _guarded(table_id)
    payload = parse(RowCells, request.get_json(silent=True))
    row = RowService.create_row(ctx, table_id, payload.cells)
    return jsonify(row), 201


@bp.route("/<int:table_id>/rows/<int:row_id>", methods=["PUT"])
@login_required
def update_row(table_id: int, row_id: int):
    ctx = _guarded(table_id)
    payload = parse(RowCells, request.get_json(silent=True))
    row = RowService.update_row(ctx, table_id, row_id, payload.cells)
    return jsonify(row)


@bp.route("/<int:table_id>/rows/<int:row_id>", methods=["DELETE"])
@login_required
def delete_row(table_id: int, row_id: int):
    ctx = RequestContext.from_session()
    RowService.delete_row(ctx, table_id, row_id)
    return jsonify({"success": True})


@bp.route("/<int:table_id>/import", methods=["POST"])
@login_required
def import_rows(table_id: int):
    ctx = _guarded(table_id)
    upload = request.files.get("file")
    data = upload.read() if upload is not None else None
    rows_imported = import_csv(ctx, table_id, data)
    return jsonify({"message": "Import successful", "rowsImported": rows_imported})
