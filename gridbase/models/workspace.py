"""
Workspace, table and grid models.

Ownership tree: Workspace -> Table -> (TableColumn, TableRow) -> Cell.
Deletes cascade through the ORM so SQLite (no FK enforcement by default)
and PostgreSQL behave the same.
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import UniqueConstraint

from ..extensions import db


COLUMN_TYPES = ("text", "number", "date", "boolean")


class Workspace(db.Model):
    __tablename__ = "workspaces"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = db.relationship("User", lazy="select")
    members = db.relationship(
        "WorkspaceMember",
        back_populates="workspace",
        cascade="all, delete",
        order_by="WorkspaceMember.created_at",
    )
    tables = db.relationship(
        "Table",
        back_populates="workspace",
        cascade="all, delete",
        lazy="select",
    )

    def __repr__(self) -> str:
        return f"<Workspace {self.id} {self.name!r}>"


class WorkspaceMember(db.Model):
    __tablename__ = "workspace_members"
    __table_args__ = (
        UniqueConstraint("workspace_id", "user_id", name="uq_workspace_member"),
    )

    id = db.Column(db.Integer, primary_key=True)
    workspace_id = db.Column(db.Integer, db.ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    workspace = db.relationship("Workspace", back_populates="members")
    user = db.relationship("User", lazy="joined")


class Table(db.Model):
    __tablename__ = "data_tables"

    id = db.Column(db.Integer, primary_key=True)
    workspace_id = db.Column(db.Integer, db.ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Bumped by every column/row allocation; the UPDATE takes the row lock
    # that serializes order allocation under this table.
    revision = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    workspace = db.relationship("Workspace", back_populates="tables")
    columns = db.relationship(
        "TableColumn",
        back_populates="table",
        cascade="all, delete",
        order_by="TableColumn.order",
    )
    rows = db.relationship(
        "TableRow",
        back_populates="table",
        cascade="all, delete",
        lazy="select",
    )

    def __repr__(self) -> str:
        return f"<Table {self.id} {self.name!r}>"


class TableColumn(db.Model):
    __tablename__ = "table_columns"
    __table_args__ = (
        UniqueConstraint("table_id", "sort_order", name="uq_table_column_order"),
    )

    id = db.Column(db.Integer, primary_key=True)
    table_id = db.Column(db.Integer, db.ForeignKey("data_tables.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    type = db.Column(db.String(16), nullable=False, default="text")
    order = db.Column("sort_order", db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    table = db.relationship("Table", back_populates="columns")
    cells = db.relationship("Cell", back_populates="column", cascade="all, delete")


class TableRow(db.Model):
    __tablename__ = "table_rows"
    __table_args__ = (
        UniqueConstraint("table_id", "sort_order", name="uq_table_row_order"),
    )

    id = db.Column(db.Integer, primary_key=True)
    table_id = db.Column(db.Integer, db.ForeignKey("data_tables.id", ondelete="CASCADE"), nullable=False, index=True)
    order = db.Column("sort_order", db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    table = db.relationship("Table", back_populates="rows")
    cells = db.relationship("Cell", back_populates="row", cascade="all, delete")


class Cell(db.Model):
    __tablename__ = "cells"
    __table_args__ = (
        UniqueConstraint("row_id", "column_id", name="uq_cell_row_column"),
    )

    id = db.Column(db.Integer, primary_key=True)
    row_id = db.Column(db.Integer, db.ForeignKey("table_rows.id", ondelete="CASCADE"), nullable=False, index=True)
    column_id = db.Column(db.Integer, db.ForeignKey("table_columns.id", ondelete="CASCADE"), nullable=False, index=True)
    value = db.Column(db.Text, nullable=True)

    row = db.relationship("TableRow", back_populates="cells")
    column = db.relationship("TableColumn", back_populates="cells", lazy="joined")
