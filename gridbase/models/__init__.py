from .core import User
from .workspace import Workspace, WorkspaceMember, Table, TableColumn, TableRow, Cell, COLUMN_TYPES
from .subscription import Subscription, BillingEvent, PLAN_CODES

__all__ = [
    "User",
    "Workspace",
    "WorkspaceMember",
    "Table",
    "TableColumn",
    "TableRow",
    "Cell",
    "COLUMN_TYPES",
    "Subscription",
    "BillingEvent",
    "PLAN_CODES",
]
