"""
Workspace CLI commands

Usage:
    flask workspace add-member --workspace-id 1 --email ann@example.com
    flask workspace import-csv --table-id 3 --file contacts.csv --as-user ann@example.com
"""

import click
from flask.cli import with_appcontext

from gridbase.errors import AppError
from gridbase.models import User
from gridbase.services.csv_import import import_csv
from gridbase.services.workspace_service import WorkspaceService
from gridbase.tenancy import RequestContext


@click.group()
def workspace():
    """Workspace administration commands."""
    pass


@workspace.command("add-member")
@click.option("--workspace-id", type=int, required=True, help="Workspace ID")
@click.option("--email", required=True, help="Email of an existing user")
@with_appcontext
def add_member(workspace_id, email):
    """Grant a user access to a workspace."""
    try:
        member = WorkspaceService.add_member(None, workspace_id, email)
    except AppError as e:
        raise click.ClickException(e.message)
    click.secho(f"✓ User {member.user_id} is a member of workspace {workspace_id}", fg="green")


@workspace.command("import-csv")
@click.option("--table-id", type=int, required=True, help="Target table ID")
@click.option("--file", "path", type=click.Path(exists=True, dir_okay=False), required=True, help="CSV file")
@click.option("--as-user", "email", required=True, help="Email of a workspace member to import as")
@with_appcontext
def import_csv_command(table_id, path, email):
    """Append the rows of a CSV file to a table."""
    user = User.query.filter_by(email=email.strip().lower()).first()
    if not user:
        raise click.ClickException(f"Unknown user {email}")

    with open(path, "rb") as f:
        data = f.read()

    try:
        count = import_csv(RequestContext(user_id=user.id, email=user.email), table_id, data)
    except AppError as e:
        details = e.details if isinstance(e.details, list) else [e.details] if e.details else []
        for detail in details:
            click.secho(f"  {detail}", fg="red")
        raise click.ClickException(e.message)
    click.secho(f"✓ Imported {count} rows into table {table_id}", fg="green")
