from gridbase.models import TableRow, WorkspaceMember


def test_add_member_command(app, login_as):
    owner = login_as("owner@ex.com")
    login_as("guest@ex.com")
    ws = owner.post("/workspaces", json={"name": "W"}).get_json()

    runner = app.test_cli_runner()
    result = runner.invoke(args=["workspace", "add-member", "--workspace-id", str(ws["id"]), "--email", "guest@ex.com"])
    assert result.exit_code == 0, result.output
    with app.app_context():
        assert WorkspaceMember.query.filter_by(workspace_id=ws["id"]).count() == 2

    result = runner.invoke(args=["workspace", "add-member", "--workspace-id", str(ws["id"]), "--email", "nobody@ex.com"])
    assert result.exit_code != 0
    assert "Unknown user" in result.output


def test_import_csv_command(app, login_as, make_table, tmp_path):
    c = login_as("u1@ex.com")
    table = make_table(c)
    path = tmp_path / "contacts.csv"
    path.write_text("Name,Age\nAnn,30\nBob,41\n")

    runner = app.test_cli_runner()
    result = runner.invoke(
        args=["workspace", "import-csv", "--table-id", str(table["id"]), "--file", str(path), "--as-user", "u1@ex.com"]
    )
    assert result.exit_code == 0, result.output
    assert "Imported 2 rows" in result.output
    with app.app_context():
        assert TableRow.query.filter_by(table_id=table["id"]).count() == 2


def test_import_csv_command_enforces_membership(app, login_as, make_table, tmp_path):
    c = login_as("u1@ex.com")
    login_as("outsider@ex.com")
    table = make_table(c)
    path = tmp_path / "contacts.csv"
    path.write_text("Name\nAnn\n")

    result = app.test_cli_runner().invoke(
        args=["workspace", "import-csv", "--table-id", str(table["id"]), "--file", str(path), "--as-user", "outsider@ex.com"]
    )
    assert result.exit_code != 0
    assert "Forbidden" in result.output
