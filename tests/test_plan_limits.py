import io

from gridbase.extensions import db
from gridbase.models import Subscription, TableRow, Workspace


def _grant(app, user_id, plan, status="active"):
    with app.app_context():
        db.session.add(
            Subscription(user_id=user_id, stripe_customer_id=f"cus_{user_id}", plan=plan, status=status)
        )
        db.session.commit()


def test_free_plan_allows_one_workspace(app, login_as):
    c = login_as("u1@ex.com")
    assert c.post("/workspaces", json={"name": "One"}).status_code == 201

    resp = c.post("/workspaces", json={"name": "Two"})
    assert resp.status_code == 402
    assert resp.get_json()["details"] == {"resource": "workspaces", "limit": 1, "current": 1}
    with app.app_context():
        assert Workspace.query.count() == 1


def test_free_plan_allows_three_tables_per_workspace(login_as, make_table):
    c = login_as("u1@ex.com")
    first = make_table(c, name="T1")
    for name in ("T2", "T3"):
        make_table(c, name=name, workspace_id=first["workspaceId"])

    resp = c.post(
        f"/workspaces/{first['workspaceId']}/tables",
        json={"name": "T4", "columns": [{"name": "A"}]},
    )
    assert resp.status_code == 402
    assert resp.get_json()["details"]["resource"] == "tables"


def test_active_subscription_lifts_limits(app, login_as):
    c = login_as("u1@ex.com")
    _grant(app, c.user_id, "basic")
    for i in range(5):
        assert c.post("/workspaces", json={"name": f"W{i}"}).status_code == 201
    assert c.post("/workspaces", json={"name": "W5"}).status_code == 402


def test_inactive_subscription_counts_as_free(app, login_as):
    c = login_as("u1@ex.com")
    _grant(app, c.user_id, "pro", status="past_due")
    c.post("/workspaces", json={"name": "W0"})
    assert c.post("/workspaces", json={"name": "W1"}).status_code == 402


def test_pro_plan_is_unlimited(app, login_as):
    c = login_as("u1@ex.com")
    _grant(app, c.user_id, "pro", status="trialing")
    for i in range(7):
        assert c.post("/workspaces", json={"name": f"W{i}"}).status_code == 201


def test_table_limit_follows_workspace_owner(app, login_as, make_table):
    owner = login_as("owner@ex.com")
    member = login_as("member@ex.com")
    _grant(app, member.user_id, "pro")

    first = make_table(owner, name="T1")
    ws_id = first["workspaceId"]
    owner.post(f"/workspaces/{ws_id}/members", json={"email": "member@ex.com"})
    make_table(member, name="T2", workspace_id=ws_id)
    make_table(member, name="T3", workspace_id=ws_id)

    resp = member.post(f"/workspaces/{ws_id}/tables", json={"name": "T4", "columns": [{"name": "A"}]})
    assert resp.status_code == 402


def test_row_limit_applies_to_creates_and_imports(app, login_as, make_table):
    c = login_as("u1@ex.com")
    table = make_table(c)

    csv = "Name,Age\n" + "".join(f"r{i},{i}\n" for i in range(99))
    resp = c.post(
        f"/tables/{table['id']}/import",
        data={"file": (io.BytesIO(csv.encode()), "rows.csv")},
        content_type="multipart/form-data",
    )
    assert resp.get_json()["rowsImported"] == 99

    # Two more rows would exceed the limit: nothing is imported.
    resp = c.post(
        f"/tables/{table['id']}/import",
        data={"file": (io.BytesIO(b"Name\nx\ny\n"), "more.csv")},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 402
    assert resp.get_json()["details"] == {"resource": "rows_per_table", "limit": 100, "current": 99}

    last = c.post(f"/tables/{table['id']}/rows", json={"cells": {"Name": "last"}})
    assert last.status_code == 201
    assert last.get_json()["order"] == 99

    assert c.post(f"/tables/{table['id']}/rows", json={"cells": {}}).status_code == 402
    with app.app_context():
        orders = [r.order for r in TableRow.query.filter_by(table_id=table["id"]).order_by(TableRow.order)]
    assert orders == list(range(100))
