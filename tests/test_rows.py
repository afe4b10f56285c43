from gridbase.extensions import db
from gridbase.models import Cell, TableRow


def test_create_and_list_rows_example_scenario(login_as, make_table):
    c = login_as("u1@ex.com")
    table = make_table(c)

    resp = c.post(f"/tables/{table['id']}/rows", json={"cells": {"Name": "Ann", "Age": "30"}})
    assert resp.status_code == 201
    row = resp.get_json()
    assert row["order"] == 0
    assert row["data"] == {"Name": "Ann", "Age": "30"}

    listed = c.get(f"/tables/{table['id']}/rows?page=1&limit=50").get_json()
    assert listed["pagination"] == {"page": 1, "limit": 50, "total": 1, "totalPages": 1}
    assert len(listed["rows"]) == 1
    assert listed["rows"][0]["order"] == 0
    assert listed["rows"][0]["data"] == {"Name": "Ann", "Age": "30"}
    assert set(listed["rows"][0]) == {"id", "order", "createdAt", "updatedAt", "data"}


def test_create_row_stores_null_for_missing_or_empty(app, login_as, make_table):
    c = login_as("u1@ex.com")
    table = make_table(c)
    row = c.post(f"/tables/{table['id']}/rows", json={"cells": {"Name": "", "Unknown": "x"}}).get_json()
    assert row["data"] == {"Name": None, "Age": None}
    with app.app_context():
        assert Cell.query.filter_by(row_id=row["id"]).count() == 2


def test_rows_are_paginated_in_order(login_as, make_table):
    c = login_as("u1@ex.com")
    table = make_table(c)
    for i in range(5):
        c.post(f"/tables/{table['id']}/rows", json={"cells": {"Name": f"r{i}"}})

    page2 = c.get(f"/tables/{table['id']}/rows?page=2&limit=2").get_json()
    assert [r["data"]["Name"] for r in page2["rows"]] == ["r2", "r3"]
    assert page2["pagination"] == {"page": 2, "limit": 2, "total": 5, "totalPages": 3}

    past_end = c.get(f"/tables/{table['id']}/rows?page=9&limit=2").get_json()
    assert past_end["rows"] == []


def test_empty_table_has_zero_pages(login_as, make_table):
    c = login_as("u1@ex.com")
    table = make_table(c)
    listed = c.get(f"/tables/{table['id']}/rows").get_json()
    assert listed == {"rows": [], "pagination": {"page": 1, "limit": 50, "total": 0, "totalPages": 0}}


def test_invalid_pagination_params(login_as, make_table):
    c = login_as("u1@ex.com")
    table = make_table(c)
    assert c.get(f"/tables/{table['id']}/rows?page=0").status_code == 400
    assert c.get(f"/tables/{table['id']}/rows?limit=abc").status_code == 400
    assert c.get(f"/tables/{table['id']}/rows?limit=100000").status_code == 400


def test_create_row_requires_cells_object(login_as, make_table):
    c = login_as("u1@ex.com")
    table = make_table(c)
    resp = c.post(f"/tables/{table['id']}/rows", json={"cells": ["Ann"]})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Invalid input"


def test_update_row_upserts_known_columns_and_ignores_unknown(login_as, make_table):
    c = login_as("u1@ex.com")
    table = make_table(c)
    row = c.post(f"/tables/{table['id']}/rows", json={"cells": {"Name": "Ann"}}).get_json()

    url = f"/tables/{table['id']}/rows/{row['id']}"
    payload = {"cells": {"Age": "31", "Nickname": "annie"}}
    first = c.put(url, json=payload)
    second = c.put(url, json=payload)

    assert first.status_code == second.status_code == 200
    assert first.get_json() == second.get_json()
    assert first.get_json()["data"] == {"Name": "Ann", "Age": "31"}


def test_update_row_creates_cell_for_column_added_later(app, login_as, make_table):
    c = login_as("u1@ex.com")
    table = make_table(c)
    row = c.post(f"/tables/{table['id']}/rows", json={"cells": {"Name": "Ann"}}).get_json()
    c.post(f"/tables/{table['id']}/columns", json={"name": "Email"})

    listed = c.get(f"/tables/{table['id']}/rows").get_json()
    assert listed["rows"][0]["data"]["Email"] is None

    updated = c.put(f"/tables/{table['id']}/rows/{row['id']}", json={"cells": {"Email": "a@ex.com"}}).get_json()
    assert updated["data"]["Email"] == "a@ex.com"
    with app.app_context():
        assert Cell.query.filter_by(row_id=row["id"]).count() == 3


def test_update_or_delete_missing_row_is_not_found(login_as, make_table):
    c = login_as("u1@ex.com")
    table = make_table(c)
    other = make_table(c, name="Other", workspace_id=table["workspaceId"])
    foreign = c.post(f"/tables/{other['id']}/rows", json={"cells": {"Name": "x"}}).get_json()

    assert c.put(f"/tables/{table['id']}/rows/9999", json={"cells": {"Name": "x"}}).status_code == 404
    assert c.delete(f"/tables/{table['id']}/rows/9999").status_code == 404
    # A row of another table is not addressable through this table.
    assert c.delete(f"/tables/{table['id']}/rows/{foreign['id']}").status_code == 404


def test_delete_row_removes_cells(app, login_as, make_table):
    c = login_as("u1@ex.com")
    table = make_table(c)
    row = c.post(f"/tables/{table['id']}/rows", json={"cells": {"Name": "Ann"}}).get_json()

    resp = c.delete(f"/tables/{table['id']}/rows/{row['id']}")
    assert resp.status_code == 200
    assert resp.get_json() == {"success": True}
    with app.app_context():
        assert db.session.get(TableRow, row["id"]) is None
        assert Cell.query.filter_by(row_id=row["id"]).count() == 0

    # Orders keep appending after the max of what remains.
    nxt = c.post(f"/tables/{table['id']}/rows", json={"cells": {}}).get_json()
    assert nxt["order"] == 0
