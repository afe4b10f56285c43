import os
import sys


# Ensure the project root is on PYTHONPATH when running pytest from any working dir.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest  # noqa: E402

from gridbase import create_app  # noqa: E402
from gridbase.config import TestConfig  # noqa: E402
from gridbase.extensions import db  # noqa: E402


@pytest.fixture()
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def login_as(app):
    """Return a test client with a freshly registered user logged in."""

    def _login_as(email: str, password: str = "password123"):
        c = app.test_client()
        resp = c.post("/auth/register", json={"email": email, "password": password})
        assert resp.status_code == 201, resp.get_json()
        c.user_id = resp.get_json()["id"]
        return c

    return _login_as


@pytest.fixture()
def make_table():
    """Create a workspace (unless given) and a table through the API."""

    def _make_table(c, columns=(("Name", "text"), ("Age", "number")), name="Contacts", workspace_id=None):
        if workspace_id is None:
            resp = c.post("/workspaces", json={"name": "Workspace"})
            assert resp.status_code == 201, resp.get_json()
            workspace_id = resp.get_json()["id"]
        resp = c.post(
            f"/workspaces/{workspace_id}/tables",
            json={"name": name, "columns": [{"name": n, "type": t} for n, t in columns]},
        )
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()

    return _make_table
