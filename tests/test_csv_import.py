import io

import pytest

from gridbase.errors import ParseError
from gridbase.models import TableRow
from gridbase.services.csv_import import parse_csv


def _upload(c, table_id, content: bytes, filename="data.csv"):
    return c.post(
        f"/tables/{table_id}/import",
        data={"file": (io.BytesIO(content), filename)},
        content_type="multipart/form-data",
    )


def _rows(c, table_id):
    return c.get(f"/tables/{table_id}/rows?limit=500").get_json()["rows"]


def test_parse_csv_detects_semicolon_and_skips_blank_lines():
    parsed = parse_csv(b"Name;Age\r\n\r\nAnn;30\r\nBob;\r\n")
    assert parsed.header == ["Name", "Age"]
    assert parsed.records == [{"Name": "Ann", "Age": "30"}, {"Name": "Bob", "Age": ""}]


def test_parse_csv_comma_file_with_semicolons_in_values():
    parsed = parse_csv(b"Name,Notes\nAnn,a;b;c;d\n")
    assert parsed.header == ["Name", "Notes"]
    assert parsed.records == [{"Name": "Ann", "Notes": "a;b;c;d"}]


def test_parse_csv_keeps_header_cells_verbatim():
    parsed = parse_csv(b"Name, Age\nAnn,30\n")
    assert parsed.header == ["Name", " Age"]


def test_parse_csv_strips_bom_and_keeps_quoted_separators():
    parsed = parse_csv('\ufeffName,Note\n"Smith, Ann","said ""hi"""\n'.encode("utf-8"))
    assert parsed.header == ["Name", "Note"]
    assert parsed.records == [{"Name": "Smith, Ann", "Note": 'said "hi"'}]


def test_parse_csv_reports_every_bad_line():
    with pytest.raises(ParseError) as exc:
        parse_csv(b"Name,Age\nAnn,30,x\nBob\nCid,7\n")
    details = exc.value.details
    assert [d["code"] for d in details] == ["TooManyFields", "TooFewFields"]
    assert [d["line"] for d in details] == [2, 3]


def test_parse_csv_rejects_bad_quoting_and_missing_header():
    with pytest.raises(ParseError) as exc:
        parse_csv(b'Name,Age\n"Ann"x,30\n')
    assert exc.value.details[0]["code"] == "MalformedQuotes"

    with pytest.raises(ParseError) as exc:
        parse_csv(b"")
    assert exc.value.details[0]["code"] == "MissingHeader"

    with pytest.raises(ParseError) as exc:
        parse_csv(b"\xff\xfeName")
    assert exc.value.details[0]["code"] == "InvalidEncoding"


def test_import_appends_after_existing_rows(login_as, make_table):
    c = login_as("u1@ex.com")
    table = make_table(c)
    for name in ("a", "b", "c"):
        c.post(f"/tables/{table['id']}/rows", json={"cells": {"Name": name}})

    resp = _upload(c, table["id"], b"Name,Age\nAnn,30\nBob,41\n")
    assert resp.status_code == 200
    assert resp.get_json() == {"message": "Import successful", "rowsImported": 2}

    rows = _rows(c, table["id"])
    assert [r["order"] for r in rows] == [0, 1, 2, 3, 4]
    assert rows[3]["data"] == {"Name": "Ann", "Age": "30"}
    assert rows[4]["data"] == {"Name": "Bob", "Age": "41"}


def test_import_fills_missing_columns_with_null_and_ignores_extra_headers(login_as, make_table):
    c = login_as("u1@ex.com")
    table = make_table(c)

    resp = _upload(c, table["id"], b"Name;Email\nAnn;ann@ex.com\n")
    assert resp.status_code == 200
    rows = _rows(c, table["id"])
    assert rows[0]["data"] == {"Name": "Ann", "Age": None}


def test_import_matches_headers_exactly(login_as, make_table):
    c = login_as("u1@ex.com")
    table = make_table(c)

    resp = _upload(c, table["id"], b" Name,Age\nAnn,30\n")
    assert resp.status_code == 200
    assert _rows(c, table["id"])[0]["data"] == {"Name": None, "Age": "30"}


def test_import_is_all_or_nothing(app, login_as, make_table):
    c = login_as("u1@ex.com")
    table = make_table(c)

    resp = _upload(c, table["id"], b"Name,Age\nAnn,30\nBob,41,extra\n")
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["error"] == "CSV parsing error"
    assert body["details"] == [
        {"line": 3, "code": "TooManyFields", "message": "Expected 2 fields but parsed 3"}
    ]
    with app.app_context():
        assert TableRow.query.filter_by(table_id=table["id"]).count() == 0


def test_import_requires_file(login_as, make_table):
    c = login_as("u1@ex.com")
    table = make_table(c)
    resp = c.post(f"/tables/{table['id']}/import", data={}, content_type="multipart/form-data")
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "No file provided"


def test_import_header_only_imports_nothing(login_as, make_table):
    c = login_as("u1@ex.com")
    table = make_table(c)
    resp = _upload(c, table["id"], b"Name,Age\n")
    assert resp.status_code == 200
    assert resp.get_json()["rowsImported"] == 0
