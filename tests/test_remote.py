import pytest
import requests
from unittest.mock import MagicMock

from services.remote import RemoteError, RemoteTable, parse_content_range


def make_response(status=200, json_body=None, headers=None, text="", reason="OK"):
    response = MagicMock(spec=requests.Response)
    response.status_code = status
    response.ok = status < 400
    response.headers = headers or {}
    response.text = text
    response.reason = reason
    response.content = b"x" if json_body is not None else b""
    if json_body is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = json_body
    return response


@pytest.fixture
def session():
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    return session


@pytest.fixture
def table(session):
    return RemoteTable("https://abc.supabase.co/", "anon-key", timeout=7.5, session=session)


def test_auth_headers_are_set(table, session):
    assert table.base_url == "https://abc.supabase.co/rest/v1/students"
    assert session.headers["apikey"] == "anon-key"
    assert session.headers["Authorization"] == "Bearer anon-key"


def test_count_reads_content_range(table, session):
    session.request.return_value = make_response(headers={"Content-Range": "0-0/42"})

    assert table.count() == 42

    method, url = session.request.call_args[0]
    kwargs = session.request.call_args[1]
    assert method == "HEAD"
    assert url == table.base_url
    assert kwargs["headers"]["Prefer"] == "count=exact"
    assert kwargs["timeout"] == 7.5


def test_select_all_orders_by_student_id(table, session):
    rows = [{"id": 1, "student_id": "S001"}]
    session.request.return_value = make_response(json_body=rows)

    assert table.select_all() == rows
    assert session.request.call_args[1]["params"] == {"select": "*", "order": "student_id.asc"}


def test_select_all_rejects_non_list(table, session):
    session.request.return_value = make_response(json_body={"oops": True})

    with pytest.raises(RemoteError):
        table.select_all()


def test_update_targets_one_row(table, session):
    session.request.return_value = make_response(json_body=[{"id": 3, "notes": "hi"}])

    row = table.update(3, {"notes": "hi"})

    assert row == {"id": 3, "notes": "hi"}
    method, _ = session.request.call_args[0]
    kwargs = session.request.call_args[1]
    assert method == "PATCH"
    assert kwargs["params"] == {"id": "eq.3"}
    assert kwargs["json"] == {"notes": "hi"}
    assert kwargs["headers"]["Prefer"] == "return=representation"


def test_update_with_empty_body(table, session):
    session.request.return_value = make_response(status=204)
    assert table.update(3, {"notes": "hi"}) is None


def test_postgrest_error_body(table, session):
    session.request.return_value = make_response(
        status=404,
        json_body={"code": "42P01", "message": 'relation "public.students" does not exist', "details": None},
    )

    with pytest.raises(RemoteError) as exc:
        table.select_all()

    assert exc.value.message == 'relation "public.students" does not exist'
    assert exc.value.status_code == 404
    assert exc.value.code == "42P01"


def test_error_details_are_appended(table, session):
    session.request.return_value = make_response(
        status=401, json_body={"message": "JWT expired", "hint": "Refresh the key"},
    )

    with pytest.raises(RemoteError) as exc:
        table.count()

    assert exc.value.message == "JWT expired (Refresh the key)"


def test_plain_text_error(table, session):
    session.request.return_value = make_response(status=502, text="Bad Gateway", reason="Bad Gateway")

    with pytest.raises(RemoteError) as exc:
        table.select_all()

    assert exc.value.message == "Bad Gateway"


def test_network_failure_is_wrapped(table, session):
    session.request.side_effect = requests.ConnectionError("Name or service not known")

    with pytest.raises(RemoteError) as exc:
        table.count()

    assert "Name or service not known" in exc.value.message
    assert exc.value.status_code is None


@pytest.mark.parametrize("header,expected", [
    ("0-24/573", 573),
    ("*/0", 0),
    ("0-0/1", 1),
])
def test_parse_content_range(header, expected):
    assert parse_content_range(header) == expected


@pytest.mark.parametrize("header", [None, "", "0-24", "0-24/*"])
def test_parse_content_range_invalid(header):
    with pytest.raises(RemoteError):
        parse_content_range(header)


def html_response(status=200):
    response = make_response(status=status, text="<html><body>Sign in to Wi-Fi</body></html>")
    response.content = response.text.encode()
    response.json.side_effect = requests.JSONDecodeError("Expecting value", response.text, 0)
    return response


def test_select_all_non_json_body(table, session):
    session.request.return_value = html_response()

    with pytest.raises(RemoteError) as exc:
        table.select_all()

    assert exc.value.message.startswith("Invalid response body: <html>")
    assert exc.value.status_code == 200


def test_update_non_json_body(table, session):
    session.request.return_value = html_response()

    with pytest.raises(RemoteError):
        table.update(3, {"notes": "hi"})


def test_update_rejects_non_list_body(table, session):
    session.request.return_value = make_response(json_body={"id": 3})

    with pytest.raises(RemoteError):
        table.update(3, {"notes": "hi"})
