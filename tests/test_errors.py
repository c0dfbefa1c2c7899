from flask import Flask
from postgrest.exceptions import APIError as PostgrestError

from prediction_api.app_utils import make_error, make_ok
from prediction_api.errors import (
    APIError,
    NotFoundError,
    StorageError,
    is_missing_capability,
    is_no_rows,
    is_unique_violation,
)


def _pg(code):
    return PostgrestError({"code": code, "message": f"error {code}", "details": None, "hint": None})


def test_apierror_to_dict():
    err = APIError("Broken", status_code=502, code="UPSTREAM", details="timeout")
    assert err.status_code == 502
    assert err.to_dict() == {"message": "Broken", "code": "UPSTREAM", "details": "timeout"}


def test_subclass_status_codes():
    assert NotFoundError("x").status_code == 404
    assert APIError("x").status_code == 500


def test_storage_error_wraps_postgrest_error():
    err = StorageError.wrap("Failed to fetch matches", _pg("42P01"))
    assert err.status_code == 500
    assert err.code == "42P01"
    assert err.details == "error 42P01"


def test_error_classifiers():
    assert is_no_rows(_pg("PGRST116"))
    assert not is_no_rows(_pg("PGRST202"))
    for code in ("PGRST202", "PGRST204", "42883", "42703"):
        assert is_missing_capability(_pg(code))
    assert not is_missing_capability(_pg("23505"))
    assert not is_missing_capability(ValueError("PGRST202"))
    assert is_unique_violation(_pg("23505"))


def test_make_ok_and_make_error_envelopes():
    app = Flask(__name__)
    with app.app_context():
        resp, status = make_ok({"a": 1}, "done", status_code=201)
        assert status == 201
        assert resp.get_json() == {"success": True, "message": "done", "data": {"a": 1}}

        resp, status = make_ok([])
        assert resp.get_json() == {"success": True, "data": []}

        resp, status = make_error("bad", "Nope", status_code=400)
        assert status == 400
        assert resp.get_json() == {"success": False, "message": "Nope", "error": "bad"}

        resp, status = make_error(NotFoundError("Match not found"))
        assert status == 404
        assert resp.get_json() == {"success": False, "message": "Match not found"}
