import pytest

from prediction_api.domain.contracts import Outcome, VoterClass
from prediction_api.errors import ValidationError
from prediction_api.validators import (
    validate_comment_payload,
    validate_league_payload,
    validate_limit,
    validate_login,
    validate_match_payload,
    validate_page,
    validate_predicted_winner,
    validate_prediction_payload,
    validate_reaction,
    validate_registration,
    validate_score_payload,
    validate_scores,
    validate_team_payload,
    validate_vote_count_source,
    validate_voter_class,
)


def _match_body(**overrides):
    body = {
        "league_id": 1,
        "home_team_id": 10,
        "away_team_id": 11,
        "match_date": "2024-05-01",
        "match_time": "15:00",
    }
    body.update(overrides)
    return body


def test_validate_predicted_winner_ok():
    assert validate_predicted_winner("Draw") is Outcome.DRAW


@pytest.mark.parametrize("raw", ["draw", "HOME", "", None, 1])
def test_validate_predicted_winner_rejects(raw):
    with pytest.raises(ValidationError) as exc:
        validate_predicted_winner(raw)
    assert exc.value.message == "Invalid predicted_winner value. Must be one of: Home, Away, Draw"
    assert exc.value.status_code == 400


def test_validate_voter_class_default_and_invalid():
    assert validate_voter_class(None) is VoterClass.USER
    assert validate_voter_class(None, default=VoterClass.ADMIN) is VoterClass.ADMIN
    assert validate_voter_class("admin") is VoterClass.ADMIN
    with pytest.raises(ValidationError):
        validate_voter_class("seed")


def test_validate_prediction_payload():
    assert validate_prediction_payload({"match_id": 3, "predicted_winner": "Away"}) == (3, Outcome.AWAY)
    with pytest.raises(ValidationError):
        validate_prediction_payload({"match_id": "3", "predicted_winner": "Away"})
    with pytest.raises(ValidationError):
        validate_prediction_payload(None)


@pytest.mark.parametrize(
    "body",
    [
        {"home_score": -1, "away_score": 0},
        {"home_score": 1.5, "away_score": 0},
        {"home_score": True, "away_score": 0},
        {"home_score": 1},
    ],
)
def test_validate_score_payload_rejects(body):
    with pytest.raises(ValidationError):
        validate_score_payload(body)


def test_validate_score_payload_ok():
    assert validate_score_payload({"home_score": 0, "away_score": 4}) == (0, 4)


def test_validate_scores():
    assert validate_scores(3, 0) == (3, 0)
    with pytest.raises(ValidationError):
        validate_scores(1, "x")
    with pytest.raises(ValidationError):
        validate_scores(-1, 0)


def test_validate_vote_count_source():
    assert validate_vote_count_source(None) == "outcomes"
    assert validate_vote_count_source("scores") == "scores"
    with pytest.raises(ValidationError):
        validate_vote_count_source("all")


def test_validate_match_payload_ok():
    assert validate_match_payload(_match_body())["match_time"] == "15:00"


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"league_id": None}, "League ID is required and must be a number"),
        ({"away_team_id": 10}, "Home and away teams must be different"),
        ({"match_date": "not-a-date"}, "Match date is required and must be a valid date string"),
        ({"match_time": "25:00"}, "Match time is required and must be in HH:MM format"),
        ({"status": "cancelled"}, "Match status must be one of: scheduled, live, finished, postponed"),
    ],
)
def test_validate_match_payload_rejects(overrides, message):
    with pytest.raises(ValidationError) as exc:
        validate_match_payload(_match_body(**overrides))
    assert exc.value.message == message


def test_validate_league_and_team_payloads():
    validate_league_payload({"name": "Serie A", "country": "Italy"})
    with pytest.raises(ValidationError):
        validate_league_payload({"name": "  ", "country": "Italy"})
    validate_team_payload({"name": "Roma", "short_code": "ROM", "country": "Italy", "team_type": "club"})
    with pytest.raises(ValidationError):
        validate_team_payload({"name": "Roma", "short_code": "ROM", "country": "Italy", "team_type": "school"})


def test_validate_comment_payload():
    assert validate_comment_payload({"comment_text": "hi"}, match_id=4)["comment_text"] == "hi"
    with pytest.raises(ValidationError):
        validate_comment_payload({"comment_text": "hi"})
    with pytest.raises(ValidationError):
        validate_comment_payload({"match_id": 4, "comment_text": ""})


def test_validate_reaction():
    assert validate_reaction("like") == "like"
    with pytest.raises(ValidationError):
        validate_reaction("love")


def test_validate_registration_defaults_and_rules():
    body = validate_registration({"name": "Ana", "email": "ana@example.com", "password": "pw"})
    assert body["provider"] == "email"
    assert body["type"] == "user"
    social = validate_registration({"name": "Ana", "email": "ana@example.com", "provider": "google"})
    assert social["provider"] == "google"
    with pytest.raises(ValidationError):
        validate_registration({"name": "Ana", "email": "ana@example.com"})
    with pytest.raises(ValidationError):
        validate_registration({"name": "Ana", "email": "not-an-email", "password": "pw"})


def test_validate_login():
    assert validate_login({"email": " a@b.co ", "password": "x"}) == ("a@b.co", "x")
    with pytest.raises(ValidationError):
        validate_login({"email": "a@b.co"})


def test_validate_page_soft():
    assert validate_page(None) == (1, [])
    v, w = validate_page("0")
    assert v == 1 and w == ["page_floor"]
    v, w = validate_page("abc")
    assert v == 1 and w == ["page_invalid"]


def test_validate_limit_default_and_clamp():
    v, w = validate_limit(None)
    assert v == 20 and w == []
    v2, w2 = validate_limit("0")
    assert v2 == 1 and w2
    v3, w3 = validate_limit("999")
    assert v3 == 100 and w3 == ["limit_cap"]
    v4, w4 = validate_limit("bad")
    assert v4 == 20 and w4
