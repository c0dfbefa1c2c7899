import pytest

from prediction_api.errors import NotFoundError, StorageError, ValidationError
from prediction_api.services.catalog_service import LeagueService, TeamService
from prediction_api.services.match_service import MatchService
from prediction_api.services.prediction_service import PredictionService
from prediction_api.utils import drop_unset, generate_league_slug, generate_slug


def test_generate_slug():
    assert generate_slug("  Ligue 1: Uber Eats ") == "ligue-1-uber-eats"
    assert generate_slug(None) == ""
    assert generate_league_slug("La Liga", "Spain") == "la-liga-spain"


def test_drop_unset_keeps_falsy_values():
    assert drop_unset({"a": None, "b": False, "c": 0, "d": ""}) == {"b": False, "c": 0, "d": ""}


# ---------- leagues / teams ----------

def test_league_crud_with_slug(db):
    leagues = LeagueService(db)
    league = leagues.create_league({"name": "Serie A", "country": "Italy"})
    assert league["slug"] == "serie-a-italy"

    renamed = leagues.update_league(league["league_id"], {"name": "Serie A TIM", "country": "Italy"})
    assert renamed["slug"] == "serie-a-tim-italy"

    logo_only = leagues.update_league(league["league_id"], {"logo_url": "x.png"})
    assert logo_only["slug"] == "serie-a-tim-italy"

    leagues.delete_league(league["league_id"])
    with pytest.raises(NotFoundError):
        leagues.get_league(league["league_id"])


def test_update_with_no_fields_is_rejected(db):
    with pytest.raises(ValidationError):
        TeamService(db).update_team(1, {})


def test_teams_are_listed_by_name(db):
    teams = TeamService(db)
    teams.create_team({"name": "Roma", "short_code": "ROM", "country": "Italy"})
    teams.create_team({"name": "Inter", "short_code": "INT", "country": "Italy"})
    assert [t["name"] for t in teams.list_teams()] == ["Inter", "Roma"]


def test_delete_missing_team_is_not_found(db):
    with pytest.raises(NotFoundError):
        TeamService(db).delete_team(42)


def test_storage_failure_is_wrapped(db):
    db.fail("teams", "select", code="42P01", message="relation does not exist")
    with pytest.raises(StorageError) as exc:
        TeamService(db).list_teams()
    assert exc.value.code == "42P01"
    assert exc.value.details == "relation does not exist"


# ---------- matches ----------

def test_create_match_applies_defaults_and_combines_time(db):
    match = MatchService(db).create_match(
        {"league_id": 1, "home_team_id": 10, "away_team_id": 11, "match_date": "2024-08-17", "match_time": "12:30"}
    )
    assert match["match_date"] == "2024-08-17T12:30"
    assert match["status"] == "scheduled"
    assert match["allow_draw"] is True
    assert match["match_type"] == "Normal"
    assert match["published"] is False
    assert match["match_timezone"] == "UTC"


def test_partial_match_update_keeps_other_fields(db, match_id):
    matches = MatchService(db)
    updated = matches.update_match(match_id, {"status": "finished", "home_score": 2, "away_score": 0, "venue": None})
    assert updated["status"] == "finished"
    assert updated["home_team_id"] == 10
    assert updated["match_date"] == "2024-05-01T15:00"


def test_list_matches_filters(db, match_id):
    db.seed(
        "matches",
        {"match_id": 101, "league_id": 2, "home_team_id": 11, "away_team_id": 10, "match_date": "2024-05-02T18:00", "status": "live"},
    )
    matches = MatchService(db)
    assert [m["match_id"] for m in matches.list_matches()] == [101, 100]
    assert [m["match_id"] for m in matches.list_matches(league_id=1)] == [100]
    assert [m["match_id"] for m in matches.list_matches(on_date="2024-05-02")] == [101]
    assert [m["match_id"] for m in matches.list_matches(status="scheduled")] == [100]
    with pytest.raises(ValidationError):
        matches.list_matches(on_date="May 2nd")


def test_get_missing_match(db):
    with pytest.raises(NotFoundError):
        MatchService(db).get_match(5)


def test_match_outcomes_default_then_upsert(db, match_id):
    matches = MatchService(db)
    assert matches.get_match_outcomes(match_id) == {
        "match_id": match_id, "home_win_prob": 0, "draw_prob": 0, "away_win_prob": 0,
    }
    matches.update_match_outcomes(match_id, {"home_win_prob": 50, "draw_prob": 30, "away_win_prob": 20})
    matches.update_match_outcomes(match_id, {"home_win_prob": 55, "draw_prob": 25, "away_win_prob": 20})
    rows = db.rows("match_outcomes")
    assert len(rows) == 1
    assert rows[0]["home_win_prob"] == 55


def test_match_outcomes_reject_negative(db, match_id):
    with pytest.raises(ValidationError):
        MatchService(db).update_match_outcomes(match_id, {"home_win_prob": -1, "draw_prob": 0, "away_win_prob": 0})


# ---------- predictions ----------

def test_prediction_edits_refresh_counts(db, votes, match_id):
    predictions = PredictionService(db, votes)
    row, _ = votes.vote_outcome(match_id, 1, "user", "Home")

    predictions.update_prediction(row["prediction_id"], "Draw")
    assert votes.get_combined_vote_counts(match_id)["draw_votes"] == 1

    predictions.delete_prediction(row["prediction_id"])
    assert votes.get_combined_vote_counts(match_id)["total_votes"] == 0
    with pytest.raises(NotFoundError):
        predictions.get_prediction(row["prediction_id"])


def test_update_prediction_validates_pick(db, votes, match_id):
    row, _ = votes.vote_outcome(match_id, 1, "user", "Home")
    with pytest.raises(ValidationError):
        PredictionService(db, votes).update_prediction(row["prediction_id"], "Nobody")


def test_list_predictions_filters_by_class_and_user(db, votes, match_id):
    votes.vote_outcome(match_id, 1, "user", "Home")
    votes.vote_outcome(match_id, 2, "user", "Away")
    votes.vote_outcome(match_id, 900, "admin", "Draw")
    predictions = PredictionService(db, votes)

    assert len(predictions.list_predictions(match_id=match_id)) == 2
    assert [p["predicted_winner"] for p in predictions.list_predictions(user_id=2)] == ["Away"]
    assert len(predictions.list_admin_votes(match_id)) == 1
