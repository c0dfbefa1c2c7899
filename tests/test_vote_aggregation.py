import pytest

from prediction_api.domain.contracts import Outcome, VoteTally, VoterClass
from prediction_api.errors import NotFoundError, StorageError, ValidationError
from prediction_api.services.vote_aggregation import (
    reconcile_percentages,
    tally_outcomes,
    tally_scores,
)


def _cached(db, match_id, voter_class):
    rows = [
        row for row in db.rows("match_vote_counts")
        if row["match_id"] == match_id and row["voter_class"] == voter_class
    ]
    assert len(rows) <= 1
    return rows[0] if rows else None


# ---------- pure helpers ----------

def test_tally_outcomes_counts_each_row_and_skips_unknown():
    rows = [
        {"predicted_winner": "Home"},
        {"predicted_winner": "Home"},
        {"predicted_winner": "Away"},
        {"predicted_winner": "home"},
        {"predicted_winner": None},
    ]
    assert tally_outcomes(rows) == VoteTally(home=2, draw=0, away=1)


def test_tally_scores_buckets_by_implied_outcome():
    rows = [
        {"home_score": 2, "away_score": 1, "vote_count": 3},
        {"home_score": 0, "away_score": 0, "vote_count": 2},
        {"home_score": 1, "away_score": 3, "vote_count": None},
        {"home_score": 0, "away_score": 2, "vote_count": 4},
    ]
    assert tally_scores(rows) == VoteTally(home=3, draw=2, away=4)


@pytest.mark.parametrize(
    "tally, expected",
    [
        (VoteTally(1, 1, 1), {"home": 34, "draw": 33, "away": 33}),
        (VoteTally(3, 1, 1), {"home": 60, "draw": 20, "away": 20}),
        (VoteTally(2, 0, 1), {"home": 67, "draw": 0, "away": 33}),
        (VoteTally(1, 1, 0), {"home": 50, "draw": 50, "away": 0}),
        (VoteTally(1, 1, 6), {"home": 13, "draw": 13, "away": 74}),
        (VoteTally(1, 4, 4), {"home": 11, "draw": 44, "away": 45}),
        (VoteTally(0, 0, 5), {"home": 0, "draw": 0, "away": 100}),
    ],
)
def test_reconcile_percentages_sums_to_100(tally, expected):
    result = reconcile_percentages(tally)
    assert result == expected
    assert sum(result.values()) == 100


def test_reconcile_percentages_zero_votes():
    assert reconcile_percentages(VoteTally()) == {"home": 0, "draw": 0, "away": 0}


def test_outcome_from_scores():
    assert Outcome.from_scores(3, 1) is Outcome.HOME
    assert Outcome.from_scores(1, 1) is Outcome.DRAW
    assert Outcome.from_scores(0, 2) is Outcome.AWAY


# ---------- recompute ----------

def test_recompute_outcome_counts_keeps_classes_separate(db, votes, match_id):
    db.seed(
        "user_predictions",
        {"match_id": match_id, "user_id": 1, "predicted_winner": "Home"},
        {"match_id": match_id, "user_id": 2, "predicted_winner": "Draw"},
        {"match_id": 999, "user_id": 1, "predicted_winner": "Away"},
    )
    db.seed("admin_match_votes", {"match_id": match_id, "admin_id": 900, "predicted_winner": "Home"})

    combined = votes.recompute_outcome_counts(match_id)

    assert combined == {"match_id": match_id, "home_votes": 2, "draw_votes": 1, "away_votes": 0, "total_votes": 3}
    user_row = _cached(db, match_id, "user")
    admin_row = _cached(db, match_id, "admin")
    assert (user_row["home_votes"], user_row["draw_votes"], user_row["total_votes"]) == (1, 1, 2)
    assert (admin_row["home_votes"], admin_row["total_votes"]) == (1, 1)


def test_recompute_is_idempotent(db, votes, match_id):
    db.seed("user_predictions", {"match_id": match_id, "user_id": 1, "predicted_winner": "Away"})
    first = votes.recompute_outcome_counts(match_id)
    second = votes.recompute_outcome_counts(match_id)
    assert first == second
    assert len(db.rows("match_vote_counts")) == 2


def test_recompute_score_prediction_counts_sums_vote_counts(db, votes, match_id):
    db.seed(
        "score_predictions",
        {"match_id": match_id, "home_score": 2, "away_score": 1, "vote_count": 3},
        {"match_id": match_id, "home_score": 1, "away_score": 1, "vote_count": 1},
    )
    db.seed("admin_score_predictions", {"match_id": match_id, "home_score": 0, "away_score": 1, "vote_count": 2})

    combined = votes.recompute_score_prediction_counts(match_id)

    assert combined["home_votes"] == 3
    assert combined["draw_votes"] == 1
    assert combined["away_votes"] == 2
    assert combined["total_votes"] == 6


def test_cache_insert_race_is_retried_as_update(db, votes, match_id):
    db.seed("user_predictions", {"match_id": match_id, "user_id": 1, "predicted_winner": "Home"})

    def competing_writer(fake):
        fake.insert_rows(
            "match_vote_counts",
            {"match_id": match_id, "voter_class": "user", "home_votes": 0, "draw_votes": 0, "away_votes": 0, "total_votes": 0},
        )

    db.hooks[("match_vote_counts", "insert")] = competing_writer
    votes.recompute_outcome_counts(match_id)

    assert _cached(db, match_id, "user")["home_votes"] == 1


def test_cache_insert_other_failure_is_a_storage_error(db, votes, match_id):
    db.fail("match_vote_counts", "insert")
    with pytest.raises(StorageError):
        votes.recompute_outcome_counts(match_id)


# ---------- read path ----------

def test_combined_vote_counts_without_cache_is_all_zero(votes, match_id):
    counts = votes.get_combined_vote_counts(match_id)
    assert counts["total_votes"] == 0
    assert (counts["home_percentage"], counts["draw_percentage"], counts["away_percentage"]) == (0, 0, 0)
    assert counts["breakdown"]["user"]["total_votes"] == 0
    assert counts["breakdown"]["admin"]["total_votes"] == 0


def test_combined_vote_counts_sums_user_and_admin(db, votes, match_id):
    votes.vote_outcome(match_id, 1, VoterClass.USER, "Home")
    votes.vote_outcome(match_id, 2, VoterClass.USER, "Home")
    votes.vote_outcome(match_id, 900, VoterClass.ADMIN, "Away")

    counts = votes.get_combined_vote_counts(match_id)

    assert (counts["home_votes"], counts["draw_votes"], counts["away_votes"]) == (2, 0, 1)
    assert (counts["home_percentage"], counts["draw_percentage"], counts["away_percentage"]) == (67, 0, 33)
    assert counts["breakdown"]["user"]["home_votes"] == 2
    assert counts["breakdown"]["admin"]["away_votes"] == 1


def test_admin_and_user_votes_combine_into_one_breakdown(votes, match_id):
    votes.vote_outcome(match_id, 900, VoterClass.ADMIN, "Home")
    votes.vote_outcome(match_id, 1, VoterClass.USER, "Draw")
    votes.vote_outcome(match_id, 2, VoterClass.USER, "Home")

    counts = votes.get_combined_vote_counts(match_id)

    assert (counts["home_votes"], counts["draw_votes"], counts["away_votes"]) == (2, 1, 0)
    assert (counts["home_percentage"], counts["draw_percentage"], counts["away_percentage"]) == (67, 33, 0)
    assert counts["total_votes"] == 3


def test_read_path_does_not_recompute(db, votes, match_id):
    db.seed("user_predictions", {"match_id": match_id, "user_id": 1, "predicted_winner": "Home"})
    assert votes.get_combined_vote_counts(match_id)["total_votes"] == 0
    assert db.rows("match_vote_counts") == []


# ---------- outcome votes ----------

def test_user_revote_changes_the_existing_row(db, votes, match_id):
    row, created = votes.vote_outcome(match_id, 1, "user", "Home")
    assert created is True

    again, created = votes.vote_outcome(match_id, 1, "user", "Away")
    assert created is False
    assert again["prediction_id"] == row["prediction_id"]
    assert len(db.rows("user_predictions")) == 1

    counts = votes.get_combined_vote_counts(match_id)
    assert (counts["home_votes"], counts["away_votes"], counts["total_votes"]) == (0, 1, 1)


def test_admin_votes_append(db, votes, match_id):
    votes.vote_outcome(match_id, 900, VoterClass.ADMIN, "Draw")
    _, created = votes.vote_outcome(match_id, 900, VoterClass.ADMIN, "Draw")
    assert created is True
    assert len(db.rows("admin_match_votes")) == 2
    assert votes.get_combined_vote_counts(match_id)["draw_votes"] == 2


def test_invalid_pick_is_rejected_before_any_write(db, votes, match_id):
    with pytest.raises(ValidationError) as exc:
        votes.vote_outcome(match_id, 1, "user", "Win")
    assert "Must be one of: Home, Away, Draw" in exc.value.message
    assert db.statements == []


def test_invalid_voter_class_is_rejected(votes, match_id):
    with pytest.raises(ValidationError):
        votes.vote_outcome(match_id, 1, "moderator", "Home")


def test_refresh_failure_does_not_fail_the_vote(db, votes, match_id):
    db.fail("match_vote_counts", "select")

    row, created = votes.vote_outcome(match_id, 1, "user", "Home")

    assert created is True
    assert row["predicted_winner"] == "Home"
    assert len(db.rows("user_predictions")) == 1


# ---------- score predictions ----------

def test_first_score_vote_creates_the_scoreline(db, votes, match_id):
    result = votes.vote_score(match_id, 1, 2, 1)
    assert result["changed"] is True
    assert result["previous"] is None
    assert result["prediction"]["vote_count"] == 1
    assert db.rows("user_score_votes")[0]["home_score"] == 2


def test_repeating_the_same_score_is_a_noop(db, votes, match_id):
    votes.vote_score(match_id, 1, 2, 1)
    statements_before = len(db.statements)

    result = votes.vote_score(match_id, 1, 2, 1)

    assert result["changed"] is False
    assert result["prediction"]["vote_count"] == 1
    written = [op for _, op in db.statements[statements_before:] if op != "select"]
    assert written == []


def test_changing_score_moves_one_vote(db, votes, match_id):
    votes.vote_score(match_id, 1, 2, 1)
    votes.vote_score(match_id, 2, 2, 1)

    result = votes.vote_score(match_id, 1, 0, 0)

    assert result["previous"]["vote_count"] == 1
    assert result["prediction"]["vote_count"] == 1
    by_score = {(r["home_score"], r["away_score"]): r["vote_count"] for r in db.rows("score_predictions")}
    assert by_score == {(2, 1): 1, (0, 0): 1}

    counts = votes.get_combined_vote_counts(match_id)
    assert (counts["home_votes"], counts["draw_votes"]) == (1, 1)


def test_previous_score_count_never_goes_negative(db, votes, match_id):
    votes.vote_score(match_id, 1, 1, 0)
    for row in db.tables["score_predictions"]:
        row["vote_count"] = 0

    result = votes.vote_score(match_id, 1, 3, 3)

    assert result["previous"]["vote_count"] == 0


def test_set_score_prediction_count_creates_then_updates_baseline(db, votes, match_id):
    created = votes.set_score_prediction_count(match_id, 1, 0, 5)
    updated = votes.set_score_prediction_count(match_id, 1, 0, 7)

    assert updated["score_pred_id"] == created["score_pred_id"]
    assert db.rows("admin_score_predictions")[0]["vote_count"] == 7
    assert votes.get_combined_vote_counts(match_id)["breakdown"]["admin"]["home_votes"] == 7


@pytest.mark.parametrize("home_score, away_score", [(-2, 1), (1, "x"), (None, 0), (1.5, 0), (True, 0)])
def test_invalid_score_is_rejected_before_any_write(db, votes, match_id, home_score, away_score):
    with pytest.raises(ValidationError):
        votes.vote_score(match_id, 1, home_score, away_score)
    assert db.statements == []


@pytest.mark.parametrize(
    "home_score, away_score, vote_count",
    [(-1, 0, 3), (0, "2", 3), (1, 0, -1), (1, 0, "many")],
)
def test_invalid_score_baseline_is_rejected(db, votes, match_id, home_score, away_score, vote_count):
    with pytest.raises(ValidationError):
        votes.set_score_prediction_count(match_id, home_score, away_score, vote_count)
    assert db.rows("admin_score_predictions") == []


def test_set_score_prediction_count_unknown_id(votes, match_id):
    with pytest.raises(NotFoundError):
        votes.set_score_prediction_count(match_id, 1, 0, 5, score_pred_id=12345)


def test_list_score_predictions_orders_by_votes(db, votes, match_id):
    db.seed(
        "score_predictions",
        {"match_id": match_id, "home_score": 1, "away_score": 0, "vote_count": 1},
        {"match_id": match_id, "home_score": 2, "away_score": 2, "vote_count": 4},
    )
    rows = votes.list_score_predictions(match_id)
    assert [r["vote_count"] for r in rows] == [4, 1]


# ---------- maintenance ----------

def test_remove_all_votes_clears_ledgers_and_zeroes_cache(db, votes, match_id):
    votes.vote_outcome(match_id, 1, "user", "Home")
    votes.vote_outcome(match_id, 900, "admin", "Away")
    votes.vote_score(match_id, 1, 1, 0)

    removed = votes.remove_all_votes()

    assert removed["user_predictions"] == 1
    assert removed["admin_match_votes"] == 1
    for table in ("user_predictions", "admin_match_votes", "score_predictions", "user_score_votes"):
        assert db.rows(table) == []
    assert all(row["total_votes"] == 0 for row in db.rows("match_vote_counts"))
    assert votes.get_combined_vote_counts(match_id)["total_votes"] == 0
