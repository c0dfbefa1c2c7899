"""
Vote aggregation for match outcomes and score predictions.

Two ledgers exist per voteable dimension, one per VoterClass:

  outcome votes      user_predictions        / admin_match_votes
  score predictions  score_predictions       / admin_score_predictions

Outcome ledgers hold one row per cast vote. Score ledgers hold one row per
distinct scoreline with a running `vote_count`.

Every write to a ledger is followed by a full recompute of the cached
`match_vote_counts` rows for that match (one row per VoterClass). The cache is
a pure function of the ledgers at recompute time; readers sum the per-class
rows and derive percentages without recomputing. A failed refresh is logged
and swallowed so the vote itself still counts as recorded.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from postgrest.exceptions import APIError as PostgrestError

from ..adapters.supabase_client import first_row, run_rows
from ..config import setup_logger
from ..constants import (
    ADMIN_MATCH_VOTES_TABLE,
    ADMIN_SCORE_PREDICTIONS_TABLE,
    MATCH_VOTE_COUNTS_TABLE,
    SCORE_PREDICTIONS_TABLE,
    USER_PREDICTIONS_TABLE,
    USER_SCORE_VOTES_TABLE,
)
from ..domain.contracts import CombinedVoteCounts, Outcome, ScorePrediction, VoteCounts, VoteTally, VoterClass
from ..errors import NotFoundError, StorageError, is_unique_violation
from ..validators import validate_predicted_winner, validate_scores, validate_vote_count, validate_voter_class
from .base import BaseService

log = setup_logger(__name__)

# Tie-break order when the rounding correction picks a bucket.
_CORRECTION_ORDER = ("home", "away", "draw")


def tally_outcomes(rows: Iterable[Dict[str, Any]]) -> VoteTally:
    """Count one vote per ledger row by its `predicted_winner`."""
    tally = VoteTally()
    for row in rows:
        outcome = Outcome.parse(row.get("predicted_winner"))
        if outcome is not None:
            tally.add(outcome)
    return tally


def tally_scores(rows: Iterable[Dict[str, Any]]) -> VoteTally:
    """Sum `vote_count` per scoreline into the outcome its scores imply."""
    tally = VoteTally()
    for row in rows:
        home_score, away_score = row.get("home_score"), row.get("away_score")
        if home_score is None or away_score is None:
            continue
        tally.add(Outcome.from_scores(home_score, away_score), int(row.get("vote_count") or 0))
    return tally


def _rounded_share(votes: int, total: int) -> int:
    # Half-up rounding of 100 * votes / total in integer arithmetic.
    return (200 * votes + total) // (2 * total)


def reconcile_percentages(tally: VoteTally) -> Dict[str, int]:
    """Per-bucket percentages that sum to exactly 100 when any votes exist.

    Each share is rounded on its own; the leftover (`100 - sum`) goes to the
    bucket with the most votes, ties resolved home, away, draw.
    """
    total = tally.total
    if total == 0:
        return {"home": 0, "draw": 0, "away": 0}

    counts = {"home": tally.home, "draw": tally.draw, "away": tally.away}
    percentages = {bucket: _rounded_share(votes, total) for bucket, votes in counts.items()}
    correction = 100 - sum(percentages.values())
    if correction:
        largest = max(_CORRECTION_ORDER, key=lambda bucket: counts[bucket])
        percentages[largest] += correction
    return percentages


class VoteAggregationService(BaseService):
    """Ledger writes plus the cached per-match tallies derived from them."""

    # ---------- cache maintenance ----------

    def _ledger_rows(self, table: str, match_id: int, columns: str) -> List[Dict[str, Any]]:
        query = self.client.table(table).select(columns).eq("match_id", match_id)
        return run_rows(query, f"Failed to fetch {table}")

    def _cached_row(self, match_id: int, voter_class: VoterClass) -> Optional[VoteCounts]:
        query = (
            self.client.table(MATCH_VOTE_COUNTS_TABLE)
            .select("*")
            .eq("match_id", match_id)
            .eq("voter_class", voter_class.value)
            .limit(1)
        )
        return first_row(run_rows(query, "Failed to fetch match vote counts"))

    def _update_cached_row(self, match_id: int, voter_class: VoterClass, tally: VoteTally) -> Dict[str, Any]:
        query = (
            self.client.table(MATCH_VOTE_COUNTS_TABLE)
            .update(tally.as_row())
            .eq("match_id", match_id)
            .eq("voter_class", voter_class.value)
        )
        rows = run_rows(query, "Failed to update match vote counts")
        return rows[0] if rows else {"match_id": match_id, "voter_class": voter_class.value, **tally.as_row()}

    def _upsert_cached_row(self, match_id: int, voter_class: VoterClass, tally: VoteTally) -> Dict[str, Any]:
        if self._cached_row(match_id, voter_class) is not None:
            return self._update_cached_row(match_id, voter_class, tally)

        row = {"match_id": match_id, "voter_class": voter_class.value, **tally.as_row()}
        try:
            inserted = self.client.table(MATCH_VOTE_COUNTS_TABLE).insert(row).execute().data
        except PostgrestError as exc:
            if not is_unique_violation(exc):
                raise StorageError.wrap("Failed to create match vote counts", exc) from exc
            # A concurrent recompute created the row between our read and insert.
            log.info("vote_counts_insert_race match_id=%s class=%s", match_id, voter_class.value)
            return self._update_cached_row(match_id, voter_class, tally)
        return first_row(inserted) or row

    def _store_tallies(self, match_id: int, tallies: Dict[VoterClass, VoteTally]) -> Dict[str, Any]:
        for voter_class, tally in tallies.items():
            self._upsert_cached_row(match_id, voter_class, tally)
        combined = VoteTally.sum(tallies.values())
        log.debug("vote_counts_recomputed match_id=%s totals=%s", match_id, combined.as_row())
        return {"match_id": match_id, **combined.as_row()}

    def recompute_outcome_counts(self, match_id: int) -> Dict[str, Any]:
        """Rebuild the cached tallies from both outcome-vote ledgers."""
        tallies = {
            voter_class: tally_outcomes(
                self._ledger_rows(voter_class.outcome_table, match_id, "predicted_winner")
            )
            for voter_class in VoterClass
        }
        return self._store_tallies(match_id, tallies)

    def recompute_score_prediction_counts(self, match_id: int) -> Dict[str, Any]:
        """Rebuild the cached tallies from both score-prediction ledgers."""
        tallies = {
            voter_class: tally_scores(
                self._ledger_rows(voter_class.score_table, match_id, "home_score, away_score, vote_count")
            )
            for voter_class in VoterClass
        }
        return self._store_tallies(match_id, tallies)

    def refresh_outcome_counts(self, match_id: int) -> Optional[Dict[str, Any]]:
        try:
            return self.recompute_outcome_counts(match_id)
        except Exception:
            log.exception("vote_counts_refresh_failed source=outcomes match_id=%s", match_id)
            return None

    def refresh_score_prediction_counts(self, match_id: int) -> Optional[Dict[str, Any]]:
        try:
            return self.recompute_score_prediction_counts(match_id)
        except Exception:
            log.exception("vote_counts_refresh_failed source=score_predictions match_id=%s", match_id)
            return None

    # ---------- read path ----------

    def get_combined_vote_counts(self, match_id: int) -> CombinedVoteCounts:
        breakdown = {
            voter_class: VoteTally.from_row(self._cached_row(match_id, voter_class))
            for voter_class in VoterClass
        }
        combined = VoteTally.sum(breakdown.values())
        percentages = reconcile_percentages(combined)
        return {
            "match_id": match_id,
            **combined.as_row(),
            "home_percentage": percentages["home"],
            "draw_percentage": percentages["draw"],
            "away_percentage": percentages["away"],
            "breakdown": {voter_class.value: tally.as_row() for voter_class, tally in breakdown.items()},
        }

    def list_score_predictions(
        self, match_id: int, voter_class: VoterClass = VoterClass.USER
    ) -> List[ScorePrediction]:
        query = (
            self.client.table(voter_class.score_table)
            .select("*")
            .eq("match_id", match_id)
            .order("vote_count", desc=True)
        )
        return run_rows(query, "Failed to fetch score predictions")

    # ---------- outcome votes ----------

    def vote_outcome(
        self,
        match_id: int,
        voter_id: int,
        voter_class: VoterClass | str,
        predicted_winner: Any,
    ) -> Tuple[Dict[str, Any], bool]:
        """Record a Home/Draw/Away pick. Returns `(ledger_row, created)`.

        Users hold one vote per match, changed in place on re-vote. Admins
        append a new row on every call.
        """
        outcome = validate_predicted_winner(predicted_winner)
        if not isinstance(voter_class, VoterClass):
            voter_class = validate_voter_class(voter_class)

        table = voter_class.outcome_table
        existing = None
        if voter_class is VoterClass.USER:
            query = (
                self.client.table(table)
                .select("*")
                .eq("match_id", match_id)
                .eq(voter_class.voter_column, voter_id)
                .limit(1)
            )
            existing = first_row(run_rows(query, "Failed to fetch predictions"))

        if existing is not None:
            query = (
                self.client.table(table)
                .update({"predicted_winner": outcome.value})
                .eq(voter_class.outcome_pk, existing[voter_class.outcome_pk])
            )
            row = first_row(run_rows(query, "Failed to update prediction")) or {
                **existing,
                "predicted_winner": outcome.value,
            }
        else:
            payload = {
                voter_class.voter_column: voter_id,
                "match_id": match_id,
                "predicted_winner": outcome.value,
            }
            row = first_row(run_rows(self.client.table(table).insert(payload), "Failed to create prediction")) or payload

        self.refresh_outcome_counts(match_id)
        return row, existing is None

    # ---------- score predictions ----------

    def _find_score_row(
        self, voter_class: VoterClass, match_id: int, home_score: int, away_score: int
    ) -> Optional[Dict[str, Any]]:
        query = (
            self.client.table(voter_class.score_table)
            .select("*")
            .eq("match_id", match_id)
            .eq("home_score", home_score)
            .eq("away_score", away_score)
            .limit(1)
        )
        return first_row(run_rows(query, "Failed to fetch score predictions"))

    def _adjust_score_count(
        self,
        voter_class: VoterClass,
        match_id: int,
        home_score: int,
        away_score: int,
        delta: int,
    ) -> Optional[Dict[str, Any]]:
        table = voter_class.score_table
        row = self._find_score_row(voter_class, match_id, home_score, away_score)
        if row is None:
            if delta <= 0:
                return None
            payload = {"match_id": match_id, "home_score": home_score, "away_score": away_score, "vote_count": delta}
            return first_row(run_rows(self.client.table(table).insert(payload), "Failed to create score prediction")) or payload

        vote_count = max(0, int(row.get("vote_count") or 0) + delta)
        query = self.client.table(table).update({"vote_count": vote_count}).eq("score_pred_id", row["score_pred_id"])
        return first_row(run_rows(query, "Failed to update score prediction")) or {**row, "vote_count": vote_count}

    def vote_score(self, match_id: int, voter_id: int, home_score: int, away_score: int) -> Dict[str, Any]:
        """Move a user's single score pick for a match to `home_score-away_score`.

        Re-voting the current pick is a no-op. Otherwise the previous scoreline
        loses one vote (never below zero) and the new one gains one.
        """
        home_score, away_score = validate_scores(home_score, away_score)
        query = (
            self.client.table(USER_SCORE_VOTES_TABLE)
            .select("*")
            .eq("match_id", match_id)
            .eq("user_id", voter_id)
            .limit(1)
        )
        current_pick = first_row(run_rows(query, "Failed to fetch score votes"))

        if (
            current_pick is not None
            and current_pick.get("home_score") == home_score
            and current_pick.get("away_score") == away_score
        ):
            prediction = self._find_score_row(VoterClass.USER, match_id, home_score, away_score)
            return {"prediction": prediction, "previous": None, "changed": False}

        previous = None
        if current_pick is not None:
            previous = self._adjust_score_count(
                VoterClass.USER, match_id, current_pick["home_score"], current_pick["away_score"], -1
            )
        prediction = self._adjust_score_count(VoterClass.USER, match_id, home_score, away_score, 1)

        pick = {"home_score": home_score, "away_score": away_score}
        if current_pick is not None:
            query = self.client.table(USER_SCORE_VOTES_TABLE).update(pick).eq("score_vote_id", current_pick["score_vote_id"])
            run_rows(query, "Failed to update score vote")
        else:
            payload = {"match_id": match_id, "user_id": voter_id, **pick}
            run_rows(self.client.table(USER_SCORE_VOTES_TABLE).insert(payload), "Failed to create score vote")

        self.refresh_score_prediction_counts(match_id)
        return {"prediction": prediction, "previous": previous, "changed": True}

    def set_score_prediction_count(
        self,
        match_id: int,
        home_score: int,
        away_score: int,
        vote_count: int,
        voter_class: VoterClass = VoterClass.ADMIN,
        score_pred_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Set a scoreline's vote_count directly (admin baseline maintenance)."""
        home_score, away_score = validate_scores(home_score, away_score)
        vote_count = validate_vote_count(vote_count)
        table = voter_class.score_table
        values = {"home_score": home_score, "away_score": away_score, "vote_count": vote_count}

        if score_pred_id is not None:
            query = self.client.table(table).update(values).eq("score_pred_id", score_pred_id).eq("match_id", match_id)
            row = first_row(run_rows(query, "Failed to update score prediction"))
            if row is None:
                raise NotFoundError("Score prediction not found")
        else:
            existing = self._find_score_row(voter_class, match_id, home_score, away_score)
            if existing is not None:
                query = self.client.table(table).update(values).eq("score_pred_id", existing["score_pred_id"])
                row = first_row(run_rows(query, "Failed to update score prediction")) or {**existing, **values}
            else:
                payload = {"match_id": match_id, **values}
                row = first_row(run_rows(self.client.table(table).insert(payload), "Failed to create score prediction")) or payload

        self.refresh_score_prediction_counts(match_id)
        return row

    # ---------- maintenance ----------

    def remove_all_votes(self) -> Dict[str, int]:
        """Empty every ledger and zero every cached tally."""
        ledgers = (
            (USER_PREDICTIONS_TABLE, "prediction_id"),
            (ADMIN_MATCH_VOTES_TABLE, "vote_id"),
            (SCORE_PREDICTIONS_TABLE, "score_pred_id"),
            (ADMIN_SCORE_PREDICTIONS_TABLE, "score_pred_id"),
            (USER_SCORE_VOTES_TABLE, "score_vote_id"),
        )
        removed: Dict[str, int] = {}
        for table, pk in ledgers:
            # PostgREST refuses unfiltered deletes; neq on the key matches every row.
            rows = run_rows(self.client.table(table).delete().neq(pk, 0), f"Failed to delete {table}")
            removed[table] = len(rows)

        query = self.client.table(MATCH_VOTE_COUNTS_TABLE).update(VoteTally().as_row()).neq("vote_id", 0)
        removed[MATCH_VOTE_COUNTS_TABLE] = len(run_rows(query, "Failed to reset match vote counts"))
        log.warning("all_votes_removed counts=%s", removed)
        return removed
