from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..adapters.supabase_client import fetch_one, first_row, run_rows
from ..config import setup_logger
from ..domain.contracts import OutcomeVote, VoterClass
from ..errors import NotFoundError
from ..validators import validate_predicted_winner
from .base import BaseService
from .vote_aggregation import VoteAggregationService

log = setup_logger(__name__)

_MATCH_EMBED = (
    "*, match:matches!{table}_match_id_fkey("
    "*, home_team:teams!matches_home_team_id_fkey(name, short_code), "
    "away_team:teams!matches_away_team_id_fkey(name, short_code))"
)


class PredictionService(BaseService):
    """Outcome-vote ledger reads and edits; every edit refreshes the cache."""

    def __init__(self, client, votes: VoteAggregationService) -> None:
        super().__init__(client)
        self.votes = votes

    def list_predictions(
        self,
        match_id: Optional[int] = None,
        user_id: Optional[int] = None,
        voter_class: Optional[VoterClass] = None,
    ) -> List[Dict[str, Any]]:
        voter_class = voter_class or VoterClass.USER
        table = voter_class.outcome_table
        query = self.client.table(table).select(_MATCH_EMBED.format(table=table))
        if match_id is not None:
            query = query.eq("match_id", match_id)
        if user_id is not None:
            query = query.eq(voter_class.voter_column, user_id)
        date_column = "prediction_date" if voter_class is VoterClass.USER else "vote_date"
        return run_rows(query.order(date_column, desc=True), "Failed to fetch predictions")

    def list_admin_votes(self, match_id: Optional[int] = None) -> List[Dict[str, Any]]:
        query = self.client.table(VoterClass.ADMIN.outcome_table).select("*")
        if match_id is not None:
            query = query.eq("match_id", match_id)
        return run_rows(query, "Failed to fetch admin votes")

    def get_prediction(self, prediction_id: int) -> OutcomeVote:
        table = VoterClass.USER.outcome_table
        query = (
            self.client.table(table)
            .select(_MATCH_EMBED.format(table=table))
            .eq("prediction_id", prediction_id)
        )
        prediction = fetch_one(query, "Failed to fetch prediction")
        if prediction is None:
            raise NotFoundError("Prediction not found")
        return prediction

    def _existing(self, prediction_id: int) -> Dict[str, Any]:
        query = (
            self.client.table(VoterClass.USER.outcome_table)
            .select("prediction_id, match_id, user_id")
            .eq("prediction_id", prediction_id)
        )
        existing = fetch_one(query, "Failed to fetch prediction")
        if existing is None:
            raise NotFoundError("Prediction not found")
        return existing

    def update_prediction(self, prediction_id: int, predicted_winner: Any) -> Dict[str, Any]:
        outcome = validate_predicted_winner(predicted_winner)
        existing = self._existing(prediction_id)
        query = (
            self.client.table(VoterClass.USER.outcome_table)
            .update({"predicted_winner": outcome.value})
            .eq("prediction_id", prediction_id)
        )
        row = first_row(run_rows(query, "Failed to update prediction"))
        if row is None:
            raise NotFoundError("Prediction not found")
        self.votes.refresh_outcome_counts(existing["match_id"])
        return row

    def delete_prediction(self, prediction_id: int) -> None:
        existing = self._existing(prediction_id)
        self.delete(VoterClass.USER.outcome_table, prediction_id, "prediction_id")
        log.info("prediction_deleted id=%s match_id=%s", prediction_id, existing["match_id"])
        self.votes.refresh_outcome_counts(existing["match_id"])
