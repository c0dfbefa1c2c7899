from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, TypedDict, NotRequired

from ..constants import (
    ADMIN_MATCH_VOTES_TABLE,
    ADMIN_SCORE_PREDICTIONS_TABLE,
    SCORE_PREDICTIONS_TABLE,
    USER_PREDICTIONS_TABLE,
)


class Outcome(str, Enum):
    HOME = "Home"
    DRAW = "Draw"
    AWAY = "Away"

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(member.value for member in cls)

    @classmethod
    def parse(cls, raw: Any) -> Optional["Outcome"]:
        try:
            return cls(raw)
        except ValueError:
            return None

    @classmethod
    def from_scores(cls, home_score: int, away_score: int) -> "Outcome":
        if home_score > away_score:
            return cls.HOME
        if away_score > home_score:
            return cls.AWAY
        return cls.DRAW


class VoterClass(str, Enum):
    """The two independently tracked vote sources summed at read time."""

    USER = "user"
    ADMIN = "admin"

    @property
    def outcome_table(self) -> str:
        return USER_PREDICTIONS_TABLE if self is VoterClass.USER else ADMIN_MATCH_VOTES_TABLE

    @property
    def voter_column(self) -> str:
        return "user_id" if self is VoterClass.USER else "admin_id"

    @property
    def outcome_pk(self) -> str:
        return "prediction_id" if self is VoterClass.USER else "vote_id"

    @property
    def score_table(self) -> str:
        return SCORE_PREDICTIONS_TABLE if self is VoterClass.USER else ADMIN_SCORE_PREDICTIONS_TABLE

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(member.value for member in cls)


@dataclass
class VoteTally:
    home: int = 0
    draw: int = 0
    away: int = 0

    @property
    def total(self) -> int:
        return self.home + self.draw + self.away

    def add(self, outcome: Outcome, count: int = 1) -> None:
        if outcome is Outcome.HOME:
            self.home += count
        elif outcome is Outcome.DRAW:
            self.draw += count
        else:
            self.away += count

    def __add__(self, other: "VoteTally") -> "VoteTally":
        return VoteTally(self.home + other.home, self.draw + other.draw, self.away + other.away)

    def as_row(self) -> Dict[str, int]:
        return {
            "home_votes": self.home,
            "draw_votes": self.draw,
            "away_votes": self.away,
            "total_votes": self.total,
        }

    @classmethod
    def from_row(cls, row: Optional[Dict[str, Any]]) -> "VoteTally":
        if not row:
            return cls()
        return cls(
            int(row.get("home_votes") or 0),
            int(row.get("draw_votes") or 0),
            int(row.get("away_votes") or 0),
        )

    @classmethod
    def sum(cls, tallies: Iterable["VoteTally"]) -> "VoteTally":
        result = cls()
        for tally in tallies:
            result = result + tally
        return result


class League(TypedDict):
    league_id: int
    name: str
    country: str
    slug: str
    logo_url: NotRequired[Optional[str]]


class Team(TypedDict):
    team_id: int
    name: str
    short_code: str
    country: str
    logo_url: NotRequired[Optional[str]]
    team_type: NotRequired[str]        # "club" | "country"


class Match(TypedDict):
    match_id: int
    league_id: int
    home_team_id: int
    away_team_id: int
    match_date: str
    venue: NotRequired[Optional[str]]
    status: str                        # "scheduled" | "live" | "finished" | "postponed"
    home_score: NotRequired[Optional[int]]
    away_score: NotRequired[Optional[int]]
    allow_draw: NotRequired[bool]
    match_timezone: NotRequired[str]
    big_match: NotRequired[bool]
    derby: NotRequired[bool]
    match_type: NotRequired[str]
    published: NotRequired[bool]


class MatchOutcome(TypedDict):
    match_id: int
    home_win_prob: float
    draw_prob: float
    away_win_prob: float


class OutcomeVote(TypedDict):
    match_id: int
    predicted_winner: str
    prediction_id: NotRequired[int]    # user ledger
    user_id: NotRequired[int]
    vote_id: NotRequired[int]          # admin ledger
    admin_id: NotRequired[int]


class ScorePrediction(TypedDict):
    score_pred_id: int
    match_id: int
    home_score: int
    away_score: int
    vote_count: int


class VoteCounts(TypedDict):
    match_id: int
    voter_class: str
    home_votes: int
    draw_votes: int
    away_votes: int
    total_votes: int


class CombinedVoteCounts(TypedDict):
    match_id: int
    home_votes: int
    draw_votes: int
    away_votes: int
    total_votes: int
    home_percentage: int
    draw_percentage: int
    away_percentage: int
    breakdown: Dict[str, Dict[str, int]]


class Comment(TypedDict):
    comment_id: int
    match_id: int
    user_id: int
    comment_text: str
    parent_comment_id: Optional[int]
    timestamp: str
    reply_count: NotRequired[int]
    likes: NotRequired[int]
    dislikes: NotRequired[int]
    user: NotRequired[Optional[Dict[str, Any]]]


class User(TypedDict):
    user_id: int
    name: str
    email: str
    provider: str
    type: str                          # "user" | "admin" | "seed"
    avatar_url: NotRequired[Optional[str]]
    favorite_team_id: NotRequired[Optional[int]]
