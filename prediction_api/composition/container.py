from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..ports.storage import StorageClient
from ..services.catalog_service import LeagueService, TeamService
from ..services.comment_service import CommentService
from ..services.match_service import MatchService
from ..services.prediction_service import PredictionService
from ..services.user_service import UserService
from ..services.vote_aggregation import VoteAggregationService

EXTENSION_KEY = "prediction_api"


@dataclass
class ServiceContainer:
    """Every service the routes use, all sharing one storage client."""

    client: StorageClient
    leagues: LeagueService
    teams: TeamService
    matches: MatchService
    votes: VoteAggregationService
    predictions: PredictionService
    comments: CommentService
    users: UserService


def build_container(client: StorageClient) -> ServiceContainer:
    votes = VoteAggregationService(client)
    return ServiceContainer(
        client=client,
        leagues=LeagueService(client),
        teams=TeamService(client),
        matches=MatchService(client),
        votes=votes,
        predictions=PredictionService(client, votes),
        comments=CommentService(client),
        users=UserService(client),
    )


def services() -> ServiceContainer:
    """The container attached to the running app."""
    return current_app.extensions[EXTENSION_KEY]
