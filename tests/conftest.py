import os

# Cheap hashes for the auth tests; must be set before prediction_api.settings loads.
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest

from prediction_api.app import create_app
from prediction_api.services.user_service import generate_token
from prediction_api.services.vote_aggregation import VoteAggregationService

from fake_supabase import FakeSupabase


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def votes(db):
    return VoteAggregationService(db)


@pytest.fixture
def match_id(db):
    db.seed("leagues", {"league_id": 1, "name": "Premier League", "country": "England", "slug": "premier-league-england"})
    db.seed(
        "teams",
        {"team_id": 10, "name": "Arsenal", "short_code": "ARS", "country": "England"},
        {"team_id": 11, "name": "Chelsea", "short_code": "CHE", "country": "England"},
    )
    db.seed(
        "matches",
        {
            "match_id": 100,
            "league_id": 1,
            "home_team_id": 10,
            "away_team_id": 11,
            "match_date": "2024-05-01T15:00",
            "status": "scheduled",
        },
    )
    return 100


@pytest.fixture
def app(db):
    app = create_app(client=db)
    app.testing = True
    return app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


def _headers_for(db, user_id, email, user_type):
    db.seed("users", {"user_id": user_id, "name": email.split("@")[0], "email": email, "provider": "email", "type": user_type})
    token = generate_token({"user_id": user_id, "email": email, "type": user_type})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(db):
    return _headers_for(db, 1, "fan@example.com", "user")


@pytest.fixture
def other_user_headers(db):
    return _headers_for(db, 2, "rival@example.com", "user")


@pytest.fixture
def admin_headers(db):
    return _headers_for(db, 900, "admin@example.com", "admin")
