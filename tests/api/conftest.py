"""API fixtures: the app wired to the seeded temporary database."""

import pytest
from fastapi.testclient import TestClient

from fitleague.api import deps
from fitleague.api.middleware.rate_limit import limiter
from fitleague.main import app
from fitleague.services.auth_service import get_auth_service


@pytest.fixture
def client(submission_service, activity_service, submission_repo, league_repo):
    """TestClient whose services point at the seeded league database."""
    app.dependency_overrides[deps.get_submission_service] = lambda: submission_service
    app.dependency_overrides[deps.get_activity_config_service] = lambda: activity_service
    app.dependency_overrides[deps.get_submission_repo] = lambda: submission_repo
    app.dependency_overrides[deps.get_league_repo] = lambda: league_repo
    limiter.enabled = False

    yield TestClient(app)

    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Build bearer headers for a user."""
    def _headers(user_id):
        token = get_auth_service().create_access_token(user_id, email=f"{user_id}@example.com")
        return {"Authorization": f"Bearer {token}"}
    return _headers
