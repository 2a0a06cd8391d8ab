"""Shared fixtures: a throwaway JSON store per test and a TestClient bound to it."""
from datetime import date

import pytest
from fastapi.testclient import TestClient

from efootball_backend.core.database import JsonEntityStore, TEAM, USER, get_store
from efootball_backend.core.dependencies import get_evidence_store
from efootball_backend.models import Team, User, UserRole
from efootball_backend.services.evidence import EvidenceStore
from efootball_backend.services.result_lifecycle import ResultLifecycle

SEASON_START = date(2025, 3, 1)


@pytest.fixture
def store(tmp_path):
    return JsonEntityStore(str(tmp_path / "data"), lock_timeout=2)


@pytest.fixture
def evidence(tmp_path):
    return EvidenceStore(str(tmp_path / "evidence"), max_bytes=1024 * 1024)


@pytest.fixture
def add_teams(store):
    """Creates bare teams (no owner) in the given order."""
    def _add(*names):
        return [store.create(TEAM, Team(name=name)) for name in names]
    return _add


@pytest.fixture
def make_user(store):
    """Creates a user record directly, skipping password hashing."""
    def _make(username, role=UserRole.USER, team_name=None):
        return store.create(USER, User(
            username=username, password_hash="not-a-real-hash", team_name=team_name, role=role,
        ))
    return _make


@pytest.fixture
def admin(make_user):
    return make_user("league_admin", role=UserRole.ADMIN)


@pytest.fixture
def player(make_user):
    return make_user("player_one", team_name="Alpha")


@pytest.fixture
def lifecycle(store, evidence):
    return ResultLifecycle(store, evidence=evidence)


@pytest.fixture
def client(store, evidence):
    """
    TestClient without the startup hook: the app's store and evidence
    dependencies are pointed at the per-test directories instead.
    """
    from efootball_backend.main import app
    from efootball_backend.seed.seed_all import seed_all

    seed_all(store)
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_evidence_store] = lambda: evidence
    yield TestClient(app)
    app.dependency_overrides.clear()
