"""Schedule generation and fixture management."""
from collections import Counter
from datetime import date, timedelta

import pytest

from efootball_backend.core.database import MATCH, PENDING_RESULT, TEAM
from efootball_backend.core.errors import AmbiguousNameResolution, InsufficientTeams, ValidationFailed
from efootball_backend.models import MatchCreate, MatchStatus, Team
from efootball_backend.services.generate_fixtures import (
    build_double_round_robin,
    clear_season,
    create_match,
    group_by_matchday,
    regenerate_schedule,
)

from conftest import SEASON_START


def roster(*names):
    return [Team(id=i, name=name) for i, name in enumerate(names, start=1)]


class TestDoubleRoundRobin:
    def test_every_pair_plays_twice_with_swapped_venues(self):
        fixtures = build_double_round_robin(roster("A", "B", "C", "D"), SEASON_START, 2, 7, "20:00")

        assert len(fixtures) == 12
        ordered = Counter((m.home_team, m.away_team) for m in fixtures)
        assert all(count == 1 for count in ordered.values())
        unordered = Counter(frozenset((m.home_team, m.away_team)) for m in fixtures)
        assert len(unordered) == 6
        assert all(count == 2 for count in unordered.values())
        assert all(m.home_team != m.away_team for m in fixtures)

    @pytest.mark.parametrize("n", [2, 3, 5, 6])
    def test_fixture_count_is_n_times_n_minus_one(self, n):
        names = [f"Team {i}" for i in range(n)]
        fixtures = build_double_round_robin(roster(*names), SEASON_START, 3, 7, "20:00")
        assert len(fixtures) == n * (n - 1)

    def test_matchdays_are_packed_and_dated(self):
        fixtures = build_double_round_robin(roster("A", "B", "C", "D"), SEASON_START, 2, 7, "21:30")

        per_day = Counter(m.matchday for m in fixtures)
        assert sorted(per_day) == [1, 2, 3, 4, 5, 6]
        assert all(count == 2 for count in per_day.values())
        for m in fixtures:
            assert m.date == SEASON_START + timedelta(days=7 * (m.matchday - 1))
            assert m.time == "21:30"
            assert m.status == MatchStatus.SCHEDULED
            assert m.home_score is None and m.away_score is None

    def test_last_matchday_may_be_partial(self):
        fixtures = build_double_round_robin(roster("A", "B", "C"), SEASON_START, 4, 3, "20:00")
        per_day = Counter(m.matchday for m in fixtures)
        assert per_day == {1: 4, 2: 2}

    @pytest.mark.parametrize("names", [(), ("Lonely",)])
    def test_needs_two_teams(self, names):
        with pytest.raises(InsufficientTeams):
            build_double_round_robin(roster(*names), SEASON_START, 2, 7, "20:00")

    def test_rejects_bad_packing(self):
        with pytest.raises(ValidationFailed):
            build_double_round_robin(roster("A", "B"), SEASON_START, 0, 7, "20:00")
        with pytest.raises(ValidationFailed):
            build_double_round_robin(roster("A", "B"), SEASON_START, 2, -1, "20:00")


class TestScheduleManagement:
    def test_regenerate_replaces_existing_schedule(self, store, add_teams):
        add_teams("Alpha", "Bravo", "Charlie")
        first = regenerate_schedule(store, SEASON_START, 2, 7, "20:00")
        second = regenerate_schedule(store, date(2025, 9, 1), 2, 7, "20:00")

        stored = store.list(MATCH)
        assert len(first) == len(second) == len(stored) == 6
        assert {m.id for m in stored} == {m.id for m in second}
        assert all(m.date >= date(2025, 9, 1) for m in stored)

    def test_regenerate_drops_pending_results_of_removed_matches(self, store, add_teams, lifecycle, player):
        add_teams("Alpha", "Bravo")
        match = regenerate_schedule(store, SEASON_START, 1, 7, "20:00")[0]
        lifecycle.submit(player, match.id, 1, 0)

        regenerate_schedule(store, SEASON_START, 1, 7, "20:00")
        assert store.list(PENDING_RESULT) == []

    def test_regenerate_leaves_team_stats_alone(self, store, add_teams):
        alpha, _ = add_teams("Alpha", "Bravo")
        store.update(TEAM, alpha.id, {"played": 1, "won": 1, "goals_for": 2})
        regenerate_schedule(store, SEASON_START, 1, 7, "20:00")
        assert store.get(TEAM, alpha.id).won == 1

    def test_regenerate_with_one_team_keeps_old_schedule(self, store, add_teams):
        add_teams("Alpha", "Bravo")
        regenerate_schedule(store, SEASON_START, 1, 7, "20:00")
        store.delete_where(TEAM, lambda t: t.name == "Bravo")

        with pytest.raises(InsufficientTeams):
            regenerate_schedule(store, SEASON_START, 1, 7, "20:00")
        assert len(store.list(MATCH)) == 2

    def test_clear_season_resets_everything(self, store, add_teams, lifecycle, admin):
        add_teams("Alpha", "Bravo")
        matches = regenerate_schedule(store, SEASON_START, 1, 7, "20:00")
        lifecycle.submit(admin, matches[0].id, 3, 0)

        summary = clear_season(store)

        assert summary == {"matches_deleted": 2, "results_deleted": 1, "teams_reset": 2}
        assert store.list(MATCH) == []
        assert all(t.played == 0 and t.won == 0 and t.goals_for == 0 for t in store.list(TEAM))

    def test_create_match_stores_resolved_names(self, store, add_teams):
        add_teams("Alpha", "Bravo")
        match = create_match(store, MatchCreate(
            home_team="alpha (captain)", away_team="Bravo", date=SEASON_START, matchday=3,
        ))
        assert match.home_team == "Alpha"
        assert match.away_team == "Bravo"
        assert store.get(MATCH, match.id).matchday == 3

    def test_create_match_rejects_same_or_unknown_team(self, store, add_teams):
        add_teams("Alpha", "Bravo")
        with pytest.raises(ValidationFailed):
            create_match(store, MatchCreate(home_team="Alpha", away_team="alpha", date=SEASON_START))
        with pytest.raises(AmbiguousNameResolution):
            create_match(store, MatchCreate(home_team="Alpha", away_team="Zulu", date=SEASON_START))

    def test_group_by_matchday(self):
        fixtures = build_double_round_robin(roster("A", "B", "C"), SEASON_START, 2, 7, "20:00")
        groups = group_by_matchday(fixtures)

        assert [g["matchday"] for g in groups] == [1, 2, 3]
        assert all(len(g["matches"]) == 2 for g in groups)
        assert groups[1]["date"] == SEASON_START + timedelta(days=7)
        assert all(g["completed"] == 0 for g in groups)
