# generate_fixtures.py
# Service for generating the league schedule (double round-robin) and managing the fixture list.

import logging
from datetime import date, timedelta
from typing import Dict, List, Sequence

from efootball_backend.core.database import JsonEntityStore, MATCH, PENDING_RESULT, TEAM
from efootball_backend.core.errors import InsufficientTeams, ValidationFailed
from efootball_backend.core.name_resolution import TeamResolver
from efootball_backend.models import Match, MatchCreate, MatchStatus, ResultStatus, Team, ZERO_STATS

logger = logging.getLogger(__name__)


def build_double_round_robin(
    teams: Sequence[Team],
    start_date: date,
    matches_per_matchday: int,
    interval_days: int,
    kickoff_time: str,
) -> List[Match]:
    """
    Builds (without saving) the fixture list for a full season.
    - Every ordered pair (home, away) of distinct teams plays once: n * (n - 1) fixtures
    - Fixtures are packed into matchdays of `matches_per_matchday`
    - Each new matchday is `interval_days` after the previous one
    """
    if len(teams) < 2:
        raise InsufficientTeams(len(teams))
    if matches_per_matchday < 1:
        raise ValidationFailed("matches_per_matchday must be at least 1.")
    if interval_days < 0:
        raise ValidationFailed("interval_days cannot be negative.")

    # =====================================
    # PAIRINGS
    # =====================================
    pairings = [
        (home.name, away.name)
        for i, home in enumerate(teams)
        for j, away in enumerate(teams)
        if i != j
    ]

    # =====================================
    # ASSIGN MATCHDAYS AND DATES
    # =====================================
    fixtures = []
    matchday = 1
    in_current_day = 0
    current_date = start_date

    for home_name, away_name in pairings:
        fixtures.append(Match(
            home_team=home_name,
            away_team=away_name,
            date=current_date,
            time=kickoff_time,
            matchday=matchday,
            status=MatchStatus.SCHEDULED,
        ))
        in_current_day += 1

        # Matchday full -> next matchday, next date
        if in_current_day >= matches_per_matchday:
            matchday += 1
            in_current_day = 0
            current_date += timedelta(days=interval_days)

    return fixtures


def regenerate_schedule(
    store: JsonEntityStore,
    start_date: date,
    matches_per_matchday: int,
    interval_days: int,
    kickoff_time: str,
) -> List[Match]:
    """
    Replaces the whole schedule with a freshly generated double round-robin.
    Team aggregates are NOT reset here (see clear_season for that).
    """
    teams = store.list(TEAM)
    fixtures = build_double_round_robin(teams, start_date, matches_per_matchday, interval_days, kickoff_time)

    # ✅ Clear existing fixtures first
    removed = store.delete_where(MATCH, lambda m: True)
    removed_ids = {m.id for m in removed}
    orphaned = store.delete_where(
        PENDING_RESULT,
        lambda r: r.match_id in removed_ids and r.status == ResultStatus.PENDING,
    )
    if removed:
        logger.info(f"Deleted {len(removed)} existing matches before regenerating the schedule")
    if orphaned:
        logger.warning(f"Dropped {len(orphaned)} pending results whose match was replaced")

    created = store.create_many(MATCH, fixtures)
    matchdays = created[-1].matchday if created else 0
    logger.info(
        f"✅ Schedule generated for {len(teams)} teams: {len(created)} matches "
        f"(expected {len(teams) * (len(teams) - 1)}) across {matchdays} matchdays"
    )
    return created


def create_match(store: JsonEntityStore, data: MatchCreate) -> Match:
    """Manually adds a single scheduled fixture (admin action)."""
    if data.home_team == data.away_team:
        raise ValidationFailed("Home and away team must be different.")

    resolver = TeamResolver(store.list(TEAM))
    home = resolver.resolve_strict(data.home_team)
    away = resolver.resolve_strict(data.away_team)
    if home.id == away.id:
        raise ValidationFailed("Home and away team must be different.")

    match = Match(
        home_team=home.name,
        away_team=away.name,
        date=data.date,
        time=data.time,
        matchday=data.matchday,
        status=MatchStatus.SCHEDULED,
    )
    created = store.create(MATCH, match)
    logger.info(f"Match {created.id} created: {home.name} vs {away.name} (Matchday {created.matchday})")
    return created


def clear_season(store: JsonEntityStore) -> Dict[str, int]:
    """
    Deletes every match and pending result and resets all team aggregates to zero.
    """
    matches = store.delete_where(MATCH, lambda m: True)
    results = store.delete_where(PENDING_RESULT, lambda r: True)

    teams = store.list(TEAM)
    for team in teams:
        with store.entity_locks.hold(TEAM, team.id):
            store.update(TEAM, team.id, dict(ZERO_STATS))

    logger.info(
        f"Season cleared: {len(matches)} matches, {len(results)} results removed, "
        f"{len(teams)} teams reset"
    )
    return {"matches_deleted": len(matches), "results_deleted": len(results), "teams_reset": len(teams)}


def group_by_matchday(matches: Sequence[Match]) -> List[dict]:
    """Groups fixtures per matchday, ordered by matchday then date/time."""
    grouped: Dict[int, List[Match]] = {}
    for match in sorted(matches, key=lambda m: (m.matchday, m.date, m.time, m.id or 0)):
        grouped.setdefault(match.matchday, []).append(match)

    return [
        {
            "matchday": matchday,
            "date": day_matches[0].date,
            "matches": day_matches,
            "completed": sum(1 for m in day_matches if m.is_completed),
        }
        for matchday, day_matches in grouped.items()
    ]
