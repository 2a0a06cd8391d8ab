# standings.py
# Standings aggregation: full recomputation from completed matches and the
# incremental apply/revert path that keeps stored team aggregates in sync.

import logging
from typing import List, Optional, Sequence, Tuple

from sqlmodel import SQLModel

from efootball_backend.core.database import JsonEntityStore, MATCH, TEAM
from efootball_backend.core.errors import StorageError
from efootball_backend.core.name_resolution import TeamResolver
from efootball_backend.core.saga import Saga
from efootball_backend.models import Match, MatchResult, Team

logger = logging.getLogger(__name__)


# =========================================
# SINGLE-SIDE AGGREGATE ARITHMETIC
# =========================================
def _outcome_field(scored: int, conceded: int) -> str:
    if scored > conceded:
        return "won"
    if scored < conceded:
        return "lost"
    return "drawn"


def add_side(team: Team, scored: int, conceded: int) -> Team:
    """Adds one match to a team's aggregates, seen from that team's side."""
    team.played += 1
    team.goals_for += scored
    team.goals_against += conceded
    field = _outcome_field(scored, conceded)
    setattr(team, field, getattr(team, field) + 1)
    return team


def remove_side(team: Team, scored: int, conceded: int) -> Team:
    """
    Exact inverse of add_side.
    Every counter floors at zero so inconsistent history never produces negatives.
    """
    team.played = max(0, team.played - 1)
    team.goals_for = max(0, team.goals_for - scored)
    team.goals_against = max(0, team.goals_against - conceded)
    field = _outcome_field(scored, conceded)
    setattr(team, field, max(0, getattr(team, field) - 1))
    return team


def apply_result(home: Team, away: Team, result: MatchResult) -> None:
    add_side(home, result.home_score, result.away_score)
    add_side(away, result.away_score, result.home_score)


def revert_result(home: Team, away: Team, result: MatchResult) -> None:
    remove_side(home, result.home_score, result.away_score)
    remove_side(away, result.away_score, result.home_score)


# =========================================
# FULL RECOMPUTATION
# =========================================
class StandingRow(SQLModel):
    position: int = 0
    team_id: Optional[int] = None
    team: str
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    goal_diff: int = 0
    points: int = 0


class SkippedMatch(SQLModel):
    match_id: Optional[int] = None
    home_team: str
    away_team: str
    reason: str


class StandingsTable(SQLModel):
    rows: List[StandingRow] = []
    skipped_matches: List[SkippedMatch] = []


def rank_rows(rows: Sequence[StandingRow]) -> List[StandingRow]:
    """
    Points desc, then goal difference desc.
    The sort is stable: rows equal on both keep their input (store) order.
    """
    ranked = sorted(rows, key=lambda r: (-r.points, -r.goal_diff))
    for position, row in enumerate(ranked, start=1):
        row.position = position
    return ranked


def compute_standings(teams: Sequence[Team], matches: Sequence[Match]) -> StandingsTable:
    """
    Builds the league table from scratch by replaying every completed match.
    Side-effect free: the stored team records are never touched.
    Matches whose teams cannot be resolved are skipped and reported.
    """
    resolver = TeamResolver(teams)
    fresh = {team.id: Team(id=team.id, name=team.name) for team in resolver.teams}
    skipped = []

    for match in matches:
        if not match.is_completed:
            continue

        home = resolver.resolve(match.home_team)
        away = resolver.resolve(match.away_team)
        reason = None
        if home is None or away is None:
            reason = "unresolvable team name"
        elif home.id == away.id:
            reason = "home and away resolve to the same team"
        if reason:
            logger.warning(
                f"Skipping match {match.id} ({match.home_team} vs {match.away_team}) in standings: {reason}"
            )
            skipped.append(SkippedMatch(
                match_id=match.id, home_team=match.home_team, away_team=match.away_team, reason=reason,
            ))
            continue

        apply_result(fresh[home.id], fresh[away.id], match.result())

    rows = [
        StandingRow(
            team_id=team.id,
            team=team.name,
            goal_diff=team.goal_diff,
            points=team.points,
            **team.stats(),
        )
        for team in fresh.values()
    ]
    return StandingsTable(rows=rank_rows(rows), skipped_matches=skipped)


# =========================================
# INCREMENTAL UPDATE (stored aggregates)
# =========================================
class StandingsService:
    """
    Applies and reverts results on the persisted team aggregates.
    Each team write is an atomic read-modify-write in the store, retried once on
    a storage error, and both teams of a result are locked for the whole update.
    """

    def __init__(self, store: JsonEntityStore):
        self.store = store

    # ---------------------------------------------
    # Reads
    # ---------------------------------------------
    def standings(self) -> StandingsTable:
        return compute_standings(self.store.list(TEAM), self.store.list(MATCH))

    def resolve_pair(self, result: MatchResult) -> Optional[Tuple[Team, Team]]:
        """Both teams of a result, or None (logged) when they cannot be resolved."""
        resolver = TeamResolver(self.store.list(TEAM))
        home = resolver.resolve(result.home_team)
        away = resolver.resolve(result.away_team)
        if home is None or away is None or home.id == away.id:
            logger.warning(
                f"Team aggregates not updated for {result.home_team} {result.home_score}-"
                f"{result.away_score} {result.away_team}: teams could not be resolved"
            )
            return None
        return home, away

    # ---------------------------------------------
    # Writes
    # ---------------------------------------------
    def _write_side(self, team_id: int, scored: int, conceded: int, revert: bool) -> Team:
        change = remove_side if revert else add_side
        for attempt in (1, 2):
            try:
                return self.store.mutate(TEAM, team_id, lambda t: change(t, scored, conceded))
            except StorageError as e:
                if attempt == 2:
                    raise
                logger.warning(f"Retrying aggregate write for team {team_id}: {e}")

    def _run(self, result: MatchResult, revert: bool, saga: Optional[Saga]) -> bool:
        pair = self.resolve_pair(result)
        if pair is None:
            return False
        home, away = pair
        verb = "revert" if revert else "apply"
        saga = saga or Saga(f"{verb} result")

        with self.store.entity_locks.hold(TEAM, home.id, away.id):
            saga.step(
                f"{verb} home team {home.name}",
                self._write_side, home.id, result.home_score, result.away_score, revert,
            )
            saga.step(
                f"{verb} away team {away.name}",
                self._write_side, away.id, result.away_score, result.home_score, revert,
            )

        logger.info(
            f"{'Reverted' if revert else 'Applied'} {home.name} {result.home_score}-"
            f"{result.away_score} {away.name}"
        )
        return True

    def apply_result(self, result: MatchResult, saga: Optional[Saga] = None) -> bool:
        """Adds a result to both teams' stored aggregates. False if it was skipped."""
        return self._run(result, revert=False, saga=saga)

    def revert_result(self, result: MatchResult, saga: Optional[Saga] = None) -> bool:
        """Removes a previously applied result. False if it was skipped."""
        return self._run(result, revert=True, saga=saga)

    def replace_result(self, old: MatchResult, new: MatchResult, saga: Optional[Saga] = None,
                       between=None) -> None:
        """
        Revert `old`, run `between` (e.g. the match overwrite), then apply `new`.
        All involved teams stay locked for the whole unit, and the revert is
        persisted before anything else happens.
        """
        saga = saga or Saga("replace result")
        team_ids = []
        for result in (old, new):
            pair = self.resolve_pair(result)
            if pair:
                team_ids.extend(t.id for t in pair)

        with self.store.entity_locks.hold(TEAM, *team_ids):
            self.revert_result(old, saga=saga)
            if between is not None:
                between()
            self.apply_result(new, saga=saga)

    # ---------------------------------------------
    # Consistency with recomputation
    # ---------------------------------------------
    def find_stale_teams(self) -> List[dict]:
        """Teams whose stored aggregates differ from a full recomputation."""
        teams = self.store.list(TEAM)
        table = compute_standings(teams, self.store.list(MATCH))
        computed = {row.team_id: row for row in table.rows}

        stale = []
        for team in teams:
            row = computed.get(team.id)
            expected = {field: getattr(row, field) for field in team.stats()}
            if team.stats() != expected:
                stale.append({"team_id": team.id, "team": team.name, "stored": team.stats(), "computed": expected})
        if stale:
            logger.warning(f"{len(stale)} team(s) have stale aggregates: {[s['team'] for s in stale]}")
        return stale

    def resync(self, team_ids: Optional[Sequence[int]] = None) -> List[dict]:
        """
        Overwrites stale stored aggregates with the recomputed values.
        Limited to `team_ids` when given.
        """
        stale = self.find_stale_teams()
        if team_ids is not None:
            stale = [entry for entry in stale if entry["team_id"] in team_ids]
        for entry in stale:
            with self.store.entity_locks.hold(TEAM, entry["team_id"]):
                self.store.update(TEAM, entry["team_id"], entry["computed"])
        if stale:
            logger.info(f"Resynced aggregates of {len(stale)} team(s) from completed matches")
        return stale
