"""
Team name resolution.

Matches and pending results reference teams by display name, and display
names drift: the UI decorates them ("andi odanx (admin)") while the stored
name is "andi_odanx". TeamResolver maps a free-text name to a stored Team
using three stages, each only tried when the previous one found nothing:

1. exact string match
2. normalized match (see normalize_team_name)
3. prefix match on normalized names, in either direction

A stage that finds more than one team is ambiguous and resolves to nothing.
"""
import logging
import re
from typing import Iterable, List, Optional

from efootball_backend.core.errors import AmbiguousNameResolution
from efootball_backend.models import Team

logger = logging.getLogger(__name__)

_PARENTHETICAL = re.compile(r"\([^)]*\)")
_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_team_name(name: Optional[str]) -> str:
    """Drop "(...)" qualifiers, lowercase, keep only [a-z0-9]."""
    if not name:
        return ""
    stripped = _PARENTHETICAL.sub("", str(name)).lower()
    return _NON_ALNUM.sub("", stripped)


class TeamResolver:
    """Resolves display names against a fixed snapshot of teams."""

    def __init__(self, teams: Iterable[Team]):
        self.teams: List[Team] = [t for t in teams if t is not None]
        self._normalized = [(normalize_team_name(t.name), t) for t in self.teams]

    def candidates(self, name: str) -> List[Team]:
        """Teams matched by the first stage that matches anything."""
        # 1) Exact
        exact = [t for t in self.teams if t.name == name]
        if exact:
            return exact

        target = normalize_team_name(name)
        if not target:
            return []

        # 2) Normalized
        normalized = [t for key, t in self._normalized if key == target]
        if normalized:
            return normalized

        # 3) Prefix, either direction
        return [
            t for key, t in self._normalized
            if key and (key.startswith(target) or target.startswith(key))
        ]

    def resolve(self, name: str) -> Optional[Team]:
        """Soft lookup: None when nothing or more than one team matches."""
        found = self.candidates(name)
        if len(found) == 1:
            return found[0]
        if found:
            logger.warning(
                f"Ambiguous team name '{name}': {[t.name for t in found]}"
            )
        else:
            logger.warning(f"Unresolvable team name '{name}'")
        return None

    def resolve_strict(self, name: str) -> Team:
        """Like resolve(), but raises AmbiguousNameResolution instead of returning None."""
        found = self.candidates(name)
        if len(found) != 1:
            raise AmbiguousNameResolution(name, [t.name for t in found])
        return found[0]

    def references(self, name: str, team: Team) -> bool:
        """True if `name` resolves to `team`."""
        found = self.candidates(name)
        return len(found) == 1 and found[0].id == team.id
