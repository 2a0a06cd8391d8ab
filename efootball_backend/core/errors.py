# errors.py
# Domain exceptions raised by the services and translated to HTTP responses in main.py.

from typing import List, Optional

from fastapi import Request
from fastapi.responses import JSONResponse


class LeagueError(Exception):
    """Base class for every rejection the league services can produce."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(LeagueError):
    status_code = 404


class MatchNotFound(NotFound):
    def __init__(self, match_id):
        super().__init__(f"Match {match_id} not found.")
        self.match_id = match_id


class TeamNotFound(NotFound):
    def __init__(self, team_ref):
        super().__init__(f"Team {team_ref} not found.")
        self.team_ref = team_ref


class PendingResultNotFound(NotFound):
    def __init__(self, result_id):
        super().__init__(f"Pending result {result_id} not found.")
        self.result_id = result_id


class UserNotFound(NotFound):
    def __init__(self, user_ref):
        super().__init__(f"User {user_ref} not found.")
        self.user_ref = user_ref


class Unauthorized(LeagueError):
    status_code = 403


class InvalidRegistrationToken(Unauthorized):
    status_code = 401


class InvalidState(LeagueError):
    status_code = 409


class InsufficientTeams(LeagueError):
    def __init__(self, team_count: int):
        super().__init__(
            f"At least 2 teams are required to generate a schedule (currently {team_count})."
        )
        self.team_count = team_count


class AmbiguousNameResolution(LeagueError):
    status_code = 422

    def __init__(self, name: str, candidates: Optional[List[str]] = None):
        candidates = candidates or []
        if candidates:
            message = f"Team name '{name}' is ambiguous: {', '.join(candidates)}"
        else:
            message = f"Team name '{name}' does not match any team."
        super().__init__(message)
        self.name = name
        self.candidates = candidates


class ValidationFailed(LeagueError):
    status_code = 400


class StorageError(LeagueError):
    status_code = 503


class PartialUpdateError(LeagueError):
    """
    A multi-entity update stopped half way.
    There is no cross-entity rollback, so the steps already applied are reported.
    """

    status_code = 500

    def __init__(self, operation: str, completed_steps: List[str], failed_step: str, cause: Exception):
        super().__init__(
            f"{operation} stopped at '{failed_step}' after {completed_steps or 'no steps'}: {cause}"
        )
        self.operation = operation
        self.completed_steps = completed_steps
        self.failed_step = failed_step
        self.cause = cause


async def league_error_handler(request: Request, exc: LeagueError):
    """Turns a LeagueError into a JSON rejection with a readable reason."""
    content = {"detail": exc.message, "error": type(exc).__name__}
    if isinstance(exc, PartialUpdateError):
        content["completed_steps"] = exc.completed_steps
        content["failed_step"] = exc.failed_step
    return JSONResponse(status_code=exc.status_code, content=content)
