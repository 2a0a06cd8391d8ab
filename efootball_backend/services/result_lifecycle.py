# result_lifecycle.py
# Result approval workflow: pending -> approved / rejected, plus edits of completed matches.

import logging
from datetime import datetime, timezone
from typing import List, Optional

from efootball_backend.core.database import JsonEntityStore, MATCH, PENDING_RESULT
from efootball_backend.core.errors import (
    InvalidState,
    LeagueError,
    MatchNotFound,
    PendingResultNotFound,
    Unauthorized,
)
from efootball_backend.core.saga import Saga
from efootball_backend.models import (
    Match,
    MatchResult,
    MatchStatus,
    PendingResult,
    ResultStatus,
    Submitter,
    User,
)
from efootball_backend.services.evidence import EvidenceStore, EvidenceUpload
from efootball_backend.services.standings import StandingsService

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class ResultLifecycle:
    """
    State machine for submitted results.

        submit ──> pending ──approve──> approved   (match -> completed, aggregates applied)
                           └─reject───> rejected   (nothing else changes)

    Approval and completed-match edits touch the match, both teams and the
    pending result. They run as a Saga in a fixed order:
    match update -> home team -> away team -> pending result resolution.

    Policies:
    - auto_approve_privileged: an admin's own submission is approved on the spot
    - allow_multiple_pending: more than one pending result per match; the last
      one approved wins
    - keep_resolved: approved/rejected results stay stored as history instead
      of being deleted
    """

    def __init__(
        self,
        store: JsonEntityStore,
        evidence: Optional[EvidenceStore] = None,
        auto_approve_privileged: bool = True,
        allow_multiple_pending: bool = True,
        keep_resolved: bool = True,
    ):
        self.store = store
        self.evidence = evidence
        self.standings = StandingsService(store)
        self.auto_approve_privileged = auto_approve_privileged
        self.allow_multiple_pending = allow_multiple_pending
        self.keep_resolved = keep_resolved

    # ---------------------------------------------
    # Helpers
    # ---------------------------------------------
    @staticmethod
    def _require_admin(actor: User, action: str) -> None:
        if actor is None or not actor.is_admin:
            raise Unauthorized(f"Only admins can {action}.")

    def _get_match(self, match_id: int) -> Match:
        match = self.store.get(MATCH, match_id)
        if match is None:
            raise MatchNotFound(match_id)
        return match

    def _get_pending(self, result_id: int) -> PendingResult:
        result = self.store.get(PENDING_RESULT, result_id)
        if result is None:
            raise PendingResultNotFound(result_id)
        return result

    def _save_evidence(self, owner_kind: str, owner_id: int, upload: Optional[EvidenceUpload]) -> Optional[str]:
        if upload is None:
            return None
        if self.evidence is None:
            logger.warning(f"Evidence for {owner_kind} {owner_id} dropped: no evidence storage configured")
            return None
        return self.evidence.save(owner_kind, owner_id, upload)

    def _resolve(self, result: PendingResult, status: ResultStatus) -> PendingResult:
        """Takes a result out of the active pending set."""
        if self.keep_resolved:
            return self.store.update(PENDING_RESULT, result.id, {"status": status, "resolved_at": _now()})
        self.store.delete(PENDING_RESULT, result.id)
        return result.model_copy(update={"status": status, "resolved_at": _now()})

    # ---------------------------------------------
    # Queries
    # ---------------------------------------------
    def list_pending(self, actor: Optional[User] = None, mine: bool = False) -> List[PendingResult]:
        def wanted(r: PendingResult) -> bool:
            if not r.is_pending:
                return False
            if mine:
                return actor is not None and r.submitted_by is not None and r.submitted_by.id == actor.id
            return True

        return self.store.list(PENDING_RESULT, where=wanted)

    # ---------------------------------------------
    # Submit
    # ---------------------------------------------
    def submit(
        self,
        actor: User,
        match_id: int,
        home_score: int,
        away_score: int,
        notes: Optional[str] = None,
        evidence: Optional[EvidenceUpload] = None,
        auto_approve: Optional[bool] = None,
    ) -> PendingResult:
        """
        Creates a pending result for a scheduled match.
        Privileged submitters are approved immediately when the policy allows it
        (`auto_approve` overrides the policy for a single call).
        """
        match = self._get_match(match_id)
        if match.is_completed:
            raise InvalidState(f"Match {match_id} is already completed; ask an admin to edit it.")

        if not self.allow_multiple_pending:
            existing = self.store.list(PENDING_RESULT, where=lambda r: r.match_id == match_id and r.is_pending)
            if existing:
                raise InvalidState(f"Match {match_id} already has a pending result (#{existing[0].id}).")

        # Bad uploads are rejected before anything is stored
        if evidence is not None and self.evidence is not None:
            self.evidence.check(evidence)

        pending = self.store.create(PENDING_RESULT, PendingResult(
            match_id=match.id,
            home_team=match.home_team,
            away_team=match.away_team,
            home_score=home_score,
            away_score=away_score,
            notes=notes,
            submitted_at=_now(),
            submitted_by=Submitter(
                id=actor.id, username=actor.username, team_name=actor.team_name, role=actor.role.value,
            ),
            status=ResultStatus.PENDING,
        ))

        try:
            reference = self._save_evidence("result", pending.id, evidence)
            if reference:
                pending = self.store.update(PENDING_RESULT, pending.id, {"screenshot": reference})
        except LeagueError:
            self.store.delete(PENDING_RESULT, pending.id)
            raise

        logger.info(
            f"Result submitted by {actor.username}: {match.home_team} {home_score}-{away_score} "
            f"{match.away_team} (pending #{pending.id})"
        )

        should_approve = self.auto_approve_privileged if auto_approve is None else auto_approve
        if should_approve and actor.is_admin:
            return self.approve(actor, pending.id)
        return pending

    # ---------------------------------------------
    # Approve / reject
    # ---------------------------------------------
    def approve(self, actor: User, result_id: int) -> PendingResult:
        """
        Completes the referenced match with the submitted score and applies it to
        the team aggregates. If the match was already completed by an earlier
        approval, its stored score is reverted first (last approval wins).
        """
        self._require_admin(actor, "approve results")
        match_id = self._get_pending(result_id).match_id

        with self.store.entity_locks.hold(MATCH, match_id):
            # Re-read under the match lock so two approvals cannot both see "pending"
            pending = self._get_pending(result_id)
            if not pending.is_pending:
                raise InvalidState(f"Result {result_id} is already {pending.status.value}.")
            match = self._get_match(pending.match_id)
            new = MatchResult(
                home_team=match.home_team,
                away_team=match.away_team,
                home_score=pending.home_score,
                away_score=pending.away_score,
            )
            patch = {
                "status": MatchStatus.COMPLETED,
                "home_score": pending.home_score,
                "away_score": pending.away_score,
                "notes": pending.notes,
                "submitted_at": pending.submitted_at,
                "result_id": pending.id,
            }
            if pending.screenshot:
                patch["screenshot"] = pending.screenshot

            saga = Saga(f"approve result {result_id}")
            if match.is_completed and match.result_id == pending.id:
                # An earlier attempt stored this score on the match but stopped
                # before both teams were updated: rebuild those two teams
                logger.warning(f"Resuming interrupted approval of result #{result_id} (match {match.id})")
                pair = self.standings.resolve_pair(new)
                team_ids = [t.id for t in pair] if pair else []
                saga.step("resync teams", self.standings.resync, team_ids)
            elif match.is_completed:
                logger.info(f"Match {match.id} already completed; replacing its result with #{result_id}")
                self.standings.replace_result(
                    match.result(), new, saga=saga,
                    between=lambda: saga.step("update match", self.store.update, MATCH, match.id, patch),
                )
            else:
                saga.step("update match", self.store.update, MATCH, match.id, patch)
                self.standings.apply_result(new, saga=saga)

            approved = saga.step("resolve pending result", self._resolve, pending, ResultStatus.APPROVED)

        logger.info(
            f"✅ Result #{result_id} approved by {actor.username}: "
            f"{new.home_team} {new.home_score}-{new.away_score} {new.away_team}"
        )
        return approved

    def reject(self, actor: User, result_id: int) -> PendingResult:
        """Drops a pending result; matches and aggregates are untouched."""
        self._require_admin(actor, "reject results")
        match_id = self._get_pending(result_id).match_id

        with self.store.entity_locks.hold(MATCH, match_id):
            pending = self._get_pending(result_id)
            if not pending.is_pending:
                raise InvalidState(f"Result {result_id} is already {pending.status.value}.")
            rejected = self._resolve(pending, ResultStatus.REJECTED)

        logger.info(f"⚠️ Result #{result_id} rejected by {actor.username}")
        return rejected

    # ---------------------------------------------
    # Edits
    # ---------------------------------------------
    def edit_completed_match(
        self,
        actor: User,
        match_id: int,
        home_score: int,
        away_score: int,
        notes: Optional[str] = None,
        evidence: Optional[EvidenceUpload] = None,
    ) -> Match:
        """
        Changes the score of a completed match: revert the stored score from
        both teams, overwrite the match, then apply the new score.
        """
        self._require_admin(actor, "edit match results")

        with self.store.entity_locks.hold(MATCH, match_id):
            match = self._get_match(match_id)
            if not match.is_completed:
                raise InvalidState(f"Match {match_id} is not completed yet.")

            patch = {"home_score": home_score, "away_score": away_score, "result_id": None}
            if notes is not None:
                patch["notes"] = notes
            reference = self._save_evidence("match", match.id, evidence)
            if reference:
                patch["screenshot"] = reference

            new = MatchResult(
                home_team=match.home_team,
                away_team=match.away_team,
                home_score=home_score,
                away_score=away_score,
            )
            saga = Saga(f"edit match {match_id}")
            self.standings.replace_result(
                match.result(), new, saga=saga,
                between=lambda: saga.step("update match", self.store.update, MATCH, match.id, patch),
            )

        logger.info(
            f"Match {match_id} edited by {actor.username}: {match.home_score}-{match.away_score} "
            f"-> {home_score}-{away_score}"
        )
        return self._get_match(match_id)

    def record_result(
        self,
        actor: User,
        match_id: int,
        home_score: int,
        away_score: int,
        notes: Optional[str] = None,
        evidence: Optional[EvidenceUpload] = None,
    ) -> Match:
        """
        Admin result entry from the schedule: completes a scheduled match
        (submit + approve) or edits a completed one.
        """
        self._require_admin(actor, "enter match results")
        match = self._get_match(match_id)
        if match.is_completed:
            return self.edit_completed_match(actor, match_id, home_score, away_score, notes, evidence)

        pending = self.submit(actor, match_id, home_score, away_score, notes, evidence, auto_approve=False)
        self.approve(actor, pending.id)
        return self._get_match(match_id)

    def delete_match(self, actor: User, match_id: int) -> dict:
        """
        Removes a single fixture. A completed match's score is reverted from both
        teams first; pending results for the match are dropped with it.
        """
        self._require_admin(actor, "delete matches")

        with self.store.entity_locks.hold(MATCH, match_id):
            match = self._get_match(match_id)
            saga = Saga(f"delete match {match_id}")
            if match.is_completed:
                self.standings.revert_result(match.result(), saga=saga)
            dropped = saga.step(
                "drop pending results", self.store.delete_where,
                PENDING_RESULT, lambda r: r.match_id == match_id and r.is_pending,
            )
            saga.step("delete match", self.store.delete, MATCH, match_id)

        logger.info(
            f"Match {match_id} deleted by {actor.username} "
            f"({'score reverted, ' if match.is_completed else ''}{len(dropped)} pending results dropped)"
        )
        return {"success": True, "reverted": match.is_completed, "results_deleted": len(dropped)}

    def edit_pending(
        self,
        actor: User,
        result_id: int,
        home_score: Optional[int] = None,
        away_score: Optional[int] = None,
        notes: Optional[str] = None,
        evidence: Optional[EvidenceUpload] = None,
    ) -> PendingResult:
        """The submitter may correct a result while it is still pending."""
        pending = self._get_pending(result_id)
        if pending.submitted_by is None or actor is None or pending.submitted_by.id != actor.id:
            raise Unauthorized("Only the submitter can edit this result.")
        if not pending.is_pending:
            raise InvalidState(f"Result {result_id} is already {pending.status.value}.")

        patch = {}
        if home_score is not None:
            patch["home_score"] = home_score
        if away_score is not None:
            patch["away_score"] = away_score
        if notes is not None:
            patch["notes"] = notes
        reference = self._save_evidence("result", pending.id, evidence)
        if reference:
            patch["screenshot"] = reference

        if not patch:
            return pending
        updated = self.store.update(PENDING_RESULT, result_id, patch)
        logger.info(f"Pending result #{result_id} edited by {actor.username}")
        return updated
