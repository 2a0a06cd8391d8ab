# dependencies.py
# FastAPI dependencies that build the services around the app-wide store.

from fastapi import Depends, Request

from efootball_backend.core.config import settings
from efootball_backend.core.database import JsonEntityStore, get_store
from efootball_backend.services.evidence import EvidenceStore
from efootball_backend.services.result_lifecycle import ResultLifecycle
from efootball_backend.services.standings import StandingsService


def get_evidence_store(request: Request) -> EvidenceStore:
    return request.app.state.evidence


def get_standings_service(store: JsonEntityStore = Depends(get_store)) -> StandingsService:
    return StandingsService(store)


def get_lifecycle(
    store: JsonEntityStore = Depends(get_store),
    evidence: EvidenceStore = Depends(get_evidence_store),
) -> ResultLifecycle:
    return ResultLifecycle(
        store,
        evidence=evidence,
        auto_approve_privileged=settings.AUTO_APPROVE_PRIVILEGED,
        allow_multiple_pending=settings.ALLOW_MULTIPLE_PENDING_PER_MATCH,
        keep_resolved=settings.KEEP_RESOLVED_RESULTS,
    )
