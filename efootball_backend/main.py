import logging

from fastapi import FastAPI

from efootball_backend.core.config import settings
from efootball_backend.core.database import create_store
from efootball_backend.core.errors import LeagueError, league_error_handler
from efootball_backend.core.logging_config import setup_logging
from efootball_backend.seed.seed_all import seed_all
from efootball_backend.services.evidence import EvidenceStore

# --- Routers ---
from efootball_backend.core.auth import router as auth_router
from efootball_backend.routes.team_routes import router as team_router
from efootball_backend.routes.match_routes import router as match_router
from efootball_backend.routes.result_routes import router as result_router
from efootball_backend.routes.league_routes import router as league_router
from efootball_backend.routes.user_routes import router as user_router
from efootball_backend.routes.settings_routes import router as settings_router

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION)
app.add_exception_handler(LeagueError, league_error_handler)


@app.on_event("startup")
async def on_startup():
    # 1️⃣ Open the JSON store and the evidence folder
    app.state.store = create_store()
    app.state.evidence = EvidenceStore(settings.evidence_dir, settings.MAX_EVIDENCE_BYTES)
    logger.info(f"📂 Data directory: {settings.DATA_DIR}")

    # 2️⃣ Make sure settings and the default admin exist
    seed_all(app.state.store)


@app.get("/health", tags=["Health"])
def health():
    return {"status": "ok", "app": settings.APP_NAME, "version": settings.APP_VERSION}


# Routers
app.include_router(auth_router, prefix="/auth", tags=["Auth"])
app.include_router(team_router, prefix="/teams", tags=["Teams"])
app.include_router(match_router, prefix="/matches", tags=["Matches"])
app.include_router(result_router, prefix="/results", tags=["Results"])
app.include_router(league_router, prefix="/leagues", tags=["Leagues"])
app.include_router(user_router, prefix="/users", tags=["Users"])
app.include_router(settings_router, prefix="/settings", tags=["Settings"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("efootball_backend.main:app", host="0.0.0.0", port=8000, reload=settings.TEST_MODE)
