import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from budget_ledger.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _prepare_database() -> None:
    """Create missing tables and reconcile budget entries, as configured."""
    from budget_ledger import models  # noqa: F401  (registers every table)
    from budget_ledger.database import Base, SessionLocal, engine
    from budget_ledger.services import sync_service

    if settings.CREATE_TABLES_ON_STARTUP:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured.")

    if settings.SYNC_BUDGET_ENTRIES_ON_STARTUP:
        db = SessionLocal()
        try:
            created, deleted = sync_service.reconcile(db)
            logger.info("Startup reconciliation: created=%d deleted=%d", created, deleted)
        finally:
            db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    _prepare_database()
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get(f"{settings.API_PREFIX}/health")
def health_check():
    return {"status": "ok", "app": settings.APP_NAME}


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

# Allocations
from budget_ledger.routers import budget_allocations  # noqa: E402

app.include_router(
    budget_allocations.router,
    prefix=f"{settings.API_PREFIX}/budget-allocations",
    tags=["Budget Allocations"],
)

# Releases
from budget_ledger.routers import budget_releases  # noqa: E402

app.include_router(
    budget_releases.router,
    prefix=f"{settings.API_PREFIX}/budget-releases",
    tags=["Budget Releases"],
)

# Adjustments
from budget_ledger.routers import budget_adjustments  # noqa: E402

app.include_router(
    budget_adjustments.router,
    prefix=f"{settings.API_PREFIX}/budget-adjustments",
    tags=["Budget Adjustments"],
)

# Denormalized budget entries
from budget_ledger.routers import budgets  # noqa: E402

app.include_router(
    budgets.router,
    prefix=f"{settings.API_PREFIX}/budgets",
    tags=["Budgets"],
)

# Financial years, object codes, cost centers
from budget_ledger.routers import reference  # noqa: E402

app.include_router(
    reference.router,
    prefix=settings.API_PREFIX,
    tags=["Reference Data"],
)
