import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from riskledger.config import settings
from riskledger.database import check_db_connection
from riskledger.exceptions import CollaboratorUnavailable, NotFoundError, ValidationError
from riskledger.middleware.audit import set_audit_context
from riskledger.routers.appetite import router as appetite_router
from riskledger.routers.asset import router as asset_router
from riskledger.routers.bia import router as bia_router
from riskledger.routers.control import router as control_router
from riskledger.routers.dashboard import router as dashboard_router
from riskledger.routers.finding import router as finding_router
from riskledger.routers.matrix import router as matrix_router
from riskledger.routers.risk import router as risk_router
from riskledger.routers.treatment import router as treatment_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)


class AuditContextMiddleware(BaseHTTPMiddleware):
    """Set per-request audit context (user, IP) for audit entries written by cascades."""

    async def dispatch(self, request: Request, call_next):
        user_id_header = request.headers.get("X-User-Id")
        ip = request.client.host if request.client else None
        set_audit_context(
            user_id=int(user_id_header) if user_id_header and user_id_header.isdigit() else None,
            ip_address=ip,
        )
        return await call_next(request)


app.add_middleware(AuditContextMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Engine errors -> HTTP ──

@app.exception_handler(ValidationError)
async def handle_validation_error(request: Request, exc: ValidationError):
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=422, content={"detail": exc.message})


@app.exception_handler(NotFoundError)
async def handle_not_found(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(CollaboratorUnavailable)
async def handle_unavailable(request: Request, exc: CollaboratorUnavailable):
    logger.error("Record store unavailable on %s %s: %r", request.method, request.url.path, exc.cause)
    return JSONResponse(status_code=503, content={"detail": exc.message})


app.include_router(matrix_router)
app.include_router(appetite_router)
app.include_router(risk_router)
app.include_router(treatment_router)
app.include_router(control_router)
app.include_router(finding_router)
app.include_router(asset_router)
app.include_router(bia_router)
app.include_router(dashboard_router)


@app.get("/health")
async def health():
    """Health check: verifies API is running and database is reachable."""
    try:
        await check_db_connection()
        db_status = "connected"
    except Exception as exc:
        db_status = f"error: {exc}"

    return {
        "status": "ok" if db_status == "connected" else "degraded",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "database": db_status,
    }
