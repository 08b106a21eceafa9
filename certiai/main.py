# certiai/main.py
import time
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from certiai import __version__
from certiai import models  # noqa: F401  (registreert SQLAlchemy modellen)
from certiai.core.errors import CertiAIError
from certiai.core.logging_config import logger, setup_logging
from certiai.core.rate_limit import limiter
from certiai.core.settings import Settings, settings
from certiai.db import Base, engine
from certiai.middleware.request_id import RequestIdMiddleware
from certiai.observability.metrics import router as metrics_router
from certiai.routers import auth, verification
from certiai.services.auth_service import AccountService
from certiai.services.classifier_client import ClassifierConfig, ClassifierGateway
from certiai.services.email_service import MailConfig, MailService
from certiai.services.storage import LocalStorage
from certiai.services.verification_service import VerificationPipeline


def build_services(app: FastAPI, s: Settings) -> None:
    """Pipeline + account service op app.state, met expliciete config-objecten."""
    storage = LocalStorage(s.UPLOAD_DIR)
    gateway = ClassifierGateway(ClassifierConfig.from_settings(s))

    app.state.pipeline = VerificationPipeline(
        gateway,
        storage,
        max_upload_bytes=s.max_upload_bytes,
        allowed_mimes=s.ALLOWED_MIMES,
    )
    app.state.accounts = AccountService(
        MailService(MailConfig.from_settings(s)),
        code_ttl_minutes=s.CODE_TTL_MINUTES,
    )


# ----------------------------------------------------
# App init
# ----------------------------------------------------
app = FastAPI(title=settings.APP_NAME, version=__version__)

setup_logging()
logger.info("startup", service="certiai-api", env=settings.APP_ENV)

build_services(app, settings)


# ----------------------------------------------------
# Envelope helpers
# ----------------------------------------------------
def _error(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "data": None},
        headers=headers,
    )


@app.exception_handler(CertiAIError)
async def certiai_error_handler(request: Request, exc: CertiAIError):
    return _error(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ())[1:])
    message = f"{field}: {first.get('msg')}" if field else str(first.get("msg", "Invalid request"))
    return _error(400, message)


@app.exception_handler(RateLimitExceeded)
def ratelimit_handler(request: Request, exc: RateLimitExceeded):
    return _error(429, f"Rate limit exceeded: {exc.detail}")


# ----------------------------------------------------
# Health / banner
# ----------------------------------------------------
@app.get("/health", include_in_schema=True)
def health() -> dict:
    return {"status": "ok"}


@app.get(settings.API_PREFIX)
def banner() -> dict:
    return {
        "status": "ok",
        "message": "CertiAI Backend API",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ----------------------------------------------------
# Logging middleware
# ----------------------------------------------------
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    start = time.time()

    request_id = getattr(request.state, "request_id", None) or request.headers.get(
        "X-Request-ID", "unknown"
    )
    client_ip = request.client.host if request.client else "unknown"

    bound_logger = logger.bind(
        request_id=request_id,
        ip=client_ip,
        endpoint=str(request.url.path),
        method=request.method,
    )

    bound_logger.info("request_started")
    response = await call_next(request)
    latency_ms = round((time.time() - start) * 1000, 2)

    bound_logger.bind(status_code=response.status_code, latency_ms=latency_ms).info(
        "request_finished"
    )
    return response


# ----------------------------------------------------
# Middleware
# ----------------------------------------------------
app.add_middleware(RequestIdMiddleware)
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"],
    expose_headers=["Authorization"],
)


# ----------------------------------------------------
# Routers
# ----------------------------------------------------
app.include_router(auth.router, prefix=settings.API_PREFIX)
app.include_router(verification.router, prefix=settings.API_PREFIX)
app.include_router(metrics_router)  # /metrics

# geüploade bestanden statisch serveren
app.mount(
    "/uploads",
    StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
    name="uploads",
)


# ----------------------------------------------------
# Startup / shutdown
# ----------------------------------------------------
@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)


@app.on_event("shutdown")
async def on_shutdown():
    pipeline: VerificationPipeline = app.state.pipeline
    await pipeline.dispatcher.shutdown()
    await pipeline.gateway.aclose()


def run() -> None:
    """Entrypoint voor `certiai-api` (lokaal; productie draait via gunicorn.conf.py)."""
    import uvicorn

    uvicorn.run("certiai.main:app", host="0.0.0.0", port=3000, reload=False)
