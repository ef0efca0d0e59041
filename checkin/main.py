# checkin/main.py
"""
FastAPI application exposing the check-in orchestrator.

The engine stays protocol-free; this module only maps HTTP requests to
orchestrator calls and orchestrator errors to status codes.
"""

from fastapi import FastAPI, HTTPException, Depends, Request
from fastapi.responses import PlainTextResponse
from fastapi.security import APIKeyHeader
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from pydantic import BaseModel
from typing import Any, Dict, Optional
from contextlib import asynccontextmanager
from datetime import datetime
import secrets

from checkin.models.response_kinds import Answer
from checkin.core.config import settings, validate_required_settings
from checkin.core.exceptions import FlowIntegrityError, SessionError, SessionNotCompleteError
from checkin.core.logging_config import setup_logging
from checkin.core.orchestrator import CheckInOrchestrator, init_orchestrator
from checkin.core.rate_limit_config import get_real_ip, get_rate_limit_message, get_rate_limits

# Setup logging
logger = setup_logging()

orchestrator: Optional[CheckInOrchestrator] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan event handler for startup/shutdown"""
    global orchestrator

    logger.info("=" * 60)
    logger.info(f"{settings.APP_NAME} API starting...")
    logger.info("=" * 60)

    if not validate_required_settings():
        logger.warning("Some settings are missing - features may fail on first use")

    try:
        orchestrator = init_orchestrator()
        logger.info("Configuration:")
        logger.info(f"  - Persistence backend: {settings.PERSISTENCE_BACKEND}")
        logger.info(f"  - Reveal mode: {settings.REVEAL_MODE}")
        logger.info(f"  - Rate limit tier: {settings.RATE_LIMIT_TIER}")
        logger.info(f"{settings.APP_NAME} API ready")
    except Exception as e:
        logger.error(f"Failed to initialize orchestrator: {e}")
        raise

    yield

    logger.info(f"{settings.APP_NAME} API shutting down...")
    await orchestrator.shutdown()


app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Guided daily check-in dialogue",
    version="1.0.0",
    lifespan=lifespan
)

# =============================================================================
# API KEY AUTHENTICATION
# =============================================================================

API_KEY_NAME = "X-API-Key"
api_key_header = APIKeyHeader(name=API_KEY_NAME, auto_error=False)


def get_api_key() -> str:
    """Get API key from settings or generate one for development"""
    api_key = settings.CHECKIN_API_KEY
    if not api_key:
        api_key = secrets.token_urlsafe(32)
        logger.warning("No CHECKIN_API_KEY set. Generated temporary key.")
        logger.warning("Set CHECKIN_API_KEY for production!")
    else:
        logger.info("API Key configured from settings")
    return api_key


VALID_API_KEY = get_api_key()


async def verify_api_key(api_key: Optional[str] = Depends(api_key_header)):
    """Verify API key for protected endpoints"""
    if api_key is None:
        logger.warning("Request without API key")
        raise HTTPException(
            status_code=401,
            detail="Missing API Key. Include 'X-API-Key' header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )
    if not secrets.compare_digest(api_key, VALID_API_KEY):
        logger.warning("Invalid API key attempt detected")
        raise HTTPException(
            status_code=401,
            detail="Invalid API Key",
            headers={"WWW-Authenticate": "ApiKey"},
        )
    return api_key

# =============================================================================
# RATE LIMITING
# =============================================================================

limiter = Limiter(key_func=get_real_ip)


def custom_rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Rate limit response with a Retry-After header"""
    response = PlainTextResponse(
        content=get_rate_limit_message("default"),
        status_code=429,
    )
    response.headers["Retry-After"] = "60"
    return response


app.add_exception_handler(RateLimitExceeded, custom_rate_limit_handler)
app.state.limiter = limiter

RATE_LIMITS = get_rate_limits(settings.RATE_LIMIT_TIER)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log incoming requests, except health checks"""
    path = request.url.path
    if path not in ("/", "/health"):
        logger.info(f"Request: {request.method} {path}")
    return await call_next(request)


# =============================================================================
# HELPERS
# =============================================================================

class AnswerRequest(BaseModel):
    answer: Answer


class StartRequest(BaseModel):
    session_id: Optional[str] = None


def get_orchestrator_or_503() -> CheckInOrchestrator:
    if orchestrator is None:
        logger.error("Orchestrator not initialized!")
        raise HTTPException(status_code=503, detail="Service not ready - orchestrator not initialized")
    return orchestrator


def raise_http_error(error: Exception, context: str):
    """Map orchestrator errors to HTTP errors"""
    if isinstance(error, SessionNotCompleteError):
        raise HTTPException(status_code=409, detail=error.message) from error
    if isinstance(error, SessionError):
        raise HTTPException(status_code=404, detail=error.message) from error
    if isinstance(error, FlowIntegrityError):
        logger.error(f"Flow integrity error in {context}: {error}")
        raise HTTPException(status_code=500, detail="The check-in flow is broken for this session") from error
    logger.error(f"Error in {context}: {type(error).__name__}: {error}", exc_info=True)
    raise HTTPException(status_code=500, detail="An error occurred. Please try again later.") from error


# =============================================================================
# ENDPOINTS
# =============================================================================

@app.get("/", status_code=200)
def read_root():
    return {"status": "ok", "version": "1.0.0", "service": settings.APP_NAME}


@app.get("/health", status_code=200)
async def health():
    """Liveness plus component status"""
    status: Dict[str, Any] = {"status": "healthy", "timestamp": datetime.now().isoformat()}
    if orchestrator is not None:
        status["components"] = await orchestrator.health_check()
    return status


@app.post("/checkin/start", dependencies=[Depends(verify_api_key)])
@limiter.limit(RATE_LIMITS["checkin_start"])
async def start_checkin(request: Request, req: Optional[StartRequest] = None):
    """Start a new check-in and return the greeting"""
    service = get_orchestrator_or_503()
    try:
        return await service.start_conversation(req.session_id if req else None)
    except Exception as e:
        raise_http_error(e, "start_checkin")


@app.post("/checkin/{session_id}/answer", dependencies=[Depends(verify_api_key)])
@limiter.limit(RATE_LIMITS["checkin_answer"])
async def submit_answer(request: Request, session_id: str, req: AnswerRequest):
    """Submit the answer for the current step"""
    service = get_orchestrator_or_503()
    try:
        return await service.handle_answer(session_id, req.answer)
    except Exception as e:
        raise_http_error(e, "submit_answer")


@app.post("/checkin/{session_id}/settled", dependencies=[Depends(verify_api_key)])
@limiter.limit(RATE_LIMITS["checkin_answer"])
async def prompt_settled(request: Request, session_id: str):
    """Client signal that the current prompt finished revealing"""
    service = get_orchestrator_or_503()
    try:
        return service.prompt_settled(session_id)
    except Exception as e:
        raise_http_error(e, "prompt_settled")


@app.post("/checkin/{session_id}/persist", dependencies=[Depends(verify_api_key)])
@limiter.limit(RATE_LIMITS["checkin_answer"])
async def retry_persist(request: Request, session_id: str):
    """Retry saving a finished check-in"""
    service = get_orchestrator_or_503()
    try:
        return await service.retry_persist(session_id)
    except Exception as e:
        raise_http_error(e, "retry_persist")


@app.delete("/checkin/{session_id}", dependencies=[Depends(verify_api_key)])
@limiter.limit(RATE_LIMITS["checkin_answer"])
async def abandon_checkin(request: Request, session_id: str):
    service = get_orchestrator_or_503()
    if not service.abandon_session(session_id):
        raise HTTPException(status_code=404, detail="Unknown session")
    return {"session_id": session_id, "abandoned": True}


@app.get("/checkin/{session_id}", dependencies=[Depends(verify_api_key)])
@limiter.limit(RATE_LIMITS["read"])
async def get_session_info(request: Request, session_id: str):
    service = get_orchestrator_or_503()
    try:
        return service.get_session_info(session_id)
    except Exception as e:
        raise_http_error(e, "session_info")


@app.get("/checkin/{session_id}/transcript", dependencies=[Depends(verify_api_key)])
@limiter.limit(RATE_LIMITS["read"])
async def get_transcript(request: Request, session_id: str):
    service = get_orchestrator_or_503()
    try:
        return service.get_transcript(session_id)
    except Exception as e:
        raise_http_error(e, "transcript")


@app.get("/debug/flow", dependencies=[Depends(verify_api_key)])
@limiter.limit(RATE_LIMITS["read"])
async def get_flow_debug_info(request: Request):
    """Step graph summary and validation issues"""
    service = get_orchestrator_or_503()
    try:
        return service.get_flow_debug_info()
    except Exception as e:
        raise_http_error(e, "debug_flow")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
