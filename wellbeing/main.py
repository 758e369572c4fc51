"""Main FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from wellbeing.api.rate_limit import limiter
from wellbeing.api.responses import error_response
from wellbeing.api.routes import auth, events, groups, health, posts, users
from wellbeing.api.schemas import ErrorResponse
from wellbeing.config import settings
from wellbeing.database import Base, engine
from wellbeing.services.errors import DomainError
# Import models to register them with SQLAlchemy Base
from wellbeing.models import audit as audit_models, domain as domain_models  # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Wellbeing Groups API",
    description="Small peer-support groups: membership, posts, events and GDPR self-service.",
    version="1.0.0",
    debug=settings.debug
)
app.state.limiter = limiter


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    logger.warning("%s %s refused (%s): %s", request.method, request.url.path, type(exc).__name__, exc.message)
    return error_response(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Validation failed: {field}: {first.get('msg')}" if field else f"Validation failed: {first.get('msg')}"
    else:
        message = "Validation failed"
    return error_response(400, message)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return error_response(429, "Too many requests, please try again later.")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return error_response(500, "Internal server error")
    return error_response(500, str(exc))


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SlowAPIMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
api_prefix = f"/api/{settings.api_version}"
error_responses = {code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 409, 429)}
for module in (health, auth, users, groups, posts, events):
    app.include_router(module.router, prefix=api_prefix, responses=error_responses)


@app.on_event("startup")
def startup_event():
    # Create database tables
    Base.metadata.create_all(bind=engine)
    logger.info("Application startup (%s)", settings.environment)


@app.on_event("shutdown")
def shutdown_event():
    logger.info("Application shutdown")


@app.get("/")
@limiter.exempt
def root(request: Request):
    return {"status": "success", "message": f"Welcome to {settings.app_name}"}


@app.get("/health")
@limiter.exempt
def health_check(request: Request):
    return {"status": "healthy", "service": settings.app_name}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
