import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from survey_api import models  # noqa: F401  registers tables on Base.metadata
from survey_api.config import get_settings
from survey_api.database import Base, engine
from survey_api.errors import RateLimited, SurveyAPIError
from survey_api.routers import admin, analytics, email, survey
from survey_api.services.tokens import utcnow

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting survey API (%s)", settings.environment)
    if settings.create_tables_on_startup:
        Base.metadata.create_all(bind=engine)
    if not settings.admin_key_set:
        logger.warning("ADMIN_KEYS is empty; only emailed access codes can open the dashboard")
    yield
    logger.info("Shutting down survey API")


app = FastAPI(title="Financial Awareness Survey API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "x-admin-key"],
)


@app.exception_handler(SurveyAPIError)
async def survey_api_error_handler(request: Request, exc: SurveyAPIError):
    headers = {"Retry-After": str(exc.retry_after)} if isinstance(exc, RateLimited) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": exc.status_code < 400, "message": exc.message},
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{field}: {err.get('msg')}" if field else err.get("msg"))
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "; ".join(problems) or "Invalid request"},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content = {"success": False, "message": "Internal server error"}
    if get_settings().is_development:
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


app.include_router(survey.router)
app.include_router(analytics.router)
app.include_router(email.router)
app.include_router(admin.router)


@app.get("/api/health")
def health_check():
    return {"status": "OK", "timestamp": utcnow().isoformat()}
