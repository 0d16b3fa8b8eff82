import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shiftkeeper.core.config import settings
from shiftkeeper.core.database import create_tables
from shiftkeeper.core.errors import DomainError
from shiftkeeper.core.locks import close_redis
from shiftkeeper.api.v1.auth import router as auth_router
from shiftkeeper.api.v1.webapp import router as webapp_router
from shiftkeeper.api.v1.companies import router as companies_router
from shiftkeeper.api.v1.employees import router as employees_router
from shiftkeeper.api.v1.schedules import router as schedules_router
from shiftkeeper.api.v1.violations import router as violations_router
from shiftkeeper.api.v1.rating import router as rating_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tabellen beim Start anlegen (SQLite / lokale Entwicklung)
    await create_tables()
    logger.info("Shiftkeeper API started (env=%s)", settings.APP_ENV)
    yield
    await close_redis()


app = FastAPI(
    title="Shiftkeeper API",
    description="Attendance, shift generation and employee rating",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


API_PREFIX = "/api/v1"

app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(webapp_router, prefix=API_PREFIX)
app.include_router(companies_router, prefix=API_PREFIX)
app.include_router(employees_router, prefix=API_PREFIX)
app.include_router(schedules_router, prefix=API_PREFIX)
app.include_router(violations_router, prefix=API_PREFIX)
app.include_router(rating_router, prefix=API_PREFIX)


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "Shiftkeeper API", "version": "1.0.0"}
