"""
Travelle API - Main Application Entry Point
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse, Response
import time
import logging

# Prometheus metrics
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST, REGISTRY

from travelle.config import settings
from travelle.errors import TravelleError

# Define Prometheus metrics
REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

REQUEST_LATENCY = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint']
)
from travelle.routers import auth, countries, email, favorites, health, places, trip_lists, visited
from travelle.utils.database import init_db, close_db
from travelle.utils.redis import init_redis, close_redis

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager - handles startup and shutdown events
    """
    logger.info("Starting Travelle API...")

    await init_db()
    await init_redis()

    logger.info(f"Travelle API ready (email provider: {settings.EMAIL_PROVIDER})")

    yield

    logger.info("Shutting down Travelle API...")

    await close_db()
    await close_redis()

    logger.info("Cleanup completed")


app = FastAPI(
    title="Travelle API",
    description="""
    ## Travel Catalog API

    Browse countries, cities and places, keep favorites and visited places,
    and plan packing checklists for upcoming trips.

    ### Authentication
    Sign in at `/auth/login` and send the returned token in the
    Authorization header: `Bearer <token>`
    """,
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware with Prometheus metrics
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time

    # Route templates keep label cardinality bounded
    if request.url.path != "/metrics":
        route = request.scope.get("route")
        endpoint = route.path if route is not None else request.url.path
        REQUEST_COUNT.labels(method=request.method, endpoint=endpoint, status=response.status_code).inc()
        REQUEST_LATENCY.labels(method=request.method, endpoint=endpoint).observe(process_time)

    response.headers["X-Process-Time"] = str(process_time)
    return response


@app.exception_handler(TravelleError)
async def travelle_error_handler(request: Request, exc: TravelleError):
    logger.warning(f"{exc.code.value} on {request.method} {request.url.path}: {exc.message}")
    return ORJSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code.value, "detail": exc.user_message},
    )


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(countries.router, tags=["Catalog"])
app.include_router(places.router, prefix="/places", tags=["Places"])
app.include_router(favorites.router, prefix="/favorites", tags=["Favorites"])
app.include_router(visited.router, prefix="/visited", tags=["Visited Places"])
app.include_router(trip_lists.router, prefix="/trip-lists", tags=["Trip Lists"])
app.include_router(email.router, prefix="/api", tags=["Email"])


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint - API information"""
    return {
        "name": "Travelle API",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs" if settings.DEBUG else "disabled",
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus metrics endpoint"""
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST
    )
