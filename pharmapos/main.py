from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import logging

from pharmapos.config import get_settings
from pharmapos.database import engine, Base
from pharmapos.exceptions import PharmaPOSError
from pharmapos.api import auth, products, sales, users, logs, reports, health
import pharmapos.models  # noqa: F401  (registers every table on Base)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    logger.info("Starting up application...")

    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")

    yield

    logger.info("Shutting down application...")


app = FastAPI(
    title="PharmaPOS",
    description="""
    Pharmacy point-of-sale and inventory API.

    - **Catalog**: products with prices, stock thresholds, expiry dates and barcodes
    - **Sales**: atomic checkout priced from the catalog, with stock history
    - **Users**: role-based staff accounts with soft delete and an audit log
    - **Reports**: sales, profit, stock history and stock alerts

    ## Roles
    ADMIN manages everything, STOCKIST manages the catalog and stock,
    ATTENDANT sells.

    ## Errors
    Every error response has the shape `{"error": "<message>"}`.
    """,
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(PharmaPOSError)
async def pharmapos_error_handler(request: Request, exc: PharmaPOSError):
    return _error(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report the first invalid field as a 400 with a readable message."""
    errors = exc.errors()
    if not errors:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid request.")

    first = errors[0]
    message = str(first.get("msg", "Invalid value.")).removeprefix("Value error, ")
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "header")]
    if location:
        message = f"{'.'.join(location)}: {message}"
    return _error(status.HTTP_400_BAD_REQUEST, message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error.")


# Include API routers
app.include_router(health.router, prefix="/api/v1")
app.include_router(auth.router, prefix="/api/v1")
app.include_router(products.router, prefix="/api/v1")
app.include_router(sales.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(logs.router, prefix="/api/v1")
app.include_router(reports.router, prefix="/api/v1")


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "name": "PharmaPOS",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/api/v1/health"
    }
