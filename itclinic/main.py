import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .config import StartupValidationError, settings, validate_startup_config
from .database import Base, SessionLocal, engine
from .errors import AppError, ValidationError
from .gateway import DataGateway
from .logging_context import configure_logging, set_request_id
from .routers import admin as admin_router
from .routers import products as products_router
from .routers import profile as profile_router
from .routers import public as public_router
from .routers import reservations as reservations_router
from .routers import services as services_router
from .validation import field_errors

logger = logging.getLogger(__name__)

app = FastAPI(title="IT Clinic API")

SAMPLE_SERVICES = [
    {
        "name": "Laptop Repair",
        "price": 150000.0,
        "duration_minutes": 120,
        "description": "Hardware diagnosis and repair for laptops of any brand.",
    },
    {
        "name": "OS Installation",
        "price": 100000.0,
        "duration_minutes": 90,
        "description": "Clean operating system install with drivers and updates.",
    },
    {
        "name": "Data Recovery",
        "price": 250000.0,
        "duration_minutes": 180,
        "description": "Recover files from damaged or formatted drives.",
    },
    {
        "name": "Network Setup",
        "price": 200000.0,
        "duration_minutes": 120,
        "description": "Router, Wi-Fi and small office network configuration.",
    },
]

SAMPLE_PRODUCTS = [
    {"name": "USB-C Charger 65W", "price": 350000.0, "stock": 12, "category": "Accessories",
     "description": "Universal laptop charger."},
    {"name": "SSD 512GB", "price": 750000.0, "stock": 8, "category": "Storage",
     "description": "SATA solid state drive."},
    {"name": "DDR4 RAM 8GB", "price": 450000.0, "stock": 5, "category": "Components",
     "description": "Laptop memory module."},
]

SAMPLE_TESTIMONIALS = [
    {"name": "Rina", "role": "Student", "rating": 5,
     "content": "My laptop was fixed in a day and the status updates were clear."},
    {"name": "Budi", "role": "Small business owner", "rating": 4,
     "content": "They set up our office network quickly and explained everything."},
]


@app.on_event("startup")
def startup():
    configure_logging(settings.LOG_LEVEL)
    validate_startup_config(settings)
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as exc:
        logger.critical("Startup blocked: database unreachable: %s", exc)
        raise StartupValidationError("Database is unreachable") from exc
    if settings.SEED_DATA:
        seed_data()
    logger.info("IT Clinic API started")


def seed_data():
    with SessionLocal() as db:
        gateway = DataGateway(db)
        for table, rows in (
            ("services", SAMPLE_SERVICES),
            ("products", SAMPLE_PRODUCTS),
            ("testimonials", SAMPLE_TESTIMONIALS),
        ):
            for row in rows:
                if not gateway.exists(table, {"name": row["name"]}):
                    gateway.insert(table, row)
                    logger.info("Seeded %s: %s", table, row["name"])


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = field_errors(exc.errors(), skip_prefix=("body", "query", "path"))
    err = ValidationError(errors)
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


@app.middleware("http")
async def request_context(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-Id"] = request_id
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    logger.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, duration_ms)
    return response


app.include_router(services_router.router)
app.include_router(products_router.router)
app.include_router(reservations_router.router)
app.include_router(profile_router.router)
app.include_router(admin_router.router)
app.include_router(public_router.router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


@app.get("/health")
def health():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        database = "disconnected"
    status_code = 200 if database == "connected" else 503
    return JSONResponse(status_code=status_code, content={"status": "ok" if status_code == 200 else "degraded", "database": database})
