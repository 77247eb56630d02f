from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from civicease.core.config import settings
from civicease.core.exceptions import CivicEaseError
from civicease.core.firebase_init import initialize_firebase, get_firebase_status
from civicease.core.scheduler import start_scheduler, stop_scheduler
from civicease.routers import announcements, auth, complaints, departments, users
from civicease.services.complaint_lifecycle import utc_now
from civicease.services.department_service import department_service

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize Firebase first
firebase_status = get_firebase_status()
if not firebase_status['available']:
    if initialize_firebase():
        logger.info("Firebase initialized successfully")
    else:
        logger.warning("Firebase initialization failed - app will run without Firebase features")

app = FastAPI(
    title="CivicEase API",
    description="Municipal complaint management: citizens, departments, contractors",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==================== ERROR ENVELOPE ====================
# Every failure is returned as {"error": "<message>"}

@app.exception_handler(CivicEaseError)
async def civicease_error_handler(request: Request, exc: CivicEaseError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    missing = [
        str(err["loc"][-1]) for err in exc.errors()
        if err.get("type") == "missing" and err.get("loc")
    ]
    if missing:
        message = f"Missing required fields: {', '.join(missing)}"
    else:
        message = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ())[1:])}: {err.get('msg')}"
            for err in exc.errors()
        ) or "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": f"Internal server error: {exc}"})

# ==================== STARTUP / SHUTDOWN ====================

@app.on_event("startup")
async def startup_event():
    """Seed default departments and start the complaint watch"""
    logger.info("FastAPI startup event triggered")
    if get_firebase_status()['available']:
        try:
            await department_service.initialize_default_departments()
        except CivicEaseError as e:
            logger.error(f"Department seeding failed: {e}")
    else:
        logger.warning("Skipping department seeding - Firebase not available")

    if settings.ENABLE_COMPLAINT_WATCH:
        start_scheduler()

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("FastAPI shutdown event triggered")
    stop_scheduler()

# ==================== ROUTERS ====================

for module in (auth, departments, complaints, users, announcements):
    app.include_router(module.router, prefix=settings.API_PREFIX)
    logger.info(f"Included router {module.__name__}")

@app.get(f"{settings.API_PREFIX}/health")
async def health_check():
    return {
        "status": "ok",
        "timestamp": utc_now(),
        "firebase_available": get_firebase_status()['available'],
    }
