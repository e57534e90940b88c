import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .email_service import check_email_configuration
from .routes.certificates import router as certificates_router
from .services.delivery import DeliveryRegistry

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")

    # Advisory only: an unreachable mail provider must not block startup
    if not check_email_configuration():
        logger.warning("Email delivery is not configured - certificates will be generated but not sent")

    yield

    pending = [task for task in app.state.deliveries.all() if not task.done]
    if pending:
        logger.info(f"Application shutting down with {len(pending)} email deliveries in flight")
    logger.info("Application shutting down...")


app = FastAPI(title="Certificate API", version="1.0.0", lifespan=lifespan)
app.state.deliveries = DeliveryRegistry(max_size=config.DELIVERY_HISTORY_SIZE)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies (non-JSON, non-string fields) get the same 400 payload as missing fields"""
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    if request.url.path == "/api/generate-certificate":
        return JSONResponse(status_code=400, content={"error": "All fields are required"})
    return JSONResponse(status_code=422, content={"detail": exc.errors()})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


logger.info(f"CORS allowed origins: {config.ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Routes
app.include_router(certificates_router)


@app.get("/")
def root():
    return {"message": "Certificate API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}


@app.get("/health/email")
def email_health_check():
    """Report whether email delivery is configured"""
    configured = check_email_configuration()
    return {
        "status": "healthy" if configured else "degraded",
        "email": {"configured": configured},
    }
