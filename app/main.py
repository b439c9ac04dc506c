# app/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import config
from app.calendar_service import CalendarService, GoogleCalendarService
from app.exceptions import BookingAPIError
from app.notifier import Notifier, NullNotifier, ResendNotifier
from app.routers.absences_routes import router as absences_router
from app.routers.events_routes import router as events_router
from app.schemas import first_error
from app.services import BookingService

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)


def build_calendar() -> CalendarService:
    return GoogleCalendarService(
        calendar_id=config.CALENDAR_ID,
        credentials_info=config.google_credentials_info(),
    )


def build_notifier() -> Notifier:
    if not config.RESEND_API_KEY:
        logger.warning("RESEND_API_KEY not set, confirmation emails are disabled")
        return NullNotifier()
    return ResendNotifier(config.RESEND_API_KEY, config.EMAIL_FROM_ADDRESS)


def create_app(
    calendar: Optional[CalendarService] = None,
    notifier: Optional[Notifier] = None,
) -> FastAPI:
    def install(calendar: CalendarService, notifier: Notifier):
        app.state.booking_service = BookingService(
            calendar,
            notifier,
            timezone=config.TIMEZONE,
            default_minutes=config.DEFAULT_BOOKING_MINUTES,
            absence_minutes=config.ABSENCE_DEFAULT_MINUTES,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "booking_service", None) is None:
            logger.info(f"Connecting to Google Calendar {config.CALENDAR_ID} ({config.TIMEZONE})")
            install(build_calendar(), notifier or build_notifier())
        yield
        logger.info("Application shutting down...")

    app = FastAPI(title="Hair Studio Calendar API", version="1.0.0", lifespan=lifespan)
    app.state.booking_service = None
    if calendar is not None:
        install(calendar, notifier or NullNotifier())

    @app.exception_handler(BookingAPIError)
    async def booking_error_handler(request: Request, exc: BookingAPIError):
        if exc.status_code >= 500:
            logger.error(f"{request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
        errors = exc.errors()
        message = f"Pedido inválido: {first_error(errors)}" if errors else "Pedido inválido"
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"❌ Unexpected error on {request.url.path}")
        return JSONResponse(status_code=500, content={"error": "Erro interno do servidor"})

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def root():
        return {"message": "Servidor do Hair Studio está ativo 🚀"}

    @app.get("/health")
    def health_check():
        return {"ok": True}

    app.include_router(events_router)
    app.include_router(absences_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=config.PORT)
