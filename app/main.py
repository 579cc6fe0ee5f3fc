from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import uvicorn

from app.config import CORS_ORIGINS
from app.database import engine, Base
from app.exceptions import CourtBookingError
from app import models  # noqa: F401  registra todas las tablas en Base.metadata
from app.routers import (
    auth,
    bookings,
    courts,
    facilities,
    join_requests,
    maintenance,
    matches,
    notifications,
)

# Configure base logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create database tables
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")
    yield


app = FastAPI(
    title="CourtMatch API",
    description="API for court slot bookings and pickup match join requests",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/auth", tags=["authentication"])
app.include_router(facilities.router, prefix="/facilities", tags=["facilities"])
app.include_router(courts.router, prefix="/courts", tags=["courts"])
app.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
app.include_router(maintenance.router, prefix="/maintenance", tags=["maintenance"])
app.include_router(matches.router, prefix="/matches", tags=["matches"])
app.include_router(
    join_requests.router, prefix="/join-requests", tags=["join-requests"]
)
app.include_router(
    notifications.router, prefix="/notifications", tags=["notifications"]
)


@app.get("/")
def read_root():
    return {"message": "Welcome to CourtMatch API"}


@app.exception_handler(CourtBookingError)
async def court_booking_error_handler(request: Request, exc: CourtBookingError):
    if exc.status_code >= 409:
        logger.warning(
            "%s | path=%s | method=%s | %s",
            exc.code,
            request.url.path,
            request.method,
            exc.message,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


# Global unhandled exception handler -> logs ERROR
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "Unhandled error | path=%s | method=%s | client=%s",
        request.url.path,
        request.method,
        request.client.host if request.client else "unknown",
    )
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=5009, reload=True)
