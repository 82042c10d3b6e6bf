import logging

from fastapi import FastAPI

from app.core.config import settings
from app.core.exceptions import setup_exception_handlers
from app.db.base import Base, engine
from app.db.models import availability, booking, category, location, payment, review, service, user  # noqa: F401
from app.api.routes import auth
from app.api.routes import users as users_router
from app.api.routes import categories as categories_router
from app.api.routes import locations as locations_router
from app.api.routes import services as services_router
from app.api.routes import bookings as bookings_router
from app.api.routes import availability as availability_router
from app.api.routes import review as review_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Booking Marketplace API")
setup_exception_handlers(app)


@app.on_event("startup")
def startup():
    Base.metadata.create_all(bind=engine)


@app.get("/")
def root():
    return {"message": "Booking Marketplace API running"}


app.include_router(auth.router, prefix="/api/auth")
app.include_router(users_router.router)
app.include_router(categories_router.router)
app.include_router(locations_router.router)
app.include_router(services_router.router)
app.include_router(bookings_router.router)
app.include_router(availability_router.router)
app.include_router(review_router.router)
