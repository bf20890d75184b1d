import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from studio.core import config
from studio.database import Base, engine, ensure_blocked_slot_schema, ensure_booking_schema
from studio.models import blocked_slot, booking, business_hours, business_setting, service, user  # noqa: F401
from studio.routes import admin_routes, booking_routes, service_routes

logging.basicConfig(level=logging.INFO)

config.validate_runtime_config()

app = FastAPI(title=config.BUSINESS_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_booking_schema()
        ensure_blocked_slot_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': f'{config.BUSINESS_NAME} API Running'}


app.include_router(service_routes.router, prefix='/services')
app.include_router(booking_routes.router, prefix='/bookings')
app.include_router(admin_routes.router, prefix='/admin')
