import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.core.config import settings
from shared.core.database import BillingSessionLocal, billing_engine, Base
from shared.core.exception_handler import setup_exception_handlers
from shared.wrappers.response_wrapper import JsonResponseMiddleware

from .models.shops import shops
from .models.energy_iot import meters, meter_readings
from .models.financials import invoices
from .models.system import system_settings
from .crud.system.system_settings_crud import get_or_create_settings
from .router.shops import shops_router
from .router.energy_iot import meter_readings_router, meters_router
from .router.financials import invoice_router
from .router.system import system_settings_router
from .router.common import data_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create all tables
    Base.metadata.create_all(bind=billing_engine)

    db = BillingSessionLocal()
    try:
        get_or_create_settings(db)
        db.commit()
    finally:
        db.close()

    logger.info("Metering service started on %s", billing_engine.url.render_as_string(hide_password=True))
    yield


app = FastAPI(title="Metering Service API", lifespan=lifespan)

# 1. CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 2. Custom JSON response wrapper middleware
app.add_middleware(JsonResponseMiddleware)

# Register exception handlers
setup_exception_handlers(app)

# Include routers
app.include_router(shops_router.router)
app.include_router(meters_router.router)
app.include_router(meter_readings_router.router)
app.include_router(invoice_router.router)
app.include_router(system_settings_router.router)
app.include_router(data_router.router)


@app.get("/")
def root():
    return {"message": "Metering Service running"}
