"""
Water Delivery Reconciliation: FastAPI application.

This is the entry point for the application.
All routers are registered here.
"""

from fastapi import FastAPI

from water_delivery.config import get_settings
from water_delivery.logging_config import setup_logging
from water_delivery.api.health import router as health_router
from water_delivery.api.orders import router as orders_router
from water_delivery.api.customers import router as customers_router
from water_delivery.api.cash_handovers import router as cash_handovers_router
from water_delivery.api.expenses import router as expenses_router

settings = get_settings()
setup_logging(settings.LOG_LEVEL)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=(
        "Order fulfillment, customer ledgers, bottle wallets and "
        "driver cash handovers for a bottled-water delivery business"
    ),
)

app.include_router(health_router)
app.include_router(orders_router)
app.include_router(customers_router)
app.include_router(cash_handovers_router)
app.include_router(expenses_router)
