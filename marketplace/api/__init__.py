# marketplace/api/__init__.py
from fastapi import FastAPI

from marketplace.api.errors import register_error_handlers
from marketplace.api.routers import (
    auth,
    carts,
    health,
    notifications,
    orders,
    products,
    reviews,
    search,
    stores,
)


def create_app() -> FastAPI:
    app = FastAPI(title="Marketplace Service", version="1.0.0")

    register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(stores.router)
    app.include_router(products.router)
    app.include_router(search.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(reviews.router)
    app.include_router(notifications.router)

    return app
