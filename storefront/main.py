# storefront/main.py
import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI

from . import cart, checkout, geocode, notifications, pages, payments, proxy, wishlist
from .config import Settings
from .errors import register_exception_handlers
from .logging_config import configure_logging
from .sessions import SessionStore

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level, settings.log_file)

    app = FastAPI(
        title="Storefront",
        description="Cart and wishlist state, checkout, geocoding, email and the data-store proxy",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.sessions = SessionStore(max_idle=settings.session_ttl_minutes * 60)

    register_exception_handlers(app)

    app.include_router(pages.router)
    app.include_router(cart.router)
    app.include_router(wishlist.router)
    app.include_router(checkout.router)
    app.include_router(geocode.router)
    app.include_router(notifications.router)
    app.include_router(payments.router)
    app.include_router(proxy.router)

    if not settings.service_api_key:
        logger.warning("service API key is not set; proxy and checkout will answer 500")
    return app


if __name__ == "__main__":
    uvicorn.run("storefront.main:create_app", factory=True, host="0.0.0.0", port=8000, reload=True)
