# storefront/clients.py
from typing import AsyncGenerator

import httpx
from fastapi import Depends

from .config import Settings, get_settings


async def get_http_client(settings: Settings = Depends(get_settings)) -> AsyncGenerator[httpx.AsyncClient, None]:
    # one client per request; every outbound call is attempted once
    async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
        yield client
