# storefront/pages.py
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, Response
from fastapi.templating import Jinja2Templates

from .config import Settings, get_settings
from .mailer import TEMPLATES_DIR

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
router = APIRouter(tags=["pages"])


@router.get("/health")
async def health():
    return {"status": "ok"}


# Fallback page the offline worker serves when the network is gone
@router.get("/offline", response_class=HTMLResponse)
async def offline_page(request: Request, settings: Settings = Depends(get_settings)):
    return templates.TemplateResponse(request, "offline.html", {"store_name": settings.store_name})


@router.get("/sw.js")
async def service_worker(settings: Settings = Depends(get_settings)):
    script = templates.get_template("sw.js").render(cache_name=settings.offline_cache_name)
    return Response(
        content=script,
        media_type="application/javascript",
        headers={"Service-Worker-Allowed": "/", "Cache-Control": "no-cache"},
    )
