"""Service worker, web manifest and offline page."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import HTMLResponse, JSONResponse, Response

from remind.pwa import OFFLINE_HTML, render_service_worker, web_manifest

router = APIRouter(tags=["pwa"])


@router.get("/sw.js", include_in_schema=False)
def service_worker() -> Response:
    return Response(
        content=render_service_worker(),
        media_type="application/javascript",
        headers={"Cache-Control": "no-cache", "Service-Worker-Allowed": "/"},
    )


@router.get("/manifest.json", include_in_schema=False)
def manifest() -> JSONResponse:
    return JSONResponse(web_manifest(), media_type="application/manifest+json")


@router.get("/offline.html", include_in_schema=False)
def offline_page() -> HTMLResponse:
    return HTMLResponse(OFFLINE_HTML)
