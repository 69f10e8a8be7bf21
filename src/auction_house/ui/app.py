"""Auction HTTP app — FastAPI + Jinja2.

Public surface:
  GET  /                 — auction listing (HTML)
  GET  /{slug}           — auction page (HTML, polls /{slug}/status)
  GET  /{slug}/status    — current bid + lifecycle flags (JSON)
  POST /{slug}/bid       — place a bid (JSON)

Admin pages (HTML, redirect to the login page without a session):
  GET  /admin/login, GET /admin

Admin API (JSON, session cookie required except for login):
  POST /admin/login, POST /admin/logout, GET /admin/auctions,
  POST /admin/auction, POST /admin/auction/{id}/update,
  POST /admin/auction/{id}/delete, POST /admin/creds

Operational:
  GET  /health, GET /metrics

Handlers are plain ``def`` so FastAPI runs them in its thread pool; the
engine's per-auction locks do the serialising.

Usage::

    from auction_house.ui.app import create_app

    app = create_app(engine, settings=settings)
"""

from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from auction_house import __version__
from auction_house.core.config import Settings
from auction_house.core.errors import (
    AuctionNotFound,
    InvalidAuctionSpec,
    InvalidCredentials,
)
from auction_house.engine import AuctionEngine
from auction_house.observability import metrics
from auction_house.observability.logger import new_trace_id, set_trace_id

from .schemas import (
    NOT_FOUND_MESSAGE,
    REJECT_MESSAGES,
    BidRequest,
    CreateAuctionRequest,
    CredentialsRequest,
    LoginRequest,
    UpdateAuctionRequest,
    auction_payload,
    dashboard_row,
    money,
    status_payload,
)
from .sessions import SessionRegistry

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"


def create_app(
    engine: AuctionEngine,
    settings: Settings | None = None,
    sessions: SessionRegistry | None = None,
) -> FastAPI:
    """Create the auction FastAPI application around an engine."""
    settings = settings or Settings()
    app = FastAPI(title="Auction House", docs_url=None, redoc_url=None)
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

    app.state.engine = engine
    app.state.settings = settings
    app.state.sessions = sessions or SessionRegistry(
        ttl=timedelta(minutes=settings.admin.session_ttl_minutes),
        clock=engine.clock,
    )
    cookie_name = settings.admin.cookie_name
    metrics.set_system_info(__version__)

    # ------------------------------------------------------------------
    # Middleware & error mapping
    # ------------------------------------------------------------------

    @app.middleware("http")
    async def trace_requests(request: Request, call_next: Any) -> Response:
        incoming = request.headers.get("x-trace-id")
        if incoming:
            set_trace_id(incoming)
            trace_id = incoming
        else:
            trace_id = new_trace_id()
        response = await call_next(request)
        response.headers["X-Trace-Id"] = trace_id
        return response

    @app.exception_handler(AuctionNotFound)
    async def _not_found(request: Request, exc: AuctionNotFound) -> JSONResponse:
        return JSONResponse({"ok": False, "error": NOT_FOUND_MESSAGE}, status_code=404)

    @app.exception_handler(InvalidAuctionSpec)
    async def _invalid_spec(request: Request, exc: InvalidAuctionSpec) -> JSONResponse:
        return JSONResponse({"ok": False, "error": str(exc)}, status_code=400)

    @app.exception_handler(InvalidCredentials)
    async def _invalid_creds(request: Request, exc: InvalidCredentials) -> JSONResponse:
        return JSONResponse({"ok": False, "error": str(exc)}, status_code=400)

    def require_admin(request: Request) -> str:
        token = request.cookies.get(cookie_name)
        if not app.state.sessions.is_valid(token):
            raise HTTPException(status_code=401, detail="Login required")
        return token

    def is_admin(request: Request) -> bool:
        return app.state.sessions.is_valid(request.cookies.get(cookie_name))

    # ------------------------------------------------------------------
    # Operational
    # ------------------------------------------------------------------

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/metrics")
    def metrics_endpoint() -> Response:
        body, content_type = metrics.render_latest()
        return Response(content=body, media_type=content_type)

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    @app.post("/admin/login")
    def admin_login(body: LoginRequest) -> JSONResponse:
        if not engine.verify_credentials(body.username, body.password):
            logger.info("Admin login failed for %r", body.username)
            return JSONResponse({"ok": False, "error": "Invalid credentials"}, status_code=401)
        token = app.state.sessions.issue()
        response = JSONResponse({"ok": True})
        response.set_cookie(
            cookie_name,
            token,
            max_age=int(app.state.sessions.ttl.total_seconds()),
            httponly=True,
            samesite="lax",
        )
        return response

    @app.post("/admin/logout")
    def admin_logout(request: Request) -> JSONResponse:
        app.state.sessions.revoke(request.cookies.get(cookie_name))
        response = JSONResponse({"ok": True})
        response.delete_cookie(cookie_name)
        return response

    @app.get("/admin/login", response_class=HTMLResponse)
    def admin_login_page(request: Request) -> Response:
        if is_admin(request):
            return RedirectResponse("/admin", status_code=303)
        return templates.TemplateResponse(request, "admin_login.html", {})

    @app.get("/admin", response_class=HTMLResponse)
    def admin_dashboard_page(request: Request) -> Response:
        if not is_admin(request):
            return RedirectResponse("/admin/login", status_code=303)
        now = engine.clock.now()
        return templates.TemplateResponse(
            request,
            "admin_dashboard.html",
            {
                "admin_user": engine.store.admin.username,
                "auctions": [dashboard_row(a, now) for a in engine.list_auctions()],
            },
        )

    @app.get("/admin/auctions")
    def admin_auctions(_: str = Depends(require_admin)) -> dict[str, Any]:
        now = engine.clock.now()
        return {
            "ok": True,
            "admin_user": engine.store.admin.username,
            "auctions": [
                auction_payload(a, now, include_bids=True)
                for a in engine.list_auctions()
            ],
        }

    @app.post("/admin/creds")
    def admin_credentials(
        body: CredentialsRequest, _: str = Depends(require_admin),
    ) -> dict[str, Any]:
        engine.rotate_credentials(body.username, body.password)
        return {"ok": True, "admin_user": engine.store.admin.username}

    @app.post("/admin/auction", status_code=201)
    def admin_create_auction(
        body: CreateAuctionRequest, _: str = Depends(require_admin),
    ) -> dict[str, Any]:
        try:
            spec = body.to_spec()
        except (ValueError, OverflowError) as exc:
            raise InvalidAuctionSpec(str(exc)) from exc
        auction = engine.create_auction(spec)
        return {"ok": True, "auction": auction_payload(auction, engine.clock.now())}

    @app.post("/admin/auction/{auction_id}/update")
    def admin_update_auction(
        auction_id: str,
        body: UpdateAuctionRequest,
        _: str = Depends(require_admin),
    ) -> dict[str, Any]:
        try:
            patch = body.to_patch()
        except (ValueError, OverflowError) as exc:
            raise InvalidAuctionSpec(str(exc)) from exc
        auction = engine.update_auction(auction_id, patch)
        return {"ok": True, "auction": auction_payload(auction, engine.clock.now())}

    @app.post("/admin/auction/{auction_id}/delete")
    def admin_delete_auction(
        auction_id: str, _: str = Depends(require_admin),
    ) -> dict[str, Any]:
        engine.delete_auction(auction_id)
        return {"ok": True}

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    @app.get("/", response_class=HTMLResponse)
    def home_page(request: Request) -> HTMLResponse:
        now = engine.clock.now()
        auctions = [auction_payload(a, now) for a in engine.list_auctions()]
        return templates.TemplateResponse(request, "home.html", {"auctions": auctions})

    @app.get("/{slug}/status")
    def auction_status(slug: str) -> dict[str, Any]:
        return status_payload(engine.status(slug))

    @app.post("/{slug}/bid")
    def place_bid(slug: str, body: BidRequest, request: Request) -> dict[str, Any]:
        bidder = request.client.host if request.client else ""
        outcome = engine.place_bid(slug, body.amount, bidder_ref=bidder)
        if outcome.ok:
            return {"ok": True, "current_bid": money(outcome.current_bid)}
        return {"ok": False, "error": REJECT_MESSAGES[outcome.reason]}

    @app.get("/{slug}", response_class=HTMLResponse)
    def auction_page(slug: str, request: Request) -> HTMLResponse:
        try:
            auction = engine.get_auction(slug)
        except AuctionNotFound:
            return templates.TemplateResponse(
                request, "notfound.html", {"slug": slug}, status_code=404,
            )
        now = engine.clock.now()
        return templates.TemplateResponse(
            request,
            "auction.html",
            {
                "auction": auction_payload(auction, now),
                "status": status_payload(engine.status(slug, now=now)),
            },
        )

    return app
