"""
FastAPI application: the marketing page and the authenticated admin API.

The browser never sees database credentials. It calls these routes with the
admin key; the server holds the connection pool and runs every query.
"""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from sakila_admin import __version__
from sakila_admin.api.auth import APIKeyAuth
from sakila_admin.config import Settings, get_settings
from sakila_admin.data.errors import QueryError, TableNotFoundError
from sakila_admin.infrastructure.db_factory import PoolManager
from sakila_admin.marketing import render_landing_page
from sakila_admin.reports.analytics import AnalyticsReport
from sakila_admin.reports.dashboard import DashboardReport, sakila_dashboard, streaming_statistics
from sakila_admin.services import AppServices, build_services
from sakila_admin.shell import AdminShell, ConnectivityStatus, startup_check
from sakila_admin.utils.logging import get_logger
from sakila_admin.views.explorer import TableDescription
from sakila_admin.views.list_view import ActionState, ListView, ViewState
from sakila_admin.views.sales import SalesReport, sales_by_category
from sakila_admin.views.specs import VIEWS, ListViewSpec

log = get_logger(__name__)


def get_services(request: Request) -> AppServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service is starting")
    return services


def _unavailable(exc: QueryError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.error.message)


def create_app(settings: Optional[Settings] = None, services: Optional[AppServices] = None) -> FastAPI:
    """
    Create the application.

    Parameters
    ----------
    settings : Settings | None
        Defaults to `get_settings()`.
    services : AppServices | None
        Pre-built services (tests). When omitted the lifespan opens a pool,
        runs the startup connectivity check and negotiates analytics
        capabilities.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if services is not None:
            app.state.services = services
            yield
            return
        async with PoolManager(settings) as manager:
            built = build_services(await manager.get_pool(), settings)
            built.connectivity = await startup_check(built.gateway)
            if built.connectivity.ok:
                try:
                    await built.analytics.capabilities()
                except QueryError as exc:
                    log.warning("Capability negotiation deferred", extra={"error": exc.error.message})
            app.state.services = built
            yield

    app = FastAPI(title="Sakila Admin API", version=__version__, lifespan=lifespan)
    if services is not None:
        app.state.services = services

    allowed_origins: List[str] = [origin for origin in settings.cors_origins if origin]
    if allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_methods=["GET", "POST"],
            allow_headers=["X-API-Key", "Content-Type"],
        )

    auth = APIKeyAuth(settings.admin_api_key)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):  # type: ignore[no-untyped-def]
        start = time.perf_counter()
        response: Optional[Response] = None
        try:
            response = await call_next(request)
            return response
        finally:
            log.info(
                "Request handled",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code if response is not None else 500,
                    "duration_ms": round((time.perf_counter() - start) * 1000, 1),
                },
            )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
        detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"error": detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "invalid parameters", "details": exc.errors()},
        )

    # ---- Public -------------------------------------------------------------

    @app.get("/", response_class=HTMLResponse)
    def landing_page() -> str:
        return render_landing_page()

    # ---- Admin shell --------------------------------------------------------

    @app.get("/admin")
    def admin_shell(
        view: Optional[str] = Query(None),
        _: str = Depends(auth),
        svc: AppServices = Depends(get_services),
    ) -> Dict[str, Any]:
        shell = AdminShell()
        if view is not None:
            if not shell.knows(view):
                raise HTTPException(status_code=404, detail=f"Unknown view: {view}")
            shell.request_view(view)
        descriptor = shell.describe()
        descriptor["connectivity"] = svc.connectivity.model_dump(mode="json") if svc.connectivity else None
        return descriptor

    @app.get("/api/health", response_model=ConnectivityStatus)
    async def health(_: str = Depends(auth), svc: AppServices = Depends(get_services)) -> ConnectivityStatus:
        return await startup_check(svc.gateway)

    # ---- List views ---------------------------------------------------------

    @app.get("/api/views")
    def list_views(_: str = Depends(auth)) -> List[Dict[str, Any]]:
        return [
            {
                "view_id": spec.view_id,
                "title": spec.title,
                "table": spec.table,
                "section": spec.section,
                "searchable": spec.searchable,
                "search_placeholder": spec.search_placeholder,
            }
            for spec in VIEWS.values()
        ]

    def _spec(view_id: str) -> ListViewSpec:
        spec = VIEWS.get(view_id)
        if spec is None:
            raise HTTPException(status_code=404, detail=f"Unknown view: {view_id}")
        return spec

    @app.get("/api/views/{view_id}", response_model=ViewState)
    async def view_page(
        view_id: str,
        page: int = Query(1, ge=1),
        search: Optional[str] = Query(None),
        _: str = Depends(auth),
        svc: AppServices = Depends(get_services),
    ) -> ViewState:
        view = ListView(_spec(view_id), svc.gateway, svc.inspector, svc.page_size)
        return await view.load(page=page, search=search)

    @app.post("/api/views/{view_id}/actions/{action}", response_model=ActionState)
    def view_action(
        view_id: str,
        action: str,
        _: str = Depends(auth),
        svc: AppServices = Depends(get_services),
    ) -> JSONResponse:
        view = ListView(_spec(view_id), svc.gateway, svc.inspector, svc.page_size)
        try:
            outcome = view.trigger(action)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Unknown action: {action}") from None
        code = status.HTTP_200_OK if outcome.enabled else status.HTTP_501_NOT_IMPLEMENTED
        return JSONResponse(status_code=code, content=outcome.model_dump())

    # ---- Reports ------------------------------------------------------------

    @app.get("/api/dashboard", response_model=DashboardReport)
    async def dashboard(_: str = Depends(auth), svc: AppServices = Depends(get_services)) -> DashboardReport:
        return await sakila_dashboard(svc.gateway, svc.inspector)

    @app.get("/api/statistics", response_model=DashboardReport)
    async def statistics(_: str = Depends(auth), svc: AppServices = Depends(get_services)) -> DashboardReport:
        return await streaming_statistics(svc.gateway, svc.inspector)

    @app.get("/api/analytics", response_model=AnalyticsReport)
    async def analytics(_: str = Depends(auth), svc: AppServices = Depends(get_services)) -> AnalyticsReport:
        try:
            return await svc.analytics.report()
        except QueryError as exc:
            raise _unavailable(exc) from exc

    @app.get("/api/sales-by-category", response_model=SalesReport)
    async def sales(_: str = Depends(auth), svc: AppServices = Depends(get_services)) -> SalesReport:
        return await sales_by_category(svc.gateway, svc.inspector)

    # ---- Schema explorer ----------------------------------------------------

    @app.get("/api/schema/tables")
    async def schema_tables(_: str = Depends(auth), svc: AppServices = Depends(get_services)) -> Dict[str, Any]:
        try:
            tables = await svc.explorer.tables()
        except QueryError as exc:
            raise _unavailable(exc) from exc
        return {"schema": svc.inspector.schema, "tables": tables}

    @app.get("/api/schema/tables/{table}", response_model=TableDescription)
    async def schema_table(
        table: str, _: str = Depends(auth), svc: AppServices = Depends(get_services)
    ) -> TableDescription:
        try:
            return await svc.explorer.describe(table)
        except TableNotFoundError as exc:
            raise HTTPException(status_code=404, detail=exc.error.message) from exc
        except QueryError as exc:
            raise _unavailable(exc) from exc

    @app.get("/api/schema/tables/{table}/rows", response_model=ViewState)
    async def schema_rows(
        table: str,
        page: int = Query(1, ge=1),
        _: str = Depends(auth),
        svc: AppServices = Depends(get_services),
    ) -> ViewState:
        try:
            return await svc.explorer.browse(table, page=page)
        except TableNotFoundError as exc:
            raise HTTPException(status_code=404, detail=exc.error.message) from exc
        except QueryError as exc:
            raise _unavailable(exc) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    @app.post("/api/schema/cache/invalidate")
    def invalidate_cache(_: str = Depends(auth), svc: AppServices = Depends(get_services)) -> Dict[str, bool]:
        svc.explorer.invalidate()
        svc.analytics.reset()
        log.info("Schema caches invalidated")
        return {"invalidated": True}

    return app


__all__ = ["create_app", "get_services"]
