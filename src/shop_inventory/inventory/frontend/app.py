from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional

from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route
from starlette.staticfiles import StaticFiles

from ...logging import get_logger
from ...domain.models import SortOption, ViewParams
from ...domain.normalize import coerce_flag
from ...paths import find_project_root
from ..constants import EXPORT_FILENAME
from ..editor import ProductForm, form_payload
from ..errors import (
    CameraAccessError,
    ImportFormatError,
    InventoryError,
    NotFoundError,
    RecountStateError,
    ValidationError,
)
from ..scan import BarcodeScanner, ScanMode, SimulatedScanner
from ..service import InventoryService, ScanOutcome
from ..store import product_payload


LOG = get_logger("inventory-frontend")

DEFAULT_STATIC_SUBDIR = os.path.join("frontend", "inventory-ui", "dist")

_ERROR_STATUS = {
    ValidationError: 400,
    ImportFormatError: 400,
    NotFoundError: 404,
    RecountStateError: 409,
    CameraAccessError: 503,
}


def _parse_sort(value: Any) -> SortOption:
    try:
        return SortOption.parse(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _parse_mode(value: Any) -> ScanMode:
    try:
        return ScanMode.parse(value or ScanMode.ADD.value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


async def _json_body(request: Request) -> Dict[str, Any]:
    raw = await request.body()
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Request body must be JSON") from exc
    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return data


def _view_overrides(base: ViewParams, source: Dict[str, Any]) -> ViewParams:
    """Apply search/category/sort/low-stock overrides from a query or body."""
    changes: Dict[str, Any] = {}
    if source.get("search") is not None:
        changes["search_text"] = str(source["search"])
    if source.get("category") is not None:
        changes["category"] = str(source["category"]) or base.category
    if source.get("sort") is not None:
        changes["sort"] = _parse_sort(source["sort"])
    for key in ("low_stock", "lowStockOnly"):
        if source.get(key) is not None:
            changes["low_stock_only"] = coerce_flag(source[key])
    return base.with_changes(**changes) if changes else base


def _outcome_payload(outcome: ScanOutcome) -> Dict[str, Any]:
    payload = outcome.action.to_dict()
    payload["product"] = product_payload(outcome.product) if outcome.product else None
    payload["view"] = outcome.view.to_dict()
    payload["form"] = form_payload(outcome.form) if outcome.form else None
    if outcome.error is not None:
        payload["detail"] = str(outcome.error)
    return payload


def create_app(
    root_dir: Optional[str] = None,
    *,
    db_path: Optional[str] = None,
    static_dir: Optional[str] = None,
    allow_origins: Optional[List[str]] = None,
    serve_static: bool = True,
    scanner: Optional[BarcodeScanner] = None,
) -> Starlette:
    """Create a Starlette app exposing the inventory API and optional frontend."""

    project_root = find_project_root(root_dir)
    service = InventoryService.open(project_root, db_path=db_path, scanner=scanner or SimulatedScanner())

    resolved_static_dir: Optional[str] = None
    if serve_static:
        candidate = os.path.abspath(os.path.join(project_root, static_dir or DEFAULT_STATIC_SUBDIR))
        if os.path.isdir(candidate):
            resolved_static_dir = candidate
            LOG.info("Serving static frontend from %s", resolved_static_dir)
        else:
            LOG.warning("Frontend build not found at %s; API will run without static assets.", candidate)
    else:
        LOG.info("Static frontend serving disabled (API only mode).")

    async def inventory_error(_: Request, exc: Exception) -> JSONResponse:
        status = next((code for cls, code in _ERROR_STATUS.items() if isinstance(exc, cls)), 400)
        payload: Dict[str, Any] = {"detail": str(exc), "error": type(exc).__name__}
        if isinstance(exc, NotFoundError) and exc.key is not None:
            payload["key"] = exc.key
        LOG.warning("%s: %s", type(exc).__name__, exc)
        return JSONResponse(payload, status_code=status)

    async def health(_: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "db_path": service.store.storage.db_path, "products": len(service.store)})

    # ---------------- catalog ----------------
    async def products(request: Request) -> JSONResponse:
        params = _view_overrides(service.view, dict(request.query_params))
        view = service.catalog(params)
        return JSONResponse(view.to_dict(recentlyUpdatedId=service.recently_updated_id))

    async def category_list(_: Request) -> JSONResponse:
        return JSONResponse({"items": service.categories()})

    async def view_params(request: Request) -> JSONResponse:
        if request.method == "PUT":
            body = await _json_body(request)
            service.view = _view_overrides(service.view, body)
        return JSONResponse(service.view.to_dict())

    # ---------------- products ----------------
    async def create_product(request: Request) -> JSONResponse:
        body = await _json_body(request)
        product = service.save_product(ProductForm.from_fields(body))
        return JSONResponse(product_payload(product), status_code=201)

    async def product_detail(request: Request) -> JSONResponse:
        product_id = request.path_params["product_id"]
        if request.method == "GET":
            return JSONResponse(product_payload(service.store.get(product_id)))
        if request.method == "PUT":
            body = await _json_body(request)
            form = ProductForm.from_fields(body, base=service.edit_form(product_id))
            return JSONResponse(product_payload(service.save_product(form, product_id)))
        deleted = service.delete_product(product_id, confirmed=coerce_flag(request.query_params.get("confirm")))
        return JSONResponse({"deleted": deleted, "id": product_id})

    async def product_form(request: Request) -> JSONResponse:
        product_id = request.path_params.get("product_id")
        prefill = {"barcode": request.query_params["barcode"]} if "barcode" in request.query_params else None
        return JSONResponse(form_payload(service.edit_form(product_id, prefill)))

    async def product_quantity(request: Request) -> JSONResponse:
        product_id = request.path_params["product_id"]
        body = await _json_body(request)
        try:
            if "quantity" in body:
                product = service.set_quantity(product_id, int(body["quantity"]))
            elif "delta" in body:
                product = service.adjust_quantity(product_id, int(body["delta"]))
            else:
                raise HTTPException(status_code=400, detail="Provide 'quantity' or 'delta'")
        except (TypeError, ValueError) as exc:
            raise HTTPException(status_code=400, detail="Quantity values must be integers") from exc
        return JSONResponse(product_payload(product))

    async def product_favorite(request: Request) -> JSONResponse:
        product = service.toggle_favorite(request.path_params["product_id"])
        return JSONResponse(product_payload(product))

    # ---------------- recount ----------------
    async def recount_status(_: Request) -> JSONResponse:
        return JSONResponse(service.recount.to_dict())

    async def recount_start(_: Request) -> JSONResponse:
        service.recount.start()
        return JSONResponse(service.recount.to_dict())

    async def recount_mark(request: Request) -> JSONResponse:
        newly = service.recount.mark(request.path_params["product_id"])
        payload = service.recount.to_dict()
        payload["newlyMarked"] = newly
        return JSONResponse(payload)

    async def recount_finish(request: Request) -> JSONResponse:
        body = await _json_body(request)
        result = service.recount.finish(confirmed=coerce_flag(body.get("confirm")))
        return JSONResponse(result.to_dict())

    # ---------------- scanning ----------------
    async def scan(request: Request) -> JSONResponse:
        body = await _json_body(request)
        barcode = str(body.get("barcode") or "").strip()
        if not barcode:
            raise HTTPException(status_code=400, detail="barcode is required")
        outcome = service.scan(_parse_mode(body.get("mode")), barcode)
        return JSONResponse(_outcome_payload(outcome), status_code=404 if outcome.action.not_found else 200)

    async def scan_camera(request: Request) -> JSONResponse:
        body = await _json_body(request)
        outcome = service.scan_with(_parse_mode(body.get("mode")))
        return JSONResponse(_outcome_payload(outcome), status_code=404 if outcome.action.not_found else 200)

    # ---------------- data management ----------------
    async def export_data(_: Request) -> Response:
        return Response(
            service.export_data(),
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
        )

    async def import_data(request: Request) -> JSONResponse:
        raw = await request.body()
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ImportFormatError("Import must be UTF-8 encoded JSON") from exc
        result = service.import_data(text, confirmed=coerce_flag(request.query_params.get("confirm")))
        return JSONResponse(result.to_dict())

    async def sample_data(request: Request) -> JSONResponse:
        applied = service.load_sample(confirmed=coerce_flag(request.query_params.get("confirm")))
        return JSONResponse({"applied": applied, "total": len(service.store)})

    routes = [
        Route("/api/health", health, methods=["GET"]),
        Route("/api/products", products, methods=["GET"]),
        Route("/api/products", create_product, methods=["POST"]),
        Route("/api/products/form", product_form, methods=["GET"]),
        Route("/api/products/{product_id:str}", product_detail, methods=["GET", "PUT", "DELETE"]),
        Route("/api/products/{product_id:str}/form", product_form, methods=["GET"]),
        Route("/api/products/{product_id:str}/quantity", product_quantity, methods=["POST"]),
        Route("/api/products/{product_id:str}/favorite", product_favorite, methods=["POST"]),
        Route("/api/categories", category_list, methods=["GET"]),
        Route("/api/view", view_params, methods=["GET", "PUT"]),
        Route("/api/recount", recount_status, methods=["GET"]),
        Route("/api/recount/start", recount_start, methods=["POST"]),
        Route("/api/recount/mark/{product_id:str}", recount_mark, methods=["POST"]),
        Route("/api/recount/finish", recount_finish, methods=["POST"]),
        Route("/api/scan", scan, methods=["POST"]),
        Route("/api/scan/camera", scan_camera, methods=["POST"]),
        Route("/api/export", export_data, methods=["GET"]),
        Route("/api/import", import_data, methods=["POST"]),
        Route("/api/sample", sample_data, methods=["POST"]),
    ]

    app = Starlette(debug=False, routes=routes, exception_handlers={InventoryError: inventory_error})
    app.state.service = service

    origins = allow_origins or ["http://localhost:5173", "http://127.0.0.1:5173"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if "*" in origins else origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if resolved_static_dir:
        app.mount("/", StaticFiles(directory=resolved_static_dir, html=True), name="frontend")
    else:
        async def api_only(_: Request) -> JSONResponse:
            return JSONResponse({"detail": "Inventory API is running. No static frontend is being served."})

        app.add_route("/", api_only, methods=["GET"])

    return app


__all__ = ["create_app"]
