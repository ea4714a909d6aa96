from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Dict, Sequence

from ..config import load_server
from ..domain.models import SortOption
from ..inventory import InventoryError, InventoryService
from ..inventory.constants import EXPORT_FILENAME
from ..inventory.editor import ProductForm
from ..inventory.errors import ImportFormatError
from ..inventory.scan import ScanMode
from ..inventory.store import product_payload
from ..logging import get_logger
from ..paths import expand_abs

LOG = get_logger("cli-main")


def _service(ns: argparse.Namespace) -> InventoryService:
    return InventoryService.open(os.getcwd(), db_path=expand_abs(ns.db) if ns.db else None)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _handle_init(ns: argparse.Namespace) -> int:
    svc = _service(ns)
    path = svc.store.storage.db_path
    LOG.info(f"Inventory storage ready at: {path} ({len(svc.store)} product(s))")
    print(path)
    return 0


def _handle_list(ns: argparse.Namespace) -> int:
    svc = _service(ns)
    params = svc.view.with_changes(
        search_text=ns.search or "",
        category=ns.category or svc.view.category,
        sort=SortOption.parse(ns.sort),
        low_stock_only=ns.low_stock,
    )
    view = svc.catalog(params)
    if view.empty_state:
        LOG.info(f"Catalog view is empty ({view.empty_state})")
    _print_json(view.to_dict())
    return 0


def _form_fields(ns: argparse.Namespace) -> Dict[str, Any]:
    fields = {
        "name": ns.name,
        "quantity": ns.quantity,
        "lowStockThreshold": ns.threshold,
        "notes": ns.notes,
        "imageUrl": ns.image_url,
        "barcode": ns.barcode,
    }
    if ns.category:
        fields["category"] = ns.category
    if ns.new_category:
        fields["newCategory"] = ns.new_category
    if ns.favorite:
        fields["isFavorite"] = True
    return {k: v for k, v in fields.items() if v is not None}


def _handle_add(ns: argparse.Namespace) -> int:
    svc = _service(ns)
    product = svc.save_product(ProductForm.from_fields(_form_fields(ns)))
    _print_json(product_payload(product))
    return 0


def _handle_edit(ns: argparse.Namespace) -> int:
    svc = _service(ns)
    form = ProductForm.from_fields(_form_fields(ns), base=svc.edit_form(ns.id))
    product = svc.save_product(form, ns.id)
    _print_json(product_payload(product))
    return 0


def _handle_adjust(ns: argparse.Namespace) -> int:
    svc = _service(ns)
    product = svc.adjust_quantity(ns.id, ns.delta)
    _print_json(product_payload(product))
    return 0


def _handle_favorite(ns: argparse.Namespace) -> int:
    svc = _service(ns)
    _print_json(product_payload(svc.toggle_favorite(ns.id)))
    return 0


def _handle_delete(ns: argparse.Namespace) -> int:
    svc = _service(ns)
    if not svc.delete_product(ns.id, confirmed=ns.yes):
        LOG.warning("Delete not confirmed; pass --yes to remove the product.")
        return 1
    LOG.info(f"Deleted product {ns.id}")
    return 0


def _handle_scan(ns: argparse.Namespace) -> int:
    svc = _service(ns)
    outcome = svc.scan(ScanMode.parse(ns.mode), ns.barcode)
    payload = outcome.action.to_dict()
    payload["product"] = product_payload(outcome.product) if outcome.product else None
    _print_json(payload)
    if outcome.error is not None:
        LOG.warning(str(outcome.error))
        if outcome.error.prefill:
            LOG.info("Create it with: shop-inventory add --name NAME --barcode %s", ns.barcode)
        return 1
    return 0


def _handle_export(ns: argparse.Namespace) -> int:
    svc = _service(ns)
    text = svc.export_data()
    if ns.output == "-":
        print(text)
        return 0
    out = expand_abs(ns.output)
    os.makedirs(os.path.dirname(out) or ".", exist_ok=True)
    with open(out, "w", encoding="utf-8") as f:
        f.write(text)
    LOG.info(f"Exported {len(svc.store)} product(s) to {out}")
    return 0


def _handle_import(ns: argparse.Namespace) -> int:
    svc = _service(ns)
    try:
        with open(expand_abs(ns.file), "r", encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise ImportFormatError(f"Could not read {ns.file}: {exc}") from exc
    result = svc.import_data(text, confirmed=ns.yes)
    if not result.applied:
        LOG.warning(f"{result.count} product(s) ready to import; pass --yes to replace the current inventory.")
        return 1
    LOG.info(f"Imported {result.count} product(s)")
    return 0


def _handle_sample(ns: argparse.Namespace) -> int:
    svc = _service(ns)
    if not svc.load_sample(confirmed=ns.yes):
        LOG.warning("This replaces all current data; pass --yes to load the sample catalog.")
        return 1
    LOG.info(f"Loaded {len(svc.store)} sample product(s)")
    return 0


def _handle_serve(ns: argparse.Namespace) -> int:
    from ..inventory.frontend.app import create_app
    import uvicorn

    default_host, default_port = load_server(os.getcwd())
    app = create_app(
        root_dir=os.getcwd(),
        db_path=expand_abs(ns.db) if ns.db else None,
        static_dir=ns.static_dir,
        allow_origins=ns.allow_origins,
        serve_static=not ns.api_only,
    )
    uvicorn.run(
        app,
        host=ns.host or default_host,
        port=ns.port or default_port,
        reload=ns.reload,
        log_level=ns.log_level,
    )
    return 0


def _add_form_args(p: argparse.ArgumentParser, *, require_name: bool) -> None:
    p.add_argument("--name", required=require_name)
    p.add_argument("--category", help="One of the default categories")
    p.add_argument("--new-category", help="Free-text category (overrides --category)")
    p.add_argument("--quantity", help="Non-numeric input is stored as 0")
    p.add_argument("--threshold", help="Low-stock threshold (default 10)")
    p.add_argument("--notes")
    p.add_argument("--image-url")
    p.add_argument("--barcode")
    p.add_argument("--favorite", action="store_true")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shop-inventory",
        description="Track shop stock: products, quantities, recounts and barcode scans.",
    )
    parser.add_argument("--db", help="Path to the inventory SQLite file (overrides INVENTORY_DB_PATH)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init = subparsers.add_parser("init", help="Create/ensure the inventory storage exists")
    init.set_defaults(handler=_handle_init)

    lst = subparsers.add_parser("list", help="Print the filtered, sorted catalog as JSON")
    lst.add_argument("--category")
    lst.add_argument("--search")
    lst.add_argument("--low-stock", action="store_true", help="Only products with 0 < quantity < threshold")
    lst.add_argument("--sort", default=SortOption.NAME.value, choices=[o.value for o in SortOption])
    lst.set_defaults(handler=_handle_list)

    add = subparsers.add_parser("add", help="Create a product")
    _add_form_args(add, require_name=True)
    add.set_defaults(handler=_handle_add)

    edit = subparsers.add_parser("edit", help="Update fields of an existing product")
    edit.add_argument("id")
    _add_form_args(edit, require_name=False)
    edit.set_defaults(handler=_handle_edit)

    adjust = subparsers.add_parser("adjust", help="Change a product quantity by DELTA (floored at 0)")
    adjust.add_argument("id")
    adjust.add_argument("delta", type=int)
    adjust.set_defaults(handler=_handle_adjust)

    fav = subparsers.add_parser("favorite", help="Toggle a product's favorite flag")
    fav.add_argument("id")
    fav.set_defaults(handler=_handle_favorite)

    delete = subparsers.add_parser("delete", help="Remove a product")
    delete.add_argument("id")
    delete.add_argument("--yes", action="store_true", help="Confirm the deletion")
    delete.set_defaults(handler=_handle_delete)

    scan = subparsers.add_parser("scan", help="Dispatch a decoded barcode")
    scan.add_argument("barcode")
    scan.add_argument("--mode", choices=[m.value for m in ScanMode], default=ScanMode.ADD.value)
    scan.set_defaults(handler=_handle_scan)

    export = subparsers.add_parser("export", help="Write the full catalog as JSON")
    export.add_argument("--output", default=EXPORT_FILENAME, help="Target file, or '-' for stdout")
    export.set_defaults(handler=_handle_export)

    imp = subparsers.add_parser("import", help="Replace the catalog with a JSON export")
    imp.add_argument("file")
    imp.add_argument("--yes", action="store_true", help="Confirm replacing current data")
    imp.set_defaults(handler=_handle_import)

    sample = subparsers.add_parser("sample", help="Replace the catalog with sample data")
    sample.add_argument("--yes", action="store_true", help="Confirm replacing current data")
    sample.set_defaults(handler=_handle_sample)

    serve = subparsers.add_parser("serve", help="Run the inventory API and optional static frontend")
    serve.add_argument("--host", help="Bind host (default INVENTORY_HOST or 127.0.0.1)")
    serve.add_argument("--port", type=int, help="Bind port (default INVENTORY_PORT or 8002)")
    serve.add_argument("--reload", action="store_true", help="Enable auto-reload (development only)")
    serve.add_argument("--log-level", default="info")
    serve.add_argument("--static-dir", help="Override static frontend directory relative to project root")
    serve.add_argument("--api-only", action="store_true", help="Serve JSON API without static frontend")
    serve.add_argument(
        "--allow-origin",
        action="append",
        dest="allow_origins",
        help="Allowed CORS origin (can be provided multiple times, use '*' for any).",
    )
    serve.set_defaults(handler=_handle_serve)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    provided = list(argv) if argv is not None else sys.argv[1:]
    LOG.debug(f"CLI invoked with arguments: {provided}")

    args = build_parser().parse_args(provided)
    try:
        code = args.handler(args)
    except InventoryError as exc:
        LOG.error(f"{type(exc).__name__}: {exc}")
        code = 2
    LOG.debug(f"Subcommand '{args.command}' finished with exit code {code}.")
    return code


if __name__ == "__main__":
    sys.exit(main())
