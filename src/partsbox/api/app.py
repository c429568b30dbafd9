from __future__ import annotations

from typing import Any, Dict, List, Optional

from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ..config import load_config
from ..domain.normalize import NOT_AVAILABLE
from ..errors import InventoryValidationError
from ..inventory.storage import SqliteSlotStorage
from ..inventory.store import InventoryStore
from ..logging import get_logger
from ..paths import find_project_root
from ..recognition.parser import parse_recognition_text


LOG = get_logger("api")


async def _json_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Request body must be JSON") from exc
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return body


def _text_field(body: Dict[str, Any], key: str, default: str = "") -> str:
    value = body.get(key, default)
    if value is None:
        return default
    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"'{key}' must be a string")
    return value.strip()


def _int_field(body: Dict[str, Any], key: str, default: Optional[int] = None) -> int:
    value = body.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise HTTPException(status_code=400, detail=f"'{key}' must be an integer")
    return value


def create_app(
    store: Optional[InventoryStore] = None,
    *,
    root_dir: Optional[str] = None,
    allow_origins: Optional[List[str]] = None,
) -> Starlette:
    """Create a Starlette app exposing the inventory and the response parser."""

    if store is None:
        config = load_config(find_project_root(root_dir))
        store = InventoryStore(SqliteSlotStorage(config.db_path))
    inventory = store

    async def health(_: Request) -> JSONResponse:
        error = inventory.last_persistence_error
        return JSONResponse(
            {
                "status": "ok",
                "parts": len(inventory),
                "db_path": getattr(inventory.storage, "db_path", None),
                "persistence_error": str(error) if error else None,
            }
        )

    async def list_parts(_: Request) -> JSONResponse:
        return JSONResponse({"items": inventory.snapshot()})

    async def create_part(request: Request) -> JSONResponse:
        body = await _json_body(request)
        name = _text_field(body, "name")
        spec = _text_field(body, "spec")
        function = _text_field(body, "function", NOT_AVAILABLE) or NOT_AVAILABLE
        quantity = _int_field(body, "quantity", 1)
        if quantity < 1:
            raise HTTPException(status_code=400, detail="'quantity' must be at least 1")
        try:
            record = inventory.upsert(name, spec, quantity, function)
        except InventoryValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return JSONResponse(record.as_dict(), status_code=201)

    async def part_detail(request: Request) -> JSONResponse:
        record = inventory.get(request.path_params["part_id"])
        if record is None:
            raise HTTPException(status_code=404, detail="Part not found")
        return JSONResponse(record.as_dict())

    async def adjust_quantity(request: Request) -> JSONResponse:
        body = await _json_body(request)
        delta = _int_field(body, "delta")
        record = inventory.adjust_quantity(request.path_params["part_id"], delta)
        if record is None:
            raise HTTPException(status_code=404, detail="Part not found")
        return JSONResponse(record.as_dict())

    async def delete_parts(request: Request) -> JSONResponse:
        body = await _json_body(request)
        ids = body.get("ids")
        if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
            raise HTTPException(status_code=400, detail="'ids' must be a list of strings")
        removed = inventory.delete(ids)
        return JSONResponse({"removed": removed})

    async def parse_text(request: Request) -> JSONResponse:
        body = await _json_body(request)
        text = body.get("text")
        if not isinstance(text, str):
            raise HTTPException(status_code=400, detail="'text' must be a string")
        summary = parse_recognition_text(text)
        return JSONResponse(
            {
                "parsed": summary is not None,
                "summary": summary.as_dict() if summary else None,
            }
        )

    routes = [
        Route("/api/health", health, methods=["GET"]),
        Route("/api/parts", list_parts, methods=["GET"]),
        Route("/api/parts", create_part, methods=["POST"]),
        Route("/api/parts", delete_parts, methods=["DELETE"]),
        Route("/api/parts/{part_id:str}", part_detail, methods=["GET"]),
        Route("/api/parts/{part_id:str}/quantity", adjust_quantity, methods=["PATCH"]),
        Route("/api/parse", parse_text, methods=["POST"]),
    ]

    app = Starlette(debug=False, routes=routes)

    if allow_origins:
        cors_allow_origins = ["*"] if "*" in allow_origins else list(allow_origins)
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_allow_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        LOG.info("CORS enabled for %s", ", ".join(cors_allow_origins))
    LOG.info("Inventory API ready with %d part(s)", len(inventory))
    return app


__all__ = ["create_app"]
