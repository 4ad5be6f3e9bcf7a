"""
Configurator API — thin HTTP surface over one ConfiguratorEngine.

GET    /api/configurator/catalog                 — Current catalog document
POST   /api/configurator/catalog                 — Upload a catalog document (raw JSON body)
GET    /api/configurator/catalog/export          — Download the catalog document
POST   /api/configurator/catalog/reset           — Reset to the default catalog
GET    /api/configurator/configuration           — Current selections per position
POST   /api/configurator/configuration/{category}/{sub_item}/selections           — Add a product
PATCH  /api/configurator/configuration/{category}/{sub_item}/selections/{index}   — Update a selection
POST   /api/configurator/configuration/{category}/{sub_item}/selections/{index}/options — Pick an option / set its quantity
DELETE /api/configurator/configuration/{category}/{sub_item}/selections/{index}   — Remove a selection
GET    /api/configurator/messages                — Message summary in display order
GET    /api/configurator/status                  — Overall and per-position status
GET    /api/configurator/summary                 — Priced summary and grand total

All UI state (focused step, open editor) stays with the client.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response
from pydantic import BaseModel

from ..engine import ConfiguratorEngine
from ..exceptions import (
    ConfiguratorError,
    UnknownOptionError,
    UnknownPositionError,
    UnknownProductError,
)
from ..catalog import catalog_to_document

router = APIRouter(prefix="/configurator", tags=["configurator"])

# Singleton engine: the one session this process serves
engine = ConfiguratorEngine()


def _raise_http(error: ConfiguratorError):
    not_found = (UnknownPositionError, UnknownProductError, UnknownOptionError)
    status = 404 if isinstance(error, not_found) else 400
    raise HTTPException(status_code=status, detail=error.as_dict()) from error


# --- Request schemas ---

class AddSelectionRequest(BaseModel):
    product_id: str


class OptionRequest(BaseModel):
    module_id: str
    option_id: str
    quantity: Optional[int] = None  # multi-select only


# --- Catalog ---

@router.get("/catalog")
def get_catalog():
    return catalog_to_document(engine.catalog)


@router.post("/catalog")
async def upload_catalog(request: Request):
    """Replace the catalog. On failure the current catalog and selections are kept."""
    raw = await request.body()
    result = engine.try_load_catalog(raw)
    if not result.ok:
        raise HTTPException(status_code=400, detail=result.error.as_dict())
    return {
        "loaded": True,
        "product_info": result.catalog.product_info.model_dump(by_alias=True),
        "positions": len(result.catalog.positions()),
    }


@router.get("/catalog/export")
def export_catalog():
    filename = engine.export_filename()
    return Response(
        content=engine.serialize_catalog(),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/catalog/reset")
def reset_catalog():
    engine.reset_all()
    return {"reset": True, "product_info": engine.catalog.product_info.model_dump(by_alias=True)}


# --- Selections ---

@router.get("/configuration")
def get_configuration():
    return engine.store.snapshot()


@router.post("/configuration/{category}/{sub_item}/selections")
def add_selection(category: str, sub_item: str, request: AddSelectionRequest):
    try:
        index = engine.add_selection(category, sub_item, request.product_id)
    except ConfiguratorError as e:
        _raise_http(e)
    selection = engine.store.get_selection(category, sub_item, index)
    return {
        "index": index,
        "selection": selection.model_dump(mode="json", by_alias=True),
        "total": engine.pricing.selection_total(selection),
    }


@router.patch("/configuration/{category}/{sub_item}/selections/{index}")
def update_selection(category: str, sub_item: str, index: int, patch: dict):
    try:
        selection = engine.update_selection(category, sub_item, index, patch)
    except ConfiguratorError as e:
        _raise_http(e)
    return {
        "index": index,
        "selection": selection.model_dump(mode="json", by_alias=True),
        "total": engine.pricing.selection_total(selection),
    }


@router.post("/configuration/{category}/{sub_item}/selections/{index}/options")
def set_option(category: str, sub_item: str, index: int, request: OptionRequest):
    """Single-select pick (no quantity) or multi-select quantity set."""
    try:
        if request.quantity is None:
            selection = engine.select_option(
                category, sub_item, index, request.module_id, request.option_id,
            )
        else:
            selection = engine.set_option_quantity(
                category, sub_item, index, request.module_id, request.option_id, request.quantity,
            )
    except ConfiguratorError as e:
        _raise_http(e)
    return {
        "index": index,
        "selection": selection.model_dump(mode="json", by_alias=True),
        "total": engine.pricing.selection_total(selection),
    }


@router.delete("/configuration/{category}/{sub_item}/selections/{index}")
def remove_selection(category: str, sub_item: str, index: int, pointer: Optional[int] = None):
    try:
        new_pointer = engine.remove_selection(category, sub_item, index, pointer)
    except ConfiguratorError as e:
        _raise_http(e)
    return {"removed": index, "pointer": new_pointer}


# --- Read side ---

@router.get("/messages")
def get_messages(limit: Optional[int] = None):
    summary = engine.message_summary(limit)
    return {
        "errors": summary.errors,
        "warnings": summary.warnings,
        "infos": summary.infos,
        "messages": [m.model_dump(mode="json", by_alias=True) for m in summary.messages],
        "remaining": summary.remaining,
    }


@router.get("/status")
def get_status():
    validator = engine.validator()
    return {
        "overall": validator.overall_status().value,
        "positions": {
            category: {
                sub_item: {
                    "status": status.value,
                    "required": engine.catalog.has_required_elements(sub_item),
                }
                for sub_item, status in statuses.items()
            }
            for category, statuses in validator.get_all_statuses().items()
        },
    }


@router.get("/summary")
def get_summary():
    return engine.summary()
