import logging
import os
import threading
from datetime import date as Date
from typing import List, Optional, Union
from uuid import UUID

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pymongo.errors import PyMongoError

from database import get_blob_store
from schemas import ColorValue, MoodEntry
from store import EntryStore
from views import GridViewModel

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Mood Calendar API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Sync routes run in a thread pool; every interaction with the shared grid
# happens under this lock so each one finishes before the next starts.
grid_lock = threading.Lock()


@app.exception_handler(PyMongoError)
def storage_error(request: Request, exc: PyMongoError):
    logger.error("Storage error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"status": "error", "detail": "Storage unavailable"})


def get_grid(request: Request) -> GridViewModel:
    with grid_lock:
        grid = getattr(request.app.state, "grid", None)
        if grid is None:
            store = EntryStore(get_blob_store())
            store.load()
            grid = request.app.state.grid = GridViewModel(store)
    return grid


def parse_id(entry_id: str) -> UUID:
    try:
        return UUID(entry_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid id")


def grid_payload(grid: GridViewModel):
    return {
        "items": grid.circles(),
        "average": grid.average_rating(),
        "average_label": grid.average_label(),
        "editing": grid.is_editing,
        "selection": sorted(str(i) for i in grid.selection),
    }


def entry_payload(entry: MoodEntry):
    return entry.model_dump(mode="json", by_alias=True)


ColorInput = Union[str, List[float], ColorValue]


class EntryUpdate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    date: Optional[Date] = None
    color_gradient_start: Optional[ColorInput] = None
    color_gradient_end: Optional[ColorInput] = None
    rating: Optional[int] = None
    rating_step: Optional[int] = Field(None, ge=-1, le=1, description="Stepper press: +1 or -1")
    notes: Optional[str] = None


@app.get("/")
def read_root():
    return {"message": "Mood Calendar Backend is running"}


@app.get("/test")
def test_storage(grid: GridViewModel = Depends(get_grid)):
    blobs = grid.store.blobs
    with grid_lock:
        response = {
            "backend": "✅ Running",
            "storage": blobs.backend,
            "entries": len(grid.store.entries),
        }
        try:
            response["keys"] = blobs.keys()[:10]
            response["connection_status"] = "Connected"
        except PyMongoError as e:
            response["connection_status"] = f"❌ Error: {str(e)[:50]}"
    return response


@app.get("/api/entries")
def list_entries(grid: GridViewModel = Depends(get_grid)):
    with grid_lock:
        return grid_payload(grid)


@app.post("/api/entries", status_code=201)
def add_entry(grid: GridViewModel = Depends(get_grid)):
    with grid_lock:
        if grid.is_editing:
            raise HTTPException(status_code=409, detail="Leave edit mode to add entries")
        entry = grid.add_new_entry()
        return entry_payload(entry)


@app.get("/api/entries/{entry_id}")
def read_entry(entry_id: str, grid: GridViewModel = Depends(get_grid)):
    # read-only: editing happens through PATCH
    oid = parse_id(entry_id)
    with grid_lock:
        entry = grid.store.get(oid)
        if entry is None:
            raise HTTPException(status_code=404, detail="Not found")
        return entry_payload(entry)


@app.patch("/api/entries/{entry_id}")
def edit_entry(entry_id: str, update: EntryUpdate, grid: GridViewModel = Depends(get_grid)):
    # one request is one edit session: open, apply, close (persists)
    oid = parse_id(entry_id)
    with grid_lock:
        try:
            detail = grid.open_detail(oid)
        except KeyError:
            raise HTTPException(status_code=404, detail="Not found")
        if update.date is not None:
            detail.set_date(update.date)
        if update.color_gradient_start is not None:
            detail.set_gradient_start(update.color_gradient_start)
        if update.color_gradient_end is not None:
            detail.set_gradient_end(update.color_gradient_end)
        if update.rating is not None:
            detail.set_rating(update.rating)
        if update.rating_step == 1:
            detail.increment_rating()
        elif update.rating_step == -1:
            detail.decrement_rating()
        if update.notes is not None:
            detail.set_notes(update.notes)
        entry = detail.entry
        grid.close_detail()
        return entry_payload(entry)


@app.post("/api/edit-mode")
def toggle_edit_mode(grid: GridViewModel = Depends(get_grid)):
    with grid_lock:
        return {"editing": grid.toggle_edit_mode()}


@app.post("/api/selection/{entry_id}")
def toggle_selection(entry_id: str, grid: GridViewModel = Depends(get_grid)):
    oid = parse_id(entry_id)
    with grid_lock:
        if not grid.is_editing:
            raise HTTPException(status_code=409, detail="Not in edit mode")
        if grid.store.get(oid) is None:
            raise HTTPException(status_code=404, detail="Not found")
        return {"id": str(oid), "selected": grid.toggle_selection(oid)}


@app.delete("/api/selection")
def delete_selection(grid: GridViewModel = Depends(get_grid)):
    with grid_lock:
        deleted = grid.delete_selected()
        return {"status": "deleted", "count": deleted, **grid_payload(grid)}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
