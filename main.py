import time
from typing import List

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import HTMLResponse

from logger import builder_logger # Import the logger
from challenges import build_challenges
from errors import EscapeRoomNotFound, StorageUnavailable
from generator import generate_escape_room, generate_tabs_document
from models import (
    DryRunResult,
    EscapeRoomCreate,
    EscapeRoomRecord,
    EscapeRoomUpdate,
    GeneratedDocument,
    SessionConfig,
    TabsDocumentRequest,
)
from storage import EscapeRoomStore

# --- 1. Initialize FastAPI App ---
app = FastAPI(title="Escape Room Builder API")

NOT_FOUND_PAGE = "<html><body><h1>Escape Room Not Found</h1></body></html>"
SERVER_ERROR_PAGE = "<html><body><h1>Internal Server Error</h1></body></html>"

# --- 2. Storage Dependency ---
_store = None


def get_store() -> EscapeRoomStore:
    """Get or create the process-wide store (DATABASE_URL from the environment)."""
    global _store
    if _store is None:
        _store = EscapeRoomStore()
    return _store


def _storage_failure(action: str) -> HTTPException:
    return HTTPException(status_code=500, detail=f"Failed to {action}. Please try again.")


# --- 3. Escape Room Endpoints ---

@app.get("/api/escape-rooms", response_model=List[EscapeRoomRecord])
def list_escape_rooms(store: EscapeRoomStore = Depends(get_store)):
    try:
        return store.list()
    except StorageUnavailable:
        raise _storage_failure("fetch escape rooms")


@app.post("/api/escape-rooms", response_model=EscapeRoomRecord, status_code=201)
def create_escape_room(payload: EscapeRoomCreate, store: EscapeRoomStore = Depends(get_store)):
    """
    Stores a generated escape room. All four fields are required and non-empty;
    pydantic rejects anything else with a 422 before we get here.
    """
    builder_logger.info(f"INCOMING ESCAPE ROOM: '{payload.name}', {payload.time_limit_minutes} min, challenges={payload.challenge_type_ids}")
    try:
        return store.create(payload)
    except StorageUnavailable:
        raise _storage_failure("create escape room")


@app.post("/api/escape-rooms/test", response_model=DryRunResult)
def test_escape_room(payload: EscapeRoomCreate):
    """Same validation as create, nothing is saved."""
    builder_logger.info(f"DRY RUN: '{payload.name}' validated, not saved")
    return DryRunResult(
        success=True,
        message="Test successful - data not saved",
        id=f"test-{int(time.time() * 1000)}",
    )


@app.get("/api/escape-rooms/{room_id}", response_model=EscapeRoomRecord)
def get_escape_room(room_id: str, store: EscapeRoomStore = Depends(get_store)):
    try:
        return store.get(room_id)
    except EscapeRoomNotFound:
        raise HTTPException(status_code=404, detail="Escape room not found")
    except StorageUnavailable:
        raise _storage_failure("fetch escape room")


@app.put("/api/escape-rooms/{room_id}", response_model=EscapeRoomRecord)
def update_escape_room(room_id: str, payload: EscapeRoomUpdate, store: EscapeRoomStore = Depends(get_store)):
    try:
        return store.update(room_id, payload)
    except EscapeRoomNotFound:
        raise HTTPException(status_code=404, detail="Escape room not found")
    except StorageUnavailable:
        raise _storage_failure("update escape room")


@app.delete("/api/escape-rooms/{room_id}")
def delete_escape_room(room_id: str, store: EscapeRoomStore = Depends(get_store)):
    try:
        store.delete(room_id)
    except EscapeRoomNotFound:
        raise HTTPException(status_code=404, detail="Escape room not found")
    except StorageUnavailable:
        raise _storage_failure("delete escape room")
    return {"message": "Escape room deleted successfully"}


# --- 4. Raw Serve Endpoint ---

@app.get("/api/serve/{room_id}", response_class=HTMLResponse)
def serve_escape_room(room_id: str, store: EscapeRoomStore = Depends(get_store)):
    """Returns the stored document exactly as it was saved."""
    try:
        record = store.get(room_id)
    except EscapeRoomNotFound:
        builder_logger.warning(f"SERVE: unknown escape room {room_id}")
        return HTMLResponse(NOT_FOUND_PAGE, status_code=404)
    except StorageUnavailable:
        return HTMLResponse(SERVER_ERROR_PAGE, status_code=500)
    return HTMLResponse(record.html_output)


# --- 5. Stateless Generation Endpoints ---

@app.post("/api/generate", response_model=GeneratedDocument)
def generate_document(config: SessionConfig):
    return generate_escape_room(config, build_challenges(config.selected_type_ids))


@app.post("/api/tabs/generate", response_model=GeneratedDocument)
def generate_tabs(request: TabsDocumentRequest):
    return generate_tabs_document(request.tabs)
