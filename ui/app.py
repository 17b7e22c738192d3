from __future__ import annotations

import logging
import os
import secrets
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, status
from fastapi.responses import PlainTextResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from core import (
    Counter,
    CounterDetail,
    CounterOperations,
    CounterStore,
    ExportError,
    NotFoundError,
    StoreError,
    export_counter_csv,
    export_filename,
    exports_dir,
    load_settings,
    read_text,
    save_settings,
    update_settings,
    workspace_root,
)


logger = logging.getLogger(__name__)

app = FastAPI(title="EasyCount API", version="0.1.0")

security = HTTPBasic(auto_error=False)


# ── Auth ──────────────────────────────────────────────────────


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("EASYCOUNT_USERNAME", "")
    expected_password = os.environ.get("EASYCOUNT_PASSWORD", "")

    if not expected_username or not expected_password:
        return "guest"

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


# ── Helpers ───────────────────────────────────────────────────


def _store() -> CounterStore:
    try:
        return CounterStore.open(root=workspace_root())
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))


def _ops(store: CounterStore) -> CounterOperations:
    return CounterOperations(store, load_settings(workspace_root()))


def _counter_dict(store: CounterStore, counter: Counter) -> dict[str, Any]:
    d = counter.to_dict()
    d["displayName"] = counter.display_name
    d["detailCount"] = len(store.list_counter_details(counter))
    return d


def _detail_dict(detail: CounterDetail) -> dict[str, Any]:
    d = detail.to_dict()
    d["displayName"] = detail.display_name
    return d


def _positions(payload: dict[str, Any]) -> tuple[list[int], list[str] | None]:
    """Read ``positions`` and the optional ``view`` (ids in the order the client showed them)."""
    positions = payload.get("positions")
    if not isinstance(positions, list) or not all(isinstance(p, int) for p in positions):
        raise HTTPException(status_code=400, detail="positions must be a list of integers")
    view = payload.get("view")
    if view is not None and not (isinstance(view, list) and all(isinstance(v, str) for v in view)):
        raise HTTPException(status_code=400, detail="view must be a list of ids")
    return positions, view


def _commit_or_500(fn: Any, *args: Any) -> Any:
    try:
        return fn(*args)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))


# ── Health ────────────────────────────────────────────────────


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


# ── Counters ──────────────────────────────────────────────────


@app.get("/api/counters")
def api_list_counters(username: str = Depends(get_current_user)) -> dict[str, Any]:
    """List counters, oldest first."""
    store = _store()
    return {"counters": [_counter_dict(store, c) for c in store.list_counters()]}


@app.post("/api/counters")
def api_create_counter(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    store = _store()
    counter = _commit_or_500(_ops(store).create_counter, str(payload.get("name", "") or ""))
    if counter is None:
        raise HTTPException(status_code=400, detail="Name must not be empty")
    return {"ok": True, "counter": _counter_dict(store, counter)}


@app.delete("/api/counters/{counter_id}")
def api_delete_counter(counter_id: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    store = _store()
    _commit_or_500(store.delete_counter, counter_id)
    return {"ok": True}


@app.post("/api/counters/delete_at")
def api_delete_counters_at(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Delete counters by list position; ``view`` pins the list the positions refer to."""
    positions, view_ids = _positions(payload)
    store = _store()
    try:
        deleted = _commit_or_500(_ops(store).delete_counters_at, positions, view_ids)
    except IndexError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True, "deleted": [c.id for c in deleted]}


# ── Detail counters ───────────────────────────────────────────


@app.get("/api/counters/{counter_id}/details")
def api_list_details(counter_id: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    store = _store()
    details = _commit_or_500(store.list_counter_details, counter_id)
    return {"details": [_detail_dict(d) for d in details]}


@app.post("/api/counters/{counter_id}/details")
def api_create_detail(counter_id: str, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    store = _store()
    detail = _commit_or_500(_ops(store).create_counter_detail, counter_id, str(payload.get("name", "") or ""))
    if detail is None:
        raise HTTPException(status_code=400, detail="Name must not be empty")
    return {"ok": True, "detail": _detail_dict(detail)}


@app.post("/api/counters/{counter_id}/details/delete_at")
def api_delete_details_at(counter_id: str, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    positions, view_ids = _positions(payload)
    store = _store()
    try:
        deleted = _commit_or_500(_ops(store).delete_counter_details_at, counter_id, positions, view_ids)
    except IndexError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True, "deleted": [d.id for d in deleted]}


@app.post("/api/details/{detail_id}/increment")
def api_increment(detail_id: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    store = _store()
    detail = _commit_or_500(_ops(store).increment, detail_id)
    return {"ok": True, "detail": _detail_dict(detail)}


@app.post("/api/details/{detail_id}/decrement")
def api_decrement(detail_id: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    store = _store()
    detail = _commit_or_500(_ops(store).decrement, detail_id)
    return {"ok": True, "detail": _detail_dict(detail)}


@app.put("/api/details/{detail_id}")
def api_set_count(detail_id: str, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Set a detail's count directly (clamped to 0-99999)."""
    try:
        count = int(payload["count"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=400, detail="count must be an integer")
    store = _store()
    detail = _commit_or_500(_ops(store).set_count, detail_id, count)
    return {"ok": True, "detail": _detail_dict(detail)}


@app.delete("/api/details/{detail_id}")
def api_delete_detail(detail_id: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    store = _store()
    _commit_or_500(store.delete_counter_detail, detail_id)
    return {"ok": True}


# ── Export ────────────────────────────────────────────────────


@app.get("/api/counters/{counter_id}/export.csv")
def api_export_csv(counter_id: str, username: str = Depends(get_current_user)) -> PlainTextResponse:
    """Export a counter's details as a CSV download (also kept under exports/)."""
    store = _store()
    try:
        path = export_counter_csv(store, counter_id, exports_dir(workspace_root()))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ExportError as e:
        raise HTTPException(status_code=500, detail=str(e))
    filename = export_filename(store.get_counter(counter_id))
    return PlainTextResponse(
        read_text(path),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ── Settings ──────────────────────────────────────────────────


@app.get("/api/settings")
def api_get_settings(username: str = Depends(get_current_user)) -> dict[str, Any]:
    return load_settings(workspace_root()).to_dict()


@app.put("/api/settings")
def api_update_settings(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Update stepCount / startCountingAtZero / listPadding; values are clamped."""
    root = workspace_root()
    try:
        settings = update_settings(load_settings(root), payload)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="Invalid settings")
    try:
        save_settings(settings, root)
    except OSError as e:
        logger.error("Saving settings failed: %s", e)
        raise HTTPException(status_code=500, detail=f"Could not save settings: {e}")
    return settings.to_dict()
