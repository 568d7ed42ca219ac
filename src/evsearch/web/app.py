"""FastAPI application exposing a shared search session and duplicate scans."""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Future
from contextlib import asynccontextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Any, AsyncIterator

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel

from evsearch.client.everything import EverythingClient
from evsearch.client.query import QueryClient, check_service_version
from evsearch.client.sorting import sort_key
from evsearch.config import AppConfig
from evsearch.dedup.scanner import DuplicateScanner
from evsearch.errors import (
    QueryFailed,
    ServiceUnavailable,
    ServiceVersionUnsupported,
    UnknownSortKey,
    describe_error,
)
from evsearch.search.filters import FilterSet
from evsearch.search.history import SearchHistory
from evsearch.search.session import BatchOutcome, BatchResult, SearchSession

LOGGER = logging.getLogger(__name__)

_session_lock = threading.Lock()
_state: dict[str, SearchSession] = {}


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    yield
    with _session_lock:
        session = _state.pop("session", None)
    if session is not None:
        session.close()


app = FastAPI(title="evsearch", version="0.1.0", lifespan=lifespan)


class SearchPayload(BaseModel):
    term: str
    filter: str | None = None


class CyclePayload(BaseModel):
    offset: int = 1


class SelectPayload(BaseModel):
    index: int


class SettingsPayload(BaseModel):
    match_case: bool | None = None
    match_path: bool | None = None
    match_whole_word: bool | None = None
    regex_enabled: bool | None = None
    hide_empty_results: bool | None = None
    sort_by: int | None = None
    enable_history: bool | None = None
    remember_filter: bool | None = None


class DuplicateScanPayload(BaseModel):
    folder: str
    auto_delete_same_name: bool = False
    use_trash: bool = False
    report_dir: str | None = None


def get_client() -> QueryClient:
    config = AppConfig()
    try:
        return EverythingClient(config.dll_path)
    except ServiceUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


def get_session() -> SearchSession:
    with _session_lock:
        session = _state.get("session")
        if session is None:
            config = AppConfig()
            session = SearchSession(get_client(), FilterSet(), config.settings, history=SearchHistory())
            if not session.initialize():
                session.close()
                raise HTTPException(status_code=503, detail="Everything is not available")
            _state["session"] = session
        return session


async def _wait(future: Future | None) -> BatchResult | None:
    if future is None:
        return None
    result = await asyncio.wrap_future(future)
    if result.outcome == BatchOutcome.FAILED:
        raise HTTPException(status_code=502, detail=describe_error(result.error_code or 0))
    return result


def _snapshot(session: SearchSession, offset: int = 0, limit: int | None = None) -> dict[str, Any]:
    results = session.results.page(offset, limit)
    return {
        "term": session.search_term,
        "filter": session.current_filter.name,
        "total": session.total_results,
        "count": len(session.results),
        "results": [asdict(result) for result in results],
    }


@app.post("/search")
async def search(payload: SearchPayload, session: SearchSession = Depends(get_session)) -> dict[str, Any]:
    if payload.filter is not None:
        chosen = session.filters.find(payload.filter)
        if chosen is None:
            raise HTTPException(status_code=404, detail=f"Unknown filter: {payload.filter}")
        session.set_filter(chosen)

    future = session.set_search_term(payload.term) or session.query_batch(append=False)
    await _wait(future)
    return _snapshot(session)


@app.post("/search/more")
async def load_more(session: SearchSession = Depends(get_session)) -> dict[str, Any]:
    await _wait(session.query_batch(append=True))
    return _snapshot(session)


@app.get("/results")
async def results(
    offset: int = 0, limit: int = 200, session: SearchSession = Depends(get_session)
) -> dict[str, Any]:
    return _snapshot(session, max(offset, 0), max(1, min(limit, 1000)))


@app.get("/filters")
async def list_filters(session: SearchSession = Depends(get_session)) -> dict[str, Any]:
    filters = [*session.filters.default_filters, *session.filters.user_filters]
    return {
        "current": session.current_filter.name,
        "filters": [{"index": index, "name": item.name, "search": item.search} for index, item in enumerate(filters)],
    }


@app.post("/filters/cycle")
async def cycle_filters(payload: CyclePayload, session: SearchSession = Depends(get_session)) -> dict[str, Any]:
    await _wait(session.cycle_filters(payload.offset))
    return _snapshot(session)


@app.post("/filters/select")
async def select_filter(payload: SelectPayload, session: SearchSession = Depends(get_session)) -> dict[str, Any]:
    await _wait(session.select_filter_from_index(payload.index))
    return _snapshot(session)


@app.post("/settings")
async def update_settings(payload: SettingsPayload, session: SearchSession = Depends(get_session)) -> dict[str, Any]:
    changes = payload.model_dump(exclude_none=True)
    if "sort_by" in changes:
        try:
            sort_key(changes["sort_by"])
        except UnknownSortKey as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    await _wait(session.update_settings(**changes))
    return _snapshot(session)


@app.post("/reset")
async def reset(session: SearchSession = Depends(get_session)) -> dict[str, Any]:
    await _wait(session.reset())
    return _snapshot(session)


@app.post("/duplicates")
async def scan_duplicates(payload: DuplicateScanPayload, client: QueryClient = Depends(get_client)) -> dict[str, Any]:
    folder = Path(payload.folder).expanduser()
    if not folder.is_dir():
        raise HTTPException(status_code=404, detail=f"Folder not found: {payload.folder}")

    config = AppConfig(report_dir=Path(payload.report_dir) if payload.report_dir else None)
    client.set_instance_name(config.settings.instance_name)
    try:
        check_service_version(client)
    except (ServiceUnavailable, ServiceVersionUnsupported) as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    report_dir = config.resolve_report_dir(folder)
    scanner = DuplicateScanner(
        client,
        auto_delete_same_name=payload.auto_delete_same_name,
        use_trash=payload.use_trash,
        report_dir=report_dir,
    )

    try:
        summary = await asyncio.to_thread(scanner.scan, folder)
    except QueryFailed as exc:
        LOGGER.error("Duplicate scan of %s aborted: %s", folder, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return {
        "status": "ok",
        "reports": str(report_dir),
        "files": len(summary.all_files),
        "unique": len(summary.uniques),
        "duplicates": len(summary.duplicates),
        "deleted": len(summary.deleted),
    }
