"""
Frontend HTML routes.

Serves the Jinja2 templates for the lookup UI. The page is a single search
screen; everything after the first render is swapped in by HTMX partials.

Routes:
    GET  /                                     → index.html (status, stats, search box)
    GET  /partials/results                     → partials/results.html (HTMX swap target)
    GET  /partials/suggest                     → partials/suggestions.html
    GET  /partials/history                     → partials/history.html
    POST /partials/reload                      → partials/status.html
    POST /partials/voter/{id}/{field}/edit     → partials/row.html (input shown)
    POST /partials/voter/{id}/{field}/cancel   → partials/row.html
    POST /partials/voter/{id}/{field}/save     → partials/row.html (error kept on failure)
    POST /partials/voter/{id}/notify           → partials/flash.html
    POST /partials/notify                      → partials/notify.html (starts a bulk run)
    GET  /partials/notify                      → partials/notify.html (polled while running)
"""

import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Form, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from api.deps import get_config, get_store
from api.routes.notify import schedule_bulk_run
from utils.config import AppConfig, KnownValues
from voters.editing import EditField
from voters.exceptions import EditConflict, FetchError, VoterLookupError
from voters.pagination import ResultView
from voters.store import VoterStore
from voters.suggest import suggest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["frontend"])

# Templates instance is set by create_app() after mounting.
_templates: Jinja2Templates | None = None


def set_templates(t: Jinja2Templates) -> None:
    global _templates
    _templates = t


def _tmpl() -> Jinja2Templates:
    if _templates is None:
        raise RuntimeError("Templates not initialised; call set_templates() first")
    return _templates


def _render(request: Request, name: str, context: dict[str, Any],
            status_code: int = 200) -> HTMLResponse:
    return _tmpl().TemplateResponse(request, name, context, status_code=status_code)


def _parse_filters(request: Request) -> dict[str, Any]:
    """Extract search params from the query string into a dict."""
    params = request.query_params
    try:
        page = max(1, int(params.get("page", 1)))
    except ValueError:
        page = 1
    page_size = params.get("page_size", str(KnownValues.DEFAULT_PAGE_SIZE))
    if page_size != "all" and not KnownValues.is_page_size_choice(page_size):
        page_size = str(KnownValues.DEFAULT_PAGE_SIZE)
    return {"q": params.get("q", ""), "page": page, "page_size": page_size}


def _query_results(filters: dict[str, Any], store: VoterStore,
                   remember: bool = True) -> dict[str, Any]:
    """Run the search and return template context vars."""
    matches = store.search(filters["q"], remember=remember)
    view = ResultView()
    view.set_query(filters["q"], matches)
    view.set_page_size(filters["page_size"])
    view.go_to(filters["page"])
    return {"view": view, "page": view.current(), "matches": matches}


def _row_context(store: VoterStore, voter_id: str) -> dict[str, Any]:
    return {
        "voter": store.get(voter_id),
        "slots": {s.field.value: s for s in store.edits.slots()},
    }


# ── Routes ────────────────────────────────────────────────────────────────────

@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def index(request: Request, store: VoterStore = Depends(get_store)) -> HTMLResponse:
    """Main lookup page."""
    filters = _parse_filters(request)
    results = _query_results(filters, store, remember=False) if filters["q"] else {}
    return _render(request, "index.html", {
        "filters": filters,
        "status": store.status(),
        "stats": store.stats(),
        "history": store.history.items(),
        "page_sizes": KnownValues.PAGE_SIZE_CHOICES,
        "slots": {s.field.value: s for s in store.edits.slots()},
        "progress": store.notify.progress,
        **results,
    })


@router.get("/partials/results", response_class=HTMLResponse, include_in_schema=False)
def results_partial(
    request: Request,
    background: BackgroundTasks,
    store: VoterStore = Depends(get_store),
    cfg: AppConfig = Depends(get_config),
) -> HTMLResponse:
    """HTMX partial: search results table with pagination."""
    filters = _parse_filters(request)
    results = _query_results(filters, store)
    if cfg.auto_notify and results["matches"]:
        schedule_bulk_run(store, results["matches"], filters["q"], background,
                          automatic=True, delay=cfg.notify_auto_delay_seconds)
    return _render(request, "partials/results.html", {
        "filters": filters,
        "page_sizes": KnownValues.PAGE_SIZE_CHOICES,
        "slots": {s.field.value: s for s in store.edits.slots()},
        **results,
    })


@router.get("/partials/suggest", response_class=HTMLResponse, include_in_schema=False)
def suggest_partial(request: Request, q: str = "",
                    store: VoterStore = Depends(get_store)) -> HTMLResponse:
    """HTMX partial: autocomplete list under the search box."""
    return _render(request, "partials/suggestions.html",
                   {"suggestions": suggest(store.records, q)})


@router.get("/partials/history", response_class=HTMLResponse, include_in_schema=False)
def history_partial(request: Request, store: VoterStore = Depends(get_store)) -> HTMLResponse:
    return _render(request, "partials/history.html", {"history": store.history.items()})


@router.post("/partials/reload", response_class=HTMLResponse, include_in_schema=False)
def reload_partial(request: Request, store: VoterStore = Depends(get_store)) -> HTMLResponse:
    """HTMX partial: retry the record set load and show the outcome."""
    try:
        store.load()
    except FetchError as exc:
        logger.warning("reload from UI failed: %s", exc)
    return _render(request, "partials/status.html",
                   {"status": store.status(), "stats": store.stats()})


# ── Inline edit partials ─────────────────────────────────────────────────────

@router.post("/partials/voter/{voter_id}/{field}/edit",
             response_class=HTMLResponse, include_in_schema=False)
def edit_partial(request: Request, voter_id: str, field: EditField,
                 store: VoterStore = Depends(get_store)) -> HTMLResponse:
    store.edits.begin(store.get(voter_id), field)
    return _render(request, "partials/row.html", _row_context(store, voter_id))


@router.post("/partials/voter/{voter_id}/{field}/cancel",
             response_class=HTMLResponse, include_in_schema=False)
def cancel_partial(request: Request, voter_id: str, field: EditField,
                   store: VoterStore = Depends(get_store)) -> HTMLResponse:
    store.edits.cancel(store.get(voter_id).id, field)
    return _render(request, "partials/row.html", _row_context(store, voter_id))


@router.post("/partials/voter/{voter_id}/{field}/save",
             response_class=HTMLResponse, include_in_schema=False)
def save_partial(request: Request, voter_id: str, field: EditField,
                 value: str = Form(""),
                 store: VoterStore = Depends(get_store)) -> HTMLResponse:
    """Save the draft; on failure the row comes back in edit mode with the error."""
    record = store.get(voter_id)
    conflict = None
    try:
        store.edits.save(record, field, value)
    except EditConflict as exc:
        # the slot belongs to another row; the stale form gets the message
        logger.info("inline save of %s for %s refused: %s", field.value, voter_id, exc)
        conflict = {"field": field.value, "text": exc.user_message}
    except VoterLookupError as exc:
        logger.info("inline save of %s for %s failed: %s", field.value, voter_id, exc)
    context = _row_context(store, voter_id)
    context["conflict"] = conflict
    return _render(request, "partials/row.html", context)


@router.post("/partials/voter/{voter_id}/notify",
             response_class=HTMLResponse, include_in_schema=False)
def notify_one_partial(request: Request, voter_id: str,
                       store: VoterStore = Depends(get_store)) -> HTMLResponse:
    record = store.get(voter_id)
    try:
        outcome = store.notify.notifier().notify_one(record)
        ok, text = outcome.status == "sent", outcome.error
    except VoterLookupError as exc:
        ok, text = False, exc.user_message
    return _render(request, "partials/flash.html", {"ok": ok, "text": text})


# ── Bulk notify partials ─────────────────────────────────────────────────────

@router.post("/partials/notify", response_class=HTMLResponse, include_in_schema=False)
def notify_partial(request: Request, background: BackgroundTasks,
                   q: str = Form(""),
                   store: VoterStore = Depends(get_store)) -> HTMLResponse:
    """HTMX partial: start a bulk run over the current query's matches."""
    error = None
    matches = store.search(q, remember=False)
    if matches:
        try:
            schedule_bulk_run(store, matches, q, background)
        except VoterLookupError as exc:
            error = exc.user_message
    return _render(request, "partials/notify.html",
                   {"progress": store.notify.progress, "error": error})


@router.get("/partials/notify", response_class=HTMLResponse, include_in_schema=False)
def notify_status_partial(request: Request,
                          store: VoterStore = Depends(get_store)) -> HTMLResponse:
    return _render(request, "partials/notify.html",
                   {"progress": store.notify.progress, "error": None})
