"""
GET /api/v1/search endpoints.

Filters the in-memory record set with the free-text matcher and returns one
page of results. Every request starts from a fresh view: the query puts the
view on page 1, then the requested page is applied only if it exists, so an
out-of-range page is answered with page 1.

Also provides autocomplete suggestions and the recent-search list.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from api.deps import get_config, get_store
from api.models import SearchResponse, SuggestionOut, VoterOut
from api.routes.notify import schedule_bulk_run
from utils.config import AppConfig, KnownValues
from voters.pagination import ResultView
from voters.store import VoterStore
from voters.suggest import suggest as suggest_records

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


@router.get(
    "",
    response_model=SearchResponse,
    summary="Search voters",
    responses={
        400: {"description": "Invalid page size", "content": {"application/json": {"example": {"error": "Bad request", "detail": "page_size must be one of [50, 100, 200, 500] or 'all'", "status_code": 400}}}},
    },
)
def search(
    background: BackgroundTasks,
    q: str = Query("", description="Free-text query; empty returns nothing"),
    page: int = Query(1, description="1-based page number"),
    page_size: str = Query(
        str(KnownValues.DEFAULT_PAGE_SIZE),
        description="One of 50, 100, 200, 500 or 'all'",
    ),
    store: VoterStore = Depends(get_store),
    cfg: AppConfig = Depends(get_config),
) -> SearchResponse:
    """Search by name (any word order), voter card, mobile, serial, house or age."""
    matches = store.search(q)

    view: ResultView = ResultView()
    view.set_query(q, matches)
    view.set_page_size(page_size)
    view.go_to(page)
    current = view.current()

    if cfg.auto_notify and matches:
        schedule_bulk_run(store, matches, q, background, automatic=True,
                          delay=cfg.notify_auto_delay_seconds)

    return SearchResponse(
        query=q,
        total=current.total,
        page=current.page,
        page_size=current.page_size,
        total_pages=current.total_pages,
        items=[VoterOut(**r.to_dict()) for r in current.items],
    )


@router.get(
    "/suggest",
    summary="Search suggestions/autocomplete",
    response_model=list[SuggestionOut],
)
def suggest(
    q: str = Query("", description="Partial search input"),
    store: VoterStore = Depends(get_store),
) -> list[SuggestionOut]:
    """Return up to 10 suggestions; inputs under two characters return none."""
    return [SuggestionOut(**s.to_dict()) for s in suggest_records(store.records, q)]


@router.get("/history", summary="Recent searches", response_model=list[str])
def history(store: VoterStore = Depends(get_store)) -> list[str]:
    """The five most recent distinct queries, newest first."""
    return store.history.items()
