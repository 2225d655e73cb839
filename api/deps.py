"""
Store wiring for the API.

Provides a get_store() dependency returning the process-wide VoterStore.
The store is built once by create_app() from AppConfig (or injected by the
tests) and lives until the process exits.
"""

import requests
from fastapi import HTTPException

from utils.config import AppConfig
from utils.http import SessionManager
from voters.clients import build_messaging_client, build_update_client
from voters.editing import EditController
from voters.notifier import BulkNotifier, NotifyRunner
from voters.source import RecordSource
from voters.store import VoterStore

_STORE: VoterStore | None = None
_CONFIG: AppConfig | None = None
_SESSIONS = SessionManager()


def set_store(store: VoterStore | None) -> None:
    global _STORE
    _STORE = store


def set_config(cfg: AppConfig) -> None:
    global _CONFIG
    _CONFIG = cfg


def get_config() -> AppConfig:
    """FastAPI dependency: the active AppConfig."""
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = AppConfig.from_env()
    return _CONFIG


def get_session() -> requests.Session:
    """FastAPI dependency: the shared outbound HTTP session."""
    return _SESSIONS.session


def get_store() -> VoterStore:
    """FastAPI dependency: the process-wide VoterStore.

    Raises HTTP 503 if the app was started without one, instead of failing
    with an AttributeError deep inside a route.

    Usage in a route::

        from api.deps import get_store
        from fastapi import Depends

        @router.get("/example")
        def example(store: VoterStore = Depends(get_store)):
            ...
    """
    if _STORE is None:
        raise HTTPException(status_code=503, detail="Voter store is not initialised")
    return _STORE


def build_store(cfg: AppConfig, sessions: SessionManager | None = None) -> VoterStore:
    """Assemble a VoterStore and its collaborators from configuration.

    The messaging client is built lazily on every bulk run so that a
    missing credential only disables notifications, not the whole service.
    """
    sessions = sessions or _SESSIONS
    session = sessions.session

    def make_notifier() -> BulkNotifier:
        return BulkNotifier(
            build_messaging_client(cfg, session),
            pause_seconds=cfg.notify_pause_seconds,
            max_batch=cfg.notify_max_batch,
        )

    return VoterStore(
        source=RecordSource(cfg.voter_data_url, session, timeout=cfg.fetch_timeout),
        edits=EditController(build_update_client(cfg, session)),
        notify=NotifyRunner(make_notifier),
    )


def close_session() -> None:
    """Release the shared outbound HTTP session (app shutdown)."""
    _SESSIONS.close()
