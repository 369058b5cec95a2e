import logging
from typing import Any, Optional

from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse

from thread_blocks.config import Settings, get_settings
from thread_blocks.handlers.parse_handler import handle_parse_request
from thread_blocks.handlers.search_handler import handle_index_request, handle_search_request
from thread_blocks.services.logging_config import configure_logging
from thread_blocks.services.payloads import PayloadError
from thread_blocks.services.store import SearchStore

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, store: Optional[SearchStore] = None) -> FastAPI:
    settings = settings or get_settings()
    store = store or SearchStore(settings.database_file)

    app = FastAPI(title="Thread Blocks", version="0.1.0")

    @app.on_event("startup")
    def startup() -> None:
        store.init_db()
        logger.info("Application startup complete", extra={"event": "startup_complete"})

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "env": settings.app_env}

    @app.post("/parse")
    def parse(payload: dict[str, Any] = Body(...)) -> JSONResponse:
        try:
            return JSONResponse(handle_parse_request(payload, settings))
        except PayloadError as exc:
            logger.warning("Rejected parse request", extra={"event": "parse_rejected", "error": str(exc)})
            raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
        except Exception as exc:
            logger.exception("Unhandled exception while parsing body", extra={"event": "parse_failed"})
            raise HTTPException(status_code=500, detail="parse error") from exc

    @app.post("/index")
    def index(payload: dict[str, Any] = Body(...)) -> JSONResponse:
        try:
            return JSONResponse(handle_index_request(payload, settings, store))
        except PayloadError as exc:
            logger.warning("Rejected index request", extra={"event": "index_rejected", "error": str(exc)})
            raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
        except Exception as exc:
            logger.exception("Unhandled exception while indexing", extra={"event": "index_failed"})
            raise HTTPException(status_code=500, detail="index error") from exc

    @app.get("/search")
    def search(q: str = Query(default=""), limit: int = Query(default=0)) -> JSONResponse:
        try:
            return JSONResponse(handle_search_request(q, settings, store, limit=limit))
        except PayloadError as exc:
            raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc

    return app


def _default_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    return create_app(settings)


app = _default_app()
