"""
Local Time: Read-Only Query API
===============================

HTTP surface over an initialized LocalTime engine. GET only; nothing here
mutates the registry.

Endpoints:
- GET /health
- GET /api/v1/universes                              -> summaries
- GET /api/v1/universes/{id_or_alias}                -> full universe
- GET /api/v1/universes/{id_or_alias}/reality        -> reality gradient
- GET /api/v1/universes/{id_or_alias}/report         -> markdown report
- GET /api/v1/windows/{window_id}                    -> resolved window
- GET /api/v1/windows/{window_id}/universes          -> window search
- GET /api/v1/windows/{window_id}/alignments         -> window alignments
- GET /api/v1/networks/{network_id}                  -> network
- GET /api/v1/addresses/{address}                    -> relative address resolution

Usage:
    uvicorn local_time.api.server:app --reload
"""
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from ..contracts.base import RealityRelationType, UniverseType
from ..engine import LocalTime, LocalTimeConfig
from ..query import SORT_FIELDS, WindowSearchOptions
from .mapper import (
    AlignmentView, RealityGradientView, UniverseSearchView, WindowView,
    map_alignment, map_gradient, map_network, map_universe_detail,
    map_universe_summary, map_window,
)


# =============================================================================
# INFRASTRUCTURE SETUP
# =============================================================================

def _engine(request: Request) -> LocalTime:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Engine not initialized")
    return engine


def create_app(engine: Optional[LocalTime] = None) -> FastAPI:
    """
    Build the API. An injected engine is used as-is (and initialized if it
    was not already); otherwise one is built from the environment at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.engine is None
        if owned:
            app.state.engine = LocalTime(LocalTimeConfig.from_env()).initialize()
        yield
        if owned:
            app.state.engine = None

    app = FastAPI(
        title="Local Time API",
        version="0.1.0",
        description="Read-only queries over temporal universes",
        lifespan=lifespan,
    )
    app.state.engine = engine.initialize() if engine is not None else None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET"],  # STRICT READ-ONLY
        allow_headers=["*"],
    )

    _register_routes(app)
    return app


def _parse_types(values: Optional[List[str]]):
    if not values:
        return None
    try:
        return frozenset(UniverseType(v) for v in values)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


# =============================================================================
# ENDPOINTS
# =============================================================================

def _register_routes(app: FastAPI) -> None:

    @app.get("/health")
    async def health_check(request: Request):
        """System status."""
        engine = _engine(request)
        return {
            "status": "online",
            "initialized": engine.registry.is_initialized,
            "universes": len(engine.registry),
            "networks": len(engine.registry.get_all_networks()),
            "skipped_sources": engine.observability.summary()["sources"]["errors"],
        }

    @app.get("/api/v1/universes", response_model=List[UniverseSearchView])
    async def list_universes(request: Request):
        engine = _engine(request)
        universes = sorted(engine.get_all_universes(), key=lambda u: u.universe_id.value)
        return [map_universe_summary(u) for u in universes]

    @app.get("/api/v1/universes/{id_or_alias}")
    async def get_universe(id_or_alias: str, request: Request):
        universe = _engine(request).get_universe(id_or_alias)
        if universe is None:
            raise HTTPException(status_code=404, detail=f"Unknown universe: {id_or_alias}")
        return map_universe_detail(universe)

    @app.get("/api/v1/universes/{id_or_alias}/reality", response_model=RealityGradientView)
    async def get_reality(id_or_alias: str, request: Request):
        engine = _engine(request)
        gradient = engine.analyze_universe(id_or_alias)
        if gradient is None:
            raise HTTPException(status_code=404, detail=f"Unknown universe: {id_or_alias}")
        return map_gradient(gradient, engine.registry.resolve_id(id_or_alias))

    @app.get("/api/v1/universes/{id_or_alias}/report", response_class=PlainTextResponse)
    async def get_report(id_or_alias: str, request: Request):
        report = _engine(request).reality_report(id_or_alias)
        if report is None:
            raise HTTPException(status_code=404, detail=f"Unknown universe: {id_or_alias}")
        return report

    @app.get("/api/v1/windows/{window_id}", response_model=WindowView)
    async def get_window(window_id: str, request: Request):
        window = _engine(request).get_window(window_id)
        if window is None:
            raise HTTPException(status_code=404, detail=f"Unknown window: {window_id}")
        return map_window(window)

    @app.get("/api/v1/windows/{window_id}/universes", response_model=List[UniverseSearchView])
    async def find_universes(
        window_id: str,
        request: Request,
        universe_type: Optional[List[str]] = Query(default=None),
        max_fictionalization: Optional[float] = Query(default=None, ge=0.0, le=1.0),
        reality_relation: Optional[RealityRelationType] = None,
        sort_by: Optional[str] = Query(default=None, pattern=f"^({'|'.join(SORT_FIELDS)})$"),
        order: str = Query(default="asc", pattern="^(asc|desc)$"),
    ):
        options = WindowSearchOptions(
            universe_types=_parse_types(universe_type),
            max_fictionalization_degree=max_fictionalization,
            reality_relation=reality_relation,
            sort_by=sort_by,
            order=order,
        )
        universes = _engine(request).find_universes_in_window(window_id, options)
        return [map_universe_summary(u) for u in universes]

    @app.get("/api/v1/windows/{window_id}/alignments", response_model=List[AlignmentView])
    async def get_alignments(window_id: str, request: Request):
        return [map_alignment(a) for a in _engine(request).get_window_alignments(window_id)]

    @app.get("/api/v1/networks/{network_id}")
    async def get_network(network_id: str, request: Request):
        network = _engine(request).get_network(network_id)
        if network is None:
            raise HTTPException(status_code=404, detail=f"Unknown network: {network_id}")
        return map_network(network)

    @app.get("/api/v1/addresses/{address:path}")
    async def resolve_address(address: str, request: Request):
        absolute = _engine(request).resolve_address(address)
        if absolute is None:
            raise HTTPException(status_code=404, detail=f"Unresolvable address: {address}")
        return {"address": address, "absolute_time": str(absolute)}


app = create_app()
