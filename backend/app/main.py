import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import Settings, get_settings
from app.core.errors import ServiceError
from app.core.logging import configure_logging
from app.db.hazard_store import HazardStore, InMemoryHazardStore, MongoHazardStore
from app.routers import hazards, route
from app.services.geoapify import GeoapifyClient
from app.services.hazard_service import HazardService
from app.services.places_service import PlacesService
from app.services.route_service import RoutingService

logger = logging.getLogger(__name__)


def build_hazard_store(settings: Settings) -> HazardStore:
    if settings.HAZARD_STORE == "memory":
        logger.warning("Using in-memory hazard store; reports are lost on restart")
        return InMemoryHazardStore()
    return MongoHazardStore(settings.MONGO_URI, settings.MONGO_DB_NAME)


def create_app(
    settings: Optional[Settings] = None,
    hazard_store: Optional[HazardStore] = None,
    upstream_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    store = hazard_store if hazard_store is not None else build_hazard_store(settings)
    geoapify = GeoapifyClient(settings, transport=upstream_transport)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if isinstance(store, MongoHazardStore):
            store.ensure_indexes()
        logger.info("Pedal Map API listening on :%s", settings.PORT)
        yield
        if isinstance(store, MongoHazardStore):
            store.close()

    app = FastAPI(title="Pedal Map Backend", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.hazard_service = HazardService(store)
    app.state.routing_service = RoutingService(geoapify, settings.GEOAPIFY_ROUTING_API_KEY)
    app.state.places_service = PlacesService(geoapify, settings.GEOAPIFY_PLACES_API_KEY)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        in_body = any((err.get("loc") or ("",))[0] == "body" for err in exc.errors())
        field_errors = {}
        for err in exc.errors():
            loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query")]
            field_errors.setdefault(".".join(loc) or "_", []).append(err.get("msg", "invalid"))
        return JSONResponse(
            status_code=400,
            content={
                "error": "invalid_body" if in_body else "invalid_query",
                "details": {"formErrors": field_errors.pop("_", []), "fieldErrors": field_errors},
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception: %s: %s", type(exc).__name__, exc, exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "server_error"})

    # Include Routers
    app.include_router(hazards.router, tags=["Hazards"])
    app.include_router(route.router, tags=["Routing"])

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.get("/")
    def read_root():
        return {"message": "Welcome to the Pedal Map API"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_settings().PORT)
