from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from loguru import logger

from pokebridge import __version__
from pokebridge.api.dependencies import ContainerDep
from pokebridge.api.routes import router
from pokebridge.api.schemas import ServiceInfo
from pokebridge.container import Container, build_container
from pokebridge.exceptions import register_exception_handlers


def create_app(container: Container | None = None) -> FastAPI:
    """
    Build the API.

    A prebuilt container (tests) is used as is and left open on shutdown;
    otherwise one is built from settings during startup and closed after.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = container is None
        app.state.container = container or await build_container()
        logger.info("PokeBridge API started")

        yield

        if owned:
            await app.state.container.close()
        del app.state.container
        logger.info("PokeBridge API stopped")

    app = FastAPI(title="PokeBridge", version=__version__, lifespan=lifespan)
    register_exception_handlers(app)

    app.include_router(router, prefix="/pokemon")
    app.include_router(router, prefix="/entity")

    @app.get("/", response_model=ServiceInfo)
    async def root():
        return ServiceInfo(
            name="PokeBridge",
            version=__version__,
            endpoints=[
                "/pokemon/{name}",
                "/pokemon/translated/{name}",
                "/entity/{name}",
                "/entity/translated/{name}",
                "/health",
            ],
        )

    @app.get("/health")
    async def health(container: ContainerDep):
        checks = await container.health()
        healthy = checks.get("database", False) and checks.get("redis", True)
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={"status": "ok" if healthy else "degraded", "checks": checks},
        )

    return app


app = create_app()
