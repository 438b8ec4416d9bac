# genstream/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from genstream.core import config
from genstream.api.routers.health import router as health_router
from genstream.api.routers.providers import router as providers_router
from genstream.api.routers.generate import router as generate_router
from genstream.services.gateway import GenerationGateway, build_gateway


def create_app(gateway: Optional[GenerationGateway] = None) -> FastAPI:
    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.gateway.aclose()

    app = FastAPI(title="Generation Gateway", version="0.5.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # one gateway per process, shared through app.state and injected with Depends(get_gateway)
    app.state.gateway = gateway or build_gateway()

    # Routers
    app.include_router(health_router)
    app.include_router(providers_router)
    app.include_router(generate_router)

    return app


app = create_app()
