"""
FastAPI application factory for the topology service.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from system_model.infrastructure.container import TopologyContainer

from .errors import register_exception_handlers
from .middleware import CorrelationIdMiddleware
from .routes import (
    clusters_router,
    health_router,
    nodes_router,
    organizations_router,
    roles_router,
)

logger = logging.getLogger(__name__)


def create_app(container: TopologyContainer | None = None) -> FastAPI:
    """
    Create the API application.

    Args:
        container: Container providing the coordinators; built from the
            environment if omitted

    Returns:
        Configured FastAPI application
    """
    container = container or TopologyContainer()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info(f"Starting topology service (backend={container.backend})")
        await container.initialize()
        yield
        logger.info("Shutting down topology service")
        await container.cleanup()

    app = FastAPI(
        title="System Model API",
        description="Infrastructure topology metadata for organizations, clusters, nodes and roles",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(CorrelationIdMiddleware)
    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(organizations_router)
    app.include_router(clusters_router)
    app.include_router(nodes_router)
    app.include_router(roles_router)

    return app
