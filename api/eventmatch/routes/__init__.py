from fastapi import FastAPI

from .admin import router as admin_router
from .connections import router as connections_router
from .events import router as events_router
from .matches import router as matches_router


def include_modular_routers(app: FastAPI) -> None:
    app.include_router(matches_router, tags=["matches"])
    app.include_router(events_router, tags=["events"])
    app.include_router(connections_router, tags=["connections"])
    app.include_router(admin_router, tags=["admin"])


__all__ = ["include_modular_routers"]
