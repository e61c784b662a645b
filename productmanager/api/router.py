"""
==============================================================================
API Router
==============================================================================

Mounts the v1 endpoints (health, products, categories) under /api/v1.

==============================================================================
"""

from fastapi import APIRouter

from productmanager.api.v1 import categories, health, products


API_PREFIX = "/api/v1"


class MainAPIRouter:
    """Single router carrying every versioned endpoint."""

    ROUTERS = (health.router, products.router, categories.router)

    def __init__(self, prefix: str = API_PREFIX):
        self._router = APIRouter(prefix=prefix)
        for router in self.ROUTERS:
            self._router.include_router(router)

    @property
    def router(self) -> APIRouter:
        return self._router


api_router = MainAPIRouter().router
