"""HTTP API for SoundShelf.

- routers/: endpoints, aggregated into ``api_router`` and mounted at /api
- schemas/: Pydantic request/response models
- dependencies.py: dependency injection (session, repositories, use cases)
- exception_handlers.py: domain exception -> HTTP status mapping
"""

from soundshelf.api.routers import api_router

__all__ = ["api_router"]
