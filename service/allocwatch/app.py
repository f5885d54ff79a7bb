"""Sandbox allocation backend serving the endpoints the monitor polls."""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .api.routes import allocation, results
from .sandbox import SyntheticAllocationEngine


def create_app(engine: Optional[SyntheticAllocationEngine] = None) -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="allocwatch sandbox", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.engine = engine or SyntheticAllocationEngine(speedup=settings.sandbox_speedup)

    app.include_router(allocation.router)
    app.include_router(results.router)

    @app.get("/health")
    async def health():
        return {"service": "allocwatch-sandbox", "status": "ok"}

    return app
