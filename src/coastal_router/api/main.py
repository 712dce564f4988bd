"""FastAPI application entrypoint."""
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from coastal_router.api.dependencies import get_land_store
from coastal_router.api.endpoints import router as route_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Fails startup with LandDataError if the land dataset cannot be loaded.
    store = app.dependency_overrides.get(get_land_store, get_land_store)()
    print(f"[LandStore] Ready: {store.piece_count} pieces, buffer {store.buffer_km:.3f} km")
    yield


app = FastAPI(title="Coastal Router", lifespan=lifespan)

# Enable CORS for all origins (adjust in production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(route_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
