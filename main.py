from fastapi import FastAPI
from contextlib import asynccontextmanager
import logging

from database import get_settings
from core.storage import StorageGateway
from api import games

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: an unreachable backend aborts startup
    app.state.storage = StorageGateway.connect(settings)
    yield
    # Shutdown
    app.state.storage.close()
    logger.info("Storage connection closed")


app = FastAPI(
    title="Creature Battle Lobby API",
    description="Create, join, inspect and cancel game lobbies",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(games.router)


@app.get("/health")
def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
