import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from soloist.core.config import Config, load_config
from soloist.domain.playback import close_session, has_session, playback_channel
from soloist.runtime import create_source, init_global_session

from .sync_manager import sync_manager


def create_app(config: Optional[Config] = None) -> FastAPI:
    """Build the API. CORS origins come from [web] allowed_origins
    (SOLOIST_ALLOWED_ORIGINS overrides it when loading the config)."""
    config = config or load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create the global session (unless one exists) and relay its announcements."""
        owns_session = False
        if not has_session():
            source = create_source(config, fallback_to_memory=True)
            init_global_session(config, source)
            owns_session = True
            logger.info(f"Global playback session started ({type(source).__name__})")

        sync_manager.attach_channel(playback_channel, asyncio.get_running_loop())
        try:
            yield
        finally:
            sync_manager.detach_channel()
            if owns_session:
                close_session()

    app = FastAPI(title="Soloist Web API", version="1.0.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from web.backend.routers import live, player

    app.include_router(player.router, prefix="/api", tags=["player"])
    app.include_router(live.router, tags=["live"])

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()
