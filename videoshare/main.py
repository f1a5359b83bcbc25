import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from videoshare.config import get_settings
from videoshare.core.access import add_session_gate
from videoshare.core.errors import PersistenceError, register_exception_handlers
from videoshare.database import Datastore
from videoshare.routers import auth, videos

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(datastore: Datastore | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = datastore or Datastore(settings.database_url)
        app.state.datastore = store
        try:
            store.create_all()
        except PersistenceError as e:
            # Keep serving: reads degrade to empty, writes report failure; next request retries
            logger.error("Database not ready at startup: %s", e.message)
        try:
            yield
        finally:
            store.dispose()

    app = FastAPI(title="VideoShare API", version="1.0.0", lifespan=lifespan)

    register_exception_handlers(app)
    add_session_gate(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth.router)
    app.include_router(videos.router)

    @app.get("/")
    def root():
        return {"message": "VideoShare API", "docs": "/docs"}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
