import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

import config
from categories import router as categories_router
from database import Database
from errors import register_error_handlers
from products import router as products_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(database: Optional[Database] = None) -> FastAPI:
    db = database or Database(config.DATABASE_URL, config.DATABASE_NAME)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Requests are only served once the database answers.
        try:
            db.connect()
            db.ensure_indexes()
        except Exception:
            logger.exception("could not connect to MongoDB")
            raise
        config.UPLOADS_DIR.mkdir(parents=True, exist_ok=True)
        logger.info("%s %s started, environment: %s", config.APP_NAME, config.APP_VERSION, config.environment())
        yield
        db.close()
        logger.info("%s stopped", config.APP_NAME)

    app = FastAPI(title=config.APP_NAME, version=config.APP_VERSION, lifespan=lifespan)
    app.state.db = db

    # Middlewares added later wrap the ones added before them.
    register_error_handlers(app)

    if not config.is_production():
        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            start = time.perf_counter()
            response = await call_next(request)
            elapsed = (time.perf_counter() - start) * 1000
            logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, elapsed)
            return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api = APIRouter(prefix="/api")
    api.include_router(products_router)
    api.include_router(categories_router)

    @api.get("/health")
    def health():
        return {"success": True, "status": "API is running"}

    app.include_router(api)

    @app.get("/")
    def read_root():
        return {"name": config.APP_NAME, "version": config.APP_VERSION, "status": "online"}

    app.mount("/uploads", StaticFiles(directory=config.UPLOADS_DIR, check_dir=False), name="uploads")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
