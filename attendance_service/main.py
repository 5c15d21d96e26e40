import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from attendance_service.api.attendance import router as attendance_router
from attendance_service.api.employees import router as employees_router
from attendance_service.api.users import router as users_router
from attendance_service.core.config import Settings, get_settings
from attendance_service.core.db import MongoStore
from attendance_service.core.errors import register_exception_handlers
from attendance_service.core.uploads import ensure_upload_dir

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[MongoStore] = None,
) -> FastAPI:
    """
    store를 넘기면 그대로 사용하고 종료 시 닫지 않는다 (테스트용).
    넘기지 않으면 startup에서 설정값으로 MongoDB에 연결.
    """
    settings = settings or get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL.upper())

    app = FastAPI(
        title="Attendance Service",
        version="0.1.0",
        description="Employee attendance service (REST + MongoDB)",
    )
    app.state.settings = settings
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.on_event("startup")
    async def on_startup() -> None:
        if app.state.store is None:
            logger.info("Connecting to MongoDB at %s", settings.MONGODB_URI)
            app.state.store = MongoStore.from_settings(settings)
            app.state.owns_store = True
        await app.state.store.ensure_indexes()
        ensure_upload_dir(settings)

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        if getattr(app.state, "owns_store", False):
            app.state.store.close()

    @app.get("/health")
    async def health_check():
        return {
            "status": "ok",
            "service": "attendance-service",
        }

    @app.get("/")
    async def root():
        return {
            "message": "Attendance Service is running",
            "docs": "/docs",
        }

    app.include_router(users_router)
    app.include_router(employees_router)
    app.include_router(attendance_router)

    # 업로드된 프로필 이미지는 정적 파일로 제공 (디렉터리는 startup에서 생성)
    app.mount(
        settings.UPLOAD_URL_PREFIX,
        StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
        name="uploads",
    )
    return app


app = create_app()
