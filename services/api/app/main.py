# services/api/app/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# -----------------------------------------------------------------------------
# 核心模块导入 (Core Module Imports)
# -----------------------------------------------------------------------------
from providers.storage.shot_store import ShotStore
from .core.config import Settings, get_settings
from .core.exceptions import register_exception_handlers
from .api import routes_csv, routes_generate, routes_shots

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


# -----------------------------------------------------------------------------
# FastAPI 生命周期事件 (Lifespan Events)
# -----------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    应用启动/关闭时记录存储位置。存储本身在第一次读取时才创建目录。
    """
    logger.info("--- 应用启动 --- shots file: %s", app.state.store.path)
    yield
    logger.info("--- 应用关闭 ---")


def create_app(settings: Optional[Settings] = None, store: Optional[ShotStore] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store or ShotStore(settings.shots_path)
    # 第一次调用提示词接口时才创建 (需要 GEMINI_API_KEY)
    app.state.drafting_service = None

    # -------------------------------------------------------------------------
    # 中间件配置 (Middleware Configuration)
    # -------------------------------------------------------------------------
    # 允许的源(origins)从settings读取，逗号分隔
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)

    # -------------------------------------------------------------------------
    # API 路由注册 (API Router Registration)
    # -------------------------------------------------------------------------
    app.include_router(routes_shots.router, prefix=settings.API_PREFIX, tags=["shots"])
    app.include_router(routes_csv.router, prefix=settings.API_PREFIX, tags=["csv"])
    app.include_router(routes_generate.router, prefix=settings.API_PREFIX, tags=["generate"])

    # -------------------------------------------------------------------------
    # 根路由 / 健康检查 (Root Route / Health Check)
    # -------------------------------------------------------------------------
    @app.get("/", tags=["Health Check"])
    def read_root():
        """
        根路由，返回一个简单的欢迎信息，用于确认服务正在运行。
        """
        return {"message": f"Welcome to {settings.APP_NAME}!"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(app, host=_settings.HOST, port=_settings.PORT, log_level=_settings.LOG_LEVEL.lower())
