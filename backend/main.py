import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from loguru import logger
from pydantic import ValidationError

from autoscan.api import router as api_router, tags_metadata
from autoscan.config import ConfigFileError, Settings, get_settings
from autoscan.core.plex import PlexClient, PlexError
from autoscan.services.notification import NotificationError, NotificationProcessor


def configure_logging(settings: Settings) -> None:
    """配置日志：控制台彩色输出 + 可选的 JSON 日志文件"""
    logger.remove()
    logger.add(
        sink=lambda msg: print(msg, end=""),
        level=settings.LOG_LEVEL.value,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level}</level> | "
                "{extra} {message}"
    )
    if settings.LOG_FILE:
        settings.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            settings.LOG_FILE,
            level=settings.LOG_LEVEL.value,
            serialize=True,
            enqueue=True,
        )


def load_settings_or_exit() -> Settings:
    """加载配置，失败时记录错误并退出进程"""
    try:
        return get_settings()
    except (ConfigFileError, ValidationError) as e:
        logger.critical(f"加载配置失败: {e}")
        sys.exit(1)


async def _verify_plex_token(plex_client: PlexClient) -> None:
    """通过 plex.tv 校验令牌，失败只记录警告"""
    try:
        user = await plex_client.get_current_user()
        logger.info(f"Plex 令牌有效，账号: {user.username or user.title}")
    except PlexError as e:
        logger.warning(f"Plex 令牌校验失败: {e}")


def create_app(
    settings: Optional[Settings] = None,
    plex_client: Optional[PlexClient] = None,
) -> FastAPI:
    """创建 FastAPI 应用

    Args:
        settings: 应用配置，未提供时在启动阶段加载
        plex_client: Plex 客户端，未提供时按配置创建

    Returns:
        FastAPI: 配置好路由和生命周期的应用
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        app_settings = settings or load_settings_or_exit()
        configure_logging(app_settings)
        logger.info("应用启动，开始初始化...")

        client = plex_client or PlexClient(
            host=app_settings.PLEX_HOST,
            port=app_settings.PLEX_PORT,
            token=app_settings.PLEX_TOKEN,
            timeout=app_settings.PLEX_TIMEOUT_SECONDS,
        )
        if app_settings.PLEX_VERIFY_TOKEN:
            await _verify_plex_token(client)

        app.state.settings = app_settings
        app.state.notification_processor = NotificationProcessor(
            plex_client=client,
            remappings=app_settings.REMAPPINGS,
            log=logger.bind(component="notification"),
        )
        logger.info(f"通知处理器初始化完成，已配置重映射的服务: {sorted(app_settings.REMAPPINGS)}")

        yield

        # Shutdown
        logger.info("正在关闭应用...")
        if plex_client is None:
            await client.aclose()
        logger.info("应用已关闭")

    app = FastAPI(title="Plex Autoscan", lifespan=lifespan, openapi_tags=tags_metadata)

    # 引入API路由
    app.include_router(api_router)

    @app.exception_handler(NotificationError)
    async def notification_error_handler(request: Request, exc: NotificationError):
        # 依赖注入阶段抛出的错误同样以纯文本返回
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    @app.get("/")
    def read_root():
        return {"message": "Welcome to Plex Autoscan"}

    return app


app = create_app()


def run() -> None:
    """命令行入口：加载配置并启动 HTTP 服务"""
    settings = load_settings_or_exit()
    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
