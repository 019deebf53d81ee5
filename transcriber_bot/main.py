import asyncio
import secrets
import signal
import threading
from typing import Awaitable, Dict

import uvicorn
from aiogram import Bot, Dispatcher

from .asr_client import TranscriptionClient
from .commands import set_bot_commands
from .config import Settings, load_settings
from .middleware.dependency_injection import DependencyInjectionMiddleware
from .middleware.error_handling import ErrorHandlingMiddleware
from .middleware.logging import LoggingMiddleware
from .routers.start_router import create_start_router
from .routers.transcription_router import create_transcription_router
from .server import create_app
from .utils.logging import configure_logger

# --------------------------------------------------
logger = configure_logger("[BOT]", "green")


def build_dispatcher(transcriber: TranscriptionClient) -> Dispatcher:
    dp = Dispatcher()

    # Middlewares
    dp.update.outer_middleware(DependencyInjectionMiddleware(transcriber=transcriber))
    dp.update.outer_middleware(ErrorHandlingMiddleware())
    dp.update.outer_middleware(LoggingMiddleware())

    # Routers: /start должен идти раньше обработчика аудио
    dp.include_router(create_start_router())
    dp.include_router(create_transcription_router())
    return dp


async def supervise(workers: Dict[str, Awaitable], shutdown: asyncio.Event) -> None:
    """
    Runs the workers side by side. The first one to finish (or fail) sets
    ``shutdown``; the rest are cancelled and awaited before returning.
    """
    tasks = {asyncio.ensure_future(worker): name for name, worker in workers.items()}
    done = set()
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    finally:
        shutdown.set()
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    for task in done:
        name = tasks[task]
        if task.cancelled():
            logger.warning(f"Worker '{name}' was cancelled")
        elif task.exception() is not None:
            logger.error(f"Worker '{name}' failed: {task.exception()}")
            raise task.exception()
        else:
            logger.info(f"Worker '{name}' finished")


def install_signal_handlers(server: uvicorn.Server, shutdown: asyncio.Event) -> None:
    """
    SIGINT/SIGTERM stop uvicorn and set ``shutdown``. uvicorn re-raises the
    signal it caught once ``serve()`` returns, so this handler must stay
    installed instead of the default one that kills the process.
    """
    if threading.current_thread() is not threading.main_thread():
        return
    loop = asyncio.get_running_loop()

    def stop(name: str) -> None:
        logger.warning(f"Received {name}, shutting down")
        shutdown.set()

    def handle_exit(sig, frame) -> None:
        # Внутри обработчика сигнала не логируем: loguru держит lock
        server.should_exit = True
        loop.call_soon_threadsafe(stop, signal.Signals(sig).name)

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, handle_exit)


async def serve_http(server: uvicorn.Server) -> None:
    await server.serve()


async def run_polling(dp: Dispatcher, bot: Bot) -> None:
    # Старый webhook не даст getUpdates работать
    await bot.delete_webhook()
    await dp.start_polling(bot, handle_signals=False, close_bot_session=False)


async def run_webhook(
        dp: Dispatcher,
        bot: Bot,
        server: uvicorn.Server,
        url: str,
        secret: str,
        shutdown: asyncio.Event,
) -> None:
    # Регистрируем webhook только когда сервер уже слушает порт
    while not server.started:
        await asyncio.sleep(0.1)
    await bot.set_webhook(
        url=url,
        secret_token=secret,
        allowed_updates=dp.resolve_used_update_types(),
    )
    logger.info(f"Webhook set to {url}")
    # Webhook не удаляем при остановке: иначе бот перестанет получать обновления
    await shutdown.wait()


async def run(settings: Settings) -> None:
    bot = Bot(token=settings.telegram_token)
    transcriber = TranscriptionClient(
        asr_url=settings.asr_url,
        timeout=settings.asr_timeout,
        download_timeout=settings.download_timeout,
    )
    dp = build_dispatcher(transcriber)
    shutdown = asyncio.Event()

    try:
        bot_info = await bot.get_me()
        bot_name = bot_info.username
        logger.info(f"Starting bot application for @{bot_name}")
        logger.info(f"Using ASR service at: {settings.asr_url}")
        await set_bot_commands(bot)

        if settings.use_webhook:
            logger.info("External url is configured, using webhook mode")
            secret = settings.webhook_secret or secrets.token_urlsafe(32)
            app = create_app(dp, bot, webhook_path=settings.webhook_path, webhook_secret=secret)
        else:
            logger.warning("No external URL provided, using long polling")
            app = create_app()

        server = uvicorn.Server(
            uvicorn.Config(
                app,
                host=settings.host,
                port=settings.port,
                log_config=None,
                access_log=False,
            )
        )
        if settings.use_webhook:
            listener = run_webhook(dp, bot, server, str(settings.external_url), secret, shutdown)
        else:
            listener = run_polling(dp, bot)

        install_signal_handlers(server, shutdown)
        await supervise({"http": serve_http(server), "listener": listener}, shutdown)
    finally:
        logger.info("Bot is shutting down…")
        await transcriber.close()
        await bot.session.close()


def main() -> None:
    settings = load_settings()
    logger.info("Starting Bot")
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
