import asyncio
import time
from typing import Optional, Set

from aiogram import Bot, Dispatcher
from aiogram.types import Update
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse

from . import __version__
from .utils.logging import configure_logger

logger = configure_logger("[HTTP]", "blue")

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"


async def _feed_update(dp: Dispatcher, bot: Bot, update: Update) -> None:
    try:
        await dp.feed_update(bot, update)
    except Exception as e:
        logger.error(f"Failed to process update {update.update_id}: {e}")


def create_app(
        dp: Optional[Dispatcher] = None,
        bot: Optional[Bot] = None,
        webhook_path: Optional[str] = None,
        webhook_secret: Optional[str] = None,
        handle_in_background: bool = True,
) -> FastAPI:
    """
    Liveness-роут всегда; webhook-роут только если передан webhook_path.
    """
    app = FastAPI(title="Voice-Transcriber-Bot", version=__version__)
    background: Set[asyncio.Task] = set()
    app.state.background_tasks = background

    # Логирование времени отклика
    @app.middleware("http")
    async def log_request_time(request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        duration = (time.time() - start) * 1000
        logger.info(
            f"{request.method} {request.url.path} finished in {duration:.2f} ms "
            f"({response.status_code})"
        )
        return response

    @app.get("/healthz", response_class=PlainTextResponse)
    async def healthz() -> str:
        return "ok"

    if webhook_path is None:
        return app

    if dp is None or bot is None:
        raise ValueError("Webhook mode needs both a dispatcher and a bot")

    @app.post(webhook_path)
    async def telegram_webhook(request: Request):
        if webhook_secret and request.headers.get(SECRET_HEADER) != webhook_secret:
            logger.warning(f"Rejected webhook call from {request.client.host if request.client else 'unknown'}")
            raise HTTPException(status_code=401, detail="Invalid secret token")

        try:
            update = Update.model_validate(await request.json(), context={"bot": bot})
        except ValueError as e:
            # JSONDecodeError и pydantic.ValidationError
            logger.warning(f"Rejected malformed webhook payload: {e}")
            raise HTTPException(status_code=400, detail="Malformed update")
        if handle_in_background:
            task = asyncio.create_task(_feed_update(dp, bot, update))
            background.add(task)
            task.add_done_callback(background.discard)
        else:
            await _feed_update(dp, bot, update)
        return {"ok": True}

    return app
