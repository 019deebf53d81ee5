# transcriber_bot/middleware/dependency_injection.py
from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from ..asr_client import TranscriptionClient


class DependencyInjectionMiddleware(BaseMiddleware):
    def __init__(self, transcriber: TranscriptionClient):
        super().__init__()
        self.transcriber = transcriber

    async def __call__(
            self,
            handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
            event: TelegramObject,
            data: Dict[str, Any]
    ) -> Any:
        data["transcriber"] = self.transcriber
        return await handler(event, data)
