from aiogram import BaseMiddleware
from aiogram.types import Update

from ..utils.logging import configure_logger

logger = configure_logger("[ERROR_MIDDLEWARE]", "red")


class ErrorHandlingMiddleware(BaseMiddleware):
    async def __call__(self, handler, event: Update, data):
        try:
            return await handler(event, data)
        except Exception as e:
            logger.bind(update_id=event.update_id).opt(exception=e).error(
                f"Unhandled error in update {event.update_id}: {e}"
            )
            raise
