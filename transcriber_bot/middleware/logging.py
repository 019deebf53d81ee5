# transcriber_bot/middleware/logging.py
from aiogram import BaseMiddleware
from aiogram.types import Update

from ..utils.logging import configure_logger

# Configure middleware logger
logger = configure_logger("[MIDDLEWARE]", "magenta")


class LoggingMiddleware(BaseMiddleware):
    async def __call__(self, handler, event: Update, data):
        message = event.message or event.edited_message or event.channel_post

        # Extract the user ID from the appropriate sub-event
        user_id = 'unknown'
        if message and message.from_user:
            user_id = message.from_user.id
        elif event.callback_query and event.callback_query.from_user:
            user_id = event.callback_query.from_user.id

        if message:
            if message.audio:
                content = f"audio={message.audio.file_id}"
            elif message.voice:
                content = f"voice={message.voice.file_id}"
            else:
                content = f"text='{message.text}'"
            logger.info(f"Message from {user_id}: {content}, chat_id={message.chat.id}")
        else:
            logger.info(f"Update {event.update_id} from {user_id} without a message")

        try:
            result = await handler(event, data)
            logger.debug(f"Handler completed for user {user_id}")
            return result
        except Exception as e:
            logger.error(f"Handler failed for user {user_id}: {e}")
            raise
