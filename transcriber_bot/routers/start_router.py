from aiogram import Bot, F, Router
from aiogram.types import Message

from ..utils.logging import configure_logger

logger = configure_logger("[START]", "green")

START_COMMAND = "/start"
USAGE_TEXT = "Send a voice note to start"


async def start_command(message: Message, bot: Bot) -> None:
    user_id = message.from_user.id if message.from_user else "unknown"
    logger.info(f"User {user_id} called /start in chat {message.chat.id}")
    await bot.send_message(chat_id=message.chat.id, text=USAGE_TEXT)


def create_start_router() -> Router:
    start_router = Router(name="start_router")
    # text.startswith, а не CommandStart: "/start" с любым хвостом тоже считается командой
    start_router.message.register(start_command, F.text.startswith(START_COMMAND))
    return start_router
