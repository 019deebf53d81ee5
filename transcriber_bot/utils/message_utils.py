# transcriber_bot/utils/message_utils.py
from typing import List

from aiogram import Bot

# Telegram не принимает сообщения длиннее 4096 символов
MESSAGE_LIMIT = 4096


def split_text(text: str, limit: int = MESSAGE_LIMIT) -> List[str]:
    """
    Режет текст на куски не длиннее limit, по возможности по пробелам.
    Текст, который помещается целиком, возвращается как есть.
    """
    if not text.strip():
        return []
    if len(text) <= limit:
        return [text]

    chunks: List[str] = []
    rest = text.strip()
    while len(rest) > limit:
        cut = rest.rfind(" ", 0, limit + 1)
        if cut <= 0:
            cut = limit
        chunks.append(rest[:cut].rstrip())
        rest = rest[cut:].lstrip()
    if rest:
        chunks.append(rest)
    return chunks


async def send_long_message(bot: Bot, chat_id: int, text: str) -> None:
    for chunk in split_text(text):
        await bot.send_message(chat_id=chat_id, text=chunk)
