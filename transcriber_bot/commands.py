from aiogram import Bot
from aiogram.types import BotCommand, BotCommandScopeDefault


async def set_bot_commands(bot: Bot):
    """
    Регистрирует команды бота в меню Telegram.
    """
    commands = [
        BotCommand(command="/start", description="How to use the bot"),
    ]
    await bot.set_my_commands(commands, scope=BotCommandScopeDefault())
