from aiogram import Bot, F, Router
from aiogram.enums import ChatAction
from aiogram.types import Message

from ..asr_client import TranscriptionClient
from ..exceptions import TranscriptionError
from ..models import AttachmentRef
from ..utils.logging import configure_logger
from ..utils.message_utils import send_long_message

logger = configure_logger("[TRANSCRIPTION]", "yellow")

FAILURE_TEXT = "failed"
NO_SPEECH_TEXT = "No speech detected"


async def transcribe_attachment(message: Message, bot: Bot, transcriber: TranscriptionClient) -> None:
    chat_id = message.chat.id
    attachment = AttachmentRef.from_message(message)
    if attachment is None:
        await bot.send_message(chat_id=chat_id, text=FAILURE_TEXT)
        return

    log = logger.bind(
        message_id=message.message_id,
        chat_id=chat_id,
        user_id=message.from_user.id if message.from_user else None,
        kind=attachment.kind.value,
        file_id=attachment.file_id,
    )
    log.info(f"Transcribing {attachment.kind.value} ({attachment.duration}s) from chat {chat_id}")

    await bot.send_chat_action(chat_id=chat_id, action=ChatAction.TYPING)
    try:
        result = await transcriber.transcribe(bot, attachment.file_id)
    except TranscriptionError as e:
        log.opt(exception=e).error(f"Transcription failed: {e}")
        await bot.send_message(chat_id=chat_id, text=FAILURE_TEXT)
        return

    if not result.text.strip():
        log.warning("ASR service returned an empty transcript")
        await bot.send_message(chat_id=chat_id, text=NO_SPEECH_TEXT)
        return

    log.debug(f"Transcript ready: {len(result.text)} chars")
    await send_long_message(bot, chat_id, result.text)


async def unsupported_message(message: Message, bot: Bot) -> None:
    logger.debug(f"No audio in message {message.message_id} from chat {message.chat.id}")
    await bot.send_message(chat_id=message.chat.id, text=FAILURE_TEXT)


def create_transcription_router() -> Router:
    router = Router(name="transcription_router")
    router.message.register(transcribe_attachment, F.audio | F.voice)
    router.message.register(unsupported_message)
    return router
