from unittest.mock import AsyncMock

import pytest
from aiogram import Bot
from aiogram.enums import ChatAction
from aiogram.types import Update
from loguru import logger

from transcriber_bot.exceptions import DecodeError, FileResolutionError, ServiceError
from transcriber_bot.main import build_dispatcher
from transcriber_bot.models import TranscriptResult
from transcriber_bot.routers.start_router import USAGE_TEXT, start_command
from transcriber_bot.routers.transcription_router import (
    FAILURE_TEXT,
    NO_SPEECH_TEXT,
    transcribe_attachment,
    unsupported_message,
)
from transcriber_bot.utils.logging import _format

from .helpers import CHAT_ID, make_message


def _transcriber(text="hello world", error=None):
    transcriber = AsyncMock()
    if error is not None:
        transcriber.transcribe.side_effect = error
    else:
        transcriber.transcribe.return_value = TranscriptResult(text=text)
    return transcriber


def _sent_texts(bot) -> list:
    return [call.kwargs["text"] for call in bot.send_message.await_args_list]


# ------------------------------------------------------------------ #
# Handlers called directly                                           #
# ------------------------------------------------------------------ #
@pytest.mark.asyncio
async def test_start_command_replies_with_usage():
    bot = AsyncMock()
    await start_command(make_message(text="/start"), bot)
    bot.send_message.assert_awaited_once_with(chat_id=CHAT_ID, text=USAGE_TEXT)


@pytest.mark.asyncio
async def test_voice_note_is_transcribed_once():
    bot = AsyncMock()
    transcriber = _transcriber("hello world")

    await transcribe_attachment(make_message(voice_id="voice-1"), bot, transcriber)

    transcriber.transcribe.assert_awaited_once_with(bot, "voice-1")
    bot.send_chat_action.assert_awaited_once_with(chat_id=CHAT_ID, action=ChatAction.TYPING)
    assert _sent_texts(bot) == ["hello world"]


@pytest.mark.asyncio
async def test_audio_wins_over_voice():
    bot = AsyncMock()
    transcriber = _transcriber()

    await transcribe_attachment(make_message(audio_id="audio-1", voice_id="voice-1"), bot, transcriber)

    transcriber.transcribe.assert_awaited_once_with(bot, "audio-1")


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    ServiceError("voice-1", 500, "CUDA out of memory"),
    DecodeError("voice-1"),
    FileResolutionError("voice-1"),
])
async def test_transcription_failure_replies_generic_text(error):
    bot = AsyncMock()

    await transcribe_attachment(make_message(voice_id="voice-1"), bot, _transcriber(error=error))

    assert _sent_texts(bot) == [FAILURE_TEXT]


@pytest.mark.asyncio
async def test_empty_transcript_gets_no_speech_reply():
    bot = AsyncMock()

    await transcribe_attachment(make_message(voice_id="voice-1"), bot, _transcriber("   "))

    assert _sent_texts(bot) == [NO_SPEECH_TEXT]


@pytest.mark.asyncio
async def test_long_transcript_is_split():
    bot = AsyncMock()
    text = " ".join(["word"] * 2000)

    await transcribe_attachment(make_message(voice_id="voice-1"), bot, _transcriber(text))

    sent = _sent_texts(bot)
    assert len(sent) == 3
    assert all(len(chunk) <= 4096 for chunk in sent)
    assert " ".join(sent) == text


@pytest.mark.asyncio
async def test_whisper_leading_space_is_kept():
    bot = AsyncMock()

    await transcribe_attachment(make_message(voice_id="voice-1"), bot, _transcriber(" hello world"))

    assert _sent_texts(bot) == [" hello world"]


@pytest.mark.asyncio
async def test_failure_log_carries_message_and_user_ids():
    bot = AsyncMock()
    records = []
    sink_id = logger.add(records.append, format=_format, colorize=False, level="DEBUG")
    try:
        await transcribe_attachment(
            make_message(voice_id="voice-1", message_id=4242),
            bot,
            _transcriber(error=ServiceError("voice-1", 500, "boom")),
        )
    finally:
        logger.remove(sink_id)

    failure = next(line for line in records if "Transcription failed" in line)
    assert "message_id=4242" in failure
    assert "user_id=7" in failure
    assert f"chat_id={CHAT_ID}" in failure
    assert "file_id=voice-1" in failure
    assert "color=" not in failure


@pytest.mark.asyncio
async def test_unsupported_message_replies_generic_text():
    bot = AsyncMock()
    await unsupported_message(make_message(text="hi there"), bot)
    bot.send_message.assert_awaited_once_with(chat_id=CHAT_ID, text=FAILURE_TEXT)


# ------------------------------------------------------------------ #
# Full dispatcher pass                                               #
# ------------------------------------------------------------------ #
@pytest.fixture
def bot():
    bot = Bot(token="42:TEST")
    bot.send_message = AsyncMock()
    bot.send_chat_action = AsyncMock()
    return bot


async def _feed(bot, transcriber, message):
    dp = build_dispatcher(transcriber)
    await dp.feed_update(bot, Update(update_id=1, message=message))


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["/start", "/start deep-link", "/start@transcriber_bot"])
async def test_dispatcher_start_command(bot, text):
    transcriber = _transcriber()

    await _feed(bot, transcriber, make_message(text=text))

    assert _sent_texts(bot) == [USAGE_TEXT]
    transcriber.transcribe.assert_not_awaited()


@pytest.mark.asyncio
async def test_dispatcher_plain_text_gets_failure(bot):
    await _feed(bot, _transcriber(), make_message(text="what is this"))
    assert _sent_texts(bot) == [FAILURE_TEXT]


@pytest.mark.asyncio
async def test_dispatcher_audio_reply_is_transcript(bot):
    transcriber = _transcriber("hello world")

    await _feed(bot, transcriber, make_message(audio_id="audio-1"))

    assert transcriber.transcribe.await_args.args[1] == "audio-1"
    assert _sent_texts(bot) == ["hello world"]


@pytest.mark.asyncio
async def test_dispatcher_survives_service_error(bot):
    transcriber = _transcriber(error=ServiceError("voice-1", 503, "unavailable"))

    await _feed(bot, transcriber, make_message(voice_id="voice-1"))

    assert _sent_texts(bot) == [FAILURE_TEXT]
