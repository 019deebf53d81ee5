import asyncio
import io
from typing import Optional

import aiohttp
from aiogram import Bot
from aiogram.exceptions import TelegramAPIError

from .config import DEFAULT_ASR_URL
from .exceptions import DecodeError, DownloadError, FileResolutionError, ServiceError, UploadError
from .models import TranscriptResult
from .utils.logging import configure_logger

logger = configure_logger("[ASR_CLIENT]", "magenta")

AUDIO_FIELD = "audio_file"
AUDIO_MIME_TYPE = "audio/ogg"


class TranscriptionClient:
    """Скачивает файл из Telegram и отправляет его в ASR-сервис."""

    def __init__(
            self,
            asr_url: str = DEFAULT_ASR_URL,
            timeout: float = 300.0,
            download_timeout: int = 60,
    ):
        self.asr_url = asr_url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.download_timeout = download_timeout
        self.session: Optional[aiohttp.ClientSession] = None

    async def _ensure_session(self):
        """Ленивая инициализация aiohttp.ClientSession."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(timeout=self.timeout)

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Закрытие сессии aiohttp."""
        if self.session and not self.session.closed:
            await self.session.close()

    async def transcribe(self, bot: Bot, file_id: str) -> TranscriptResult:
        """Resolve, download and recognize a single Telegram file."""
        audio = await self.download(bot, file_id)
        return await self.recognize(file_id, audio)

    async def download(self, bot: Bot, file_id: str) -> io.BytesIO:
        """Download a Telegram file into a buffer owned by this call."""
        logger.info(f"Getting file {file_id}")
        try:
            file = await bot.get_file(file_id)
        except (TelegramAPIError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FileResolutionError(file_id, e) from e
        if not file.file_path:
            raise FileResolutionError(file_id)

        buffer = io.BytesIO()
        try:
            await bot.download_file(
                file.file_path,
                destination=buffer,
                timeout=self.download_timeout,
            )
        except (TelegramAPIError, aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise DownloadError(file_id, e) from e

        buffer.seek(0)
        logger.debug(f"Downloaded {buffer.getbuffer().nbytes} bytes for {file_id}")
        return buffer

    async def recognize(self, file_id: str, audio: io.BytesIO) -> TranscriptResult:
        """POST the audio as multipart/form-data and parse the transcript."""
        await self._ensure_session()
        form = aiohttp.FormData()
        form.add_field(AUDIO_FIELD, audio, filename=AUDIO_FIELD, content_type=AUDIO_MIME_TYPE)

        logger.info(f"Making request to {self.asr_url} for {file_id}")
        try:
            async with self.session.post(self.asr_url, data=form) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    raise ServiceError(file_id, resp.status, body)
                try:
                    data = await resp.json(content_type=None)
                    return TranscriptResult.model_validate(data)
                except ValueError as e:
                    # pydantic.ValidationError и JSONDecodeError оба наследуют ValueError
                    raise DecodeError(file_id, e) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UploadError(file_id, e) from e
