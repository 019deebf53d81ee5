import asyncio
import hashlib
from datetime import datetime
from typing import Dict, List

from aiogram.types import Audio, Chat, File, Message, User, Voice
from aiohttp import web

CHAT_ID = 10
USER_ID = 7


def make_message(text=None, audio_id=None, voice_id=None, message_id=1) -> Message:
    """Собирает Message так, как его прислал бы Telegram."""
    return Message(
        message_id=message_id,
        date=datetime.now(),
        chat=Chat(id=CHAT_ID, type="private"),
        from_user=User(id=USER_ID, is_bot=False, first_name="Ann"),
        text=text,
        audio=Audio(file_id=audio_id, file_unique_id=f"u-{audio_id}", duration=12) if audio_id else None,
        voice=Voice(file_id=voice_id, file_unique_id=f"u-{voice_id}", duration=3) if voice_id else None,
    )


class FakeBot:
    """Minimal stand-in for aiogram.Bot: getFile + download_file from memory."""

    def __init__(self, files: Dict[str, bytes]):
        self.files = files
        self.get_file_calls: List[str] = []

    async def get_file(self, file_id: str) -> File:
        self.get_file_calls.append(file_id)
        return File(file_id=file_id, file_unique_id=f"u-{file_id}", file_path=f"voice/{file_id}.ogg")

    async def download_file(self, file_path, destination, timeout=30, chunk_size=65536, seek=True):
        file_id = file_path.split("/")[-1][:-len(".ogg")]
        data = self.files[file_id]
        # Пишем кусками и отдаём управление, чтобы параллельные загрузки перемешались
        for i in range(0, len(data), 1024):
            destination.write(data[i:i + 1024])
            await asyncio.sleep(0)
        if seek:
            destination.seek(0)
        return destination


class AsrStub:
    """Records every upload and answers with a digest of the received bytes."""

    def __init__(self):
        self.uploads: List[dict] = []
        self.status = 200
        self.body = None

    async def handle(self, request: web.Request) -> web.Response:
        reader = await request.multipart()
        part = await reader.next()
        data = await part.read()
        self.uploads.append({
            "name": part.name,
            "filename": part.filename,
            "content_type": part.headers.get("Content-Type"),
            "data": bytes(data),
        })
        if self.status >= 400:
            return web.Response(status=self.status, text=self.body or "error")
        if self.body is not None:
            return web.Response(text=self.body, content_type="text/plain")
        return web.json_response({
            "text": hashlib.sha256(data).hexdigest(),
            "segments": [{"id": 0, "start": 0.0, "end": 1.5, "text": str(len(data))}],
        })
