from enum import Enum
from typing import List, Optional

from aiogram.types import Message
from pydantic import BaseModel, Field


class AttachmentKind(str, Enum):
    AUDIO = "audio"
    VOICE = "voice"


class AttachmentRef(BaseModel):
    """Ссылка на файл Telegram, прикреплённый к сообщению."""
    kind: AttachmentKind
    file_id: str
    file_unique_id: Optional[str] = None
    duration: Optional[int] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None

    @classmethod
    def from_message(cls, message: Message) -> Optional["AttachmentRef"]:
        """Audio wins over voice; None when the message carries neither."""
        if message.audio:
            media, kind = message.audio, AttachmentKind.AUDIO
        elif message.voice:
            media, kind = message.voice, AttachmentKind.VOICE
        else:
            return None
        return cls(
            kind=kind,
            file_id=media.file_id,
            file_unique_id=media.file_unique_id,
            duration=media.duration,
            mime_type=media.mime_type,
            file_size=media.file_size,
        )


class Segment(BaseModel):
    id: int = 0
    seek: int = 0
    start: float = 0.0
    end: float = 0.0
    text: str = ""
    tokens: List[int] = Field(default_factory=list)
    temperature: float = 0.0
    avg_logprob: float = 0.0
    compression_ratio: float = 0.0
    no_speech_prob: float = 0.0


class TranscriptResult(BaseModel):
    """Ответ ASR-сервиса. Используется только text."""
    text: str
    segments: List[Segment] = Field(default_factory=list)
    language: Optional[str] = None
