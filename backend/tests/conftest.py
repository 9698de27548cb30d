"""Shared fakes and fixtures for relay tests."""

import asyncio
import base64
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from app.services.interfaces import (
    RecognitionAlternative,
    RecognitionEvent,
    RecognitionResult,
    ensure_speakable,
)

FAKE_MP3 = b"ID3\x04\x00fake-mp3-frame"


def make_event(transcript: Optional[str], is_final: bool = True) -> RecognitionEvent:
    if transcript is None:
        return RecognitionEvent(results=[RecognitionResult(alternatives=[], is_final=is_final)])
    alt = RecognitionAlternative(transcript=transcript, confidence=0.9)
    return RecognitionEvent(results=[RecognitionResult(alternatives=[alt], is_final=is_final)])


class FakeStream:
    """Recognition stream double.

    Each ``write`` pops the next scripted item; non-None items are delivered
    from ``events()``. Exceptions in the script are raised from ``events()``.
    """

    def __init__(self, script=None):
        self.script = list(script or [])
        self.chunks: List[bytes] = []
        self.close_calls = 0
        self._queue: asyncio.Queue = asyncio.Queue()

    def write(self, chunk: bytes) -> None:
        self.chunks.append(chunk)
        if self.script:
            item = self.script.pop(0)
            if item is not None:
                self._queue.put_nowait(item)

    def push(self, item) -> None:
        self._queue.put_nowait(item)

    async def events(self):
        while True:
            item = await self._queue.get()
            if item is None:
                return
            if isinstance(item, BaseException):
                raise item
            yield item

    async def close(self) -> None:
        self.close_calls += 1
        self._queue.put_nowait(None)


class FakeRecognizer:
    def __init__(self, script=None):
        self.script = list(script or [])
        self.streams: List[FakeStream] = []

    def open_stream(self) -> FakeStream:
        stream = FakeStream(self.script)
        self.streams.append(stream)
        return stream


class FakeTranslator:
    def __init__(self, replies: Optional[Dict[str, Optional[str]]] = None, delays: Optional[Dict[str, float]] = None):
        self.replies = replies or {}
        self.delays = delays or {}
        self.calls: List[tuple] = []

    async def translate(self, text: str, target_lang: str = "JA") -> Optional[str]:
        self.calls.append((text, target_lang))
        if text in self.delays:
            await asyncio.sleep(self.delays[text])
        return self.replies.get(text)


class FakeSynthesizer:
    def __init__(self, audio: bytes = FAKE_MP3, fail: Optional[Exception] = None):
        self.audio = audio
        self.fail = fail
        self.calls: List[str] = []

    async def synthesize(self, text: str) -> str:
        ensure_speakable(text)
        self.calls.append(text)
        if self.fail:
            raise self.fail
        return base64.b64encode(self.audio).decode("utf-8")


class Outbox:
    def __init__(self):
        self.messages: List[dict] = []

    async def __call__(self, payload: dict) -> None:
        self.messages.append(payload)


@pytest.fixture
def outbox() -> Outbox:
    return Outbox()


@pytest.fixture
def make_client():
    def _make(recognizer=None, translator=None, synthesizer=None):
        app = create_app(
            recognizer=recognizer or FakeRecognizer(),
            translator=translator or FakeTranslator(),
            synthesizer=synthesizer or FakeSynthesizer(),
        )
        return TestClient(app)

    return _make
