"""Contracts for the three upstream services the relay talks to."""

from dataclasses import dataclass, field
from typing import AsyncIterator, List, Optional, Protocol

from ..errors import SynthesisInputError


@dataclass
class RecognitionAlternative:
    transcript: str
    confidence: float = 0.0


@dataclass
class RecognitionResult:
    alternatives: List[RecognitionAlternative] = field(default_factory=list)
    is_final: bool = False


@dataclass
class RecognitionEvent:
    """One response from the streaming recognizer."""

    results: List[RecognitionResult] = field(default_factory=list)

    def top_alternative(self) -> Optional[RecognitionAlternative]:
        if not self.results or not self.results[0].alternatives:
            return None
        return self.results[0].alternatives[0]

    @property
    def is_final(self) -> bool:
        return bool(self.results) and self.results[0].is_final


class RecognitionStream(Protocol):
    """A live recognition session bound to one client connection."""

    def write(self, chunk: bytes) -> None:
        """Queue raw PCM bytes for the upstream session."""

    def events(self) -> AsyncIterator[RecognitionEvent]:
        """Yield recognition events until the session ends; raise on upstream failure."""

    async def close(self) -> None:
        """Terminate the upstream session immediately."""


class SpeechRecognizer(Protocol):
    def open_stream(self) -> RecognitionStream:
        """Start a new streaming session."""


class Translator(Protocol):
    async def translate(self, text: str, target_lang: str = "JA") -> Optional[str]:
        """Return the translated text, or None when there is no result."""


class SpeechSynthesizer(Protocol):
    async def synthesize(self, text: str) -> str:
        """Return base64-encoded audio for the given text."""


def ensure_speakable(text: Optional[str]) -> str:
    if text is None or not text.strip():
        raise SynthesisInputError("text to synthesize must not be empty")
    return text
