import asyncio
import logging
from typing import AsyncIterator, List, Optional

from google.api_core import exceptions as gexc
from google.cloud import speech

from ..errors import RecognitionError
from .interfaces import RecognitionAlternative, RecognitionEvent, RecognitionResult

_END = object()


def to_event(response) -> RecognitionEvent:
    results: List[RecognitionResult] = []
    for result in response.results:
        alts = [
            RecognitionAlternative(transcript=a.transcript, confidence=a.confidence)
            for a in result.alternatives
        ]
        results.append(RecognitionResult(alternatives=alts, is_final=bool(result.is_final)))
    return RecognitionEvent(results=results)


class GoogleRecognitionStream:
    """One streaming_recognize call fed from an asyncio queue of PCM chunks."""

    def __init__(self, client, streaming_config):
        self.client = client
        self.streaming_config = streaming_config
        self.logger = logging.getLogger("speech_relay")
        self._queue: asyncio.Queue = asyncio.Queue()
        self._call = None
        self.closed = False

    def write(self, chunk: bytes) -> None:
        if self.closed:
            return
        self._queue.put_nowait(chunk)

    async def _requests(self):
        yield speech.StreamingRecognizeRequest(streaming_config=self.streaming_config)
        while True:
            chunk = await self._queue.get()
            if chunk is _END:
                return
            yield speech.StreamingRecognizeRequest(audio_content=chunk)

    async def events(self) -> AsyncIterator[RecognitionEvent]:
        try:
            self._call = await self.client.streaming_recognize(requests=self._requests())
            async for response in self._call:
                yield to_event(response)
        except gexc.GoogleAPIError as exc:
            if self.closed:
                return
            self.closed = True
            message = getattr(exc, "message", None) or str(exc)
            raise RecognitionError(message) from exc

    async def close(self) -> None:
        if self.closed and self._call is None:
            return
        self.closed = True
        self._queue.put_nowait(_END)
        call, self._call = self._call, None
        if call is not None and hasattr(call, "cancel"):
            call.cancel()


class GoogleSpeechRecognizer:
    """Opens Google Cloud Speech streaming sessions for LINEAR16 audio."""

    def __init__(
        self,
        credentials=None,
        sample_rate: int = 48000,
        language: str = "ja-JP",
        alternative_languages: Optional[List[str]] = None,
        interim_results: bool = True,
        client=None,
    ):
        if client is None:
            if credentials is None:
                raise ValueError("Google credentials are required for streaming recognition")
            client = speech.SpeechAsyncClient(credentials=credentials)
        self.client = client
        self.sample_rate = sample_rate
        self.language = language
        self.alternative_languages = list(alternative_languages or [])
        self.interim_results = interim_results

    def streaming_config(self) -> speech.StreamingRecognitionConfig:
        config = speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=self.sample_rate,
            language_code=self.language,
            alternative_language_codes=self.alternative_languages,
        )
        return speech.StreamingRecognitionConfig(
            config=config,
            interim_results=self.interim_results,
        )

    def open_stream(self) -> GoogleRecognitionStream:
        return GoogleRecognitionStream(self.client, self.streaming_config())
