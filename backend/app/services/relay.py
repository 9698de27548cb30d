"""
Per-connection relay: PCM in, recognition events out, translated speech back.

Final results are handled one at a time in recognition order, so outbound
messages for a connection always follow utterance order. Cancelling the task
that runs ``RelaySession.run`` aborts any in-flight translation or synthesis.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from ..errors import RecognitionError, SynthesisError
from ..models.schemas import ErrorMessage, TranscriptMessage
from .interfaces import RecognitionEvent, RecognitionStream, SpeechSynthesizer, Translator

Sender = Callable[[Dict[str, Any]], Awaitable[None]]

OPEN = "open"
STREAMING = "streaming"
CLOSED = "closed"


class RelaySession:
    def __init__(
        self,
        stream: RecognitionStream,
        translator: Translator,
        synthesizer: SpeechSynthesizer,
        send: Sender,
        target_lang: str = "EN",
    ):
        self.stream = stream
        self.translator = translator
        self.synthesizer = synthesizer
        self.send = send
        self.target_lang = target_lang
        self.state = OPEN
        self.failed = False
        self._stream_closed = False
        self.logger = logging.getLogger("speech_relay")

    def feed(self, chunk: bytes) -> bool:
        """Forward one audio frame upstream. Returns False once the pipeline is dead."""
        if self.state == CLOSED:
            return False
        self.stream.write(chunk)
        if self.state == OPEN:
            self.state = STREAMING
        return True

    async def run(self) -> None:
        try:
            async for event in self.stream.events():
                await self.handle_event(event)
            # upstream ended; nothing reads further audio
            self.logger.info("stt.ended")
            self.state = CLOSED
        except RecognitionError as e:
            self.logger.error("stt.error err=%s", e)
            self.state = CLOSED
            await self.send(ErrorMessage(error=str(e)).model_dump())
        except SynthesisError as e:
            self.logger.exception("tts.error err=%s", e)
            self.state = CLOSED
            self.failed = True
            await self.send(ErrorMessage(error=str(e)).model_dump())

    async def handle_event(self, event: RecognitionEvent) -> Optional[TranscriptMessage]:
        alt = event.top_alternative()
        if alt is None:
            return None

        transcript = alt.transcript.strip()
        self.logger.info("stt.result final=%s text=%s", event.is_final, transcript)
        if not (event.is_final and transcript):
            return None

        translation = await self.translator.translate(transcript, self.target_lang)
        self.logger.info("translate.result target=%s text=%s", self.target_lang, translation)
        if not translation or not translation.strip():
            return None

        try:
            audio = await self.synthesizer.synthesize(translation)
        except Exception as e:
            raise SynthesisError(f"synthesis failed: {e}") from e

        message = TranscriptMessage(
            transcript=transcript,
            isFinal=True,
            translation=translation,
            audio=audio,
        )
        await self.send(message.model_dump())
        return message

    async def close(self) -> None:
        if self._stream_closed:
            return
        self._stream_closed = True
        self.state = CLOSED
        await self.stream.close()
