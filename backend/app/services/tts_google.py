import base64
import logging

from google.cloud import texttospeech

from .interfaces import ensure_speakable


class GoogleTTS:
    """Google Cloud Text-to-Speech with a fixed voice and MP3 output."""

    def __init__(
        self,
        credentials=None,
        language: str = "en-US",
        gender: str = "NEUTRAL",
        client=None,
    ):
        if client is None:
            if credentials is None:
                raise ValueError("Google credentials are required for speech synthesis")
            client = texttospeech.TextToSpeechAsyncClient(credentials=credentials)
        self.client = client
        self.voice = texttospeech.VoiceSelectionParams(
            language_code=language,
            ssml_gender=texttospeech.SsmlVoiceGender[gender],
        )
        self.audio_config = texttospeech.AudioConfig(
            audio_encoding=texttospeech.AudioEncoding.MP3,
        )
        self.logger = logging.getLogger("speech_relay")

    async def synthesize(self, text: str) -> str:
        text = ensure_speakable(text)
        response = await self.client.synthesize_speech(
            input=texttospeech.SynthesisInput(text=text),
            voice=self.voice,
            audio_config=self.audio_config,
        )
        audio = response.audio_content
        self.logger.info("tts.google bytes=%d", len(audio))
        return base64.b64encode(audio).decode("utf-8")
