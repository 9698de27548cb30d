import asyncio
import base64
from io import BytesIO

from gtts import gTTS

from .interfaces import ensure_speakable


class GTTSService:
    def __init__(self, lang: str = "en"):
        # gTTS wants a bare language code
        self.lang = lang.split("-")[0].lower() or "en"

    def synthesize_bytes(self, text: str) -> bytes:
        tts = gTTS(text=text, lang=self.lang)
        fp = BytesIO()
        tts.write_to_fp(fp)
        return fp.getvalue()

    async def synthesize(self, text: str) -> str:
        text = ensure_speakable(text)
        audio = await asyncio.to_thread(self.synthesize_bytes, text)
        return base64.b64encode(audio).decode("utf-8")
