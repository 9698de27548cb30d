import asyncio
import logging
from typing import Optional

import requests


class DeepLTranslate:
    def __init__(self, api_key: str, api_url: str = "https://api-free.deepl.com/v2/translate", timeout: Optional[float] = None):
        if not api_key:
            raise ValueError("DeepL API key is required")
        self.api_key = api_key
        self.api_url = api_url or "https://api-free.deepl.com/v2/translate"
        self.timeout = timeout
        self.logger = logging.getLogger("speech_relay")

    def translate_sync(self, text: str, target_lang: str = "JA") -> Optional[str]:
        if not text:
            return None
        data = {
            "auth_key": self.api_key,
            "text": text,
            "target_lang": target_lang,
        }
        try:
            resp = requests.post(self.api_url, data=data, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            self.logger.warning("translate.failed target=%s err=%s", target_lang, e)
            return None
        translations = payload.get("translations") if isinstance(payload, dict) else None
        if not translations:
            self.logger.warning("translate.empty_response target=%s", target_lang)
            return None
        first = translations[0]
        if not isinstance(first, dict):
            return None
        return first.get("text") or None

    async def translate(self, text: str, target_lang: str = "JA") -> Optional[str]:
        return await asyncio.to_thread(self.translate_sync, text, target_lang)
