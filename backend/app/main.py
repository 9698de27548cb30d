import asyncio
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .config import Settings, settings
from .services.interfaces import SpeechRecognizer, SpeechSynthesizer, Translator
from .services.relay import RelaySession
from .utils.logging import get_logger, mask

logger = get_logger(settings.LOG_LEVEL)


def build_recognizer(cfg: Settings) -> SpeechRecognizer:
    from .services.stt_google import GoogleSpeechRecognizer

    return GoogleSpeechRecognizer(
        credentials=cfg.service_account_credentials(),
        sample_rate=cfg.STT_SAMPLE_RATE,
        language=cfg.STT_LANGUAGE,
        alternative_languages=cfg.STT_ALT_LANGUAGES,
    )


def build_translator(cfg: Settings) -> Translator:
    from .services.translate_deepl import DeepLTranslate

    return DeepLTranslate(cfg.DEEPL_API_KEY, cfg.DEEPL_API_URL, timeout=cfg.deepl_timeout)


def build_synthesizer(cfg: Settings) -> SpeechSynthesizer:
    if cfg.TTS_PROVIDER == "gtts":
        from .services.tts_gtts import GTTSService

        return GTTSService(cfg.TTS_LANGUAGE)
    from .services.tts_google import GoogleTTS

    return GoogleTTS(
        credentials=cfg.service_account_credentials(),
        language=cfg.TTS_LANGUAGE,
        gender=cfg.TTS_GENDER,
    )


def create_app(
    recognizer: Optional[SpeechRecognizer] = None,
    translator: Optional[Translator] = None,
    synthesizer: Optional[SpeechSynthesizer] = None,
    cfg: Settings = settings,
) -> FastAPI:
    app = FastAPI(title="Live Speech Relay")
    app.state.recognizer = recognizer
    app.state.translator = translator
    app.state.synthesizer = synthesizer

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[cfg.FRONTEND_ORIGIN],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def load_services():
        if app.state.recognizer and app.state.translator and app.state.synthesizer:
            return
        logger.info("Starting up relay. tts_provider=%s target_lang=%s", cfg.TTS_PROVIDER, cfg.TARGET_LANG)
        # ConfigError here aborts uvicorn startup
        cfg.validate()
        if app.state.recognizer is None:
            app.state.recognizer = build_recognizer(cfg)
            logger.info("Google streaming recognizer ready (lang=%s rate=%d)", cfg.STT_LANGUAGE, cfg.STT_SAMPLE_RATE)
        if app.state.translator is None:
            app.state.translator = build_translator(cfg)
            logger.info("DeepL translator ready (url=%s key=%s)", cfg.DEEPL_API_URL, mask(cfg.DEEPL_API_KEY))
        if app.state.synthesizer is None:
            app.state.synthesizer = build_synthesizer(cfg)
            logger.info("Synthesizer ready (provider=%s voice=%s)", cfg.TTS_PROVIDER, cfg.TTS_LANGUAGE)

    async def relay(websocket: WebSocket):
        await websocket.accept()
        client = websocket.client
        logger.info("session.open client=%s", client)

        async def send(payload: Dict[str, Any]) -> None:
            try:
                await websocket.send_json(payload)
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.warning("ws.send_failed client=%s err=%s", client, e)

        session = RelaySession(
            app.state.recognizer.open_stream(),
            app.state.translator,
            app.state.synthesizer,
            send,
            target_lang=cfg.TARGET_LANG,
        )

        async def consume():
            await session.run()
            if session.failed:
                await websocket.close(code=1011)

        consumer = asyncio.create_task(consume())
        frames = 0
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                data = message.get("bytes")
                if data is None:
                    continue
                if session.feed(data):
                    frames += 1
        finally:
            await session.close()
            consumer.cancel()
            results = await asyncio.gather(consumer, return_exceptions=True)
            err = results[0]
            if isinstance(err, Exception):
                logger.error("session.consumer_failed client=%s err=%r", client, err)
            logger.info("session.close client=%s frames=%d", client, frames)

    app.add_api_websocket_route("/", relay)
    app.add_api_websocket_route("/ws", relay)

    # Browser UI; mounted last so the websocket routes win on "/"
    public = Path(cfg.PUBLIC_DIR)
    if public.is_dir():
        app.mount("/", StaticFiles(directory=str(public), html=True), name="public")
    else:
        logger.warning("static.missing dir=%s", public)

    return app


app = create_app()


def run():
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
