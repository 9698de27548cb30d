from pydantic import BaseModel


class ErrorMessage(BaseModel):
    error: str


class TranscriptMessage(BaseModel):
    transcript: str
    isFinal: bool
    translation: str
    audio: str
