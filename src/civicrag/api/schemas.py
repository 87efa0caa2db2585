from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt


class SourceOut(BaseModel):
    url: str
    title: str
    category: str


class SearchResponse(BaseModel):
    answer: str
    sources: list[SourceOut]
    metadata: dict[str, Any]


class FeedbackRequest(BaseModel):
    # StrictInt rejects booleans and numeric strings
    query_id: StrictInt
    feedback: StrictInt


class FeedbackResponse(BaseModel):
    success: bool
    message: str
    query_id: int
    feedback: int


class SourceFollowedRequest(BaseModel):
    query_id: StrictInt


class SourceFollowedResponse(BaseModel):
    success: bool


class TranslateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str | None = None
    target_lang: str = Field(default="en", alias="targetLang")


class TranslateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    original_text: str = Field(alias="originalText")
    translated_text: str = Field(alias="translatedText")
    target_lang: str = Field(alias="targetLang")


class SpeechRequest(BaseModel):
    text: str | None = None
    language: str = "sv"


class SpeechResponse(BaseModel):
    audio: str
    format: str = "mp3"
