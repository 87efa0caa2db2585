import base64
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.exc import SQLAlchemyError

from civicrag.api.client import client_ip_for, session_id_for
from civicrag.api.schemas import (
    FeedbackRequest,
    FeedbackResponse,
    SearchResponse,
    SourceFollowedRequest,
    SourceFollowedResponse,
    SpeechRequest,
    SpeechResponse,
    TranslateRequest,
    TranslateResponse,
)
from civicrag.api.services import Services
from civicrag.errors import NotFoundError, UpstreamServiceError, ValidationError
from civicrag.pipeline import SearchRequest
from civicrag.querylog.repository import VALID_FEEDBACK
from civicrag.speech import speech_not_configured, translator_not_configured

_logger = structlog.get_logger()

router = APIRouter()


def get_services(request: Request) -> Services:
    services: Services = request.app.state.services
    return services


@router.options("/{path:path}", include_in_schema=False)
def preflight(path: str) -> Response:
    return Response(status_code=200)


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/search", response_model=SearchResponse)
def search(
    request: Request,
    q: str | None = None,
    history: str | None = None,
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    result = services.pipeline.search(
        SearchRequest(
            query=q or "",
            history=history,
            session_id=session_id_for(request),
            ip_address=client_ip_for(request),
            user_agent=request.headers.get("user-agent"),
        )
    )
    return result.to_payload()


@router.post("/feedback", response_model=FeedbackResponse)
def feedback(
    body: FeedbackRequest,
    services: Services = Depends(get_services),
) -> FeedbackResponse:
    if body.feedback not in VALID_FEEDBACK:
        raise ValidationError("feedback must be 1 (thumbs up) or -1 (thumbs down)")

    try:
        updated = services.feedback.update_feedback(body.query_id, body.feedback)
    except SQLAlchemyError as e:
        _logger.error("feedback_update_failed", query_id=body.query_id, error=str(e))
        raise UpstreamServiceError("query_log", "Failed to save feedback") from e

    if not updated:
        raise NotFoundError(f"Query {body.query_id} not found")

    return FeedbackResponse(
        success=True,
        message="Feedback saved",
        query_id=body.query_id,
        feedback=body.feedback,
    )


@router.post("/feedback/source", response_model=SourceFollowedResponse)
def source_followed(
    body: SourceFollowedRequest,
    services: Services = Depends(get_services),
) -> SourceFollowedResponse:
    return SourceFollowedResponse(success=services.feedback.mark_source_followed(body.query_id))


@router.post("/translate", response_model=TranslateResponse)
def translate(
    body: TranslateRequest,
    services: Services = Depends(get_services),
) -> TranslateResponse:
    if services.translator is None:
        raise translator_not_configured()
    if not body.text:
        raise ValidationError("Missing text")

    translated = services.translator.translate(body.text, body.target_lang)
    return TranslateResponse(
        original_text=body.text,
        translated_text=translated,
        target_lang=body.target_lang,
    )


@router.post("/tts", response_model=SpeechResponse)
def tts(
    body: SpeechRequest,
    services: Services = Depends(get_services),
) -> SpeechResponse:
    if services.synthesizer is None:
        raise speech_not_configured()
    if not body.text:
        raise ValidationError("Missing text")

    audio = services.synthesizer.synthesize(body.text, body.language)
    return SpeechResponse(audio=base64.b64encode(audio).decode("ascii"), format="mp3")
