from dataclasses import dataclass
from xml.sax.saxutils import escape

import httpx
import structlog

from civicrag.errors import ConfigurationError, UpstreamServiceError
from civicrag.speech.config import AzureServiceConfig

_logger = structlog.get_logger()

_OUTPUT_FORMAT = "audio-16khz-32kbitrate-mono-mp3"

SPEECH_NOT_CONFIGURED = "speech_not_configured"


@dataclass(frozen=True)
class Voice:
    name: str
    xml_lang: str


_VOICES = {
    "sv": Voice(name="sv-SE-SofieNeural", xml_lang="sv-SE"),
    "en": Voice(name="en-GB-LibbyNeural", xml_lang="en-GB"),
}
_DEFAULT_LANGUAGE = "sv"


def voice_for(language: str) -> Voice:
    return _VOICES.get(language, _VOICES[_DEFAULT_LANGUAGE])


def build_ssml(text: str, voice: Voice) -> str:
    escaped = escape(text, {"'": "&apos;", '"': "&quot;"})
    return (
        f"<speak version='1.0' xmlns='http://www.w3.org/2001/10/synthesis' "
        f"xml:lang='{voice.xml_lang}'><voice name='{voice.name}'>{escaped}</voice></speak>"
    )


def speech_not_configured() -> ConfigurationError:
    return ConfigurationError(
        "speech",
        SPEECH_NOT_CONFIGURED,
        "Azure Speech credentials not configured (AZURE_SPEECH_KEY, AZURE_SPEECH_REGION)",
    )


class AzureSpeechSynthesizer:
    def __init__(
        self,
        config: AzureServiceConfig,
        base_url: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not config.is_configured:
            raise speech_not_configured()
        self._client = httpx.Client(
            base_url=base_url or f"https://{config.region}.tts.speech.microsoft.com",
            transport=transport,
            timeout=config.timeout_seconds,
            headers={
                "Ocp-Apim-Subscription-Key": config.key,
                "Content-Type": "application/ssml+xml",
                "X-Microsoft-OutputFormat": _OUTPUT_FORMAT,
                "User-Agent": "civicrag-tts",
            },
        )

    def synthesize(self, text: str, language: str) -> bytes:
        """Render ``text`` as mp3 audio in the voice for ``language``."""
        voice = voice_for(language)
        try:
            response = self._client.post(
                "/cognitiveservices/v1",
                content=build_ssml(text, voice).encode("utf-8"),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            _logger.error(
                "speech_synthesis_failed",
                status=e.response.status_code,
                body=e.response.text[:300],
            )
            raise UpstreamServiceError(
                "speech", f"Azure TTS failed: {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            _logger.error("speech_request_error", error=str(e))
            raise UpstreamServiceError("speech", f"Azure TTS failed: {e}") from e

        _logger.info("speech_synthesized", voice=voice.name, bytes=len(response.content))
        return response.content

    def close(self) -> None:
        self._client.close()
