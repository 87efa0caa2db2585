import httpx
import structlog

from civicrag.errors import ConfigurationError, UpstreamServiceError
from civicrag.speech.config import AzureServiceConfig

_logger = structlog.get_logger()

_TRANSLATOR_URL = "https://api.cognitive.microsofttranslator.com"
_API_VERSION = "3.0"

TRANSLATOR_NOT_CONFIGURED = "translator_not_configured"


def translator_not_configured() -> ConfigurationError:
    return ConfigurationError(
        "translator",
        TRANSLATOR_NOT_CONFIGURED,
        "Azure Translator credentials not configured (AZURE_TRANSLATOR_KEY, "
        "AZURE_TRANSLATOR_REGION)",
    )


class AzureTranslator:
    def __init__(
        self,
        config: AzureServiceConfig,
        base_url: str = _TRANSLATOR_URL,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not config.is_configured:
            raise translator_not_configured()
        self._client = httpx.Client(
            base_url=base_url,
            transport=transport,
            timeout=config.timeout_seconds,
            headers={
                "Ocp-Apim-Subscription-Key": config.key,
                "Ocp-Apim-Subscription-Region": config.region,
                "Content-Type": "application/json",
            },
        )

    def translate(self, text: str, target_lang: str) -> str:
        """Translate ``text``; an empty translation falls back to the original text."""
        try:
            response = self._client.post(
                "/translate",
                params={"api-version": _API_VERSION, "to": target_lang},
                json=[{"text": text}],
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            _logger.error(
                "translation_failed",
                status=e.response.status_code,
                body=e.response.text[:300],
            )
            raise UpstreamServiceError(
                "translator", f"Translation failed: {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            _logger.error("translation_request_error", error=str(e))
            raise UpstreamServiceError("translator", f"Translation failed: {e}") from e

        data = response.json()
        try:
            translated: str = data[0]["translations"][0]["text"]
        except (IndexError, KeyError, TypeError):
            translated = ""

        _logger.info("text_translated", target_lang=target_lang, length=len(text))
        return translated or text

    def close(self) -> None:
        self._client.close()
