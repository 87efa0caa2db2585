import json

import httpx
import pytest

from civicrag.errors import ConfigurationError, UpstreamServiceError
from civicrag.speech import AzureServiceConfig, AzureSpeechSynthesizer, AzureTranslator
from civicrag.speech.synthesizer import build_ssml, voice_for

_CONFIG = AzureServiceConfig(key="secret", region="swedencentral")


class TestAzureTranslator:
    def test_translate_posts_text_and_reads_result(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[{"translations": [{"text": "Building permit", "to": "en"}]}])

        translator = AzureTranslator(_CONFIG, transport=httpx.MockTransport(handler))

        assert translator.translate("Bygglov", "en") == "Building permit"

        request = seen[0]
        assert request.url.path == "/translate"
        assert request.url.params["api-version"] == "3.0"
        assert request.url.params["to"] == "en"
        assert request.headers["Ocp-Apim-Subscription-Key"] == "secret"
        assert request.headers["Ocp-Apim-Subscription-Region"] == "swedencentral"
        assert json.loads(request.content) == [{"text": "Bygglov"}]

    def test_empty_translation_falls_back_to_original(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=[]))

        translator = AzureTranslator(_CONFIG, transport=transport)

        assert translator.translate("Bygglov", "en") == "Bygglov"

    def test_http_error_is_upstream_error(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(401, text="denied"))

        translator = AzureTranslator(_CONFIG, transport=transport)

        with pytest.raises(UpstreamServiceError) as exc_info:
            translator.translate("Bygglov", "en")
        assert exc_info.value.service == "translator"

    def test_missing_credentials(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            AzureTranslator(AzureServiceConfig(key="secret"))

        assert exc_info.value.code == "translator_not_configured"


class TestSsml:
    def test_voice_per_language(self) -> None:
        assert voice_for("sv").name == "sv-SE-SofieNeural"
        assert voice_for("en").name == "en-GB-LibbyNeural"
        assert voice_for("fi").name == "sv-SE-SofieNeural"

    def test_text_is_escaped(self) -> None:
        ssml = build_ssml("<b>Tom & Jerry's \"bygglov\"</b>", voice_for("sv"))

        assert "&lt;b&gt;Tom &amp; Jerry&apos;s &quot;bygglov&quot;&lt;/b&gt;" in ssml
        assert "<voice name='sv-SE-SofieNeural'>" in ssml
        assert "xml:lang='sv-SE'" in ssml


class TestAzureSpeechSynthesizer:
    def test_synthesize_returns_audio(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b"ID3mp3-bytes")

        synthesizer = AzureSpeechSynthesizer(_CONFIG, transport=httpx.MockTransport(handler))

        assert synthesizer.synthesize("Hej", "en") == b"ID3mp3-bytes"

        request = seen[0]
        assert request.url.host == "swedencentral.tts.speech.microsoft.com"
        assert request.url.path == "/cognitiveservices/v1"
        assert request.headers["X-Microsoft-OutputFormat"] == "audio-16khz-32kbitrate-mono-mp3"
        assert b"en-GB-LibbyNeural" in request.content

    def test_http_error_is_upstream_error(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))

        synthesizer = AzureSpeechSynthesizer(_CONFIG, transport=transport)

        with pytest.raises(UpstreamServiceError, match="Azure TTS failed: 500"):
            synthesizer.synthesize("Hej", "sv")

    def test_missing_credentials(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            AzureSpeechSynthesizer(AzureServiceConfig())

        assert exc_info.value.code == "speech_not_configured"
