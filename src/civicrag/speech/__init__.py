from civicrag.speech.config import AzureServiceConfig
from civicrag.speech.synthesizer import (
    SPEECH_NOT_CONFIGURED,
    AzureSpeechSynthesizer,
    speech_not_configured,
)
from civicrag.speech.translator import (
    TRANSLATOR_NOT_CONFIGURED,
    AzureTranslator,
    translator_not_configured,
)

__all__ = [
    "SPEECH_NOT_CONFIGURED",
    "TRANSLATOR_NOT_CONFIGURED",
    "AzureServiceConfig",
    "AzureSpeechSynthesizer",
    "AzureTranslator",
    "speech_not_configured",
    "translator_not_configured",
]
