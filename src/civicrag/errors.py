class CivicRagError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict[str, str]:
        return {"error": self.message}


class ValidationError(CivicRagError):
    """Missing or malformed caller input. Never retried."""

    status_code = 400


class NotFoundError(CivicRagError):
    status_code = 404


class ConfigurationError(CivicRagError):
    """A collaborator service is missing credentials."""

    def __init__(self, service: str, code: str, message: str) -> None:
        super().__init__(message)
        self.service = service
        self.code = code

    def to_payload(self) -> dict[str, str]:
        return {"error": self.message, "code": self.code}


class UpstreamServiceError(CivicRagError):
    """Embedding, vector search, generation or speech call failed or timed out."""

    def __init__(self, service: str, message: str) -> None:
        super().__init__(message)
        self.service = service

    def to_payload(self) -> dict[str, str]:
        return {"error": self.message, "service": self.service}


OPENAI_NOT_CONFIGURED = "openai_not_configured"


def openai_not_configured(setting: str) -> ConfigurationError:
    return ConfigurationError(
        "openai", OPENAI_NOT_CONFIGURED, f"Missing '{setting}' (set OPENAI_API_KEY)"
    )
