from dataclasses import dataclass
from typing import Any


@dataclass
class AzureServiceConfig:
    key: str = ""
    region: str = ""
    timeout_seconds: float = 15.0

    @property
    def is_configured(self) -> bool:
        return bool(self.key and self.region)

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> "AzureServiceConfig":
        raw = raw or {}
        return cls(
            key=raw.get("key", "") or "",
            region=raw.get("region", "") or "",
            timeout_seconds=float(raw.get("timeout_seconds", 15.0)),
        )
