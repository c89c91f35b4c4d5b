"""
Type definitions for dataverse_auth.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ClassificationResult:
    """Routing decision for a single request. Never stored."""

    is_target_api: bool
    rewritten_url: str


@dataclass(frozen=True)
class ProviderResult:
    """Outcome of one credential provider attempt."""

    provider: str
    token: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return bool(self.token)

    def __repr__(self) -> str:
        # token deliberately omitted
        return (
            f"ProviderResult(provider={self.provider!r}, ok={self.ok}, "
            f"error={self.error!r})"
        )
