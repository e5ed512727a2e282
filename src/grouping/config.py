from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ClassifierConfig:
    """
    Grouping/classification service parameters.

    The API key is passed in explicitly; this module does not read environment
    variables. `max_attempts` bounds transport retries only, malformed output
    is never retried.
    """

    api_key: str
    model: str = "gpt-4o-mini"
    base_url: str | None = None
    request_timeout_s: float = 60.0
    max_attempts: int = 3
    temperature: float = 0.0

    def validate(self) -> None:
        if not self.api_key:
            raise ValueError("api_key must be non-empty")
        if not self.model:
            raise ValueError("model must be non-empty")
        if self.request_timeout_s <= 0:
            raise ValueError("request_timeout_s must be > 0")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if not (0.0 <= self.temperature <= 2.0):
            raise ValueError("temperature must be within [0, 2]")
