from __future__ import annotations

import time
from typing import Any, Callable

import openai
import structlog
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from contracts.errors import ClassificationParseError, ClassifierRequestError

from ..config import ClassifierConfig
from .base import ClassifierProvider

logger = structlog.get_logger(__name__)

_TRANSIENT_ERRORS = (
    openai.APIConnectionError,  # includes APITimeoutError
    openai.RateLimitError,
    openai.InternalServerError,
)


class OpenAiClassifierProvider(ClassifierProvider):
    """
    Chat-completions classifier with a JSON-object response format.

    Transient transport errors are retried up to `config.max_attempts` with
    exponential backoff; anything else fails immediately.
    """

    name = "openai"

    def __init__(
        self,
        *,
        config: ClassifierConfig,
        client: Any | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        config.validate()
        self._config = config
        self._client = client or openai.OpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.request_timeout_s,
            max_retries=0,
        )
        self._sleep = sleep

    def _create(self, *, system_prompt: str, user_prompt: str) -> Any:
        return self._client.chat.completions.create(
            model=self._config.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            response_format={"type": "json_object"},
            temperature=self._config.temperature,
        )

    def complete(self, *, system_prompt: str, user_prompt: str) -> str:
        retrying = Retrying(
            stop=stop_after_attempt(self._config.max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(_TRANSIENT_ERRORS),
            before_sleep=lambda rs: logger.warning(
                "classifier_request_retry",
                attempt=rs.attempt_number,
                error=repr(rs.outcome.exception()) if rs.outcome else None,
            ),
            sleep=self._sleep,
            reraise=True,
        )
        started = time.monotonic()
        try:
            response = retrying(self._create, system_prompt=system_prompt, user_prompt=user_prompt)
        except openai.OpenAIError as e:
            raise ClassifierRequestError(
                "Classifier request failed",
                detail={"model": self._config.model, "error": repr(e)},
            ) from e

        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        if content is None:
            raise ClassificationParseError(
                "Classifier returned no content", detail={"model": self._config.model}
            )

        logger.info(
            "classifier_request_completed",
            model=self._config.model,
            chars=len(content),
            elapsed_ms=int((time.monotonic() - started) * 1000),
        )
        return content
