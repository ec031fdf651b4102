"""
Classification client for the Perspective comment analyzer.

Provides a single-call-per-comment interface over the Perspective API:
- Client-side throttle (fixed delay before every request)
- Distinguished RateLimited error on HTTP 429, so callers retry instead of
  treating the comment as clean
- Fail-open on every other failure: the all-zero score is returned and the
  comment is never flagged from that call
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

import httpx
import structlog
from pydantic import ValidationError

from ..config import settings
from ..errors import ClassificationUnavailable, MissingCredential, RateLimited
from ..logging_config import preview
from ..models.audit import ClassificationScore
from ..version import PERSPECTIVE_API_VERSION


logger = structlog.get_logger(__name__)

# Perspective attribute name -> ClassificationScore field
REQUESTED_ATTRIBUTES = {
    "TOXICITY": "toxicity",
    "SEVERE_TOXICITY": "severe_toxicity",
    "INSULT": "insult",
}


# ============================================================================
# ABSTRACT BASE CLASS
# ============================================================================

class ClassificationClient(ABC):
    """
    Abstract base class for toxicity classification clients.

    Implementations make exactly one external call per ``classify()``.
    """

    def __init__(
        self,
        call_delay: float = 0.1,
        sleep: Callable[[float], Any] = time.sleep,
    ):
        self.call_delay = call_delay
        self._sleep = sleep
        self.calls_made = 0

        self.logger = logger.bind(classification_client=self.__class__.__name__)

    def classify(self, text: str, credential: Optional[str]) -> ClassificationScore:
        """
        Score one comment.

        Args:
            text: Comment text
            credential: Perspective API key

        Returns:
            ClassificationScore; all-zero on any failure except rate limiting

        Raises:
            MissingCredential: Empty credential (no request is made)
            RateLimited: Service answered HTTP 429
        """
        if not credential:
            raise MissingCredential()

        if self.call_delay > 0:
            self._sleep(self.call_delay)

        self.calls_made += 1
        try:
            return self._analyze(text, credential)
        except RateLimited:
            self.logger.info("classification_rate_limited", text=preview(text))
            raise
        except ClassificationUnavailable as e:
            self.logger.warning(
                "classification_unavailable",
                error=str(e),
                text=preview(text),
            )
            return ClassificationScore.zero()
        except Exception as e:
            self.logger.error(
                "classification_failed",
                error=str(e),
                error_type=type(e).__name__,
                text=preview(text),
            )
            return ClassificationScore.zero()

    @abstractmethod
    def _analyze(self, text: str, credential: str) -> ClassificationScore:
        """
        Perform one request.

        Raises:
            RateLimited: On the service's rate-limit response
            ClassificationUnavailable: On any other failure
        """
        pass

    def close(self) -> None:
        pass


# ============================================================================
# PERSPECTIVE CLIENT
# ============================================================================

class PerspectiveClient(ClassificationClient):
    """
    Perspective API client (``comments:analyze``).

    The API key travels as the ``key`` query parameter.
    """

    def __init__(
        self,
        base_url: str = "https://commentanalyzer.googleapis.com",
        language: str = "en",
        timeout_seconds: float = 10.0,
        http_client: Optional[httpx.Client] = None,
        **kwargs
    ):
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")
        self.language = language
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.Client(timeout=timeout_seconds)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/{PERSPECTIVE_API_VERSION}/comments:analyze"

    def build_request_body(self, text: str) -> Dict[str, Any]:
        return {
            "comment": {"text": text},
            "languages": [self.language],
            "requestedAttributes": {name: {} for name in REQUESTED_ATTRIBUTES},
            "doNotStore": True,
        }

    def _analyze(self, text: str, credential: str) -> ClassificationScore:
        start_time = time.time()

        try:
            response = self.http_client.post(
                self.endpoint,
                params={"key": credential},
                json=self.build_request_body(text),
            )
        except httpx.HTTPError as e:
            raise ClassificationUnavailable(f"transport error: {type(e).__name__}: {e}") from e

        if response.status_code == 429:
            raise RateLimited(retry_after=_parse_retry_after(response))

        if response.status_code != 200:
            raise ClassificationUnavailable(f"HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise ClassificationUnavailable("response is not JSON") from e

        score = parse_attribute_scores(payload)

        self.logger.debug(
            "classification_completed",
            latency_ms=int((time.time() - start_time) * 1000),
            toxicity=round(score.toxicity, 2),
            severe_toxicity=round(score.severe_toxicity, 2),
            insult=round(score.insult, 2),
        )
        return score

    def close(self) -> None:
        if self._owns_client:
            self.http_client.close()


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def parse_attribute_scores(payload: Any) -> ClassificationScore:
    """
    Convert a ``comments:analyze`` response into a ClassificationScore.

    A response without ``attributeScores`` scores zero.

    Raises:
        ClassificationUnavailable: Malformed scores
    """
    if not isinstance(payload, dict):
        raise ClassificationUnavailable("unexpected response shape")

    attribute_scores = payload.get("attributeScores")
    if not attribute_scores:
        return ClassificationScore.zero()

    values = {}
    try:
        for attribute, field_name in REQUESTED_ATTRIBUTES.items():
            values[field_name] = attribute_scores[attribute]["summaryScore"]["value"]
        return ClassificationScore(**values)
    except (KeyError, TypeError, ValidationError) as e:
        raise ClassificationUnavailable(f"malformed attributeScores: {e}") from e


def _parse_retry_after(response: httpx.Response) -> Optional[float]:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


# ============================================================================
# CLIENT FACTORY
# ============================================================================

def create_classification_client(**override_kwargs) -> ClassificationClient:
    """
    Create a Perspective client from settings.

    Args:
        **override_kwargs: Override any client parameter

    Returns:
        Configured ClassificationClient
    """
    client_params = {
        "base_url": override_kwargs.get("base_url", settings.perspective_api_base_url),
        "language": override_kwargs.get("language", settings.perspective_language),
        "timeout_seconds": override_kwargs.get(
            "timeout_seconds", settings.classification_timeout_seconds
        ),
        "call_delay": override_kwargs.get("call_delay", settings.classification_call_delay_seconds),
    }
    if "http_client" in override_kwargs:
        client_params["http_client"] = override_kwargs["http_client"]
    if "sleep" in override_kwargs:
        client_params["sleep"] = override_kwargs["sleep"]

    logger.info(
        "creating_classification_client",
        base_url=client_params["base_url"],
        call_delay=client_params["call_delay"],
    )
    return PerspectiveClient(**client_params)
