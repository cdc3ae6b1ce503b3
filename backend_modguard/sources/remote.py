"""
HTTP scoring sources: Perspective, Hugging Face, Google Cloud NL, Azure.

Each adapter posts the original text with httpx.AsyncClient and maps the
vendor response into a SourceResult. Transport errors, non-2xx statuses and
responses missing the expected fields raise SourceCallError; the orchestrator
records those as failed results. No retries: a failed call just drops out of
this assessment's consensus.
"""

from __future__ import annotations

from typing import Any

import httpx

from backend_modguard.analysis_engine.models import (
    SourceContext,
    SourceDescriptor,
    SourceResult,
)
from backend_modguard.core.exceptions import SourceCallError
from backend_modguard.modguard_logging import bind_source
from backend_modguard.sources.base import ScoringSource

PERSPECTIVE_ENDPOINT = "https://commentanalyzer.googleapis.com/v1alpha1/comments:analyze"
HUGGINGFACE_ENDPOINT = "https://api-inference.huggingface.co/models/unitary/toxic-bert"
GOOGLE_SENTIMENT_ENDPOINT = "https://language.googleapis.com/v1/documents:analyzeSentiment"
AZURE_SENTIMENT_PATH = "/text/analytics/v3.1/sentiment"

# Perspective attribute -> weight in the 0-1 blend scaled to 0-10.
PERSPECTIVE_ATTRIBUTE_WEIGHTS: dict[str, float] = {
    "TOXICITY": 0.3,
    "SEVERE_TOXICITY": 0.25,
    "INSULT": 0.2,
    "PROFANITY": 0.15,
    "THREAT": 0.1,
}
PERSPECTIVE_REQUESTED_ATTRIBUTES = (*PERSPECTIVE_ATTRIBUTE_WEIGHTS, "IDENTITY_ATTACK")

GOOGLE_NEGATIVE_CUTOFF = -0.5


class HttpScoringSource(ScoringSource):
    """
    Shared HTTP plumbing. A client passed in is borrowed (tests inject one
    backed by httpx.MockTransport); otherwise the source owns its client.
    """

    endpoint: str = ""

    def __init__(
        self,
        descriptor: SourceDescriptor,
        api_key: str,
        client: httpx.AsyncClient | None = None,
        endpoint: str | None = None,
    ):
        super().__init__(descriptor)
        self._api_key = api_key
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(descriptor.timeout_sec))
        self._log = bind_source(descriptor.name)
        if endpoint:
            self.endpoint = endpoint

    async def _post_json(
        self,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        try:
            response = await self._client.post(
                self.endpoint, json=payload, headers=headers, params=params
            )
        except httpx.HTTPError as e:
            raise SourceCallError(self.name, f"request failed: {e.__class__.__name__}") from e
        if response.status_code >= 400:
            self._log.warning("source_http_error", status_code=response.status_code, body=response.text[:200])
            raise SourceCallError(
                self.name,
                f"HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise SourceCallError(self.name, "response is not JSON") from e

    def _malformed(self, detail: str) -> SourceCallError:
        return SourceCallError(self.name, f"malformed response: {detail}")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class PerspectiveSource(HttpScoringSource):
    endpoint = PERSPECTIVE_ENDPOINT

    async def evaluate(self, text: str, context: SourceContext) -> SourceResult:
        payload = {
            "comment": {"text": text},
            "requestedAttributes": {attr: {} for attr in PERSPECTIVE_REQUESTED_ATTRIBUTES},
            "doNotStore": True,
        }
        data = await self._post_json(payload, params={"key": self._api_key})
        try:
            values = {
                attr: float(data["attributeScores"][attr]["summaryScore"]["value"])
                for attr in PERSPECTIVE_ATTRIBUTE_WEIGHTS
            }
        except (KeyError, TypeError, ValueError) as e:
            raise self._malformed(f"missing attribute score {e}") from e

        blended = sum(values[attr] * w for attr, w in PERSPECTIVE_ATTRIBUTE_WEIGHTS.items())
        return SourceResult.scored(
            blended * 10,
            values["TOXICITY"] * 100,
            ["perspective: attribute analysis"],
            details={k.lower(): v for k, v in values.items()},
        )


class HuggingFaceSource(HttpScoringSource):
    endpoint = HUGGINGFACE_ENDPOINT

    async def evaluate(self, text: str, context: SourceContext) -> SourceResult:
        data = await self._post_json(
            {"inputs": text},
            headers={"Authorization": f"Bearer {self._api_key}"},
        )
        # Response shape: [[{"label": "toxic", "score": 0.93}, ...]]
        if not isinstance(data, list) or not data or not isinstance(data[0], list):
            raise self._malformed("expected a nested label list")
        toxic = 0.0
        for item in data[0]:
            if not isinstance(item, dict) or "label" not in item:
                raise self._malformed("label entry without label")
            if str(item["label"]).upper() == "TOXIC":
                toxic = float(item.get("score", 0.0))
                break
        return SourceResult.scored(
            toxic * 10,
            toxic * 100,
            ["huggingface: toxic-bert classification"],
            details={"raw_score": toxic},
        )


class GoogleCloudSource(HttpScoringSource):
    endpoint = GOOGLE_SENTIMENT_ENDPOINT

    async def evaluate(self, text: str, context: SourceContext) -> SourceResult:
        payload = {"document": {"type": "PLAIN_TEXT", "content": text}}
        data = await self._post_json(payload, params={"key": self._api_key})
        try:
            sentiment = float(data["documentSentiment"]["score"])
            magnitude = float(data["documentSentiment"]["magnitude"])
        except (KeyError, TypeError, ValueError) as e:
            raise self._malformed("missing documentSentiment") from e

        # Only strongly negative sentiment maps to toxicity.
        score = 0.0
        if sentiment < GOOGLE_NEGATIVE_CUTOFF:
            score = min(10.0, (abs(sentiment) + 0.5) * 6)
        return SourceResult.scored(
            score,
            magnitude * 50,
            [f"google cloud: sentiment {sentiment:.2f}"],
            details={"sentiment": sentiment, "magnitude": magnitude},
        )


class AzureSource(HttpScoringSource):
    """Azure Text Analytics sentiment; endpoint is the resource base URL."""

    def __init__(
        self,
        descriptor: SourceDescriptor,
        api_key: str,
        endpoint: str,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(descriptor, api_key, client=client, endpoint=endpoint.rstrip("/") + AZURE_SENTIMENT_PATH)

    async def evaluate(self, text: str, context: SourceContext) -> SourceResult:
        payload = {"documents": [{"id": "1", "language": "en", "text": text}]}
        data = await self._post_json(
            payload, headers={"Ocp-Apim-Subscription-Key": self._api_key}
        )
        try:
            document = data["documents"][0]
            sentiment = str(document["sentiment"])
            scores = {k: float(v) for k, v in document["confidenceScores"].items()}
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise self._malformed("missing document sentiment") from e

        score = 0.0
        if sentiment == "negative":
            score = (1.0 - scores.get("positive", 0.0)) * 10
        return SourceResult.scored(
            score,
            scores.get(sentiment, 0.0) * 100,
            [f"azure: sentiment {sentiment}"],
            details={"sentiment": sentiment, "scores": scores},
        )
