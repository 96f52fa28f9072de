# crop_health/services/classifiers.py
import asyncio
import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import httpx

from crop_health.config import Settings
from crop_health.errors import ClassifierError
from crop_health.models.crop_analysis import HealthStatus
from crop_health.services.heuristics import (
    ClassificationThresholds,
    ColorTally,
    DEFAULT_THRESHOLDS,
    classify_health,
    round_half_up,
)

logger = logging.getLogger(__name__)

HEURISTIC_SOURCE = "Image Color Analysis"
PLANT_LABEL_KEYWORDS = ("plant", "leaf", "crop")


@dataclass(frozen=True)
class CropSample:
    """An uploaded image after decoding and scanning."""
    image_bytes: bytes
    content_type: str
    width: int
    height: int
    tally: ColorTally


@dataclass(frozen=True)
class ClassifierVerdict:
    disease: str
    confidence: int
    status: HealthStatus
    source: str


def score_from(entry: Dict[str, Any]) -> float:
    """Provider score as a probability, rejecting values outside [0, 1]."""
    score = float(entry.get("score") or 0.0)
    if not 0.0 <= score <= 1.0:
        raise ValueError(f"score {score} is not a probability")
    return score


def status_from_score(score: float) -> HealthStatus:
    return HealthStatus.HEALTHY if score > 0.8 else HealthStatus.WARNING


class CropClassifier(ABC):
    """One stage of the classifier chain."""

    name: str = "classifier"
    # Verdicts at or below this confidence are passed over
    min_confidence: int = 0

    @abstractmethod
    async def classify(self, sample: CropSample) -> ClassifierVerdict:
        """Return a verdict or raise ClassifierError."""

    def accepts(self, verdict: ClassifierVerdict) -> bool:
        return verdict.confidence > self.min_confidence


class HeuristicClassifier(CropClassifier):
    """Local colour heuristic. Always available, never rejected."""

    name = HEURISTIC_SOURCE
    min_confidence = -1

    def __init__(self, thresholds: ClassificationThresholds = DEFAULT_THRESHOLDS):
        self.thresholds = thresholds

    async def classify(self, sample: CropSample) -> ClassifierVerdict:
        category = classify_health(sample.tally, self.thresholds)
        return ClassifierVerdict(
            disease=category.value,
            confidence=category.base_confidence,
            status=category.status,
            source=self.name,
        )


class RemoteClassifier(CropClassifier):
    """Base for classifiers that call an HTTP vision API."""

    def __init__(self, api_key: str, url: str, min_confidence: int,
                 client: Optional[httpx.AsyncClient] = None):
        self.api_key = api_key
        self.url = url
        self.min_confidence = min_confidence
        self._client = client

    def parse_response(self, data: Dict[str, Any]) -> ClassifierVerdict:
        raise NotImplementedError

    def verdict_from(self, data: Any) -> ClassifierVerdict:
        """Parse a provider reply, treating any unexpected JSON shape as a failed attempt."""
        try:
            return self.parse_response(data)
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as e:
            raise ClassifierError(self.name, f"unexpected response: {e!r}") from e

    async def _post(self, **kwargs) -> Dict[str, Any]:
        client = self._client or httpx.AsyncClient()
        try:
            response = await client.post(self.url, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            raise ClassifierError(self.name, f"request failed: {e}") from e
        except ValueError as e:
            raise ClassifierError(self.name, f"invalid JSON response: {e}") from e
        finally:
            if self._client is None:
                await client.aclose()


class PlantNetClassifier(RemoteClassifier):
    name = "PlantNet API"

    async def classify(self, sample: CropSample) -> ClassifierVerdict:
        data = await self._post(
            params={"api-key": self.api_key},
            files=[("images", ("crop", sample.image_bytes, sample.content_type))],
            data={"organs": "leaf"},
        )
        return self.verdict_from(data)

    def parse_response(self, data: Dict[str, Any]) -> ClassifierVerdict:
        results = data.get("results") or []
        if not results:
            raise ClassifierError(self.name, "no results")

        top = results[0]
        species = top.get("species") or {}
        disease = species.get("scientificNameWithoutAuthor")
        score = score_from(top)
        if not disease or not isinstance(disease, str):
            raise ClassifierError(self.name, "top result has no species name")

        return ClassifierVerdict(
            disease=disease,
            confidence=round_half_up(score * 100),
            status=status_from_score(score),
            source=self.name,
        )


class GoogleVisionClassifier(RemoteClassifier):
    name = "Google Vision API"

    async def classify(self, sample: CropSample) -> ClassifierVerdict:
        payload = {
            "requests": [{
                "image": {"content": base64.b64encode(sample.image_bytes).decode("ascii")},
                "features": [
                    {"type": "LABEL_DETECTION", "maxResults": 10},
                    {"type": "IMAGE_PROPERTIES"},
                ],
            }]
        }
        data = await self._post(params={"key": self.api_key}, json=payload)
        return self.verdict_from(data)

    def parse_response(self, data: Dict[str, Any]) -> ClassifierVerdict:
        responses = data.get("responses") or [{}]
        labels = responses[0].get("labelAnnotations") or []
        plant_labels = [
            label for label in labels
            if any(keyword in label.get("description", "").lower() for keyword in PLANT_LABEL_KEYWORDS)
        ]
        if not plant_labels:
            raise ClassifierError(self.name, "no plant detected in image")

        top = plant_labels[0]
        score = score_from(top)
        return ClassifierVerdict(
            disease=top["description"],
            confidence=round_half_up(score * 100),
            status=status_from_score(score),
            source=self.name,
        )


class ClassifierChain:
    """
    Tries classifiers in order and returns the first accepted verdict.

    The last classifier must never fail; the local heuristic is appended
    automatically when it is missing.
    """

    def __init__(self, classifiers: Sequence[CropClassifier], timeout: Optional[float] = None):
        chain: List[CropClassifier] = list(classifiers)
        if not chain or not isinstance(chain[-1], HeuristicClassifier):
            chain.append(HeuristicClassifier())
        self.classifiers = chain
        self.timeout = timeout

    async def classify(self, sample: CropSample) -> ClassifierVerdict:
        *remote, fallback = self.classifiers

        for classifier in remote:
            try:
                verdict = await asyncio.wait_for(classifier.classify(sample), timeout=self.timeout)
            except asyncio.TimeoutError:
                logger.warning(f"{classifier.name} timed out after {self.timeout}s, trying next classifier")
                continue
            except ClassifierError as e:
                logger.info(f"{e}, trying next classifier")
                continue

            if classifier.accepts(verdict):
                logger.info(f"{classifier.name} accepted: {verdict.disease} ({verdict.confidence}%)")
                return verdict
            logger.info(
                f"{classifier.name} confidence {verdict.confidence}% not above {classifier.min_confidence}%, "
                f"trying next classifier"
            )

        return await fallback.classify(sample)


def thresholds_from_settings(settings: Settings) -> ClassificationThresholds:
    return ClassificationThresholds(
        black_spot=settings.BLACK_SPOT_THRESHOLD,
        leaf_blight=settings.LEAF_BLIGHT_THRESHOLD,
        nutrient_deficiency=settings.NUTRIENT_DEFICIENCY_THRESHOLD,
        plant_stress=settings.PLANT_STRESS_THRESHOLD,
    )


def build_classifier_chain(settings: Settings, client: Optional[httpx.AsyncClient] = None) -> ClassifierChain:
    """Assemble the chain from settings. Remote stages without an API key are left out."""
    classifiers: List[CropClassifier] = []

    if settings.PLANTNET_API_KEY:
        classifiers.append(PlantNetClassifier(
            api_key=settings.PLANTNET_API_KEY,
            url=settings.PLANTNET_URL,
            min_confidence=settings.PLANTNET_MIN_CONFIDENCE,
            client=client,
        ))
    if settings.GOOGLE_VISION_API_KEY:
        classifiers.append(GoogleVisionClassifier(
            api_key=settings.GOOGLE_VISION_API_KEY,
            url=settings.GOOGLE_VISION_URL,
            min_confidence=settings.GOOGLE_VISION_MIN_CONFIDENCE,
            client=client,
        ))

    classifiers.append(HeuristicClassifier(thresholds_from_settings(settings)))
    logger.info(f"Classifier chain: {' -> '.join(c.name for c in classifiers)}")
    return ClassifierChain(classifiers, timeout=settings.CLASSIFIER_TIMEOUT_SECONDS)
