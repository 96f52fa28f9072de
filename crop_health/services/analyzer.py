# crop_health/services/analyzer.py
import time
import logging
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from crop_health.config import get_settings, Settings
from crop_health.models.crop_analysis import AnalysisResult, Guidance
from crop_health.services.classifiers import (
    ClassifierChain,
    ClassifierVerdict,
    CropSample,
    HeuristicClassifier,
    build_classifier_chain,
    thresholds_from_settings,
)
from crop_health.services.guidance import GuidanceBook, get_guidance_book, resolve_guidance
from crop_health.services.heuristics import (
    ClassificationThresholds,
    DEFAULT_THRESHOLDS,
    classify_health,
    decode_image,
    nutrients_from_tally,
    scan_image,
)

logger = logging.getLogger(__name__)


def prepare_sample(image_bytes: bytes, content_type: str = "application/octet-stream",
                   max_dimension: int = 0) -> CropSample:
    """Decode and scan an upload. Raises ImageDecodeError or EmptyImageError."""
    image = decode_image(image_bytes)
    try:
        width, height = image.size
        tally = scan_image(image, max_dimension)
    finally:
        image.close()

    return CropSample(
        image_bytes=image_bytes,
        content_type=content_type,
        width=width,
        height=height,
        tally=tally,
    )


def build_result(sample: CropSample, verdict: ClassifierVerdict, book: GuidanceBook,
                 started_at: Optional[float] = None) -> AnalysisResult:
    guidance: Guidance = resolve_guidance(verdict.disease, verdict.confidence, book)
    processing_time = int((time.time() - started_at) * 1000) if started_at else 0

    return AnalysisResult(
        disease=verdict.disease,
        confidence=verdict.confidence,
        status=verdict.status,
        color_analysis=sample.tally.to_color_analysis(),
        nutrients=nutrients_from_tally(sample.tally),
        severity=guidance.severity,
        recommendations=guidance.recommendations,
        treatment_steps=guidance.treatment_steps,
        prevention_tips=guidance.prevention_tips,
        source=verdict.source,
        processing_time_ms=processing_time,
        image_width=sample.width,
        image_height=sample.height,
    )


def analyze_crop_image(
        image_bytes: bytes,
        thresholds: ClassificationThresholds = DEFAULT_THRESHOLDS,
        book: Optional[GuidanceBook] = None,
        max_dimension: int = 0,
) -> AnalysisResult:
    """
    Run the local colour heuristic on raw image bytes.

    Args:
        image_bytes: JPEG, PNG or any other format Pillow can decode.
        thresholds: Category thresholds, the defaults unless tuned.
        book: Guidance texts, the Hindi book when omitted.
        max_dimension: Longest side scanned without downscaling, 0 for no limit.

    Returns:
        The analysis result.

    Raises:
        ImageDecodeError: The bytes are not a decodable image.
        EmptyImageError: The image has no pixels.
    """
    start_time = time.time()
    sample = prepare_sample(image_bytes, max_dimension=max_dimension)

    category = classify_health(sample.tally, thresholds)
    verdict = ClassifierVerdict(
        disease=category.value,
        confidence=category.base_confidence,
        status=category.status,
        source=HeuristicClassifier.name,
    )
    return build_result(sample, verdict, book or get_guidance_book("hi"), start_time)


class CropHealthService:
    """Service for analysing crop images: remote classifiers first, colour heuristic last."""

    def __init__(self, settings: Optional[Settings] = None, chain: Optional[ClassifierChain] = None):
        self.settings = settings or get_settings()
        self.chain = chain or build_classifier_chain(self.settings)
        self.thresholds = thresholds_from_settings(self.settings)
        self.book = get_guidance_book(self.settings.GUIDANCE_LOCALE)

    async def analyze_image(self, image_bytes: bytes, content_type: str = "image/jpeg") -> AnalysisResult:
        """
        Analyse crop image bytes with the full classifier chain.

        Decode errors propagate before any classifier is asked.
        """
        start_time = time.time()

        sample = await run_in_threadpool(
            prepare_sample, image_bytes, content_type, self.settings.MAX_SCAN_DIMENSION
        )
        verdict = await self.chain.classify(sample)
        result = build_result(sample, verdict, self.book, start_time)

        logger.info(
            f"Analysed {sample.width}x{sample.height} image: {result.disease} "
            f"({result.confidence}%, {result.source}) in {result.processing_time_ms} ms"
        )
        return result

    async def analyze_image_locally(self, image_bytes: bytes) -> AnalysisResult:
        """Analyse with the colour heuristic only, no network calls."""
        return await run_in_threadpool(
            analyze_crop_image,
            image_bytes,
            self.thresholds,
            self.book,
            self.settings.MAX_SCAN_DIMENSION,
        )

    def recommend(self, disease: str, confidence: int) -> Guidance:
        return resolve_guidance(disease, confidence, self.book)


# Module-level singleton shared by the API routes
analyzer_service = CropHealthService()
