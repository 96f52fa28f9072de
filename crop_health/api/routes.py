# crop_health/api/routes.py
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from crop_health import __version__
from crop_health.config import get_settings, Settings
from crop_health.errors import CropAnalysisError
from crop_health.models.crop_analysis import (
    AnalysisResult,
    CategoryInfo,
    Guidance,
    HealthCategory,
    RecommendationRequest,
)
from crop_health.services.analyzer import CropHealthService, analyzer_service
from crop_health.services.classifiers import thresholds_from_settings

router = APIRouter()
logger = logging.getLogger(__name__)

SUPPORTED_CONTENT_TYPES = ["image/jpeg", "image/png", "image/webp"]


def get_analyzer_service() -> CropHealthService:
    return analyzer_service


async def read_upload(file: UploadFile, settings: Settings) -> bytes:
    """Validate an uploaded image and return its bytes."""
    if file.content_type not in SUPPORTED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type. Only {', '.join(SUPPORTED_CONTENT_TYPES)} allowed."
        )

    if file.size is not None and file.size > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE // 1024 // 1024} MB."
        )

    image_bytes = await file.read()
    if not image_bytes:
        raise HTTPException(status_code=400, detail="Uploaded file is empty.")
    return image_bytes


def analysis_failed(e: CropAnalysisError) -> HTTPException:
    logger.warning(f"Image could not be analysed: {e}")
    return HTTPException(
        status_code=422,
        detail=f"Analysis could not be completed: {e}. Please upload another photo."
    )


@router.post(
    "/analyze",
    response_model=AnalysisResult,
    summary="Analyze an image of a crop",
    description="Upload a leaf or plant photo. Remote vision APIs are tried first when configured, "
                "the local colour heuristic is the fallback.",
)
async def analyze_crop_image(
        file: UploadFile = File(...),
        settings: Settings = Depends(get_settings),
        service: CropHealthService = Depends(get_analyzer_service),
) -> AnalysisResult:
    image_bytes = await read_upload(file, settings)

    try:
        return await service.analyze_image(image_bytes, file.content_type)
    except CropAnalysisError as e:
        raise analysis_failed(e)
    except Exception as e:
        logger.error(f"Error during image analysis: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error during image analysis: {str(e)}")


@router.post(
    "/analyze/local",
    response_model=AnalysisResult,
    summary="Analyze an image with the colour heuristic only",
    description="Upload a leaf or plant photo and classify it without calling any external service",
)
async def analyze_crop_image_locally(
        file: UploadFile = File(...),
        settings: Settings = Depends(get_settings),
        service: CropHealthService = Depends(get_analyzer_service),
) -> AnalysisResult:
    image_bytes = await read_upload(file, settings)

    try:
        return await service.analyze_image_locally(image_bytes)
    except CropAnalysisError as e:
        raise analysis_failed(e)
    except Exception as e:
        logger.error(f"Error during local image analysis: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error during image analysis: {str(e)}")


@router.post(
    "/recommend",
    response_model=Guidance,
    summary="Get advice for a verdict",
    description="Severity, recommendations, treatment steps and prevention tips for a disease name",
)
async def recommend(
        request: RecommendationRequest,
        service: CropHealthService = Depends(get_analyzer_service),
) -> Guidance:
    return service.recommend(request.disease, request.confidence)


@router.get(
    "/categories",
    summary="Health categories",
    description="Every verdict the colour heuristic can reach, with the active thresholds",
)
async def list_categories(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    categories: List[CategoryInfo] = [
        CategoryInfo(disease=category, base_confidence=category.base_confidence, status=category.status)
        for category in HealthCategory
    ]
    thresholds = thresholds_from_settings(settings)
    return {
        "categories": [category.model_dump(mode="json", by_alias=True) for category in categories],
        "thresholds": {
            "blackSpot": thresholds.black_spot,
            "leafBlight": thresholds.leaf_blight,
            "nutrientDeficiency": thresholds.nutrient_deficiency,
            "plantStress": thresholds.plant_stress,
        },
    }


@router.get(
    "/health",
    summary="API health status",
    description="Check if the analysis service is available"
)
async def health_check() -> Dict[str, Any]:
    return {
        "status": "healthy",
        "service": "crop-health-analyzer",
        "version": __version__,
    }
