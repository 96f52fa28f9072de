from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class HealthStatus(str, Enum):
    """Status class shown next to a verdict"""
    HEALTHY = "healthy"
    WARNING = "warning"
    DISEASED = "diseased"


class HealthCategory(str, Enum):
    """The five verdicts the colour heuristic can reach"""
    HEALTHY = "Healthy Crop"
    BLACK_SPOT_DISEASE = "Black Spot Disease"
    LEAF_BLIGHT = "Leaf Blight"
    NUTRIENT_DEFICIENCY = "Nutrient Deficiency"
    PLANT_STRESS = "Plant Stress"

    @property
    def base_confidence(self) -> int:
        return _CATEGORY_PROFILES[self][0]

    @property
    def status(self) -> HealthStatus:
        return _CATEGORY_PROFILES[self][1]

    @classmethod
    def from_disease(cls, disease: str) -> Optional["HealthCategory"]:
        """Look a category up by its display name, None if it is not one of ours."""
        try:
            return cls(disease)
        except ValueError:
            return None


_CATEGORY_PROFILES = {
    HealthCategory.HEALTHY: (85, HealthStatus.HEALTHY),
    HealthCategory.BLACK_SPOT_DISEASE: (90, HealthStatus.DISEASED),
    HealthCategory.LEAF_BLIGHT: (88, HealthStatus.DISEASED),
    HealthCategory.NUTRIENT_DEFICIENCY: (85, HealthStatus.WARNING),
    HealthCategory.PLANT_STRESS: (80, HealthStatus.WARNING),
}


class Severity(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class CamelModel(BaseModel):
    """Base model that serializes to the camelCase keys the frontend expects"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ColorAnalysis(CamelModel):
    """Rounded share of pixels that matched each colour test"""
    green: int = Field(..., ge=0, le=100)
    brown: int = Field(..., ge=0, le=100)
    yellow: int = Field(..., ge=0, le=100)
    black: int = Field(..., ge=0, le=100)


class NutrientLevels(CamelModel):
    """Heuristic NPK estimates derived from the colour breakdown"""
    nitrogen: int
    phosphorus: int
    potassium: int


class Guidance(CamelModel):
    """Severity and farmer-facing advice for a verdict"""
    severity: Severity
    recommendations: List[str] = Field(..., min_length=1)
    treatment_steps: List[str] = Field(..., min_length=1)
    prevention_tips: List[str] = Field(..., min_length=1)


class AnalysisResult(Guidance):
    """Full result of a crop image analysis"""
    disease: str = Field(..., description="Detected disease or category name")
    confidence: int = Field(
        ...,
        description="Confidence of the verdict (0-100)",
        ge=0,
        le=100
    )
    status: HealthStatus = Field(..., description="Health status class")
    color_analysis: ColorAnalysis
    nutrients: NutrientLevels
    source: str = Field(
        "Image Color Analysis",
        description="Classifier that produced the verdict"
    )
    processing_time_ms: int = Field(0, description="Processing time in milliseconds")
    image_width: int = Field(..., description="Width of the analyzed image")
    image_height: int = Field(..., description="Height of the analyzed image")


class RecommendationRequest(CamelModel):
    """Body of a request for guidance on an existing verdict"""
    disease: str
    confidence: int = Field(..., ge=0, le=100)


class CategoryInfo(CamelModel):
    disease: HealthCategory
    base_confidence: int
    status: HealthStatus
