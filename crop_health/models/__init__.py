# crop_health/models/__init__.py
# Imports for easier usage
from crop_health.models.crop_analysis import (
    AnalysisResult,
    ColorAnalysis,
    Guidance,
    HealthCategory,
    HealthStatus,
    NutrientLevels,
    Severity,
)
