# crop_health/services/__init__.py
# Import the analyzer entry points
from crop_health.services.analyzer import analyze_crop_image, analyzer_service, CropHealthService
