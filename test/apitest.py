# test/apitest.py
import pytest
from fastapi.testclient import TestClient

from crop_health.api.routes import get_analyzer_service
from crop_health.config import Settings, get_settings
from crop_health.main import app
from crop_health.models.crop_analysis import AnalysisResult, HealthStatus
from crop_health.services.analyzer import CropHealthService
from crop_health.services.classifiers import ClassifierChain, ClassifierVerdict, CropClassifier

from conftest import BLACK, GREEN, solid_image


class UnavailableRemote(CropClassifier):
    name = "PlantNet API"
    min_confidence = 70

    async def classify(self, sample):
        return ClassifierVerdict(disease="Unknown", confidence=10, status=HealthStatus.WARNING, source=self.name)


@pytest.fixture
def client():
    service = CropHealthService(settings=Settings(), chain=ClassifierChain([UnavailableRemote()]))
    app.dependency_overrides[get_analyzer_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def upload(image: bytes, content_type: str = "image/png"):
    return {"file": ("leaf.png", image, content_type)}


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "active"


def test_health_check(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_analyze_black_leaf(client):
    response = client.post("/api/analyze", files=upload(solid_image(BLACK)))

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["disease"] == "Black Spot Disease"
    assert data["confidence"] == 90
    assert data["status"] == "diseased"
    assert data["severity"] == "Medium"
    assert data["colorAnalysis"] == {"green": 0, "brown": 0, "yellow": 0, "black": 100}
    assert data["source"] == "Image Color Analysis"
    assert data["imageWidth"] == 10
    assert data["imageHeight"] == 10
    assert data["treatmentSteps"] and data["preventionTips"] and data["recommendations"]

    # the response validates against the result model
    AnalysisResult.model_validate(data)


def test_analyze_locally(client):
    response = client.post("/api/analyze/local", files=upload(solid_image(GREEN)))

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["disease"] == "Healthy Crop"
    assert data["status"] == "healthy"
    assert data["nutrients"] == {"nitrogen": 100, "phosphorus": 90, "potassium": 95}


def test_analyze_rejects_unsupported_content_type(client):
    response = client.post("/api/analyze", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert response.status_code == 400


def test_analyze_rejects_empty_upload(client):
    response = client.post("/api/analyze", files=upload(b""))
    assert response.status_code == 400


def test_analyze_corrupt_image_is_not_given_a_verdict(client):
    response = client.post("/api/analyze", files=upload(b"this is not a png"))

    assert response.status_code == 422
    assert "could not be completed" in response.json()["detail"]


def test_analyze_rejects_oversized_upload(client):
    app.dependency_overrides[get_settings] = lambda: Settings(MAX_UPLOAD_SIZE=10)

    response = client.post("/api/analyze", files=upload(solid_image(GREEN)))
    assert response.status_code == 413


def test_recommend(client):
    response = client.post("/api/recommend", json={"disease": "Nutrient Deficiency", "confidence": 85})

    assert response.status_code == 200
    data = response.json()
    assert data["severity"] == "Medium"
    assert len(data["recommendations"]) == 4
    assert len(data["preventionTips"]) == 5
    assert data["treatmentSteps"][0] == "Step 1: Soil test करवाएं"


def test_recommend_validates_confidence(client):
    response = client.post("/api/recommend", json={"disease": "Leaf Blight", "confidence": 150})
    assert response.status_code == 422


def test_categories(client):
    response = client.get("/api/categories")

    assert response.status_code == 200
    data = response.json()
    assert [c["disease"] for c in data["categories"]] == [
        "Healthy Crop", "Black Spot Disease", "Leaf Blight", "Nutrient Deficiency", "Plant Stress",
    ]
    assert data["categories"][1] == {"disease": "Black Spot Disease", "baseConfidence": 90, "status": "diseased"}
    assert data["thresholds"] == {"blackSpot": 5.0, "leafBlight": 15.0, "nutrientDeficiency": 20.0, "plantStress": 30.0}
