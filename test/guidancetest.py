# test/guidancetest.py
import pytest

from crop_health.models.crop_analysis import HealthCategory, HealthStatus, Severity
from crop_health.services.guidance import (
    ENGLISH_GUIDANCE,
    GUIDANCE_BOOKS,
    HINDI_GUIDANCE,
    calculate_severity,
    get_guidance_book,
    resolve_guidance,
)


@pytest.mark.parametrize("book", list(GUIDANCE_BOOKS.values()), ids=list(GUIDANCE_BOOKS))
@pytest.mark.parametrize("category", list(HealthCategory))
def test_every_category_has_complete_guidance(book, category):
    guidance = resolve_guidance(category, category.base_confidence, book)

    assert len(guidance.recommendations) == 4
    assert guidance.treatment_steps
    assert len(guidance.prevention_tips) == 5
    for text in guidance.recommendations + guidance.treatment_steps + guidance.prevention_tips:
        assert isinstance(text, str) and text


@pytest.mark.parametrize("book", [HINDI_GUIDANCE, ENGLISH_GUIDANCE])
def test_categories_have_distinct_texts(book):
    recommendations = {book.for_category(c).recommendations for c in HealthCategory}
    treatments = {book.for_category(c).treatment_steps for c in HealthCategory}

    assert len(recommendations) == len(HealthCategory)
    assert len(treatments) == len(HealthCategory)


def test_prevention_tips_are_shared_by_all_categories():
    tips = {tuple(resolve_guidance(c, 85).prevention_tips) for c in HealthCategory}
    assert tips == {HINDI_GUIDANCE.prevention_tips}


@pytest.mark.parametrize(
    "confidence, expected",
    [(100, Severity.HIGH), (91, Severity.HIGH), (90, Severity.MEDIUM), (71, Severity.MEDIUM),
     (70, Severity.LOW), (0, Severity.LOW)],
)
def test_calculate_severity(confidence, expected):
    assert calculate_severity(confidence) == expected


def test_disease_names_resolve_to_their_category():
    guidance = resolve_guidance("Leaf Blight", 88)

    assert guidance.recommendations[1] == "💉 Mancozeb spray करें"
    assert guidance.treatment_steps[1] == "Step 2: Mancozeb 2g/liter spray करें"
    assert guidance.severity == Severity.MEDIUM


def test_unknown_disease_falls_back_to_healthy_texts():
    guidance = resolve_guidance("Solanum lycopersicum", 95)
    healthy = HINDI_GUIDANCE.for_category(HealthCategory.HEALTHY)

    assert guidance.recommendations == list(healthy.recommendations)
    assert guidance.treatment_steps == list(healthy.treatment_steps)
    assert guidance.severity == Severity.HIGH


def test_guidance_book_lookup():
    assert get_guidance_book("en") is ENGLISH_GUIDANCE
    assert get_guidance_book("EN") is ENGLISH_GUIDANCE
    assert get_guidance_book("fr") is HINDI_GUIDANCE


def test_guidance_tables_are_read_only():
    with pytest.raises(TypeError):
        HINDI_GUIDANCE.categories[HealthCategory.HEALTHY] = None


def test_category_profiles():
    assert HealthCategory.BLACK_SPOT_DISEASE.base_confidence == 90
    assert HealthCategory.LEAF_BLIGHT.status == HealthStatus.DISEASED
    assert HealthCategory.PLANT_STRESS.base_confidence == 80
    assert HealthCategory.from_disease("Nutrient Deficiency") == HealthCategory.NUTRIENT_DEFICIENCY
    assert HealthCategory.from_disease("Rust") is None
