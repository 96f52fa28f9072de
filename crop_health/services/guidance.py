# crop_health/services/guidance.py
"""
Farmer-facing advice for each health category.

Guidance books are immutable and built once at import time. Switching the
language means picking another book; the resolver itself never changes.
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Tuple, Union

from crop_health.models.crop_analysis import Guidance, HealthCategory, Severity


@dataclass(frozen=True)
class CategoryGuidance:
    recommendations: Tuple[str, ...]
    treatment_steps: Tuple[str, ...]


@dataclass(frozen=True)
class GuidanceBook:
    locale: str
    categories: Mapping[HealthCategory, CategoryGuidance]
    prevention_tips: Tuple[str, ...]

    def for_category(self, category: HealthCategory) -> CategoryGuidance:
        return self.categories.get(category, self.categories[HealthCategory.HEALTHY])


HINDI_GUIDANCE = GuidanceBook(
    locale="hi",
    categories=MappingProxyType({
        HealthCategory.HEALTHY: CategoryGuidance(
            recommendations=(
                "🌱 फसल बिल्कुल स्वस्थ है!",
                "💧 नियमित पानी देते रहें",
                "🌿 Organic fertilizer का इस्तेमाल करें",
                "📅 15 दिन बाद फिर से check करें",
            ),
            treatment_steps=(
                "Step 1: Regular monitoring करें",
                "Step 2: Proper watering maintain करें",
                "Step 3: Balanced fertilizer दें",
                "Step 4: Expert advice लें",
            ),
        ),
        HealthCategory.BLACK_SPOT_DISEASE: CategoryGuidance(
            recommendations=(
                "🚨 तुरंत fungicide spray करें",
                "🍃 Infected leaves को हटा दें",
                "💊 Copper-based solution का इस्तेमाल करें",
                "🔄 3 दिन बाद फिर से check करें",
            ),
            treatment_steps=(
                "Step 1: Infected parts को तुरंत हटाएं",
                "Step 2: Copper fungicide spray करें",
                "Step 3: Drainage improve करें",
                "Step 4: Weekly monitoring करें",
            ),
        ),
        HealthCategory.LEAF_BLIGHT: CategoryGuidance(
            recommendations=(
                "⚠️ Fungal infection है",
                "💉 Mancozeb spray करें",
                "🌬️ Air circulation बढ़ाएं",
                "🚫 Over-watering से बचें",
            ),
            treatment_steps=(
                "Step 1: Affected leaves remove करें",
                "Step 2: Mancozeb 2g/liter spray करें",
                "Step 3: Air circulation बढ़ाएं",
                "Step 4: 7 दिन बाद repeat करें",
            ),
        ),
        HealthCategory.NUTRIENT_DEFICIENCY: CategoryGuidance(
            recommendations=(
                "📊 Nitrogen की कमी है",
                "🌾 Urea fertilizer डालें",
                "🍂 Compost का इस्तेमाल करें",
                "📈 1 सप्ताह बाद improvement देखें",
            ),
            treatment_steps=(
                "Step 1: Soil test करवाएं",
                "Step 2: NPK fertilizer apply करें",
                "Step 3: Organic matter add करें",
                "Step 4: Regular monitoring करें",
            ),
        ),
        HealthCategory.PLANT_STRESS: CategoryGuidance(
            recommendations=(
                "💧 पानी की कमी हो सकती है",
                "☀️ धूप से बचाएं",
                "🌡️ Temperature control करें",
                "🧪 Soil test करवाएं",
            ),
            treatment_steps=(
                "Step 1: Soil moisture check करें",
                "Step 2: सुबह या शाम को पानी दें",
                "Step 3: Mulching करें",
                "Step 4: 5 दिन बाद फिर से check करें",
            ),
        ),
    }),
    prevention_tips=(
        "🌱 Quality seeds का इस्तेमाल करें",
        "💧 Proper drainage maintain करें",
        "🌿 Crop rotation करें",
        "🧪 Regular soil testing करें",
        "🌤️ Weather monitoring करें",
    ),
)

ENGLISH_GUIDANCE = GuidanceBook(
    locale="en",
    categories=MappingProxyType({
        HealthCategory.HEALTHY: CategoryGuidance(
            recommendations=(
                "🌱 The crop looks completely healthy!",
                "💧 Keep watering regularly",
                "🌿 Use organic fertilizer",
                "📅 Check again in 15 days",
            ),
            treatment_steps=(
                "Step 1: Monitor the crop regularly",
                "Step 2: Maintain proper watering",
                "Step 3: Apply a balanced fertilizer",
                "Step 4: Ask an expert if anything changes",
            ),
        ),
        HealthCategory.BLACK_SPOT_DISEASE: CategoryGuidance(
            recommendations=(
                "🚨 Spray a fungicide immediately",
                "🍃 Remove infected leaves",
                "💊 Use a copper-based solution",
                "🔄 Check again after 3 days",
            ),
            treatment_steps=(
                "Step 1: Remove infected parts right away",
                "Step 2: Spray a copper fungicide",
                "Step 3: Improve drainage",
                "Step 4: Monitor weekly",
            ),
        ),
        HealthCategory.LEAF_BLIGHT: CategoryGuidance(
            recommendations=(
                "⚠️ This is a fungal infection",
                "💉 Spray Mancozeb",
                "🌬️ Increase air circulation",
                "🚫 Avoid over-watering",
            ),
            treatment_steps=(
                "Step 1: Remove affected leaves",
                "Step 2: Spray Mancozeb at 2g/liter",
                "Step 3: Increase air circulation",
                "Step 4: Repeat after 7 days",
            ),
        ),
        HealthCategory.NUTRIENT_DEFICIENCY: CategoryGuidance(
            recommendations=(
                "📊 The crop is short of nitrogen",
                "🌾 Apply urea fertilizer",
                "🍂 Use compost",
                "📈 Look for improvement after 1 week",
            ),
            treatment_steps=(
                "Step 1: Get a soil test",
                "Step 2: Apply NPK fertilizer",
                "Step 3: Add organic matter",
                "Step 4: Monitor regularly",
            ),
        ),
        HealthCategory.PLANT_STRESS: CategoryGuidance(
            recommendations=(
                "💧 The plant may be short of water",
                "☀️ Protect it from strong sun",
                "🌡️ Keep the temperature under control",
                "🧪 Get a soil test",
            ),
            treatment_steps=(
                "Step 1: Check soil moisture",
                "Step 2: Water in the morning or evening",
                "Step 3: Apply mulch",
                "Step 4: Check again after 5 days",
            ),
        ),
    }),
    prevention_tips=(
        "🌱 Use quality seeds",
        "💧 Maintain proper drainage",
        "🌿 Rotate crops",
        "🧪 Test the soil regularly",
        "🌤️ Keep an eye on the weather",
    ),
)

GUIDANCE_BOOKS: Mapping[str, GuidanceBook] = MappingProxyType({
    HINDI_GUIDANCE.locale: HINDI_GUIDANCE,
    ENGLISH_GUIDANCE.locale: ENGLISH_GUIDANCE,
})


def get_guidance_book(locale: str) -> GuidanceBook:
    """Return the book for a locale, Hindi if the locale is not available."""
    return GUIDANCE_BOOKS.get(locale.lower(), HINDI_GUIDANCE)


def calculate_severity(confidence: float) -> Severity:
    if confidence > 90:
        return Severity.HIGH
    if confidence > 70:
        return Severity.MEDIUM
    return Severity.LOW


def resolve_guidance(
        disease: Union[HealthCategory, str],
        confidence: float,
        book: GuidanceBook = HINDI_GUIDANCE,
) -> Guidance:
    """
    Build the advice for a verdict.

    Names that are not one of the health categories (for example a species
    returned by a remote classifier) get the healthy-crop texts.
    """
    category = disease if isinstance(disease, HealthCategory) else HealthCategory.from_disease(disease)
    texts = book.for_category(category or HealthCategory.HEALTHY)

    return Guidance(
        severity=calculate_severity(confidence),
        recommendations=list(texts.recommendations),
        treatment_steps=list(texts.treatment_steps),
        prevention_tips=list(book.prevention_tips),
    )
