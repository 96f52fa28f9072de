# crop_health/services/heuristics.py
"""
Colour heuristics behind the local crop health verdict.

Each pixel is tested against four colour ranges. The tests are independent:
a pixel can count as brown and yellow at once, or as nothing at all. The
tallies are turned into percentages which drive the health cascade and the
nutrient estimates.
"""
import logging
import math
from dataclasses import dataclass
from io import BytesIO
from typing import Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from crop_health.errors import EmptyImageError, ImageDecodeError
from crop_health.models.crop_analysis import ColorAnalysis, HealthCategory, NutrientLevels

logger = logging.getLogger(__name__)

RGBA_CHANNELS = 4


# The colour tests work on plain ints and, element-wise, on numpy arrays.
def is_green(r, g, b):
    return (g > r) & (g > b) & (g > 100)


def is_brown(r, g, b):
    return (r > 100) & (g > 60) & (b < 50)


def is_yellow(r, g, b):
    return (r > 200) & (g > 200) & (b < 100)


def is_black(r, g, b):
    return (r < 50) & (g < 50) & (b < 50)


def round_half_up(value: float) -> int:
    """Round .5 upwards like the frontend does, instead of to the even neighbour."""
    return int(math.floor(value + 0.5))


@dataclass
class ColorTally:
    """Pixel counters collected while scanning one image."""
    green_count: int = 0
    brown_count: int = 0
    yellow_count: int = 0
    black_count: int = 0
    total_pixels: int = 0

    def add_pixel(self, r: int, g: int, b: int) -> None:
        """Per-pixel form of scan_rgba, kept as the reference the vectorised scan is checked against."""
        self.total_pixels += 1
        if is_green(r, g, b):
            self.green_count += 1
        if is_brown(r, g, b):
            self.brown_count += 1
        if is_yellow(r, g, b):
            self.yellow_count += 1
        if is_black(r, g, b):
            self.black_count += 1

    def _percent(self, count: int) -> float:
        if not self.total_pixels:
            return 0.0
        # multiply first: 15 / 100 * 100 is 15.000000000000002 in floating point
        return count * 100 / self.total_pixels

    @property
    def green_percent(self) -> float:
        return self._percent(self.green_count)

    @property
    def brown_percent(self) -> float:
        return self._percent(self.brown_count)

    @property
    def yellow_percent(self) -> float:
        return self._percent(self.yellow_count)

    @property
    def black_percent(self) -> float:
        return self._percent(self.black_count)

    def to_color_analysis(self) -> ColorAnalysis:
        return ColorAnalysis(
            green=round_half_up(self.green_percent),
            brown=round_half_up(self.brown_percent),
            yellow=round_half_up(self.yellow_percent),
            black=round_half_up(self.black_percent),
        )


@dataclass(frozen=True)
class ClassificationThresholds:
    """Percentages at which each category triggers (all comparisons are strict)."""
    black_spot: float = 5.0
    leaf_blight: float = 15.0
    nutrient_deficiency: float = 20.0
    plant_stress: float = 30.0


DEFAULT_THRESHOLDS = ClassificationThresholds()


def scan_rgba(buffer: bytes, width: int, height: int) -> ColorTally:
    """
    Tally one RGBA bitmap (row-major, 4 bytes per pixel, alpha ignored).

    Args:
        buffer: Raw pixel bytes.
        width: Bitmap width in pixels.
        height: Bitmap height in pixels.

    Returns:
        The filled ColorTally.
    """
    total_pixels = width * height
    if total_pixels <= 0:
        raise EmptyImageError(f"Image has no pixels ({width}x{height})")
    if len(buffer) != total_pixels * RGBA_CHANNELS:
        raise ImageDecodeError(
            f"Pixel buffer holds {len(buffer)} bytes, expected {total_pixels * RGBA_CHANNELS} for {width}x{height}"
        )

    pixels = np.frombuffer(buffer, dtype=np.uint8).reshape(total_pixels, RGBA_CHANNELS)
    r, g, b = pixels[:, 0], pixels[:, 1], pixels[:, 2]

    return ColorTally(
        green_count=int(np.count_nonzero(is_green(r, g, b))),
        brown_count=int(np.count_nonzero(is_brown(r, g, b))),
        yellow_count=int(np.count_nonzero(is_yellow(r, g, b))),
        black_count=int(np.count_nonzero(is_black(r, g, b))),
        total_pixels=total_pixels,
    )


def decode_image(image_bytes: bytes) -> Image.Image:
    """Decode raw upload bytes into a fully loaded Pillow image."""
    if not image_bytes:
        raise ImageDecodeError("No image data received")
    try:
        image = Image.open(BytesIO(image_bytes))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        raise ImageDecodeError(f"Could not decode image: {e}") from e
    return image


def bound_resolution(image: Image.Image, max_dimension: int) -> Image.Image:
    """Shrink images whose longest side exceeds max_dimension, keeping exact pixel colours."""
    width, height = image.size
    longest = max(width, height)
    if max_dimension <= 0 or longest <= max_dimension:
        return image

    scale = max_dimension / longest
    new_size = (max(1, int(width * scale)), max(1, int(height * scale)))
    logger.debug(f"Downscaling {width}x{height} image to {new_size[0]}x{new_size[1]} before scanning")
    return image.resize(new_size, Image.Resampling.NEAREST)


WIDE_INTEGER_MODES = ("I", "I;16", "I;16L", "I;16B", "I;16N")


def to_8bit(image: Image.Image) -> Image.Image:
    """Scale 16-bit greyscale down to 8 bits; Pillow's RGBA conversion would clip it instead."""
    if image.mode not in WIDE_INTEGER_MODES:
        return image
    values = np.asarray(image.convert("I"), dtype=np.int64)
    return Image.fromarray((np.clip(values, 0, 65535) >> 8).astype(np.uint8))


def scan_image(image: Image.Image, max_dimension: int = 0) -> ColorTally:
    """Tally a decoded Pillow image, downscaling it first if it is too large."""
    width, height = image.size
    if width * height <= 0:
        raise EmptyImageError(f"Image has no pixels ({width}x{height})")

    rgba = to_8bit(bound_resolution(image, max_dimension)).convert("RGBA")
    return scan_rgba(rgba.tobytes(), rgba.width, rgba.height)


def classify_health(
        tally: ColorTally,
        thresholds: ClassificationThresholds = DEFAULT_THRESHOLDS,
) -> HealthCategory:
    """
    Pick exactly one category. The first matching rule wins, so necrotic
    spotting outranks blight, blight outranks chlorosis, and chlorosis
    outranks a low share of green.
    """
    if tally.black_percent > thresholds.black_spot:
        return HealthCategory.BLACK_SPOT_DISEASE
    if tally.brown_percent > thresholds.leaf_blight:
        return HealthCategory.LEAF_BLIGHT
    if tally.yellow_percent > thresholds.nutrient_deficiency:
        return HealthCategory.NUTRIENT_DEFICIENCY
    if tally.green_percent < thresholds.plant_stress:
        return HealthCategory.PLANT_STRESS
    return HealthCategory.HEALTHY


def estimate_nutrients(green: float, yellow: float, brown: float) -> NutrientLevels:
    """Linear NPK proxies from the unrounded colour percentages. Green is unused."""
    nitrogen = max(20, 100 - yellow * 2 - brown * 3)
    phosphorus = max(30, 90 - brown * 2)
    potassium = max(25, 95 - yellow * 1.5)

    return NutrientLevels(
        nitrogen=round_half_up(nitrogen),
        phosphorus=round_half_up(phosphorus),
        potassium=round_half_up(potassium),
    )


def nutrients_from_tally(tally: ColorTally) -> NutrientLevels:
    return estimate_nutrients(tally.green_percent, tally.yellow_percent, tally.brown_percent)


def pixel_classes(r: int, g: int, b: int) -> Tuple[bool, bool, bool, bool]:
    """(green, brown, yellow, black) membership of one pixel, the scalar form of the scan_rgba masks."""
    return (
        bool(is_green(r, g, b)),
        bool(is_brown(r, g, b)),
        bool(is_yellow(r, g, b)),
        bool(is_black(r, g, b)),
    )
