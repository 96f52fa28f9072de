# test/conftest.py
from io import BytesIO
from typing import List, Tuple

import pytest
from PIL import Image

GREEN = (0, 200, 0)
BROWN = (150, 100, 20)
YELLOW = (255, 255, 0)
BLACK = (0, 0, 0)
GREY = (128, 128, 128)  # matches none of the colour tests

Color = Tuple[int, int, int]


def image_bytes(pixels: List[Color], width: int, fmt: str = "PNG") -> bytes:
    """Encode a list of RGB pixels (row-major) as an image file."""
    height = len(pixels) // width
    assert width * height == len(pixels), "pixel count must fill whole rows"
    image = Image.new("RGB", (width, height))
    image.putdata(pixels)
    buffer = BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def mixed_pixels(*parts: Tuple[Color, int]) -> List[Color]:
    pixels: List[Color] = []
    for color, count in parts:
        pixels.extend([color] * count)
    return pixels


def solid_image(color: Color, width: int = 10, height: int = 10) -> bytes:
    return image_bytes([color] * (width * height), width)


@pytest.fixture
def green_png() -> bytes:
    return solid_image(GREEN)


@pytest.fixture
def black_png() -> bytes:
    return solid_image(BLACK)
