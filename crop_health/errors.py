# crop_health/errors.py


class CropAnalysisError(Exception):
    """Base class for failures that stop a crop image analysis."""


class ImageDecodeError(CropAnalysisError):
    """The uploaded bytes could not be decoded as a raster image."""


class EmptyImageError(CropAnalysisError):
    """The decoded image has no pixels."""


class ClassifierError(Exception):
    """A classifier in the chain could not produce a usable verdict."""

    def __init__(self, classifier: str, message: str):
        super().__init__(f"{classifier}: {message}")
        self.classifier = classifier
