# crop_health/__init__.py
# Crop health analysis service: colour heuristics behind a FastAPI upload endpoint

__version__ = "0.1.0"
