# crop_health/api/__init__.py
# Import the router
from crop_health.api.routes import router
