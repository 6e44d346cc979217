"""OpenWeatherMap client and forecast aggregation."""

from .forecast import bucket_forecast, fold_icon, representative_icon
from .service import OpenWeatherService

__all__ = [
    "OpenWeatherService",
    "bucket_forecast",
    "fold_icon",
    "representative_icon",
]
