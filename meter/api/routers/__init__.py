"""
meter/api/routers package marker.
"""

from meter.api.routers.meter_router import router as meter_router

__all__ = ["meter_router"]
