"""
app/api/routers package marker.
"""

from app.api.routers.analytics_router import router as analytics_router
from app.api.routers.export_router import router as export_router
from app.api.routers.ingestion import router as ingestion_router

__all__ = [
    "analytics_router",
    "export_router",
    "ingestion_router",
]
