"""
Pydantic schemas for API request/response validation.
"""
from typing import Optional

from pydantic import BaseModel

from .submission import (
    AreaType,
    ClientSubmissionCreate,
    ClientSubmissionCreated,
    ClientSubmissionOut,
    FinancingOptionIn,
    InstallationServiceIn,
    ProjectIn,
    ServiceAreaIn,
    ServiceIn,
    StormServiceIn,
)
from .upload import ImageUploadOut


# ============ Health Check ============


class HealthCheck(BaseModel):
    """Health check response."""
    status: str = "healthy"
    backend: Optional[str] = None
    version: Optional[str] = None


# Re-export all
__all__ = [
    "AreaType",
    "ClientSubmissionCreate",
    "ClientSubmissionCreated",
    "ClientSubmissionOut",
    "FinancingOptionIn",
    "InstallationServiceIn",
    "ProjectIn",
    "ServiceAreaIn",
    "ServiceIn",
    "StormServiceIn",
    "ImageUploadOut",
    "HealthCheck",
]
