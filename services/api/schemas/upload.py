"""
Pydantic schemas for image uploads.
"""
from typing import List
from pydantic import BaseModel, Field


class ImageUploadOut(BaseModel):
    """Hosted URLs for one uploaded batch, in request order."""
    success: bool = True
    image_urls: List[str] = Field(default_factory=list, description="Public URL per uploaded image")
    message: str = ""
