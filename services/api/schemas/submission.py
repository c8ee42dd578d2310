"""
Pydantic schemas for client profile submissions.

Shared by the submission endpoint (request validation) and by the form
assembler, which validates the payload it built before sending it.
"""
from typing import Annotated, Any, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, EmailStr, Field, field_validator


AreaType = Literal["neighborhoods", "cities", "counties", "radius"]


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        return None
    return v


# Optional free-text field; "" and whitespace collapse to None
OptStr = Annotated[Optional[str], BeforeValidator(_blank_to_none)]


def _clean_items(items: List[str]) -> List[str]:
    return [s.strip() for s in items if s and s.strip()]


# ============ Record Schemas ============


class ServiceIn(BaseModel):
    """One service the business offers."""
    name: str = Field(..., min_length=1, description="Service name")
    description: str = Field(..., min_length=1, description="Service description")
    steps: OptStr = Field(None, description="Free-text executing steps")
    picture_urls: List[str] = Field(default_factory=list, description="Hosted picture URLs")


class ProjectIn(BaseModel):
    """
    A previous project.

    When `before_after` is set the before/after picture lists are the
    meaningful ones, otherwise `picture_urls` is.
    """
    title: str = Field(..., min_length=1, description="Project title")
    description: str = Field(..., min_length=1, description="Project description")
    before_after: bool = Field(False, description="Whether before/after photos are provided")
    before_picture_urls: List[str] = Field(default_factory=list)
    after_picture_urls: List[str] = Field(default_factory=list)
    picture_urls: List[str] = Field(default_factory=list)
    client_feedback: OptStr = None


class ServiceAreaIn(BaseModel):
    """A neighborhood / city / county / radius the business serves."""
    type: AreaType = Field("neighborhoods", description="Kind of area")
    name: str = Field(..., min_length=1)
    description: OptStr = None


class FinancingOptionIn(BaseModel):
    """A financing plan offered to customers."""
    name: str = Field(..., min_length=1, description="Plan title")
    description: str = Field(..., min_length=1, description="Full plan description")
    interest_rate: OptStr = None
    term_length: OptStr = None
    minimum_amount: OptStr = None
    qualification_requirements: OptStr = None


class StormServiceIn(BaseModel):
    """A storm-damage service."""
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    response_time: OptStr = None
    insurance_partnership: OptStr = None
    picture_urls: List[str] = Field(default_factory=list)


class InstallationServiceIn(BaseModel):
    """Installation process for one service, with ordered steps."""
    service_name: str = Field(..., min_length=1)
    steps: List[str] = Field(default_factory=list, description="Ordered installation steps")
    picture_urls: List[str] = Field(default_factory=list)
    additional_notes: OptStr = None

    @field_validator("steps")
    @classmethod
    def drop_blank_steps(cls, v: List[str]) -> List[str]:
        return _clean_items(v)


# ============ Submission Schemas ============


class ClientSubmissionCreate(BaseModel):
    """
    Full client profile as sent by the intake form.

    Only `years_of_experience` is required; everything else may be absent.
    """
    # Basic information
    years_of_experience: int = Field(..., ge=0, le=50, description="Years in business (0-50)")
    business_email: Annotated[Optional[EmailStr], BeforeValidator(_blank_to_none)] = None

    # License
    has_license: bool = False
    license_number: OptStr = None

    # Business details
    business_address: OptStr = None
    business_hours: OptStr = None

    # Emergency services
    has_emergency_services: bool = False
    has_emergency_phone: bool = False
    emergency_phone: OptStr = None

    # About us
    enable_about_modifications: bool = False
    company_story: OptStr = None
    unique_selling_points: OptStr = None
    specialties: OptStr = None

    # Records
    services: List[ServiceIn] = Field(default_factory=list)
    projects: List[ProjectIn] = Field(default_factory=list)
    service_areas: List[ServiceAreaIn] = Field(default_factory=list)
    service_areas_description: OptStr = None

    # Website features
    has_financing_options: bool = False
    financing_options: List[FinancingOptionIn] = Field(default_factory=list)

    has_storm_services: bool = False
    storm_services: List[StormServiceIn] = Field(default_factory=list)

    has_brands_worked_with: bool = False
    brands: List[str] = Field(default_factory=list)
    brands_additional_notes: OptStr = None

    has_certifications: bool = False
    certifications: List[str] = Field(default_factory=list)
    certification_picture_urls: List[str] = Field(default_factory=list)
    certifications_additional_notes: OptStr = None

    has_installation_process: bool = False
    installation_process_services: List[InstallationServiceIn] = Field(default_factory=list)

    has_maintenance_guide: bool = False
    maintenance_tips: List[str] = Field(default_factory=list)

    has_roof_materials: bool = False
    roof_materials_specialties: OptStr = None

    # Warranty & insurance
    has_warranty: bool = False
    warranty_duration: OptStr = None
    warranty_type: OptStr = None
    warranty_coverage_details: OptStr = None
    warranty_terms: List[str] = Field(default_factory=list)
    warranty_additional_notes: OptStr = None

    has_insurance: bool = False
    general_liability: OptStr = None
    workers_compensation: bool = False
    bonded_amount: OptStr = None
    additional_coverage: OptStr = None

    # Notes
    has_additional_notes: bool = False
    additional_notes: OptStr = None

    @field_validator("brands", "certifications", "maintenance_tips", "warranty_terms")
    @classmethod
    def drop_blank_items(cls, v: List[str]) -> List[str]:
        return _clean_items(v)


class ClientSubmissionOut(ClientSubmissionCreate):
    """Stored submission as returned by the API."""
    id: str = Field(..., description="Generated submission ID")
    created_at: str = Field(..., description="Creation timestamp (UTC ISO-8601)")

    class Config:
        from_attributes = True


class ClientSubmissionCreated(BaseModel):
    """Response after accepting a submission."""
    success: bool = True
    id: str
    message: str = "Form submitted successfully"
