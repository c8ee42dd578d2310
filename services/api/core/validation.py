"""
Validation utilities for the client intake form.

Two audiences:
- the form core, which needs field-level error messages before anything
  touches the network (`collect_field_errors`)
- the upload endpoint, which rejects a bad image batch with HTTP 400
"""
import io
from typing import Any, Dict, List, Mapping, Optional, Tuple

from email_validator import EmailNotValidError, validate_email
from fastapi import HTTPException
from PIL import Image, UnidentifiedImageError

YEARS_MIN = 0
YEARS_MAX = 50


def parse_years_of_experience(raw: Any) -> int:
    """
    Parse the years-of-experience field.

    Accepts ints and numeric strings ("25", " 7 "). Booleans, floats with a
    fractional part and anything outside [0, 50] are rejected.

    Raises:
        ValueError: with a user-facing message
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ValueError("Years of experience is required")
    if isinstance(raw, bool):
        raise ValueError("Years of experience must be a whole number")

    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, float):
        if not raw.is_integer():
            raise ValueError("Years of experience must be a whole number")
        value = int(raw)
    else:
        try:
            value = int(str(raw).strip())
        except ValueError:
            raise ValueError("Years of experience must be a whole number") from None

    if not (YEARS_MIN <= value <= YEARS_MAX):
        raise ValueError(
            f"Years of experience must be between {YEARS_MIN} and {YEARS_MAX}, got {value}"
        )
    return value


def check_business_email(raw: Optional[str]) -> Optional[str]:
    """
    Return the normalized address, or None when the field is blank.

    Raises:
        ValueError: if a non-blank value is not a valid e-mail address
    """
    if raw is None or not str(raw).strip():
        return None
    try:
        return validate_email(str(raw).strip(), check_deliverability=False).normalized
    except EmailNotValidError as e:
        raise ValueError(f"Invalid email address: {e}") from None


def collect_field_errors(values: Mapping[str, Any]) -> Dict[str, str]:
    """
    Run every top-level field rule and return {field: message}.

    An empty dict means the scalars are acceptable. One bad field never
    hides errors in another.
    """
    errors: Dict[str, str] = {}

    try:
        parse_years_of_experience(values.get("years_of_experience"))
    except ValueError as e:
        errors["years_of_experience"] = str(e)

    try:
        check_business_email(values.get("business_email"))
    except ValueError as e:
        errors["business_email"] = str(e)

    return errors


def validate_image_batch(
    files: List[Tuple[str, bytes]],
    max_count: int,
    max_bytes: int,
) -> None:
    """
    Validate an upload batch before anything is sent to the media host.

    Rules:
    - at least one file, at most `max_count`
    - each file non-empty and at most `max_bytes`
    - each file must decode as an image

    Any failure rejects the whole batch.

    Raises:
        HTTPException: 400 if validation fails
    """
    if not files:
        raise HTTPException(status_code=400, detail="No images provided")
    if len(files) > max_count:
        raise HTTPException(
            status_code=400,
            detail=f"Too many images: {len(files)} (max {max_count})"
        )

    for filename, data in files:
        if not data:
            raise HTTPException(status_code=400, detail=f"{filename}: file is empty")
        if len(data) > max_bytes:
            raise HTTPException(
                status_code=400,
                detail=f"{filename}: file exceeds {max_bytes} bytes"
            )
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
            raise HTTPException(
                status_code=400,
                detail=f"{filename}: not a valid image"
            ) from None
