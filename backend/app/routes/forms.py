"""
OpsLedger Backend — Multipart Form Helpers
============================================

What:  Shared helpers for the routes that accept `multipart/form-data`
       (register, user update, employee create/update).
Why:   FastAPI validates JSON bodies against pydantic models on its own, but
       form fields arrive as loose values. These helpers run the same models
       over the form data and turn failures into our 400 ValidationError.
"""

from typing import Any, Dict, Optional, Type, TypeVar

import pydantic
from fastapi import UploadFile

from app.exceptions import ValidationError
from app.services.file_service import ImageUpload

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


def build_model(model: Type[ModelT], fields: Dict[str, Any]) -> ModelT:
    """Validate form fields with `model`; unset (None or blank) fields are dropped."""
    data = {k: v for k, v in fields.items() if v is not None and v != ""}
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError.from_errors(e.errors())


async def read_image(upload: Optional[UploadFile]) -> Optional[ImageUpload]:
    """Read an optional uploaded image into memory; an empty file part counts as absent."""
    if upload is None or not upload.filename:
        return None
    try:
        content = await upload.read()
    finally:
        await upload.close()
    return ImageUpload(
        filename=upload.filename,
        content_type=upload.content_type,
        content=content,
    )
