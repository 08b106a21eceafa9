# certiai/schemas/base.py
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase op de wire (zoals de frontend verwacht)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def envelope(message: str, data: Any = None) -> dict:
    """Standaard envelope voor alle JSON responses: {success, message, data}."""
    return {"success": True, "message": message, "data": data}
