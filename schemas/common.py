"""
Shared schema base classes and small response bodies.
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, TypeAdapter, AnyHttpUrl, ValidationError
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase JSON; either spelling is accepted on input."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


_http_url = TypeAdapter(AnyHttpUrl)


def optional_url(value: Optional[str]) -> Optional[str]:
    """Blank means "no URL"; anything else must be a well-formed http(s) URL."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    try:
        _http_url.validate_python(value)
    except ValidationError:
        raise ValueError("must be a valid URL")
    return value


class SuccessResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None


class BulkActionResponse(CamelModel):
    """Result of a bulk smell or user action."""
    success: bool = True
    affected_count: int
    action: str
