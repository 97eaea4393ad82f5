"""Activity catalogue schemas."""

from carhire.schemas.base import BaseSchema


class ActivityResponse(BaseSchema):
    id: str
    title: str
    description: str
    long_description: str
    price: str
    duration: str
    image_url: str
    includes: list[str]
    highlights: list[str]
