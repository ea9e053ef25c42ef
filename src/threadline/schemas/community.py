"""Community-related Pydantic schemas."""

from datetime import datetime

from pydantic import Field

from threadline.models import Community

from .common import CamelModel


class CommunityCreate(CamelModel):
    """Schema for creating a new community."""

    name: str = Field(..., min_length=3, max_length=50)
    description: str | None = Field(None, max_length=1000)


class CommunityResponse(CamelModel):
    """Schema for community information returned by the API."""

    id: int
    name: str
    description: str | None
    created_at: datetime


def to_community_response(community: Community) -> CommunityResponse:
    """Convert a Community ORM instance to an API schema."""
    return CommunityResponse(
        id=community.id,
        name=community.name,
        description=community.description,
        created_at=community.created_at,
    )
