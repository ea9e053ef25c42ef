"""Community-related endpoints for the Threadline API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select

from threadline.models import Community
from threadline.schemas.community import (
    CommunityCreate,
    CommunityResponse,
    to_community_response,
)

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/communities", tags=["communities"])


@router.get("/", response_model=list[CommunityResponse])
def list_communities(db: SessionDep) -> list[CommunityResponse]:
    """List all communities."""
    communities = db.execute(select(Community).order_by(Community.name)).scalars()
    return [to_community_response(community) for community in communities]


@router.get("/{community_id}", response_model=CommunityResponse)
def get_community(
    community_id: int,
    db: SessionDep,
) -> CommunityResponse:
    """Get a specific community by ID."""
    community = db.get(Community, community_id)
    if not community:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Community not found"
        )
    return to_community_response(community)


@router.post("/",
          response_model=CommunityResponse,
          status_code=status.HTTP_201_CREATED)
def create_community(
    community_data: CommunityCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> CommunityResponse:
    """Create a new community."""
    # Check if name already exists
    existing = db.execute(
        select(Community).where(Community.name == community_data.name)
    ).scalar_one_or_none()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Community name already exists"
        )

    new_community = Community(
        name=community_data.name,
        description=community_data.description,
        created_by=current_user.id,
    )
    db.add(new_community)
    db.commit()
    db.refresh(new_community)
    return to_community_response(new_community)
