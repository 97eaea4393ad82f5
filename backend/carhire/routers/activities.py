"""Activities router - static catalogue."""

from typing import List

from fastapi import APIRouter

from carhire.core.errors import NotFoundError
from carhire.schemas.activity import ActivityResponse
from carhire.services.activities import get_activity, list_activities

router = APIRouter(prefix="/activities", tags=["activities"])


@router.get("", response_model=List[ActivityResponse])
async def activities():
    return [a.to_dict() for a in list_activities()]


@router.get("/{activity_id}", response_model=ActivityResponse)
async def activity_detail(activity_id: str):
    activity = get_activity(activity_id)
    if not activity:
        raise NotFoundError("Activity not found")
    return activity.to_dict()
