from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from floodwatch.db.dynamo import add_shelter, list_shelters, update_shelter
from floodwatch.models.shelter import ShelterIn, ShelterPatch, ShelterStatus

router = APIRouter(prefix="/shelters", tags=["shelters"])


@router.get("")
def get_shelters(
    status: Optional[ShelterStatus] = Query(None, description="open, full or closed"),
    has_medical: bool = Query(False, description="Only sites with medicine/nursing"),
    accepts_pets: bool = Query(False, description="Only sites that take pets"),
):
    data = list_shelters(status=status, has_medical=has_medical, accepts_pets=accepts_pets)
    return {"success": True, "data": data, "count": len(data)}


@router.post("", status_code=201)
def register_shelter(body: ShelterIn):
    return {"success": True, "data": add_shelter(body.model_dump())}


@router.patch("/{shelter_id}")
def patch_shelter(shelter_id: str, body: ShelterPatch):
    item = update_shelter(shelter_id, body.model_dump(exclude_none=True))
    if item is None:
        raise HTTPException(status_code=404, detail="Shelter not found")
    return {"success": True, "data": item}
