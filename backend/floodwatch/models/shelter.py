# backend/floodwatch/models/shelter.py
from typing import Literal, Optional
from pydantic import BaseModel, Field, model_validator

ShelterStatus = Literal["open", "full", "closed"]


class ShelterIn(BaseModel):
    # what the shelter registration form sends
    name: str = Field(..., min_length=1, description="Shelter / site name")
    address: Optional[str] = None
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    capacity: int = Field(0, ge=0, description="Max people the site can take")
    current_occupancy: int = Field(0, ge=0)
    contact_phone: Optional[str] = None
    contact_name: Optional[str] = None

    # facilities
    has_food: bool = False
    has_water: bool = False
    has_medical: bool = False
    has_electricity: bool = False
    has_toilet: bool = False
    has_shower: bool = False
    has_bedding: bool = False
    has_wifi: bool = False
    accepts_pets: bool = False

    status: ShelterStatus = "open"
    notes: Optional[str] = None


class ShelterPatch(BaseModel):
    status: Optional[ShelterStatus] = None
    current_occupancy: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def _at_least_one(self):
        if self.status is None and self.current_occupancy is None:
            raise ValueError("Provide status and/or current_occupancy")
        return self
