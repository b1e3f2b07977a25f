from pydantic import BaseModel, Field
from typing import Literal, Optional

HelpType = Literal["food", "medical", "evacuation", "boat"]
Severity = Literal["low", "medium", "high"]
SOSStatus = Literal["pending", "in_progress", "resolved"]

# Stored when the reporter leaves the name blank ("name not given")
ANONYMOUS_NAME = "ไม่ระบุชื่อ"


# Payload coming FROM the report form (keep these names exactly)
class SOSRequestIn(BaseModel):
    name: Optional[str] = Field(None, description="Reporter name (optional)")
    phone: str = Field(..., min_length=1, description="Contact phone number")
    help_type: HelpType = Field(..., description="Kind of help needed")
    severity: Severity = Field(..., description="How urgent the request is")
    description: Optional[str] = None
    latitude: float = Field(..., ge=-90, le=90, description="Latitude")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude")
    photo_url: Optional[str] = None

    # household details
    has_children: bool = False
    has_elderly: bool = False
    has_disabled: bool = False
    has_pregnant: bool = False
    people_count: int = Field(1, ge=1, description="People at the location")


class SOSStatusUpdate(BaseModel):
    status: SOSStatus
