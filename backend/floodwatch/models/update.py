from typing import Literal
from pydantic import BaseModel, Field

UpdateType = Literal["info", "warning", "success"]


class UpdateIn(BaseModel):
    message: str = Field(..., min_length=1, description="Announcement text")
    type: UpdateType = Field(..., description="info, warning or success")
