from typing import List, Literal

from pydantic import BaseModel


class Conflict(BaseModel):
    type: Literal["teacher", "room", "class"]
    message: str
    involved: List[str]  # ids of the schedule entries implicated


class ConflictReport(BaseModel):
    conflicts: List[Conflict]
