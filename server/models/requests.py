from pydantic import BaseModel, Field


class SearchParams(BaseModel):
    query: str = ""
    proximity_distance: int | None = Field(default=None, ge=0)
