from pydantic import BaseModel, ConfigDict

class SearchResultResponse(BaseModel):
    result_type: str  # "project", "task", "comment"
    id: int
    title: str
    snippet: str

    model_config = ConfigDict(from_attributes=True)
