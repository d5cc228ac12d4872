from pydantic import BaseModel, Field


class ReportCreate(BaseModel):
    reporter_id: int = Field(alias="reporterId")
    reported_id: int = Field(alias="reportedId")
    reason: str

    model_config = {"populate_by_name": True}
