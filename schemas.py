from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AnalyticsQuery(BaseModel):
    model_config = ConfigDict(extra="ignore")

    month: Optional[str] = Field(default=None, pattern=r"^\d{4}-\d{2}$")
    account_id: Optional[str] = Field(default=None, min_length=1, max_length=40)


class SessionPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    u: str = Field(..., min_length=1, max_length=40)
    e: Optional[str] = Field(default=None, max_length=255)
