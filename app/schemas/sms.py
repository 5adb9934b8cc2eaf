from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SMSMessage(BaseModel):
    to: str
    body: str


class SMSResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sid: str
    status: str
    to: str
    from_number: str = Field(..., alias="from")
    body: str
    mock: bool = False


class GroupGiftResult(BaseModel):
    recipient: SMSResult
    viewers: list[SMSResult]
