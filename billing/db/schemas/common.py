from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Payload(BaseModel):
    """Create/update body. Every field is optional so handlers can report
    which required field is missing with their own error code."""

    model_config = ConfigDict(extra="ignore")


class Record(BaseModel):
    """Serialized row: public GUID and audit timestamps, never the numeric id."""

    guid: int
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)
