"""Pydantic models for patient visit records.

Records are stored and exchanged with camelCase field names (``patientName``,
``createdAt`` ...). Python code uses the snake_case attribute names.
"""
from datetime import date as Date
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, confloat, conint, field_validator, model_validator
from pydantic.alias_generators import to_camel

# Non-negative, finite money amount. Whole numbers stay ints so a snapshot
# written by another instance reads back unchanged.
Amount = Union[conint(ge=0), confloat(ge=0, allow_inf_nan=False)]


class EyeDetails(BaseModel):
    """Prescription values for one eye, in free-form clinical notation."""

    model_config = ConfigDict(frozen=True)

    sphere: str = ""
    cylinder: str = ""
    axis: str = ""
    add: str = ""


class PatientRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Assigned by the record store on first save
    id: Optional[str] = None
    created_at: Optional[str] = None

    # Visit
    date: Date
    patient_name: str
    mobile_number: str
    remarks: str

    # Prescription
    right_eye: EyeDetails = Field(default_factory=EyeDetails)
    left_eye: EyeDetails = Field(default_factory=EyeDetails)

    # Billing
    frame_price: Amount = 0
    glass_price: Amount = 0
    total_price: Optional[Amount] = None

    @model_validator(mode="after")
    def fill_total(self):
        if self.total_price is None:
            self.total_price = self.frame_price + self.glass_price
        return self

    def with_total(self) -> "PatientRecord":
        """Return a copy whose total is recomputed from frame and glass price."""
        return self.model_copy(update={"total_price": self.frame_price + self.glass_price})

    def to_document(self) -> dict:
        """Serialized (camelCase, JSON-safe) form used for storage and export."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


SearchType = Literal["name", "mobile"]


class SearchOptions(BaseModel):
    query: str
    type: SearchType = "mobile"

    @field_validator("query", mode="before")
    @classmethod
    def strip_query(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class ImportResult(BaseModel):
    # Records adopted into the store
    added_count: int
    # Records found in the imported snapshot
    parsed_count: int


PatientRecordList = List[PatientRecord]
