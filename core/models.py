# core/models.py

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone

from .errors import MalformedDocument

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class DocumentSnapshot(BaseModel):
    """A document read from the store: its id, full path and stored fields."""
    id: str
    path: str
    data: Dict[str, Any] = {}

class StoredModel(BaseModel):
    """Base for entities persisted with camelCase field names."""
    model_config = ConfigDict(populate_by_name=True)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude={"id", "path"})

class Account(BaseModel):
    """An authenticated user; its uid is the owner reference of everything it creates."""
    uid: str
    username: str
    hashed_password: Optional[str] = None
    display_name: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

class Farmer(StoredModel):
    id: str = ""
    name: str = ""
    phone: str = ""
    owner_uid: str = Field(default="", alias="ownerUid")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

class GeoPoint(BaseModel):
    """A latitude/longitude pair. A field either has both or no location at all."""
    lat: float
    lng: float

    @field_validator("lat")
    @classmethod
    def _check_lat(cls, value: float) -> float:
        if not -90 <= value <= 90:
            raise ValueError("latitude must be within [-90, 90]")
        return value

    @field_validator("lng")
    @classmethod
    def _check_lng(cls, value: float) -> float:
        if not -180 <= value <= 180:
            raise ValueError("longitude must be within [-180, 180]")
        return value

class FieldPlot(StoredModel):
    """A farmer's field. Named FieldPlot to stay clear of pydantic.Field."""
    id: str = ""
    farmer_id: str = Field(default="", alias="farmerId")
    type: str = ""
    address: str = ""
    location: Optional[GeoPoint] = None
    area: Optional[float] = None
    owner_uid: str = Field(default="", alias="ownerUid")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

class Visit(StoredModel):
    """
    A visit to one field of one farmer.
    `date` keeps the stored value as-is so that malformed dates survive loading.
    """
    id: str = ""
    path: str = ""
    farmer_id: Optional[str] = Field(default=None, alias="farmerId")
    field_id: Optional[str] = Field(default=None, alias="fieldId")
    date: Any = None
    note: str = ""
    recommendation_ids: List[str] = Field(default_factory=list, alias="recommendationIds")
    owner_uid: str = Field(default="", alias="ownerUid")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @field_validator("note", mode="before")
    @classmethod
    def _none_note(cls, value):
        return value or ""

    @field_validator("recommendation_ids", mode="before")
    @classmethod
    def _list_ids(cls, value):
        if value is None:
            return []
        return value

class Recommendation(StoredModel):
    id: str = ""
    name: str = ""
    kind: str = "other"
    sub_kind: Optional[str] = Field(default=None, alias="subKind")
    owner_uid: str = Field(default="", alias="ownerUid")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

class VisitView(BaseModel):
    """A visit merged with its resolved farmer, field and recommendation names."""
    visit: Visit
    farmer: Optional[Farmer] = None
    field: Optional[FieldPlot] = None
    recommendation_names: List[str] = []

    @property
    def farmer_label(self) -> str:
        if self.farmer and self.farmer.name:
            return self.farmer.name
        return self.visit.farmer_id or ""

    @property
    def phone(self) -> str:
        return self.farmer.phone if self.farmer else ""

    @property
    def field_label(self) -> str:
        if self.field and self.field.type:
            return self.field.type
        return self.visit.field_id or ""

    @property
    def address(self) -> str:
        return self.field.address if self.field else ""

    def searchable_values(self) -> List[str]:
        """Present values searched by the free-text filter, in haystack order."""
        values = [
            self.visit.note,
            self.farmer.name if self.farmer else None,
            self.farmer.phone if self.farmer else None,
            self.field.type if self.field else None,
            self.field.address if self.field else None,
            *self.recommendation_names,
        ]
        return [v for v in values if v]

def from_snapshot(model, snapshot: DocumentSnapshot, **extra):
    """Reads a stored document into `model`; documents that do not validate are malformed."""
    data = {**snapshot.data, "id": snapshot.id, **extra}
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise MalformedDocument(f"{snapshot.path}: {e}") from e
