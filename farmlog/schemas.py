# farmlog/schemas.py
import datetime
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Number = Union[int, float]


class WorkType(str, Enum):
    SEEDING = "播種"
    TRANSPLANTING = "定植"
    WEEDING = "除草"
    FERTILIZING = "施肥"
    IRRIGATION = "潅水"
    HARVEST = "収穫"
    PEST_CONTROL = "防除"
    CLEANING = "清掃"
    OTHER = "その他"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------- owner context ----------
@dataclass(frozen=True)
class OwnerContext:
    uid: str
    display_name: str = ""
    email: str = ""

    @property
    def label(self) -> str:
        return self.display_name or self.email


# ---------- form draft ----------
def _today() -> str:
    return datetime.date.today().isoformat()


class WorkLogDraft(CamelModel):
    """Mutable form state. Every value is the raw form string except ``workers``."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        validate_assignment=True,
    )

    date: str = Field(default_factory=_today)
    field_id: str = ""
    work_type: str = ""
    workers: List[str] = Field(default_factory=list)
    details: str = ""
    work_hours: str = ""
    harvest_amount: str = ""
    waste_amount: str = ""
    # 施肥
    fertilizer_id: str = ""
    fertilizer_amount: str = ""
    fertilizer_unit: str = "kg"
    fertilizer_method: str = ""
    # 播種
    seed_id: str = ""
    seed_amount: str = ""
    seed_method: str = ""
    # 防除
    pesticide_id: str = ""
    target_pest: str = ""
    dilution_rate: str = ""
    pesticide_amount: str = ""
    pesticide_unit: str = "L"
    pesticide_method: str = ""
    weather: str = ""
    temperature: str = ""
    wind_speed: str = ""


def draft_field_name(name: str) -> Optional[str]:
    """Map an attribute or camelCase key to the draft attribute name."""
    if name in WorkLogDraft.model_fields:
        return name
    for attr, info in WorkLogDraft.model_fields.items():
        if info.alias == name:
            return attr
    return None


# ---------- lookup entities ----------
class LookupEntity(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow", frozen=True
    )

    id: str
    name: str = ""
    user_id: Optional[str] = None


class FarmField(LookupEntity):
    pass


class FarmUser(LookupEntity):
    pass


class Fertilizer(LookupEntity):
    nitrogen_content: Optional[float] = None
    phosphorus_content: Optional[float] = None
    potassium_content: Optional[float] = None


class Seed(LookupEntity):
    variety: Optional[str] = None


class Pesticide(LookupEntity):
    type: Optional[str] = None


def _find(items, item_id):
    for item in items:
        if item.id == item_id:
            return item
    return None


class ReferenceData(BaseModel):
    """Lookup lists of one form session; frozen for the life of the session."""
    model_config = ConfigDict(frozen=True)

    fields: Tuple[FarmField, ...] = ()
    users: Tuple[FarmUser, ...] = ()
    fertilizers: Tuple[Fertilizer, ...] = ()
    seeds: Tuple[Seed, ...] = ()
    pesticides: Tuple[Pesticide, ...] = ()

    def field(self, field_id: str) -> Optional[FarmField]:
        return _find(self.fields, field_id)

    def fertilizer(self, fertilizer_id: str) -> Optional[Fertilizer]:
        return _find(self.fertilizers, fertilizer_id)

    def seed(self, seed_id: str) -> Optional[Seed]:
        return _find(self.seeds, seed_id)

    def pesticide(self, pesticide_id: str) -> Optional[Pesticide]:
        return _find(self.pesticides, pesticide_id)

    def workers(self, user_ids: List[str]) -> List[FarmUser]:
        return [u for u in self.users if u.id in user_ids]


# ---------- type-specific payloads ----------
class FertilizingPayload(CamelModel):
    work_type: ClassVar[WorkType] = WorkType.FERTILIZING

    fertilizer_id: str
    fertilizer_amount: Optional[Number] = None
    fertilizer_unit: Optional[str] = None
    fertilizer_method: Optional[str] = None


class SeedingPayload(CamelModel):
    work_type: ClassVar[WorkType] = WorkType.SEEDING

    seed_id: str
    seed_amount: Optional[Number] = None
    seed_method: Optional[str] = None


class PestControlPayload(CamelModel):
    work_type: ClassVar[WorkType] = WorkType.PEST_CONTROL

    pesticide_id: str
    target_pest: Optional[str] = None
    dilution_rate: Optional[Number] = None
    pesticide_amount: Optional[Number] = None
    pesticide_unit: Optional[str] = None
    pesticide_method: Optional[str] = None
    weather: Optional[str] = None
    temperature: Optional[Number] = None
    wind_speed: Optional[Number] = None


Payload = Union[FertilizingPayload, SeedingPayload, PestControlPayload]
PAYLOAD_TYPES = (FertilizingPayload, SeedingPayload, PestControlPayload)

# every type-specific storage key, across all variants
TYPE_SPECIFIC_KEYS = tuple(
    info.alias for model in PAYLOAD_TYPES for info in model.model_fields.values()
)


class WorkLogRecord(CamelModel):
    """Primary record: a core plus at most one type-specific payload."""

    user_id: str
    date: str
    field_id: str
    field_name: str = ""
    work_type: str
    workers: List[str] = Field(default_factory=list)
    worker_names: List[str] = Field(default_factory=list)
    details: str = ""
    work_hours: Optional[Number] = None
    harvest_amount: Optional[Number] = None
    waste_amount: Optional[Number] = None
    payload: Optional[Payload] = None

    def to_document(self) -> Dict[str, Any]:
        doc = self.model_dump(by_alias=True, exclude={"payload"})
        # keys of inactive variants are written as null so an edit clears them
        doc.update({key: None for key in TYPE_SPECIFIC_KEYS})
        if self.payload is not None:
            doc.update(self.payload.model_dump(by_alias=True))
        return doc


# ---------- derived records ----------
class DerivedRecord(CamelModel):
    collection: ClassVar[str] = ""

    date: str
    field_id: str
    field_name: str = ""
    user_id: str
    notes: str = ""
    work_log_id: str


class FertilizerUse(DerivedRecord):
    collection: ClassVar[str] = "fertilizerUses"

    fertilizer_id: str
    fertilizer_name: str = ""
    applied_by: str
    applied_by_name: str = ""
    amount: Optional[Number] = None
    unit: Optional[str] = None
    method: Optional[str] = None
    nitrogen: Number = 0
    phosphorus: Number = 0
    potassium: Number = 0


class SeedUse(DerivedRecord):
    collection: ClassVar[str] = "seedUses"

    seed_id: str
    seed_name: str = ""
    planted_by: str
    planted_by_name: str = ""
    amount: Optional[Number] = None
    method: Optional[str] = None


class PesticideUse(DerivedRecord):
    collection: ClassVar[str] = "pesticideUses"

    pesticide_id: str
    pesticide_name: str = ""
    target_pest: Optional[str] = None
    applied_by: str
    applied_by_name: str = ""
    dilution_rate: Optional[Number] = None
    amount: Optional[Number] = None
    unit: Optional[str] = None
    method: Optional[str] = None
    weather: Optional[str] = None
    temperature: Optional[Number] = None
    wind_speed: Optional[Number] = None


DERIVED_COLLECTIONS = (FertilizerUse.collection, SeedUse.collection, PesticideUse.collection)


# ---------- API bodies ----------
class WorkLogSaved(BaseModel):
    id: str
    message: str


class ValidationReport(BaseModel):
    errors: List[str]


class QuickTemplate(BaseModel):
    name: str
    icon: str = ""
    data: Dict[str, str]
