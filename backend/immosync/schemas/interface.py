from enum import Enum, IntEnum
from typing import List, Optional

from pydantic import BaseModel, field_validator

from immosync.services.selectors import FieldSelector, parse_group_selector, parse_selector


class RecordKind(str, Enum):
    LISTING = "real_estate"
    CONTACT_PERSON = "contact_person"


class FormatType(str, Enum):
    NUMBER = "number"
    DATE = "date"
    TEXT = "text"
    BOOLEAN = "boolean"


class TextTransform(str, Enum):
    LOWERCASE = "lowercase"
    UPPERCASE = "uppercase"
    CAPITALIZE = "capitalize"
    REMOVE_SPECIAL_CHAR = "removespecialchar"


class ProviderPolicy(str, Enum):
    OWN = "own"
    IMPORT = "import"
    ASSIGN = "assign"


class SyncStatus(IntEnum):
    NOT_SYNCED = 0
    SUCCESS = 1
    PARTIAL = 2
    FAILED = 3


class MappingRule(BaseModel):
    id: Optional[int] = None
    kind: RecordKind
    attribute: str
    group: str = ""
    field: FieldSelector
    condition_field: Optional[FieldSelector] = None
    condition_value: Optional[str] = None
    force_active: bool = False
    force_value: Optional[str] = None
    format_type: Optional[FormatType] = None
    decimals: int = 0
    text_transform: Optional[TextTransform] = None
    trim: bool = False
    boolean_compare_value: Optional[str] = None
    save_image: bool = False
    serialize: bool = False

    @field_validator("group", mode="before")
    @classmethod
    def _parse_group(cls, value):
        return parse_group_selector(value)

    @field_validator("field", mode="before")
    @classmethod
    def _parse_field(cls, value):
        if isinstance(value, FieldSelector):
            return value
        return parse_selector(value)

    @field_validator("condition_field", mode="before")
    @classmethod
    def _parse_condition_field(cls, value):
        if value is None or isinstance(value, FieldSelector):
            return value
        if not str(value).strip():
            return None
        return parse_selector(value)

    @field_validator("format_type", "text_transform", mode="before")
    @classmethod
    def _empty_as_none(cls, value):
        return value or None

    @property
    def has_condition(self) -> bool:
        return self.condition_field is not None and bool(self.condition_value)

    @classmethod
    def from_mapping(cls, mapping) -> "MappingRule":
        return cls(
            id=mapping.id,
            kind=mapping.type,
            attribute=mapping.attribute,
            group=mapping.oi_field_group,
            field=mapping.oi_field,
            condition_field=mapping.oi_condition_field,
            condition_value=mapping.oi_condition_value,
            force_active=mapping.force_active,
            force_value=mapping.force_value,
            format_type=mapping.format_type,
            decimals=mapping.decimals or 0,
            text_transform=mapping.text_transform,
            trim=mapping.trim,
            boolean_compare_value=mapping.boolean_compare_value,
            save_image=mapping.save_image,
            serialize=mapping.serialize,
        )


class InterfaceConfig(BaseModel):
    id: int
    title: str
    type: str = "openimmo"
    provider_id: int
    anbieternr: str
    unique_field: str
    unique_provider_field: str = "anbieternr"
    import_third_party_records: ProviderPolicy = ProviderPolicy.OWN
    dont_publish_records: bool = False
    skip_records: List[str] = []
    contact_person_actions: List[str] = []
    contact_person_unique_field: str = "name_vorname"
    assign_contact_person_kauf: Optional[int] = None
    assign_contact_person_miete_pacht: Optional[int] = None
    assign_contact_person_erbpacht: Optional[int] = None
    assign_contact_person_leasing: Optional[int] = None
    import_path: Optional[str] = None
    files_path: Optional[str] = None
    files_path_contact_person: Optional[str] = None

    class Config:
        from_attributes = True

    @field_validator("import_third_party_records", mode="before")
    @classmethod
    def _default_policy(cls, value):
        return value or ProviderPolicy.OWN

    @field_validator("skip_records", "contact_person_actions", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return value or []

    @property
    def allow_create(self) -> bool:
        return "create" in self.contact_person_actions

    @property
    def allow_update(self) -> bool:
        return "update" in self.contact_person_actions
