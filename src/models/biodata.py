"""
Biodata (student record) Pydantic models and field rules
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, model_validator

BIODATA_FIELDS = ("nama", "nim", "kelas")

# (min_length, max_length) per field, checked after the non-empty rule
FIELD_LENGTHS = {
    "nama": (1, 100),
    "nim": (5, 20),
    "kelas": (1, 20),
}

FIELD_LENGTH_MESSAGES = {
    "nama": "nama must be at most 100 characters",
    "nim": "nim must be between 5 and 20 characters",
    "kelas": "kelas must be at most 20 characters",
}

NIM_UNIQUE_CONSTRAINT = "uniq_nim"
NIM_TAKEN_MESSAGE = "nim is already registered"
CREATE_REQUIRED_MESSAGE = "fields nama, nim and kelas are required"
UPDATE_REQUIRED_MESSAGE = "at least one field (nama/nim/kelas) must be provided"
INVALID_FIELD_MESSAGE = "invalid biodata field value"

# CHECK constraints of the biodata table and the field rule each one enforces
CONSTRAINT_MESSAGES = {
    "ck_biodata_nama_not_empty": "nama is required",
    "ck_biodata_nim_length": FIELD_LENGTH_MESSAGES["nim"],
    "ck_biodata_kelas_not_empty": "kelas is required",
}

SEED_RECORDS = [
    {"nama": "Aisyah Putri", "nim": "20230140079", "kelas": "TI-3A"},
    {"nama": "Rafi Pratama", "nim": "20230140110", "kelas": "TI-3B"},
    {"nama": "Nadia Salsabila", "nim": "20230140045", "kelas": "TI-3A"},
]


class BiodataValidationError(ValueError):
    """A field value breaks the biodata column rules"""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


def check_biodata_field(field: str, value: Any) -> str:
    """Validate a single field value and return it unchanged"""
    if field not in FIELD_LENGTHS:
        raise BiodataValidationError(field, f"unknown field: {field}")
    if not isinstance(value, str) or not value.strip():
        raise BiodataValidationError(field, f"{field} is required")

    min_length, max_length = FIELD_LENGTHS[field]
    if not min_length <= len(value) <= max_length:
        raise BiodataValidationError(field, FIELD_LENGTH_MESSAGES[field])
    return value


def violation_message(constraint_name: Optional[str] = None, column_name: Optional[str] = None) -> str:
    """
    Client-facing message for a constraint the database rejected.

    Never echoes the server's own error text; anything not traceable to a
    biodata field rule gets a generic message.
    """
    if constraint_name in CONSTRAINT_MESSAGES:
        return CONSTRAINT_MESSAGES[constraint_name]
    if column_name in FIELD_LENGTHS:
        # not_null_violation is the only one that names a column
        return f"{column_name} is required"
    return INVALID_FIELD_MESSAGE


def validate_biodata_fields(fields: Dict[str, Any]) -> None:
    """Validate every supplied field, raising on the first violation"""
    for field, value in fields.items():
        check_biodata_field(field, value)


class BiodataCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    nama: Optional[str] = None
    nim: Optional[str] = None
    kelas: Optional[str] = None

    @model_validator(mode="after")
    def require_all_fields(self):
        if not (self.nama and self.nim and self.kelas):
            raise ValueError(CREATE_REQUIRED_MESSAGE)
        return self


class BiodataUpdateRequest(BaseModel):
    """Partial update; only keys present in the payload are applied"""
    model_config = ConfigDict(extra="forbid")

    nama: Optional[str] = None
    nim: Optional[str] = None
    kelas: Optional[str] = None

    @model_validator(mode="after")
    def require_one_field(self):
        if not (self.nama or self.nim or self.kelas):
            raise ValueError(UPDATE_REQUIRED_MESSAGE)
        return self

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class BiodataRecord(BaseModel):
    id: int
    nama: str
    nim: str
    kelas: str


class BiodataMutationResponse(BaseModel):
    message: str
    data: BiodataRecord


class BiodataDeleteResponse(BaseModel):
    message: str
    id: int
