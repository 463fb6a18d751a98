"""
SQLAlchemy model for the biodata table
"""

from typing import Any, Dict

import sqlalchemy as sa
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, validates

from models.biodata import NIM_UNIQUE_CONSTRAINT, check_biodata_field


class Base(DeclarativeBase):
    pass


class Biodata(Base):
    __tablename__ = "biodata"
    __table_args__ = (
        sa.UniqueConstraint("nim", name=NIM_UNIQUE_CONSTRAINT),
        sa.CheckConstraint("id > 0", name="ck_biodata_id_positive"),
        sa.CheckConstraint("btrim(nama) <> ''", name="ck_biodata_nama_not_empty"),
        sa.CheckConstraint("char_length(nim) BETWEEN 5 AND 20", name="ck_biodata_nim_length"),
        sa.CheckConstraint("btrim(kelas) <> ''", name="ck_biodata_kelas_not_empty"),
    )

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    nama: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    nim: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    kelas: Mapped[str] = mapped_column(sa.String(20), nullable=False)

    @validates("nama", "nim", "kelas")
    def _validate_field(self, key: str, value: Any) -> str:
        # raises BiodataValidationError before anything reaches the database
        return check_biodata_field(key, value)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "nama": self.nama, "nim": self.nim, "kelas": self.kelas}

    def __repr__(self):
        return f"<Biodata {self.id} {self.nim}>"
