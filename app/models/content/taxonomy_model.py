import uuid
from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base_class import Base


def _new_id() -> str:
    return uuid.uuid4().hex


class Theme(Base):
    """Thème du catalogue; ``nom`` est la clé naturelle de déduplication."""

    __tablename__ = "themes"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    nom: Mapped[str] = mapped_column("Nom", String(255), unique=True, index=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self):
        return f"<Theme(id='{self.id}', nom='{self.nom}')>"


class SystemeOrgane(Base):
    """Système d'organes du catalogue; même contrat de déduplication que ``Theme``."""

    __tablename__ = "systemes_organes"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    nom: Mapped[str] = mapped_column("Nom", String(255), unique=True, index=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self):
        return f"<SystemeOrgane(id='{self.id}', nom='{self.nom}')>"
