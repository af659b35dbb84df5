import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base_class import Base


class MemoFiche(Base):
    """Unité de formation: sections, flashcards, quiz et glossaire sur un sujet.

    ``theme`` et ``systeme_organe`` sont des copies dénormalisées ``{id, Nom}``
    figées à l'écriture, pas des clés étrangères vivantes.
    """

    __tablename__ = "memofiches"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    short_description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    flash_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    level: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    kahoot_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    memo_content: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    flashcards: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    quiz: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    glossary_terms: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    external_resources: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    theme: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    systeme_organe: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def has_quiz(self) -> bool:
        return bool(self.quiz)

    def __repr__(self):
        return f"<MemoFiche(id='{self.id}', title='{self.title}')>"
