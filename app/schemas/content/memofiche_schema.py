"""Schémas Pydantic du catalogue (thèmes, systèmes d'organes, mémofiches).

Les noms de champs exposés reprennent ceux consommés par le front
(``Nom``, ``shortDescription``, ``memoContent``...). Les identifiants et
``createdAt`` envoyés par le client sont ignorés: ils sont attribués par le
serveur.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class TaxonomyRef(BaseModel):
    """Référence ``{id, Nom}`` embarquée dans une mémofiche."""

    id: Optional[str] = None
    nom: str = Field(alias="Nom", min_length=1, max_length=255)

    class Config:
        populate_by_name = True
        from_attributes = True

    @field_validator("nom")
    @classmethod
    def _strip_nom(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Nom ne peut pas être vide")
        return value


class TaxonomyCreate(TaxonomyRef):
    description: Optional[str] = None


class TaxonomyRead(BaseModel):
    id: str
    nom: str = Field(alias="Nom")
    description: Optional[str] = None

    class Config:
        populate_by_name = True
        from_attributes = True


class Section(BaseModel):
    id: str
    title: str
    content: str = ""
    children: Optional[List[Section]] = None

    @field_validator("children")
    @classmethod
    def _single_nesting_level(cls, children: Optional[List[Section]]) -> Optional[List[Section]]:
        for child in children or []:
            if child.children:
                raise ValueError("Une section ne peut avoir qu'un seul niveau de sous-sections")
        return children


class Flashcard(BaseModel):
    question: str
    answer: str


class QuizQuestion(BaseModel):
    question: str
    type: Literal["mcq", "truefalse"] = "mcq"
    options: List[str] = Field(default_factory=list)
    correct_answer: str = Field(alias="correctAnswer")
    explanation: str = ""

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def _answer_among_options(self) -> QuizQuestion:
        if self.options and self.correct_answer not in self.options:
            raise ValueError("correctAnswer doit faire partie des options")
        return self


class GlossaryTerm(BaseModel):
    term: str
    definition: str


class ExternalResource(BaseModel):
    type: Literal["video", "podcast", "quiz", "article"]
    title: str
    url: str


class MemoFicheBase(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    short_description: str = Field(default="", alias="shortDescription")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    flash_summary: Optional[str] = Field(default=None, alias="flashSummary")
    level: Optional[str] = None
    kahoot_url: Optional[str] = Field(default=None, alias="kahootUrl")
    memo_content: List[Section] = Field(default_factory=list, alias="memoContent")
    flashcards: List[Flashcard] = Field(default_factory=list)
    quiz: List[QuizQuestion] = Field(default_factory=list)
    glossary_terms: List[GlossaryTerm] = Field(default_factory=list, alias="glossaryTerms")
    external_resources: List[ExternalResource] = Field(default_factory=list, alias="externalResources")

    class Config:
        populate_by_name = True
        from_attributes = True


class MemoFicheCreate(MemoFicheBase):
    theme: TaxonomyRef
    systeme_organe: Optional[TaxonomyRef] = None


class MemoFichePatch(BaseModel):
    """Mise à jour partielle: seuls les champs présents sont appliqués."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    short_description: Optional[str] = Field(default=None, alias="shortDescription")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    flash_summary: Optional[str] = Field(default=None, alias="flashSummary")
    level: Optional[str] = None
    kahoot_url: Optional[str] = Field(default=None, alias="kahootUrl")
    memo_content: Optional[List[Section]] = Field(default=None, alias="memoContent")
    flashcards: Optional[List[Flashcard]] = None
    quiz: Optional[List[QuizQuestion]] = None
    glossary_terms: Optional[List[GlossaryTerm]] = Field(default=None, alias="glossaryTerms")
    external_resources: Optional[List[ExternalResource]] = Field(default=None, alias="externalResources")
    theme: Optional[TaxonomyRef] = None
    systeme_organe: Optional[TaxonomyRef] = None

    class Config:
        populate_by_name = True


class MemoFicheRead(MemoFicheBase):
    id: str
    theme: TaxonomyRef
    systeme_organe: TaxonomyRef
    created_at: datetime = Field(alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")


class CatalogRead(BaseModel):
    themes: List[TaxonomyRead]
    systemes_organes: List[TaxonomyRead] = Field(alias="systemesOrganes")
    memofiches: List[MemoFicheRead]

    class Config:
        populate_by_name = True
