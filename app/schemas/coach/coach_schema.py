"""Contrats d'entrée / sortie du coach IA."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class SuggestChallengeIn(BaseModel):
    exclude_id: Optional[str] = Field(default=None, alias="excludeId")

    class Config:
        populate_by_name = True


class FindByObjectiveIn(BaseModel):
    objective: str = Field(min_length=3, max_length=500)


class ChallengeSuggestion(BaseModel):
    """Réponse structurée attendue du fournisseur, validée avant d'être renvoyée."""

    type: Literal["fiche", "quiz"]
    fiche_id: str = Field(alias="ficheId", min_length=1)
    title: str = Field(min_length=1)
    reasoning: str = Field(min_length=1)

    class Config:
        populate_by_name = True


# --- Chatbot ---
class ChatbotMessageIn(BaseModel):
    message: str = Field(min_length=1, max_length=2000)


class ChatbotMessageOut(BaseModel):
    response: str
