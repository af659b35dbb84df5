# Fichier: pharmia/backend/app/core/ai_service.py

import logging
from typing import Any, Optional

import requests

from app.core.config import settings
from app.core.errors import ServiceUnavailable, UpstreamError

logger = logging.getLogger(__name__)

_GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class GeminiProvider:
    """Client REST minimal pour ``generateContent``: un prompt en entrée, du texte en sortie."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.GOOGLE_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.timeout = timeout if timeout is not None else settings.AI_COACH_TIMEOUT_SECONDS

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def generate(self, prompt: str, temperature: Optional[float] = 0.2, json_mode: bool = True) -> str:
        if not self.is_configured:
            raise ServiceUnavailable("Le service IA n'est pas configuré (clé API Google absente).")

        payload: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {},
        }
        if json_mode:
            payload["generationConfig"]["responseMimeType"] = "application/json"
        if temperature is not None:
            payload["generationConfig"]["temperature"] = temperature

        try:
            response = requests.post(
                _GEMINI_ENDPOINT.format(model=self.model),
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data: dict[str, Any] = response.json()
        except requests.Timeout as exc:
            logger.error("Délai dépassé lors de l'appel à Gemini (%ss).", self.timeout)
            raise UpstreamError("Le coach IA n'a pas répondu à temps.") from exc
        except requests.RequestException as exc:
            # L'URL contient la clé: on ne journalise que le type d'erreur et le statut.
            status = getattr(exc.response, "status_code", None)
            logger.error("Erreur lors de l'appel à l'API Gemini (%s, statut=%s).", type(exc).__name__, status)
            raise UpstreamError("Le coach IA est momentanément indisponible.") from exc
        except ValueError as exc:
            logger.error("Réponse Gemini non JSON.")
            raise UpstreamError("Réponse du coach IA illisible.") from exc

        text = _extract_text(data)
        if not text:
            logger.error("Réponse Gemini sans contenu exploitable.")
            raise UpstreamError("Réponse du coach IA vide.")
        return text


def _extract_text(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    for candidate in data.get("candidates") or []:
        if not isinstance(candidate, dict):
            continue
        parts = (candidate.get("content") or {}).get("parts") or []
        combined = "".join(part.get("text", "") for part in parts if isinstance(part, dict)).strip()
        if combined:
            return combined
    return ""
