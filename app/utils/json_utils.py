# Fichier : app/utils/json_utils.py

from __future__ import annotations

import json
from typing import Any

_DECODER = json.JSONDecoder()


def _strip_code_fences(s: str) -> str:
    """Supprime des fences ```...``` éventuels (ex: ```json ... ```)."""
    s = s.strip()
    if not s.startswith("```"):
        return s
    nl = s.find("\n")
    inner = s[nl + 1 :] if nl != -1 else s[3:]
    end = inner.rfind("```")
    if end != -1:
        inner = inner[:end]
    return inner.strip()


def extract_json_object(raw: str) -> dict:
    """
    Renvoie le premier objet JSON contenu dans ``raw``.

    Le texte peut être entouré de fences ou de prose: on essaie chaque ``{``
    comme point de départ avec ``raw_decode``. ``ValueError`` si aucun objet
    JSON n'est trouvé.
    """
    if raw is None:
        raise ValueError("extract_json_object: input is None")

    text = _strip_code_fences(str(raw))
    idx = text.find("{")
    while idx != -1:
        try:
            value, _ = _DECODER.raw_decode(text, idx)
        except json.JSONDecodeError:
            idx = text.find("{", idx + 1)
            continue
        if isinstance(value, dict):
            return value
        idx = text.find("{", idx + 1)
    raise ValueError("Aucun objet JSON dans la réponse.")
