# Fichier : pharmia/backend/app/core/prompt_manager.py

import json
import os
import re
from functools import lru_cache
from typing import Any, Dict

# --- Emplacement des prompts .md ---
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
PROMPTS_DIR = os.path.join(BASE_DIR, "prompts")

# --- Regex pour {{ var }} et {{ var|default(...) }} ---
PLACEHOLDER_RE = re.compile(r"{{\s*([a-zA-Z_][\w\.]*)\s*(?:\|default\(([^)]*)\))?\s*}}")

JSON_GUARDRAIL = (
    "\n\n[CONTRAINTE DE SORTIE]\n"
    "- Réponds STRICTEMENT avec un unique objet JSON valide.\n"
    "- Pas de backticks, pas de texte hors JSON."
)


class PromptNotFound(LookupError):
    pass


def _lookup(context: Dict[str, Any], dotted: str) -> Any:
    cur: Any = context
    for part in dotted.split("."):
        if isinstance(cur, dict) and part in cur:
            cur = cur[part]
        else:
            return None
    return cur


def _format_value(val: Any) -> str:
    # Listes et dictionnaires sont injectés en JSON pour rester lisibles par le modèle.
    if isinstance(val, (dict, list, tuple, bool)) or val is None:
        return json.dumps(val, ensure_ascii=False)
    return str(val)


def _render(template: str, context: Dict[str, Any]) -> str:
    def repl(m: re.Match) -> str:
        val = _lookup(context, m.group(1))
        default_raw = m.group(2)
        if val is None and default_raw is not None:
            return default_raw.strip().strip("'\"")
        return _format_value(val)

    return PLACEHOLDER_RE.sub(repl, template)


@lru_cache(maxsize=32)
def get_prompt_template(path: str) -> str:
    """
    Charge un modèle de prompt depuis un fichier .md (``coach.suggest_challenge``
    -> ``prompts/coach/suggest_challenge.md``).
    """
    parts = path.split(".")
    full_path = os.path.join(PROMPTS_DIR, *parts[:-1], f"{parts[-1]}.md")
    try:
        with open(full_path, "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError as exc:
        raise PromptNotFound(f"Prompt introuvable : {path}") from exc


def get_prompt(path: str, ensure_json: bool = False, **kwargs) -> str:
    """
    Récupère un template et injecte les variables.
    - Supporte {{ var }} et {{ var|default(...) }}.
    - ``ensure_json`` ajoute une garde 'JSON only'.
    """
    rendered = _render(get_prompt_template(path), kwargs)
    if ensure_json:
        rendered = rendered + JSON_GUARDRAIL
    return rendered
