"""CLI helper to validate the PharmIA environment variables.

Usage::

    python -m scripts.check_env

Imports :mod:`app.core.config` (which prints one line per missing or invalid
variable) and exits with status 1 on failure. Secrets are never echoed.
"""

from __future__ import annotations

import sys

from pydantic import ValidationError
from sqlalchemy.engine.url import make_url

_SECRET_MARKERS = ("key", "password", "secret")


def main() -> int:
    try:
        from app.core.config import settings
    except ValidationError:
        print("Environment validation failed, see details above.", file=sys.stderr)
        return 1

    print("Environment variables OK.")
    for name, value in settings.model_dump().items():
        if name == "DATABASE_URL":
            value = make_url(value).render_as_string(hide_password=True)
        hidden = any(marker in name.lower() for marker in _SECRET_MARKERS)
        print(f"- {name}: {'<hidden>' if hidden and value else value}")
    if not settings.GOOGLE_API_KEY:
        print("! GOOGLE_API_KEY absent: le coach IA répondra 503.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
