"""
config.py – centralised env-var handling
=======================================

• Loads the first `.env` file it finds (cwd or /app) exactly **once**.
• Exposes `ENV` – a dict-like object that also supports attribute access.
• `env(key, default=None, cast=None)` helper for one-off lookups
  with automatic type-casting (int, float, bool).
• `env_choice(key, choices, default)` for closed option sets; an
  unknown value is a `ConfigError` at start-up, never a silent fallback.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Iterable, Optional

from dotenv import load_dotenv

from .errors import ConfigError

# ───── locate & load .env (first one wins) ────────────────────────────
for candidate in (Path.cwd() / ".env", Path("/app/.env")):
    if candidate.is_file():
        load_dotenv(dotenv_path=candidate, override=False)
        break

# ───── ENV proxy object ───────────────────────────────────────────────
class _Env(dict):
    """Attr-style access to `os.environ` while staying dict-compatible."""

    # attribute → getenv
    def __getattr__(self, item: str) -> str | None:  # noqa: D401
        return os.getenv(item)

    # keep mypy happy for dict subscripting
    def __getitem__(self, key: str) -> str:
        return os.environ[key]

    # ergonomic get with optional cast
    def get(self, key: str, default: Any = None, cast: Optional[type] = None) -> Any:  # noqa: D401
        val = os.getenv(key)
        if val is None or val == "":
            return default
        if cast is None:
            return val
        if cast is bool:
            return str(val).lower() in ("1", "true", "yes", "y")
        try:
            return cast(val)
        except (ValueError, TypeError) as exc:
            raise ConfigError(f"{key}={val!r} is not a valid {cast.__name__}") from exc


ENV: _Env = _Env(os.environ)  # public alias

# convenience function so you can `from shared.config import env`
def env(key: str, default: Any = None, cast: Optional[type] = None) -> Any:
    """Shortcut for `ENV.get(key, default, cast)`."""
    return ENV.get(key, default, cast)


def env_choice(key: str, choices: Iterable[str], default: str) -> str:
    """Read `key` and make sure it is one of `choices` (case-insensitive)."""
    allowed = tuple(choices)
    val = str(env(key, default)).strip().lower()
    if val not in allowed:
        raise ConfigError(f"{key}={val!r} – expected one of {', '.join(allowed)}")
    return val


__all__ = ["ENV", "env", "env_choice"]
