"""
Startup environment variable validator.

Run BEFORE uvicorn starts (``python startup_check.py && uvicorn main:app``).
Exits with code 1 and prints all missing vars if any are absent, so a deploy
fails loudly instead of crash-looping on the first request.
"""

import os
import sys
from typing import List, Mapping, Tuple

PLACEHOLDER_API_KEY = "REPLACE_WITH_YOUR_GROK_API_KEY"

# ── Required: each entry is satisfied by any one of its variables ──────────────
REQUIRED = [
    (
        ("JWT_SECRET", "SECRET_KEY"),
        "JWT signing secret. "
        'Generate one: python -c "import secrets; print(secrets.token_hex(32))"',
    ),
    (
        ("COMPLETION_API_KEY", "GROK_API_KEY"),
        "A completion API key is required for summaries, flashcards, quizzes and chat.",
    ),
]

# ── Strongly recommended (warn but don't block) ────────────────────────────────
RECOMMENDED = {
    "SMTP_HOST": "SMTP server for password-reset emails. Codes are only logged without it.",
    "DATABASE_URL": "Defaults to a local SQLite file under backend/instance/.",
}

_RULE = "=" * 65


def _is_set(environ: Mapping[str, str], var: str) -> bool:
    value = environ.get(var, "")
    return bool(value) and value != PLACEHOLDER_API_KEY


def collect_problems(environ: Mapping[str, str]) -> Tuple[List[str], List[str]]:
    """Return ``(errors, warnings)`` for the given environment."""
    errors, warnings = [], []
    for names, hint in REQUIRED:
        if not any(_is_set(environ, v) for v in names):
            label = names[0] if len(names) == 1 else "one of: " + " | ".join(names)
            errors.append(f"  MISSING  {label}\n           {hint}")

    for var, hint in RECOMMENDED.items():
        if not environ.get(var):
            warnings.append(f"  WARN  {var} not set: {hint}")
    return errors, warnings


def _report(title: str, lines: List[str]) -> None:
    print(_RULE)
    print(f"startup_check: {title}")
    print(_RULE)
    for line in lines:
        print(line)
    print()


def main(environ: Mapping[str, str] = os.environ) -> int:
    errors, warnings = collect_problems(environ)
    if warnings:
        _report("WARNINGS (non-fatal)", warnings)
    if errors:
        _report("FAILED, missing required environment variables", errors)
        print("Fix: set these in backend/.env or the service environment, then restart.")
        return 1
    print("startup_check: OK, all required environment variables are present")
    return 0


if __name__ == "__main__":
    sys.exit(main())
