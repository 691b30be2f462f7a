"""Human-shareable game codes used to join a game as a live viewer."""

import re
import secrets
import string

GAME_CODE_LENGTH = 6
GAME_CODE_ALPHABET = string.ascii_uppercase + string.digits

_NOT_CODE_CHARS = re.compile(r"[^A-Z0-9]")


def create_game_code() -> str:
    """Return a random 6-character code. Uniqueness is not checked."""
    return "".join(secrets.choice(GAME_CODE_ALPHABET) for _ in range(GAME_CODE_LENGTH))


def normalize_game_code(raw: str) -> str | None:
    """Upper-case user input and drop anything outside A-Z0-9.

    Returns None unless exactly six characters remain.
    """
    code = _NOT_CODE_CHARS.sub("", raw.upper())
    if len(code) != GAME_CODE_LENGTH:
        return None
    return code
