"""Pick compile or watch mode from a word or an interactive prompt."""

from __future__ import annotations

import questionary

from imgwatch.models.config import RunMode

_WORDS = {
    "c": RunMode.COMPILE,
    "compile": RunMode.COMPILE,
    "w": RunMode.WATCH,
    "watch": RunMode.WATCH,
}

PROMPT = "Do you want to run in compile or watch mode?"


def parse_mode(text: str) -> RunMode | None:
    """Accept c/compile/w/watch, any case, with up to two leading dashes."""
    word = text.strip()
    for prefix in ("--", "-"):
        if word.startswith(prefix):
            word = word[len(prefix) :]
            break
    return _WORDS.get(word.lower())


def _validate(text: str) -> bool | str:
    if not text.strip() or parse_mode(text) is not None:
        return True
    return "Input the word compile or the word watch."


def prompt_mode() -> RunMode | None:
    """Ask for the mode; an empty answer means watch, None means cancelled."""
    answer = questionary.text(PROMPT, default="watch", validate=_validate).ask()
    if answer is None:
        return None
    if not answer.strip():
        return RunMode.WATCH
    return parse_mode(answer)
