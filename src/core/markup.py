"""Post-processing of renderer output into a single screen root element."""

import re

# Greedy: first "<div" through the last "</div>" in the text.
_ROOT_DIV = re.compile(r"<div[\s\S]*</div>")
_FENCE = re.compile(r"```[a-zA-Z]*")


def extract_screen_markup(text: str | None) -> str:
    """
    Reduce raw model output to the screen's root ``<div>``.

    Falls back to the raw text when no ``<div>...</div>`` span exists, then
    removes any code fence markers.
    """
    raw = text or ""
    match = _ROOT_DIV.search(raw)
    markup = match.group(0) if match else raw
    return _FENCE.sub("", markup).strip()
