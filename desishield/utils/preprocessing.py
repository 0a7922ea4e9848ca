import re


def normalize_text(text: str) -> str:
    text = text or ""
    text = text.strip()
    text = re.sub(r"\s+", " ", text)
    return text


def is_blank(text: str) -> bool:
    return not normalize_text(text)


def preview_text(text: str, limit: int = 60) -> str:
    """Single-line, truncated form of a message, safe to put in logs."""
    text = normalize_text(text)
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."
