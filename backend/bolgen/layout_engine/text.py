"""Text-overflow policy shared by every free-text field in the layout."""

from reportlab.pdfbase.pdfmetrics import stringWidth

ELLIPSIS = "..."


def text_width(text: str, font_name: str, font_size: float) -> float:
    return stringWidth(text, font_name, font_size)


def _longest_fitting_prefix(word: str, width: float, font_name: str, font_size: float) -> str:
    # always at least one character so hard-breaking makes progress
    end = 1
    while end < len(word) and text_width(word[: end + 1], font_name, font_size) <= width:
        end += 1
    return word[:end]


def wrap_text(text: str, width: float, font_name: str, font_size: float) -> list[str]:
    """Greedy word wrap. Newlines start a new paragraph; over-wide words are hard-broken."""
    lines: list[str] = []
    for paragraph in text.replace("\r\n", "\n").split("\n"):
        current = ""
        for word in paragraph.split():
            candidate = f"{current} {word}" if current else word
            if text_width(candidate, font_name, font_size) <= width:
                current = candidate
                continue
            if current:
                lines.append(current)
            while text_width(word, font_name, font_size) > width:
                piece = _longest_fitting_prefix(word, width, font_name, font_size)
                lines.append(piece)
                word = word[len(piece):]
            current = word
        if current:
            lines.append(current)
    return lines


def fit_text(
    text: str | None,
    width: float,
    max_lines: int | None = None,
    font_name: str = "Helvetica",
    font_size: float = 7.0,
) -> tuple[str, ...]:
    """Wrap ``text`` into at most ``max_lines`` lines no wider than ``width``.

    When the text needs more lines than allowed, the last kept line is
    trimmed character by character until it plus an ellipsis fits.

    Args:
        text: Free text; ``None`` or blank yields no lines.
        width: Column width in points.
        max_lines: Line budget, ``None`` for unlimited.
        font_name: Font used to measure.
        font_size: Font size used to measure.

    Returns:
        The wrapped lines.
    """
    if not text or not text.strip():
        return ()

    lines = wrap_text(text, width, font_name, font_size)
    if max_lines is None or len(lines) <= max_lines:
        return tuple(lines)
    if max_lines <= 0:
        return ()

    kept = lines[:max_lines]
    last = kept[-1].rstrip()
    while last and text_width(last + ELLIPSIS, font_name, font_size) > width:
        last = last[:-1].rstrip()
    kept[-1] = last + ELLIPSIS
    return tuple(kept)
