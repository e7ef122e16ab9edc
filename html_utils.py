import base64

# Ampersand must come first so the entities produced below are not escaped again
_HTML_REPLACEMENTS = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#39;"),
)


def escape_html(text: str) -> str:
    """
    Make arbitrary author text safe for element content and attribute values.

    Only & < > " ' are replaced. Escaping is not idempotent: running it twice
    turns "&amp;" into "&amp;amp;".
    """
    for char, entity in _HTML_REPLACEMENTS:
        text = text.replace(char, entity)
    return text


def encode_solution(solution: str) -> str:
    """
    Base64 of the UTF-8 bytes. Keeps the answer out of plain sight in the
    exported markup; anybody opening the page source can still decode it.
    """
    return base64.b64encode(solution.encode("utf-8")).decode("ascii")


def decode_solution(encoded: str) -> str:
    return base64.b64decode(encoded.encode("ascii")).decode("utf-8")
