import html
import re

LINE_BREAK = "<br />"

_NEWLINE_RE = re.compile(r"\r\n|\r|\n")


def sanitize(text: str) -> str:
    """
    Escapes markup-significant characters (& < > " ') so the text can be
    embedded in HTML. Ampersand is escaped first by html.escape, so this is
    safe on any input, but it must only run before markup is inserted.
    """
    if not text:
        return ""
    return html.escape(str(text), quote=True)


def convert_line_breaks(text: str) -> str:
    """
    Converts newline characters to the display line-break markup.
    """
    if not text:
        return ""
    return _NEWLINE_RE.sub(LINE_BREAK, text)


def prepare_for_display(text: str) -> str:
    """
    Sanitize + line breaks. Fragments and the haystack both go through this
    so literal comparison between them is meaningful.
    """
    return convert_line_breaks(sanitize(text))


def is_blank(text) -> bool:
    return not isinstance(text, str) or not text.strip()
