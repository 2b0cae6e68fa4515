"""
Editor decoration helpers for auto-class scripts.

Scripts flagged with `//css_args /ac` are wrapped into a class before
compilation. The wrapper injects a line marked with DECORATION_MARKER; the
editor hides that line using the DecorationInfo computed here.
"""

from scriptlens.parser.config import AUTOCLASS_RE
from scriptlens.schemas import DecorationInfo

DECORATION_MARKER = "///CS-Script auto-class generation"


def needs_autoclass_wrapper(text: str) -> bool:
    """Check whether the script asks for auto-class wrapping."""
    return AUTOCLASS_RE.search(text) is not None


def get_decoration_info(code: str) -> DecorationInfo:
    """
    Locate the line injected by the auto-class transform.

    Args:
        code: Transformed script text

    Returns:
        DecorationInfo covering the whole marker line including its line
        terminator, or offset -1 / length 0 when there is no marker.
    """
    pos = code.find(DECORATION_MARKER)
    if pos == -1:
        return DecorationInfo()

    start = max(code.rfind("\n", 0, pos), code.rfind("\r", 0, pos)) + 1

    end = pos
    while end < len(code) and code[end] not in "\r\n":
        end += 1

    if code.startswith("\r\n", end):
        terminator = 2
    elif end < len(code):
        terminator = 1
    else:
        terminator = 0

    return DecorationInfo(offset=start, length=end - start + terminator)
