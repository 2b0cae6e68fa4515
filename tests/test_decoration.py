"""
Unit tests for auto-class decoration helpers.
"""

from scriptlens.decoration import DECORATION_MARKER, get_decoration_info, needs_autoclass_wrapper


class TestGetDecorationInfo:

    def test_marker_line_with_lf(self):
        marker_line = f"    {DECORATION_MARKER}"
        code = f"using System;\n{marker_line}\npublic class Script {{}}\n"

        info = get_decoration_info(code)

        assert info.offset == len("using System;\n")
        assert info.length == len(marker_line) + 1
        assert code[info.offset:info.offset + info.length] == marker_line + "\n"

    def test_marker_line_with_crlf(self):
        marker_line = f"\t{DECORATION_MARKER} (do not edit)"
        code = f"using System;\r\n{marker_line}\r\nclass Script {{}}"

        info = get_decoration_info(code)

        assert info.offset == len("using System;\r\n")
        assert info.length == len(marker_line) + 2

    def test_marker_on_first_and_last_line(self):
        info = get_decoration_info(DECORATION_MARKER)

        assert info.offset == 0
        assert info.length == len(DECORATION_MARKER)

    def test_no_marker(self):
        info = get_decoration_info("class Script {}\n")

        assert info.offset == -1
        assert info.length == 0
        assert not info.found


def test_needs_autoclass_wrapper():
    assert needs_autoclass_wrapper("//css_args /ac\nvoid main() {}")
    assert needs_autoclass_wrapper("//css_args /ac, /dbg\n")
    assert not needs_autoclass_wrapper("//css_args /dbg\n")
    assert not needs_autoclass_wrapper("class Script {}")
