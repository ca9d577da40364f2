"""HTML document parsing and required-tag checks."""

from __future__ import annotations

from clawgate.scanning import missing_tags, parse_html
from clawgate.rules.tables import REQUIRED_HTML_TAGS
from tests._fixtures.submissions import html_page


def test_parse_collects_scripts_canvas_and_viewport() -> None:
    text = html_page(
        "window.ClawmachineGame = {};",
        sources=["https://cdn.jsdelivr.net/npm/p5@1.9.0/lib/p5.min.js"],
    )
    document = parse_html(text)
    assert document.script_sources == ["https://cdn.jsdelivr.net/npm/p5@1.9.0/lib/p5.min.js"]
    assert [script.strip() for script in document.inline_scripts] == ["window.ClawmachineGame = {};"]
    assert document.canvas_ids == ["clawmachine-canvas"]
    assert document.has_viewport is True


def test_inline_script_keeps_markup_like_text() -> None:
    document = parse_html("<script>if (a < b && c > d) { x = '<div>'; }</script>")
    assert document.inline_scripts == ["if (a < b && c > d) { x = '<div>'; }"]


def test_handlers_and_javascript_urls_are_separate_code_units() -> None:
    text = (
        '<body onload="localStorage.clear()">'
        '<a href="javascript:fetch(\'/x\')">go</a>'
        "<script>var ok = 1;</script></body>"
    )
    document = parse_html(text)
    assert document.code_units == ["var ok = 1;", "localStorage.clear()", "fetch('/x')"]


def test_missing_tags_is_case_insensitive() -> None:
    text = "<!DocType html><HTML><Body><SCRIPT></SCRIPT></Body></HTML>"
    assert missing_tags(text, REQUIRED_HTML_TAGS) == []


def test_missing_tags_reports_each_absent_tag() -> None:
    text = "<html><p>no body here</p></html>"
    assert missing_tags(text, REQUIRED_HTML_TAGS) == ["!doctype", "body", "script"]


def test_tag_prefix_does_not_count() -> None:
    assert missing_tags("<bodyguard></bodyguard>", ("body",)) == ["body"]
    assert missing_tags("<html lang='en'>", ("html",)) == []


def test_unterminated_script_body_is_still_scanned() -> None:
    document = parse_html("<script>var a = 1; eval(a);")
    assert any("eval(a);" in unit for unit in document.code_units)


def test_each_script_element_is_its_own_code_unit() -> None:
    document = parse_html("<script>var a = 1; /* open</script><script>fetch('/x');</script>")
    assert document.code_units == ["var a = 1; /* open", "fetch('/x');"]
