"""HTML document inspection for single-file submissions."""

from __future__ import annotations

from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Dict, List, Optional, Sequence, Tuple

_TAG_TERMINATORS = " \t\r\n\f>/"
_URL_ATTRIBUTES = {"href", "src", "action", "formaction", "xlink:href"}
_JAVASCRIPT_SCHEME = "javascript:"


class HtmlParseError(RuntimeError):
    """Raised when the document cannot be tokenised at all."""


@dataclass
class HtmlDocument:
    """Facts extracted from a submitted HTML document."""

    script_sources: List[str] = field(default_factory=list)
    inline_scripts: List[str] = field(default_factory=list)
    handler_code: List[str] = field(default_factory=list)
    canvas_ids: List[str] = field(default_factory=list)
    has_viewport: bool = False

    @property
    def code_units(self) -> List[str]:
        """Every separately parsed piece of code: inline scripts, then handlers and ``javascript:`` URLs.

        Browsers parse each one on its own, so they are never joined into one text.
        """
        return self.inline_scripts + self.handler_code


class _DocumentParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.document = HtmlDocument()
        self._script_buffer: Optional[List[str]] = None

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        attributes: Dict[str, str] = {}
        for name, value in attrs:
            attributes.setdefault(name.lower(), value or "")

        if tag == "script":
            if "src" in attributes:
                self.document.script_sources.append(attributes["src"].strip())
            else:
                self._script_buffer = []
        elif tag == "canvas" and "id" in attributes:
            self.document.canvas_ids.append(attributes["id"].strip())
        elif tag == "meta" and attributes.get("name", "").strip().lower() == "viewport":
            self.document.has_viewport = True

        for name, value in attributes.items():
            if name.startswith("on") and value.strip():
                self.document.handler_code.append(value)
            elif name in _URL_ATTRIBUTES:
                stripped = value.strip()
                if stripped.lower().startswith(_JAVASCRIPT_SCHEME):
                    self.document.handler_code.append(stripped[len(_JAVASCRIPT_SCHEME) :])

    def handle_endtag(self, tag: str) -> None:
        if tag == "script":
            self._flush_script()

    def handle_data(self, data: str) -> None:
        if self._script_buffer is not None:
            self._script_buffer.append(data)

    def close(self) -> None:
        super().close()
        # Some interpreters keep an unterminated script body in rawdata.
        if self._script_buffer is not None and self.rawdata:
            self._script_buffer.append(self.rawdata)
            self.rawdata = ""
        self._flush_script()

    def _flush_script(self) -> None:
        if self._script_buffer is not None:
            self.document.inline_scripts.append("".join(self._script_buffer))
            self._script_buffer = None


def parse_html(text: str) -> HtmlDocument:
    """Parse ``text`` leniently; only a tokenizer crash is reported."""
    parser = _DocumentParser()
    try:
        parser.feed(text)
        parser.close()
    except (AssertionError, ValueError) as exc:
        raise HtmlParseError(f"HTML could not be tokenised: {exc}") from exc
    return parser.document


def missing_tags(text: str, tags: Sequence[str]) -> List[str]:
    """Return the tags from ``tags`` that never open in ``text`` (case-insensitive)."""
    lowered = text.lower()
    return [tag for tag in tags if not _has_tag(lowered, tag)]


def _has_tag(lowered: str, tag: str) -> bool:
    needle = f"<{tag}"
    start = lowered.find(needle)
    while start != -1:
        after = start + len(needle)
        if after >= len(lowered) or lowered[after] in _TAG_TERMINATORS:
            return True
        start = lowered.find(needle, after)
    return False


__all__ = ["HtmlDocument", "HtmlParseError", "missing_tags", "parse_html"]
