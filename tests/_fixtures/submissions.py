"""Builders for HTML, script and zip bundle submissions used across tests."""

from __future__ import annotations

import io
import random
import textwrap
import zipfile
from typing import Iterable, Mapping, Optional, Sequence, Union

REQUIRED = ("init", "start", "reset", "getState", "sendInput", "getMeta")

_FORMS = {
    "function": "{name}: function(a, b) {{ return a; }}",
    "shorthand": "{name}(a) {{ return a; }}",
    "arrow": "{name}: (a) => a",
    "bare": "{name}: a => a",
    "async_arrow": "{name}: async (a) => a",
    "async_bare": "{name}: async a => a",
    "async_function": "{name}: async function() {{ return 1; }}",
    "async_shorthand": "async {name}() {{ return 1; }}",
    "quoted": "'{name}': function() {{}}",
}


def method_source(name: str, form: str = "function") -> str:
    return _FORMS[form].format(name=name)


def game_script(
    methods: Iterable[str] = REQUIRED,
    *,
    form: str = "function",
    forms: Optional[Mapping[str, str]] = None,
    assignment: str = "window.ClawmachineGame = {",
    prelude: str = "",
    body_extra: str = "",
    epilogue: str = "",
) -> str:
    """Return a game script defining ``methods`` on the game object literal."""
    forms = forms or {}
    members = [method_source(name, forms.get(name, form)) for name in methods]
    if body_extra:
        members.append(body_extra)
    body = ",\n  ".join(members)
    return f"{prelude}\n{assignment}\n  {body}\n}};\n{epilogue}"


def html_page(
    script: str,
    *,
    canvas_id: Optional[str] = "clawmachine-canvas",
    viewport: bool = True,
    sources: Sequence[str] = (),
    doctype: bool = True,
    head_extra: str = "",
) -> str:
    """Wrap ``script`` in a minimal game page."""
    lines = []
    if doctype:
        lines.append("<!DOCTYPE html>")
    lines.append("<html>")
    lines.append("<head>")
    if viewport:
        lines.append('<meta name="viewport" content="width=device-width, initial-scale=1">')
    lines.extend(f'<script src="{src}"></script>' for src in sources)
    if head_extra:
        lines.append(head_extra)
    lines.append("</head>")
    lines.append("<body>")
    if canvas_id is not None:
        lines.append(f'<canvas id="{canvas_id}" width="640" height="480"></canvas>')
    lines.append("<script>")
    lines.append(textwrap.dedent(script))
    lines.append("</script>")
    lines.append("</body>")
    lines.append("</html>")
    return "\n".join(lines) + "\n"


def pad_to(text: str, size: int) -> bytes:
    """Encode ``text`` and pad it with trailing spaces to exactly ``size`` bytes."""
    data = text.encode("utf-8")
    if len(data) > size:
        raise ValueError(f"text is already {len(data)} bytes")
    return data + b" " * (size - len(data))


def zip_bundle(
    entries: Mapping[str, Union[bytes, str]],
    *,
    compression: int = zipfile.ZIP_DEFLATED,
) -> bytes:
    """Build an in-memory zip archive from ``path -> content`` entries."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=compression) as archive:
        for path, content in entries.items():
            data = content.encode("utf-8") if isinstance(content, str) else content
            archive.writestr(path, data)
    return buffer.getvalue()


def incompressible(size: int, seed: int = 7) -> bytes:
    """Return ``size`` pseudo-random bytes that deflate cannot shrink."""
    return random.Random(seed).randbytes(size)


def half_compressible(size: int, seed: int = 11) -> bytes:
    """Return ``size`` bytes that deflate to roughly half their length."""
    block = 1024
    noise = random.Random(seed)
    chunks = []
    for _ in range(0, size, 2 * block):
        chunks.append(noise.randbytes(block))
        chunks.append(b"\x00" * block)
    return b"".join(chunks)[:size]


__all__ = [
    "REQUIRED",
    "game_script",
    "half_compressible",
    "html_page",
    "incompressible",
    "method_source",
    "pad_to",
    "zip_bundle",
]
