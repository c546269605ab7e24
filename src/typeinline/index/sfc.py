"""Locate the ``<script setup lang="ts">`` region of a single-file component."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_SCRIPT_RE = re.compile(
    r"<script\b(?P<attrs>[^>]*)>(?P<content>.*?)</script\s*>",
    re.DOTALL | re.IGNORECASE,
)
_ATTR_RE = re.compile(
    r"""([^\s"'<>/=]+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'=<>`]+)))?""",
)


@dataclass(frozen=True)
class ScriptBlock:
    """A ``<script>`` element: its content and the content's character offsets."""

    content: str
    start: int
    end: int
    attrs: dict[str, str] = field(default_factory=dict)

    @property
    def lang(self) -> str:
        return self.attrs.get("lang", "js")

    @property
    def setup(self) -> bool:
        return "setup" in self.attrs

    def line_offset(self, code: str) -> int:
        """Number of lines of *code* that precede the content."""
        return code.count("\n", 0, self.start)


def parse_attrs(text: str) -> dict[str, str]:
    attrs: dict[str, str] = {}
    for match in _ATTR_RE.finditer(text):
        name = match.group(1).lower()
        value = next((g for g in match.groups()[1:] if g is not None), "")
        attrs.setdefault(name, value)
    return attrs


def iter_script_blocks(code: str):
    for match in _SCRIPT_RE.finditer(code):
        yield ScriptBlock(
            content=match.group("content"),
            start=match.start("content"),
            end=match.end("content"),
            attrs=parse_attrs(match.group("attrs")),
        )


def find_script_setup(code: str) -> ScriptBlock | None:
    """Return the first ``<script setup>`` block written in TypeScript, if any."""
    for block in iter_script_blocks(code):
        if block.setup and block.lang == "ts":
            return block
    return None
