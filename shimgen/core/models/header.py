"""
Generated file header — the only state shimgen keeps between runs.

Every output opens with a fixed comment block recording which generator
version produced it, which Python type it shims, and (when a source
root was given) which source file and content hash it came from:

    // <auto-generated>
    // This file was generated by shimgen.
    // Do NOT edit this file manually. Any changes will be overwritten.
    // shimgenVersion: 0.3.0
    // Source Python type: game.player.PlayerImpl
    // SourceFile: game/player.py
    // SourceHash: 9f86d081884c7d65…
    // </auto-generated>

Parsing is line-anchored: only lines inside the block count, and each
field is matched by its exact prefix.
"""

from __future__ import annotations

import re

from pydantic import BaseModel

TOOL_NAME = "shimgen"

OPEN_MARKER = "// <auto-generated>"
CLOSE_MARKER = "// </auto-generated>"

_PREFIX_VERSION = f"// {TOOL_NAME}Version:"
_PREFIX_TYPE = "// Source Python type:"
_PREFIX_FILE = "// SourceFile:"
_PREFIX_HASH = "// SourceHash:"

# How far into a file the opening marker may appear
MARKER_SCAN_LINES = 6

_VERSION_CORE = re.compile(r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?")


class GeneratedHeader(BaseModel):
    """Parsed provenance header of a generated file."""

    version: str = ""
    source_type: str = ""
    source_file: str | None = None
    source_hash: str | None = None

    def render(self) -> str:
        """Render the header block, newline-terminated."""
        lines = [
            OPEN_MARKER,
            f"// This file was generated by {TOOL_NAME}.",
            "// Do NOT edit this file manually. Any changes will be overwritten.",
            f"{_PREFIX_VERSION} {self.version}",
            f"{_PREFIX_TYPE} {self.source_type}",
        ]
        if self.source_file:
            lines.append(f"{_PREFIX_FILE} {self.source_file}")
            if self.source_hash:
                lines.append(f"{_PREFIX_HASH} {self.source_hash}")
        lines.append(CLOSE_MARKER)
        return "\n".join(lines) + "\n"

    @classmethod
    def parse(cls, text: str) -> GeneratedHeader | None:
        """Parse the header block at the top of ``text``.

        Returns None when the text does not carry the generator marker.
        """
        lines = text.splitlines()
        if not has_marker(lines):
            return None

        fields: dict[str, str] = {}
        started = False
        for raw in lines:
            line = _clean(raw)
            if not started:
                started = line == OPEN_MARKER
                continue
            if line == CLOSE_MARKER:
                break
            for key, prefix in (
                ("version", _PREFIX_VERSION),
                ("source_type", _PREFIX_TYPE),
                ("source_file", _PREFIX_FILE),
                ("source_hash", _PREFIX_HASH),
            ):
                if line.startswith(prefix):
                    fields[key] = line[len(prefix):].strip()
                    break

        return cls(
            version=fields.get("version", ""),
            source_type=fields.get("source_type", ""),
            source_file=fields.get("source_file") or None,
            source_hash=fields.get("source_hash") or None,
        )


def has_marker(lines: list[str]) -> bool:
    """Whether the opening marker appears within the first few lines."""
    return any(_clean(line) == OPEN_MARKER for line in lines[:MARKER_SCAN_LINES])


def _clean(line: str) -> str:
    # Editors may re-save with a byte-order mark.
    return line.lstrip("\ufeff").strip()


# ── Version comparison ──────────────────────────────────────────


def parse_version_core(version: str | None) -> tuple[int, int, int]:
    """Numeric ``(major, minor, patch)`` of a version string.

    Pre-release and build metadata are ignored. Missing components are 0.
    Anything unparseable is ``(0, 0, 0)``, the oldest possible version.
    """
    if not version:
        return (0, 0, 0)
    core = re.split(r"[-+]", version.strip(), maxsplit=1)[0]
    m = _VERSION_CORE.match(core)
    if not m:
        return (0, 0, 0)
    return tuple(int(part) if part else 0 for part in m.groups())  # type: ignore[return-value]


def is_older_version(existing: str | None, current: str | None) -> bool:
    """True if ``existing`` is strictly older than ``current``."""
    return parse_version_core(existing) < parse_version_core(current)
