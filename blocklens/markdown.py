"""Markdown report formatter for blocklens.

This is a presentation-only layer over PipelineResult.
"""

from __future__ import annotations

import re
from typing import Any

from .links import display_label, handle_label, profile_url
from .models import PipelineResult
from .output import format_created_at


def _md_code(value: Any) -> str:
    """Render an inline code span, handling backticks safely."""
    if value is None:
        return "-"
    s = str(value)
    ticks = 0
    for m in re.finditer(r"`+", s):
        ticks = max(ticks, len(m.group(0)))
    delim = "`" * (ticks + 1)
    if s.startswith(" ") or s.endswith(" "):
        return f"{delim} {s} {delim}"
    return f"{delim}{s}{delim}"


def _cell(value: Any) -> str:
    """Escape text for use in a Markdown table cell."""
    if value is None:
        return "-"
    s = str(value).replace("\r", "").replace("\n", " ")
    # Tables use '|' as a delimiter.
    return s.replace("|", "\\|")


def to_markdown(result: PipelineResult) -> str:
    target = result.target
    identity = target.identity
    block_list = result.block_list

    out: list[str] = []
    out.append("# Block Report")
    out.append("")
    out.append(f"- Actor: {_cell(display_label(target, identity.did))}")
    out.append(f"- Handle: {_md_code(handle_label(target))}")
    out.append(f"- DID: {_md_code(identity.did)}")
    out.append(f"- PDS: {_md_code(identity.pds or None)}")
    out.append(f"- Blocked by: {_md_code(block_list.total)}")
    out.append(f"- Checked at: {_md_code(result.checked_at)}")
    if target.profile and target.profile.description:
        out.append("")
        for line in target.profile.description.splitlines():
            out.append(f"> {line}")
    out.append("")
    out.append("## Blockers")
    out.append("")

    if not result.enriched:
        out.append("_No blocks found._")
        out.append("")
        return "\n".join(out)

    out.append("| # | Blocker | Handle | DID | Blocked on |")
    out.append("|---:|---|---|---|---|")
    for i, rec in enumerate(result.enriched, start=1):
        label = display_label(rec.actor, rec.did)
        out.append(
            "| "
            + " | ".join(
                [
                    str(i),
                    f"[{_cell(label)}]({profile_url(rec.did)})",
                    _cell(handle_label(rec.actor)),
                    _md_code(rec.did),
                    _cell(format_created_at(rec.created_at)),
                ]
            )
            + " |"
        )

    if block_list.truncated:
        out.append("")
        out.append(
            f"_Showing the first {len(result.enriched)} of {block_list.total} blocks._"
        )
    out.append("")
    return "\n".join(out)
