"""
Plain line-per-outcome report, the default terminal output.
"""
from typing import List

from readycheck.models.outcome import ProbeOutcome, Report
from readycheck.models.resource import ResourceKind

_GLYPHS = {True: "✅", False: "❌"}
_ASCII_GLYPHS = {True: "[OK]", False: "[FAIL]"}

_HEADINGS = {
    ResourceKind.TABLE:  ("🔍 Checking database tables...", "Checking database tables..."),
    ResourceKind.BUCKET: ("🗂️ Checking storage buckets...", "Checking storage buckets..."),
    ResourceKind.FUNCTION: ("🔧 Checking database functions...", "Checking database functions..."),
    ResourceKind.AUTH:   ("🔐 Testing auth...", "Testing auth..."),
}

_TALLY_LABELS = {
    ResourceKind.TABLE: "Tables",
    ResourceKind.BUCKET: "Buckets",
    ResourceKind.FUNCTION: "Functions",
    ResourceKind.AUTH: "Auth",
}


def format_outcome(o: ProbeOutcome, ascii_mode: bool = False) -> str:
    glyph = (_ASCII_GLYPHS if ascii_mode else _GLYPHS)[o.reachable]
    kind = o.spec.kind

    if kind == ResourceKind.TABLE:
        if o.reachable:
            return f"{glyph} Table {o.resource_name}: exists and accessible"
        return f"{glyph} Table {o.resource_name}: {o.detail}"

    if kind == ResourceKind.BUCKET:
        if o.reachable:
            vis = o.visibility.value.lower() if o.visibility else "private"
            return f"{glyph} Bucket: {o.resource_name} ({vis})"
        if o.spec.is_bucket_category:
            return f"{glyph} Storage buckets error: {o.detail}"
        return f"{glyph} Bucket {o.resource_name}: {o.detail}"

    if kind == ResourceKind.FUNCTION:
        if o.reachable:
            return f"{glyph} Function {o.resource_name}: exists"
        return f"{glyph} Function {o.resource_name}: {o.detail}"

    return f"{glyph} Auth status: {'OK' if o.reachable else o.detail}"


def build_lines(report: Report, ascii_mode: bool = False) -> List[str]:
    lines: List[str] = []
    for kind in ResourceKind:
        outcomes = report.by_kind(kind)
        if not outcomes:
            continue
        if lines:
            lines.append("")
        lines.append(_HEADINGS[kind][1 if ascii_mode else 0])
        lines.extend(format_outcome(o, ascii_mode) for o in outcomes)

    counts = report.counts()
    tally = [
        f"{_TALLY_LABELS[kind]}: {counts[kind.value]['reachable']}/{counts[kind.value]['total']} accessible"
        for kind in ResourceKind
        if counts[kind.value]["total"]
    ]
    if tally:
        lines.append("")
        lines.extend(tally)
    return lines


def build_report(report: Report, ascii_mode: bool = False) -> str:
    return "\n".join(build_lines(report, ascii_mode))
