"""
Markdown readiness report generator.
"""
from jinja2 import Environment

from readycheck import __version__
from readycheck.models.outcome import Report
from readycheck.models.resource import ResourceKind

_STATUS_ICON = {True: "✅", False: "❌"}
_STATUS_ASCII = {True: "OK", False: "FAIL"}

_SECTION_TITLES = {
    ResourceKind.TABLE: "Database Tables",
    ResourceKind.BUCKET: "Storage Buckets",
    ResourceKind.FUNCTION: "Database Functions",
    ResourceKind.AUTH: "Authentication",
}


def _md_cell(value) -> str:
    """Keep a value inside one table cell: escape pipes, fold line breaks."""
    text = str(value or "").replace("|", "\\|")
    return " ".join(line.strip() for line in text.splitlines() if line.strip())


_TEMPLATE = """\
# Backend Readiness Report

**Generated:** {{ generated }}
**Backend:** {{ backend }}
**Tool:** readycheck v{{ version }}

---

## Summary

{% for kind, title in sections %}{% if counts[kind.value]["total"] %}- **{{ title }}**: {{ counts[kind.value]["reachable"] }}/{{ counts[kind.value]["total"] }} reachable
{% endif %}{% endfor %}
{% if success %}
All declared resources are reachable.
{% else %}
Some resources are unreachable. Review the failures below.
{% endif %}
{% for kind, title in sections %}{% set rows = report.by_kind(kind) %}{% if rows %}
---

## {{ title }}

| # | Status | Resource | Visibility | Detail |
|---|--------|----------|------------|--------|
{% for o in rows %}| {{ loop.index }} | {{ icon[o.reachable] }} {{ o.status.value }} | `{{ o.resource_name | cell }}` | {{ o.visibility.value if o.visibility else "-" }} | {{ (o.detail | cell) or "-" }} |
{% endfor %}{% endif %}{% endfor %}
"""


def build_report(report: Report, ascii_mode: bool = False) -> str:
    env = Environment(autoescape=False)
    env.filters["cell"] = _md_cell
    template = env.from_string(_TEMPLATE)

    return template.render(
        generated=report.generated_at.strftime("%Y-%m-%d %H:%M UTC"),
        backend=report.backend_url or "(not configured)",
        version=__version__,
        counts=report.counts(),
        success=report.success,
        sections=list(_SECTION_TITLES.items()),
        report=report,
        icon=_STATUS_ASCII if ascii_mode else _STATUS_ICON,
    )
