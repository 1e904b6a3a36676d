import json

from readycheck import __version__
from readycheck.models.outcome import Report


def build_report(report: Report) -> str:
    payload = {
        "metadata": {
            "generated": report.generated_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "backend": report.backend_url,
            "tool": "readycheck",
            "version": __version__,
        },
        "success": report.success,
        "summary": report.counts(),
        "outcomes": [o.to_dict() for o in report.outcomes],
    }
    return json.dumps(payload, indent=2)
