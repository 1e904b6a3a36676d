"""
Resource directory: the ordered list of backend resources a check run expects.
"""
import os
from typing import List, Optional

import yaml
from rich.console import Console

from readycheck.models.resource import ResourceKind, ResourceSpec

console = Console(stderr=True)

DEFAULT_RESOURCE_FILE = "readycheck.yaml"

_DEFAULT_TABLES = [
    ("profiles",          "User profiles and personal information"),
    ("household_members", "Family members for family plans"),
    ("signatures",        "Stored user signatures"),
    ("saved_dates",       "Reusable date values"),
    ("uploads",           "File uploads and OCR data"),
    ("form_fills",        "Completed form instances"),
    ("billing_customers", "Billing and subscription data"),
    ("audit_logs",        "Security and compliance logs"),
]

_KIND_ALIASES = {
    "table": ResourceKind.TABLE,
    "relationaltable": ResourceKind.TABLE,
    "bucket": ResourceKind.BUCKET,
    "storagebucket": ResourceKind.BUCKET,
    "function": ResourceKind.FUNCTION,
    "rpc": ResourceKind.FUNCTION,
    "databasefunction": ResourceKind.FUNCTION,
    "auth": ResourceKind.AUTH,
    "authsession": ResourceKind.AUTH,
}


def default_resources() -> List[ResourceSpec]:
    specs = [ResourceSpec(ResourceKind.TABLE, name, desc) for name, desc in _DEFAULT_TABLES]
    specs.append(ResourceSpec(ResourceKind.BUCKET, None, "All storage buckets"))
    specs.append(ResourceSpec(ResourceKind.AUTH, None, "Current auth session"))
    return specs


def _parse_entry(entry, filepath: str) -> Optional[ResourceSpec]:
    if isinstance(entry, str):
        entry = {"kind": "table", "name": entry}
    if not isinstance(entry, dict):
        console.print(f"[yellow]Warning:[/yellow] ignoring malformed entry {entry!r} in {filepath}")
        return None

    raw_kind = str(entry.get("kind", "")).replace("_", "").replace("-", "").lower()
    kind = _KIND_ALIASES.get(raw_kind)
    if kind is None:
        console.print(
            f"[yellow]Warning:[/yellow] unknown resource kind '{entry.get('kind')}' in {filepath}, skipping."
        )
        return None

    name = entry.get("name")
    name = str(name).strip() if name is not None else None
    if kind in (ResourceKind.TABLE, ResourceKind.FUNCTION) and not name:
        console.print(f"[yellow]Warning:[/yellow] {kind.value} entry without a name in {filepath}, skipping.")
        return None
    if kind == ResourceKind.AUTH:
        name = None

    args = entry.get("args")
    if kind != ResourceKind.FUNCTION or not isinstance(args, dict):
        if args is not None and kind == ResourceKind.FUNCTION:
            console.print(f"[yellow]Warning:[/yellow] ignoring non-mapping args for function {name} in {filepath}")
        args = None

    return ResourceSpec(kind, name or None, str(entry.get("description") or ""), args)


def load_file(filepath: str) -> List[ResourceSpec]:
    """
    Load resources from a YAML file of the form::

        resources:
          - {kind: table, name: profiles}
          - {kind: bucket}            # no name: every bucket
          - {kind: bucket, name: uploads}
          - {kind: function, name: check_user_credits, args: {p_user_id: "..."}}
          - {kind: auth}

    Falls back to the defaults when the file cannot be read.
    """
    try:
        with open(filepath, "r", encoding="utf-8") as fh:
            config = yaml.safe_load(fh) or {}
        entries = config.get("resources")
        if not isinstance(entries, list):
            raise ValueError("expected a top-level 'resources' list")
    except Exception as exc:
        console.print(
            f"[yellow]Warning:[/yellow] failed to load {filepath}: {exc}. Using default resources."
        )
        return default_resources()

    specs: List[ResourceSpec] = []
    for entry in entries:
        spec = _parse_entry(entry, filepath)
        if spec is not None:
            specs.append(spec)
    return specs


def list_resources(filepath: Optional[str] = None) -> List[ResourceSpec]:
    if filepath:
        return load_file(filepath)
    if os.path.exists(DEFAULT_RESOURCE_FILE):
        return load_file(DEFAULT_RESOURCE_FILE)
    return default_resources()
