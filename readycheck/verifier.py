"""
Readiness verifier: probe every declared resource, one at a time, and collect
one outcome per resource without stopping on failures.
"""
from typing import Callable, List, Optional, Sequence

from rich.console import Console

from readycheck import directory
from readycheck.config import Settings
from readycheck.models.outcome import ProbeOutcome, Report, Status, Visibility
from readycheck.models.resource import ResourceKind, ResourceSpec
from readycheck.models.result import BucketInfo, FailureReason, ProbeResult

console = Console(stderr=True)

NOT_AUTHENTICATED = "Not authenticated"


def _call(probe: Callable[..., ProbeResult], *args) -> ProbeResult:
    """Invoke a client call, turning anything it raises into a fault result."""
    try:
        result = probe(*args)
    except Exception as exc:
        return ProbeResult.failure(FailureReason.FAULT, str(exc) or type(exc).__name__)
    if not isinstance(result, ProbeResult):
        return ProbeResult.failure(FailureReason.FAULT, f"unexpected probe result {result!r}")
    return result


def _failed(spec: ResourceSpec, result: ProbeResult, name: Optional[str] = None) -> ProbeOutcome:
    return ProbeOutcome(
        spec=spec,
        resource_name=name or spec.label,
        status=Status.UNREACHABLE,
        detail=result.message or "unknown error",
        reason=result.reason or FailureReason.FAULT,
    )


def _bucket_outcome(spec: ResourceSpec, bucket: BucketInfo) -> ProbeOutcome:
    if bucket.error:
        return ProbeOutcome(
            spec=spec,
            resource_name=bucket.name,
            status=Status.UNREACHABLE,
            detail=bucket.error,
            reason=FailureReason.ERROR,
        )
    return ProbeOutcome(
        spec=spec,
        resource_name=bucket.name,
        status=Status.REACHABLE,
        visibility=Visibility.PUBLIC if bucket.is_public else Visibility.PRIVATE,
    )


class Verifier:
    def __init__(
        self,
        settings: Settings,
        client,
        resources: Optional[Sequence[ResourceSpec]] = None,
        verbose: bool = False,
    ):
        self.settings = settings
        self.client = client
        self.resources = list(resources) if resources is not None else directory.default_resources()
        self.verbose = verbose

    def _debug(self, msg: str) -> None:
        if self.verbose:
            console.print(f"[dim]Debug:[/dim] {msg}")

    def probe_table(self, spec: ResourceSpec) -> ProbeOutcome:
        result = _call(self.client.query_table_exists, spec.name)
        if result.ok:
            return ProbeOutcome(spec=spec, resource_name=spec.label, status=Status.REACHABLE)
        self._debug(f"table {spec.name}: {result.reason.value if result.reason else 'fault'}")
        return _failed(spec, result)

    def probe_buckets(self, spec: ResourceSpec) -> List[ProbeOutcome]:
        """
        A named spec yields exactly one outcome. The category spec yields one
        outcome per listed bucket, or a single failure when listing fails.
        """
        if spec.name:
            result = _call(self.client.get_bucket, spec.name)
            if result.ok and isinstance(result.payload, BucketInfo):
                return [_bucket_outcome(spec, result.payload)]
            if result.ok:
                result = ProbeResult.failure(FailureReason.ERROR, "Not found")
            return [_failed(spec, result)]

        result = _call(self.client.list_buckets)
        if not result.ok:
            return [_failed(spec, result)]
        return [_bucket_outcome(spec, b) for b in (result.payload or [])]

    def probe_function(self, spec: ResourceSpec) -> ProbeOutcome:
        result = _call(self.client.call_function, spec.name, spec.args)
        if result.ok:
            return ProbeOutcome(spec=spec, resource_name=spec.label, status=Status.REACHABLE)
        return _failed(spec, result)

    def probe_auth(self, spec: ResourceSpec) -> ProbeOutcome:
        result = _call(self.client.get_current_session)
        if result.ok and result.payload:
            return ProbeOutcome(spec=spec, resource_name=spec.label, status=Status.REACHABLE)
        # A failed call and a call that found no user read the same here.
        self._debug(f"auth: {result.message or 'no user for the supplied credentials'}")
        return ProbeOutcome(
            spec=spec,
            resource_name=spec.label,
            status=Status.UNREACHABLE,
            detail=NOT_AUTHENTICATED,
            reason=result.reason or FailureReason.ERROR,
        )

    def run(self) -> Report:
        """
        Probe tables, buckets, functions, then auth, each group in declaration order.
        """
        report = Report(backend_url=self.settings.supabase_url or "")

        for spec in self.resources:
            if spec.kind == ResourceKind.TABLE:
                report.outcomes.append(self.probe_table(spec))

        for spec in self.resources:
            if spec.kind == ResourceKind.BUCKET:
                report.outcomes.extend(self.probe_buckets(spec))

        for spec in self.resources:
            if spec.kind == ResourceKind.FUNCTION:
                report.outcomes.append(self.probe_function(spec))

        for spec in self.resources:
            if spec.kind == ResourceKind.AUTH:
                report.outcomes.append(self.probe_auth(spec))

        return report
