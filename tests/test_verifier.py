"""
Verifier tests: drive the probe loop with an in-memory client.
"""
import httpx
import respx

from readycheck.client import SupabaseProbeClient
from readycheck.config import Settings
from readycheck.directory import default_resources
from readycheck.models.outcome import Status, Visibility
from readycheck.models.resource import ResourceKind, ResourceSpec
from readycheck.models.result import BucketInfo, FailureReason, ProbeResult
from readycheck.verifier import NOT_AUTHENTICATED, Verifier


class FakeClient:
    """Scriptable stand-in for SupabaseProbeClient."""

    def __init__(self, tables=None, buckets=None, named_buckets=None, session=None, functions=None):
        # tables: name -> ProbeResult or Exception; missing names succeed
        self.tables = tables or {}
        self.buckets = buckets if buckets is not None else ProbeResult.success([])
        self.named_buckets = named_buckets or {}
        self.functions = functions or {}
        self.session = session if session is not None else ProbeResult.success({"id": "u-1"})
        self.calls = []

    def _answer(self, value):
        if isinstance(value, Exception):
            raise value
        return value

    def query_table_exists(self, name):
        self.calls.append(("table", name))
        return self._answer(self.tables.get(name, ProbeResult.success()))

    def list_buckets(self):
        self.calls.append(("buckets", None))
        return self._answer(self.buckets)

    def get_bucket(self, name):
        self.calls.append(("bucket", name))
        return self._answer(
            self.named_buckets.get(name, ProbeResult.failure(FailureReason.ERROR, "Bucket not found"))
        )

    def call_function(self, name, args=None):
        self.calls.append(("function", name, args))
        return self._answer(self.functions.get(name, ProbeResult.success()))

    def get_current_session(self):
        self.calls.append(("auth", None))
        return self._answer(self.session)


SETTINGS = Settings("https://proj.supabase.co", "service-key", 5.0)
TABLES = [s.name for s in default_resources() if s.kind == ResourceKind.TABLE]


def _run(client, resources=None):
    return Verifier(SETTINGS, client, resources).run()


# --------------------------------------------------------- Tables
class TestTableProbes:
    def test_every_table_has_exactly_one_outcome(self):
        client = FakeClient(tables={
            "uploads": ProbeResult.failure(FailureReason.ERROR, "boom"),
            "profiles": RuntimeError("network down"),
        })
        report = _run(client)
        names = [o.resource_name for o in report.by_kind(ResourceKind.TABLE)]
        assert names == TABLES

    def test_structured_failure_detail_is_verbatim(self):
        msg = 'relation "public.uploads" does not exist'
        client = FakeClient(tables={"uploads": ProbeResult.failure(FailureReason.ERROR, msg)})
        report = _run(client)
        uploads = next(o for o in report.outcomes if o.resource_name == "uploads")
        assert uploads.status == Status.UNREACHABLE
        assert uploads.detail == msg
        assert uploads.reason == FailureReason.ERROR

    def test_raised_failure_has_same_shape_as_structured(self):
        structured = _run(FakeClient(tables={
            "uploads": ProbeResult.failure(FailureReason.ERROR, "relation does not exist"),
        }))
        raised = _run(FakeClient(tables={"uploads": RuntimeError("relation does not exist")}))

        a = next(o for o in structured.outcomes if o.resource_name == "uploads")
        b = next(o for o in raised.outcomes if o.resource_name == "uploads")
        assert a.status == b.status == Status.UNREACHABLE
        assert a.detail == b.detail == "relation does not exist"
        assert a.visibility is None and b.visibility is None
        assert b.reason == FailureReason.FAULT
        assert set(a.to_dict()) == set(b.to_dict())

    def test_fault_does_not_stop_later_probes(self):
        client = FakeClient(tables={TABLES[0]: ConnectionError("reset by peer")})
        _run(client)
        probed = [name for kind, name in client.calls if kind == "table"]
        assert probed == TABLES
        assert ("buckets", None) in client.calls
        assert client.calls[-1] == ("auth", None)

    def test_timeout_reason_is_preserved(self):
        client = FakeClient(tables={
            "profiles": ProbeResult.failure(FailureReason.TIMEOUT, "timed out after 5s"),
        })
        report = _run(client)
        profiles = report.outcomes[0]
        assert profiles.reason == FailureReason.TIMEOUT
        assert profiles.detail == "timed out after 5s"


# --------------------------------------------------------- Buckets
class TestBucketProbes:
    def test_listed_buckets_map_visibility(self):
        client = FakeClient(buckets=ProbeResult.success([
            BucketInfo("avatars", True),
            BucketInfo("uploads", False),
            BucketInfo("completed-forms", False),
        ]))
        report = _run(client)
        buckets = report.by_kind(ResourceKind.BUCKET)
        assert [b.resource_name for b in buckets] == ["avatars", "uploads", "completed-forms"]
        assert all(b.status == Status.REACHABLE for b in buckets)
        assert [b.visibility for b in buckets] == [
            Visibility.PUBLIC, Visibility.PRIVATE, Visibility.PRIVATE,
        ]

    def test_listing_failure_yields_single_category_outcome(self):
        client = FakeClient(buckets=ProbeResult.failure(FailureReason.ERROR, "permission denied"))
        report = _run(client)
        buckets = report.by_kind(ResourceKind.BUCKET)
        assert len(buckets) == 1
        assert buckets[0].resource_name == "storage buckets"
        assert buckets[0].status == Status.UNREACHABLE
        assert buckets[0].detail == "permission denied"
        assert buckets[0].spec.is_bucket_category

    def test_listing_exception_yields_single_category_outcome(self):
        client = FakeClient(buckets=ValueError("bad payload"))
        buckets = _run(client).by_kind(ResourceKind.BUCKET)
        assert len(buckets) == 1
        assert buckets[0].detail == "bad payload"

    def test_empty_listing_yields_no_bucket_outcomes(self):
        report = _run(FakeClient(buckets=ProbeResult.success([])))
        assert report.by_kind(ResourceKind.BUCKET) == []

    def test_named_buckets_yield_one_outcome_each(self):
        resources = [
            ResourceSpec(ResourceKind.BUCKET, "uploads"),
            ResourceSpec(ResourceKind.BUCKET, "signatures"),
        ]
        client = FakeClient(named_buckets={"uploads": ProbeResult.success(BucketInfo("uploads", False))})
        buckets = _run(client, resources).by_kind(ResourceKind.BUCKET)
        assert [(b.resource_name, b.status) for b in buckets] == [
            ("uploads", Status.REACHABLE),
            ("signatures", Status.UNREACHABLE),
        ]
        assert buckets[0].visibility == Visibility.PRIVATE
        assert buckets[1].detail == "Bucket not found"

    def test_malformed_listing_entries_are_unreachable(self):
        client = FakeClient(buckets=ProbeResult.success([
            BucketInfo("avatars", True),
            BucketInfo("entry #2", error="malformed bucket entry: {'public': False}"),
        ]))
        buckets = _run(client).by_kind(ResourceKind.BUCKET)
        assert [b.status for b in buckets] == [Status.REACHABLE, Status.UNREACHABLE]
        assert buckets[1].resource_name == "entry #2"
        assert buckets[1].detail.startswith("malformed bucket entry")
        assert buckets[1].reason == FailureReason.ERROR
        assert buckets[1].visibility is None

    def test_every_listing_entry_gets_an_outcome(self):
        payload = [{"name": "avatars", "public": True}, {"public": False}, "junk"]
        with respx.mock:
            respx.get(f"{SETTINGS.supabase_url}/storage/v1/bucket").mock(
                return_value=httpx.Response(200, json=payload)
            )
            with SupabaseProbeClient(SETTINGS) as client:
                report = Verifier(SETTINGS, client, [ResourceSpec(ResourceKind.BUCKET)]).run()

        buckets = report.by_kind(ResourceKind.BUCKET)
        assert len(buckets) == 3
        assert [b.status for b in buckets] == [Status.REACHABLE, Status.UNREACHABLE, Status.UNREACHABLE]
        assert not report.success


# --------------------------------------------------------- Functions
class TestFunctionProbes:
    RESOURCES = [
        ResourceSpec(ResourceKind.FUNCTION, "check_user_credits", args={"p_user_id": "u-1"}),
        ResourceSpec(ResourceKind.FUNCTION, "consume_credit"),
    ]

    def test_present_function_is_reachable(self):
        client = FakeClient()
        outcomes = _run(client, self.RESOURCES).by_kind(ResourceKind.FUNCTION)
        assert [(o.resource_name, o.status) for o in outcomes] == [
            ("check_user_credits", Status.REACHABLE),
            ("consume_credit", Status.REACHABLE),
        ]
        assert ("function", "check_user_credits", {"p_user_id": "u-1"}) in client.calls

    def test_missing_function_detail_is_verbatim(self):
        msg = "Could not find the function public.consume_credit(p_user_id) in the schema cache"
        client = FakeClient(functions={"consume_credit": ProbeResult.failure(FailureReason.ERROR, msg)})
        outcomes = _run(client, self.RESOURCES).by_kind(ResourceKind.FUNCTION)
        assert outcomes[1].status == Status.UNREACHABLE
        assert outcomes[1].detail == msg
        assert outcomes[1].reason == FailureReason.ERROR

    def test_raised_error_becomes_fault(self):
        client = FakeClient(functions={"check_user_credits": RuntimeError("socket closed")})
        outcomes = _run(client, self.RESOURCES).by_kind(ResourceKind.FUNCTION)
        assert outcomes[0].reason == FailureReason.FAULT
        assert outcomes[0].detail == "socket closed"
        assert outcomes[1].status == Status.REACHABLE

    def test_defaults_declare_no_functions(self):
        client = FakeClient()
        _run(client)
        assert not [c for c in client.calls if c[0] == "function"]


# --------------------------------------------------------- Auth
class TestAuthProbe:
    def _auth(self, session):
        report = _run(FakeClient(session=session))
        outcomes = report.by_kind(ResourceKind.AUTH)
        assert len(outcomes) == 1
        return outcomes[0]

    def test_authenticated_user_is_ok(self):
        o = self._auth(ProbeResult.success({"id": "user-1"}))
        assert o.status == Status.REACHABLE
        assert o.detail == ""

    def test_call_failure_is_not_authenticated(self):
        o = self._auth(ProbeResult.failure(FailureReason.ERROR, "invalid JWT"))
        assert o.status == Status.UNREACHABLE
        assert o.detail == NOT_AUTHENTICATED

    def test_success_without_user_is_not_authenticated(self):
        o = self._auth(ProbeResult.success(None))
        assert o.status == Status.UNREACHABLE
        assert o.detail == NOT_AUTHENTICATED

    def test_raised_error_is_not_authenticated(self):
        o = self._auth(RuntimeError("socket closed"))
        assert o.detail == NOT_AUTHENTICATED


# --------------------------------------------------------- Ordering and scenarios
class TestReport:
    def test_order_is_tables_buckets_functions_then_auth(self):
        # Declaration order mixes kinds; output groups them.
        resources = [
            ResourceSpec(ResourceKind.AUTH),
            ResourceSpec(ResourceKind.FUNCTION, "consume_credit"),
            ResourceSpec(ResourceKind.BUCKET),
            ResourceSpec(ResourceKind.TABLE, "b_table"),
            ResourceSpec(ResourceKind.TABLE, "a_table"),
        ]
        client = FakeClient(buckets=ProbeResult.success([BucketInfo("z"), BucketInfo("y")]))
        report = _run(client, resources)
        assert [o.resource_name for o in report.outcomes] == ["b_table", "a_table", "z", "y", "consume_credit", "auth"]

    def test_repeated_runs_are_identical(self):
        client = FakeClient(buckets=ProbeResult.success([BucketInfo("avatars", True)]))
        first = [o.to_dict() for o in _run(client).outcomes]
        second = [o.to_dict() for o in _run(client).outcomes]
        assert first == second

    def test_all_healthy_backend(self):
        client = FakeClient(
            buckets=ProbeResult.success([BucketInfo("avatars", True)]),
            session=ProbeResult.success({"id": "user-1"}),
        )
        report = _run(client)

        tables = report.by_kind(ResourceKind.TABLE)
        assert len(tables) == 8
        assert all(t.status == Status.REACHABLE for t in tables)

        buckets = report.by_kind(ResourceKind.BUCKET)
        assert len(buckets) == 1
        assert buckets[0].resource_name == "avatars"
        assert buckets[0].visibility == Visibility.PUBLIC

        auth = report.by_kind(ResourceKind.AUTH)
        assert len(auth) == 1 and auth[0].status == Status.REACHABLE
        assert report.success

    def test_partially_broken_backend(self):
        client = FakeClient(
            tables={"uploads": RuntimeError("relation does not exist")},
            buckets=ProbeResult.failure(FailureReason.ERROR, "permission denied"),
            session=ProbeResult.failure(FailureReason.ERROR, "invalid JWT"),
        )
        report = _run(client)

        tables = report.by_kind(ResourceKind.TABLE)
        reachable = [t for t in tables if t.status == Status.REACHABLE]
        broken = [t for t in tables if t.status == Status.UNREACHABLE]
        assert len(reachable) == 7
        assert len(broken) == 1
        assert broken[0].resource_name == "uploads"
        assert broken[0].detail == "relation does not exist"

        buckets = report.by_kind(ResourceKind.BUCKET)
        assert len(buckets) == 1
        assert buckets[0].status == Status.UNREACHABLE
        assert buckets[0].detail == "permission denied"

        auth = report.by_kind(ResourceKind.AUTH)
        assert len(auth) == 1
        assert auth[0].detail == NOT_AUTHENTICATED
        assert len(report.outcomes) == 10
        assert not report.success

    def test_counts(self):
        client = FakeClient(
            tables={"uploads": ProbeResult.failure(FailureReason.ERROR, "x")},
            buckets=ProbeResult.success([BucketInfo("a"), BucketInfo("b")]),
        )
        counts = _run(client).counts()
        assert counts["table"] == {"reachable": 7, "total": 8}
        assert counts["bucket"] == {"reachable": 2, "total": 2}
        assert counts["auth"] == {"reachable": 1, "total": 1}

    def test_backend_url_recorded(self):
        report = _run(FakeClient())
        assert report.backend_url == "https://proj.supabase.co"
