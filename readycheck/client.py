"""
Supabase probe client.

Wraps the REST, storage and auth endpoints behind five calls. Every call
returns a ProbeResult; HTTP errors, transport faults and timeouts never
escape this module.

Each call is bounded twice: httpx enforces ``settings.timeout`` on every
phase (connect, each read), and the body is streamed so the total time is
checked between chunks. A server that trickles bytes is cut off once the
overall deadline passes.
"""
import json
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import quote

import httpx

from readycheck import __version__
from readycheck.config import Settings
from readycheck.models.result import BucketInfo, FailureReason, ProbeResult

_ERROR_KEYS = ("message", "msg", "error_description", "error")

# An unknown function comes back as "Could not find the function ..."; a
# "does not exist" error is raised from inside a function that did run.
_RAN_MARKER = "does not exist"


@dataclass(frozen=True)
class _Reply:
    status_code: int
    reason_phrase: str
    body: bytes


def _segment(name: str) -> str:
    return quote(str(name), safe="")


def _error_message(reply: _Reply) -> str:
    """Pull the human message out of a PostgREST / storage / GoTrue error body."""
    try:
        body = json.loads(reply.body) if reply.body else None
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in _ERROR_KEYS:
            val = body.get(key)
            if isinstance(val, str) and val:
                return val
    return f"HTTP {reply.status_code} {reply.reason_phrase}".strip()


def _to_bucket(raw: Any, index: int) -> BucketInfo:
    """Listing entries that cannot be read are kept, flagged with an error."""
    if isinstance(raw, dict):
        name = raw.get("name") or raw.get("id")
        if name:
            return BucketInfo(name=str(name), is_public=bool(raw.get("public")))
    return BucketInfo(name=f"entry #{index}", error=f"malformed bucket entry: {raw!r}"[:200])


class SupabaseProbeClient:
    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport] = None):
        self.settings = settings
        key = settings.service_key or ""
        headers = {"User-Agent": f"readycheck/{__version__}"}
        if key:
            headers["apikey"] = key
            headers["Authorization"] = f"Bearer {key}"
        self._http = httpx.Client(
            base_url=settings.supabase_url or "",
            headers=headers,
            timeout=httpx.Timeout(settings.timeout),
            transport=transport,
        )

    def __enter__(self) -> "SupabaseProbeClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def _timed_out(self) -> ProbeResult:
        return ProbeResult.failure(
            FailureReason.TIMEOUT, f"timed out after {self.settings.timeout:g}s"
        )

    def _request(self, method: str, path: str, **kwargs) -> Tuple[Optional[_Reply], Optional[ProbeResult]]:
        """Return (reply, None) for a 2xx/3xx answer, else (None, failure)."""
        deadline = time.monotonic() + self.settings.timeout
        try:
            with self._http.stream(method, path, **kwargs) as response:
                chunks: List[bytes] = []
                for chunk in response.iter_bytes():
                    chunks.append(chunk)
                    if time.monotonic() > deadline:
                        return None, self._timed_out()
                reply = _Reply(response.status_code, response.reason_phrase, b"".join(chunks))
        except httpx.TimeoutException:
            return None, self._timed_out()
        except httpx.HTTPError as exc:
            return None, ProbeResult.failure(FailureReason.FAULT, str(exc) or type(exc).__name__)

        if reply.status_code >= 400:
            return None, ProbeResult.failure(FailureReason.ERROR, _error_message(reply))
        return reply, None

    @staticmethod
    def _json(reply: _Reply):
        try:
            return json.loads(reply.body), None
        except ValueError as exc:
            return None, ProbeResult.failure(FailureReason.FAULT, f"invalid JSON response: {exc}")

    # ------------------------------------------------------------------ probes

    def query_table_exists(self, name: str) -> ProbeResult:
        """Fetch at most one id from the table; any error means missing or inaccessible."""
        _, failure = self._request(
            "GET", f"/rest/v1/{_segment(name)}", params={"select": "id", "limit": 1}
        )
        if failure:
            return failure
        return ProbeResult.success()

    def list_buckets(self) -> ProbeResult:
        reply, failure = self._request("GET", "/storage/v1/bucket")
        if failure:
            return failure
        body, failure = self._json(reply)
        if failure:
            return failure
        if not isinstance(body, list):
            return ProbeResult.failure(FailureReason.ERROR, "unexpected bucket listing response")
        return ProbeResult.success([_to_bucket(raw, i) for i, raw in enumerate(body, 1)])

    def get_bucket(self, name: str) -> ProbeResult:
        reply, failure = self._request("GET", f"/storage/v1/bucket/{_segment(name)}")
        if failure:
            return failure
        body, failure = self._json(reply)
        if failure:
            return failure
        bucket = _to_bucket(body, 1)
        if bucket.error:
            return ProbeResult.failure(FailureReason.ERROR, "Not found")
        return ProbeResult.success(bucket)

    def call_function(self, name: str, args: Optional[Mapping[str, Any]] = None) -> ProbeResult:
        """
        Call a database function through PostgREST rpc.

        The function counts as present when the call succeeds, or when it
        fails with a "does not exist" error raised from inside the function
        (e.g. the placeholder user id in ``args`` is unknown).
        """
        payload: Dict[str, Any] = dict(args or {})
        _, failure = self._request("POST", f"/rest/v1/rpc/{_segment(name)}", json=payload)
        if failure is None:
            return ProbeResult.success()
        if failure.reason == FailureReason.ERROR and _RAN_MARKER in failure.message:
            return ProbeResult.success(failure.message)
        return failure

    def get_current_session(self) -> ProbeResult:
        """
        Ask GoTrue who the bearer token belongs to.

        A 200 without a user id is a successful call with no session, so the
        payload is None rather than a failure.
        """
        reply, failure = self._request("GET", "/auth/v1/user")
        if failure:
            return failure
        body, failure = self._json(reply)
        if failure:
            return failure
        if isinstance(body, dict) and body.get("id"):
            return ProbeResult.success(body)
        return ProbeResult.success(None)
