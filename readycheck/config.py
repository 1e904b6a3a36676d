"""
Runtime configuration, built once at startup and handed to the client and verifier.
"""
import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

from dotenv import load_dotenv

DEFAULT_ENV_FILE = ".env.local"
DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class EnvVar:
    name: str
    description: str
    required: bool = True
    secret: bool = False
    example: str = ""


ENV_VARS: List[EnvVar] = [
    EnvVar(
        "NEXT_PUBLIC_SUPABASE_URL",
        "Supabase project URL",
        example="https://your-project.supabase.co",
    ),
    EnvVar(
        "SUPABASE_SERVICE_ROLE_KEY",
        "Supabase service role key (private)",
        secret=True,
        example="eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
    ),
    EnvVar(
        "NEXT_PUBLIC_SUPABASE_ANON_KEY",
        "Supabase anonymous key (public)",
        required=False,
        secret=True,
        example="eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
    ),
    EnvVar(
        "SUPABASE_URL",
        "Fallback project URL when NEXT_PUBLIC_SUPABASE_URL is unset",
        required=False,
        example="https://your-project.supabase.co",
    ),
    EnvVar(
        "READYCHECK_TIMEOUT",
        "Per-probe deadline in seconds",
        required=False,
        example="10",
    ),
]


def _parse_timeout(raw: Optional[str]) -> float:
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_TIMEOUT
    return value if value > 0 else DEFAULT_TIMEOUT


@dataclass(frozen=True)
class Settings:
    supabase_url: Optional[str] = None
    service_key: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Read backend settings from the environment.

        Nothing is validated here: a missing URL or key surfaces later as an
        unreachable probe, not as a startup error.
        """
        env = os.environ if environ is None else environ
        url = env.get("NEXT_PUBLIC_SUPABASE_URL") or env.get("SUPABASE_URL")
        return cls(
            supabase_url=url.rstrip("/") if url else None,
            service_key=env.get("SUPABASE_SERVICE_ROLE_KEY") or None,
            timeout=_parse_timeout(env.get("READYCHECK_TIMEOUT")),
        )


def load_env_file(path: Optional[str] = DEFAULT_ENV_FILE) -> bool:
    """Load a dotenv file if present. Variables already set are left alone."""
    if not path or not os.path.isfile(path):
        return False
    return load_dotenv(path, override=False)


def is_placeholder(name: str, value: Optional[str]) -> bool:
    """True for the `your_<name>_here` values shipped in the env templates."""
    return bool(value) and value.strip().lower() == f"your_{name.lower()}_here"


def mask(value: str, secret: bool) -> str:
    if not secret:
        return value if len(value) <= 50 else value[:20] + "..."
    if len(value) <= 8:
        return "*" * len(value)
    return value[:6] + "..." + value[-4:]
