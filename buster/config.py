"""
Run configuration: URL normalisation, status-code filter parsing and thread
count validation. Everything here raises ConfigurationError before any worker
is started.
"""
import os
import re
from typing import FrozenSet, Iterable, NamedTuple, Optional, Union
from urllib.parse import urlparse

from .types import ConfigurationError

DEFAULT_CODES: FrozenSet[int] = frozenset({200, 301, 302, 307, 308, 401, 403, 405})
DEFAULT_OUTPUT = "results.txt"
DEFAULT_USER_AGENT = "buster/1.0"
MIN_CODE, MAX_CODE = 100, 599
# one thread is kept for the coordinator
MIN_THREADS = 2


class BustConfig(NamedTuple):
    url: str
    wordlist: str
    threads: int
    codes: FrozenSet[int]
    output: str = DEFAULT_OUTPUT
    timeout: Optional[float] = None
    user_agent: str = DEFAULT_USER_AGENT

    @property
    def workers(self) -> int:
        return self.threads - 1


def normalize_url(url: str) -> str:
    """Return `url` ending in exactly one '/'. Idempotent."""
    if not url:
        raise ConfigurationError("missing target URL")
    p = urlparse(url)
    if p.scheme not in ("http", "https") or not p.netloc:
        raise ConfigurationError(f"target URL must include http:// or https:// and a host: {url!r}")
    return url.rstrip("/") + "/"


def parse_status_codes(value: Union[str, Iterable[int]]) -> FrozenSet[int]:
    """
    Parse a comma separated list of status codes.

    Each item keeps only its digits, so "200, 301,[302]" is accepted. Empty
    items are dropped; an empty result or a code outside 100..599 is an error.
    """
    if isinstance(value, str):
        items = [re.sub(r"[^0-9]", "", part) for part in value.split(",")]
        codes = [int(i) for i in items if i]
    else:
        codes = [int(c) for c in value]
    if not codes:
        raise ConfigurationError(f"invalid status code list: {value!r}")
    for code in codes:
        if not MIN_CODE <= code <= MAX_CODE:
            raise ConfigurationError(f"status code {code} out of range for {MIN_CODE}..{MAX_CODE}")
    return frozenset(codes)


def default_thread_count(cpu_count: Optional[int]) -> int:
    if not cpu_count:
        raise ConfigurationError("Could not automatically detect CPU cores. Please use the --threads flag.")
    threads = cpu_count // 2
    if threads < MIN_THREADS:
        raise ConfigurationError(
            f"only {cpu_count} CPU threads detected, default of {threads} is below {MIN_THREADS}. Please use the --threads flag."
        )
    return threads


def validate_thread_count(threads: int, cpu_count: Optional[int]) -> int:
    if threads < MIN_THREADS:
        raise ConfigurationError(f"thread count {threads} out of range; at least {MIN_THREADS} required")
    if cpu_count:
        if threads > cpu_count:
            raise ConfigurationError(f"thread count {threads} out of range for {MIN_THREADS}..{cpu_count}")
    return threads


def _env(name: str, cast, default=None):
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"invalid value for {name}: {raw!r}")


def env_defaults() -> dict:
    """Defaults taken from BUSTER_* environment variables."""
    return {
        "threads": _env("BUSTER_THREADS", int),
        "timeout": _env("BUSTER_TIMEOUT", float),
        "user_agent": _env("BUSTER_USER_AGENT", str, DEFAULT_USER_AGENT),
    }


def build_config(
    url: str,
    wordlist: str,
    threads: Optional[int] = None,
    codes: Union[str, Iterable[int], None] = None,
    output: str = DEFAULT_OUTPUT,
    timeout: Optional[float] = None,
    user_agent: Optional[str] = None,
    cpu_count: Optional[int] = None,
) -> BustConfig:
    if not wordlist:
        raise ConfigurationError("missing wordlist")
    if cpu_count is None:
        cpu_count = os.cpu_count()
    if threads is None:
        threads = default_thread_count(cpu_count)
    if timeout is not None and timeout <= 0:
        raise ConfigurationError(f"timeout must be positive, got {timeout}")
    return BustConfig(
        url=normalize_url(url),
        wordlist=wordlist,
        threads=validate_thread_count(threads, cpu_count),
        codes=DEFAULT_CODES if codes is None else parse_status_codes(codes),
        output=output or DEFAULT_OUTPUT,
        timeout=timeout,
        user_agent=user_agent or DEFAULT_USER_AGENT,
    )
