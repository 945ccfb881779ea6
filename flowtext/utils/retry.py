"""Retry helpers for package installation into the isolated runtime."""

import logging
import re
import subprocess

from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from flowtext.errors import PackageInstallError

logger = logging.getLogger(__name__)

# pip output that points at the network rather than at the package itself
_TRANSIENT_RE = re.compile(
    r"ConnectionError|Connection refused|Connection reset|Read timed out|"
    r"Temporary failure in name resolution|HTTP error (?:429|5\d\d)|"
    r"\b(?:429|50[0-4])\b .*(?:Too Many Requests|Server Error|Bad Gateway|Service Unavailable)",
    re.IGNORECASE,
)


def is_transient(exc: BaseException) -> bool:
    """Return True if an install failure is worth retrying."""
    if isinstance(exc, (subprocess.TimeoutExpired, TimeoutError)):
        return True
    if isinstance(exc, PackageInstallError):
        cause = exc.__cause__
        if cause is not None and is_transient(cause):
            return True
        return bool(_TRANSIENT_RE.search(str(exc)) or _TRANSIENT_RE.search(exc.output))
    return False


async def install_with_retry(install, name: str, retries: int = 2):
    """Await ``install(name)`` with exponential backoff on transient errors.

    Non-transient errors (unknown package, build failures) are raised
    immediately; the last transient error is re-raised once retries run out.
    """
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(retries + 1),  # +1 because first attempt counts
        wait=wait_exponential(multiplier=1, min=2, max=16),
        retry=retry_if_exception(is_transient),
        reraise=True,
        before_sleep=lambda state: logger.warning(
            "Transient install error: %r. Retrying in %.0fs (attempt %d/%d)...",
            state.outcome.exception(),
            state.next_action.sleep,
            state.attempt_number,
            retries,
        ),
    ):
        with attempt:
            return await install(name)
