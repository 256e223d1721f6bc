"""Utilities for validating Slack request signatures."""

from __future__ import annotations

import enum
import hmac
import re
import time
from dataclasses import dataclass
from hashlib import sha256
from typing import Callable

import structlog


SLACK_SIGNATURE_HEADER = "X-Slack-Signature"
SLACK_TIMESTAMP_HEADER = "X-Slack-Request-Timestamp"
VERSION = "v0"
DEFAULT_TOLERANCE = 60 * 5  # five minutes
SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

# Epoch seconds, bounded well below the int() digit limit.
_TIMESTAMP_PATTERN = re.compile(r"[0-9]{1,20}")


class VerificationResult(enum.Enum):
    """Terminal outcome of verifying a single inbound request."""

    ACCEPTED = "accepted"
    REJECTED_MISSING_HEADERS = "missing_headers"
    REJECTED_STALE = "stale"
    REJECTED_BAD_SIGNATURE = "bad_signature"
    REJECTED_MISCONFIGURED = "misconfigured"

    @property
    def accepted(self) -> bool:
        return self is VerificationResult.ACCEPTED


@dataclass(frozen=True)
class SignedRequest:
    """The parts of an inbound call that take part in verification."""

    method: str
    timestamp: str | None
    signature: str | None
    raw_body: bytes | str


def _to_bytes(value: bytes | str) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def compute_signature(signing_secret: str, timestamp: str, body: bytes | str) -> str:
    """Return Slack-compatible signature for the provided payload."""

    basestring = f"{VERSION}:{timestamp}:".encode("utf-8") + _to_bytes(body)
    secret = signing_secret.encode("utf-8")
    digest = hmac.new(secret, basestring, sha256).hexdigest()
    return f"{VERSION}={digest}"


def signatures_match(expected: str, supplied: str) -> bool:
    """Compare two signatures in constant time, treating any failure as a mismatch."""

    try:
        expected_bytes = expected.encode("utf-8")
        supplied_bytes = supplied.encode("utf-8")
        if len(expected_bytes) != len(supplied_bytes):
            return False
        return hmac.compare_digest(expected_bytes, supplied_bytes)
    except (AttributeError, TypeError, ValueError):
        return False


class RequestAuthenticator:
    """Decide whether an inbound call is an authentic, timely message from Slack.

    The authenticator holds the signing secret for the lifetime of the process and
    keeps no other state, so a single instance can serve concurrent requests. It
    reports why a request failed only through its return value and structured logs;
    callers are expected to collapse sender-side failures into one response.
    """

    def __init__(
        self,
        signing_secret: str | None,
        *,
        tolerance: int = DEFAULT_TOLERANCE,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._signing_secret = signing_secret or ""
        self._tolerance = tolerance
        self._clock = clock

    @property
    def is_configured(self) -> bool:
        return bool(self._signing_secret)

    def _now(self) -> int:
        if self._clock is not None:
            return int(self._clock())
        return int(time.time())

    def verify(self, signed_request: SignedRequest) -> VerificationResult:
        """Run every check against *signed_request* and return the outcome."""

        result = self._evaluate(signed_request)
        if result is VerificationResult.REJECTED_MISCONFIGURED:
            structlog.get_logger().error(
                "slack_request_rejected",
                reason=result.value,
                method=signed_request.method,
            )
        elif not result.accepted:
            structlog.get_logger().warning(
                "slack_request_rejected",
                reason=result.value,
                method=signed_request.method,
            )
        return result

    def _evaluate(self, signed_request: SignedRequest) -> VerificationResult:
        if not self._signing_secret:
            return VerificationResult.REJECTED_MISCONFIGURED

        if (signed_request.method or "").upper() in SAFE_METHODS:
            return VerificationResult.ACCEPTED

        timestamp = signed_request.timestamp
        signature = signed_request.signature
        if not timestamp or not signature:
            return VerificationResult.REJECTED_MISSING_HEADERS

        if not _TIMESTAMP_PATTERN.fullmatch(timestamp):
            # Not a timestamp Slack would have signed.
            return VerificationResult.REJECTED_BAD_SIGNATURE

        # Only the upper bound is enforced; timestamps ahead of our clock pass.
        age = self._now() - int(timestamp)
        if age > self._tolerance:
            return VerificationResult.REJECTED_STALE

        expected = compute_signature(self._signing_secret, timestamp, signed_request.raw_body)
        if signatures_match(expected, signature):
            return VerificationResult.ACCEPTED
        return VerificationResult.REJECTED_BAD_SIGNATURE

