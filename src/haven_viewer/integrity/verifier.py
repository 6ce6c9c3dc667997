"""Progressive, cancellable integrity verification of a container export.

The verifier walks ``manifest.files`` in manifest order, hashes each listed
entry and compares it with the recorded digest. Every state change goes
through :meth:`IntegrityVerifier._apply`, which drops the change once the
cancel token is set. A superseded run therefore never overwrites state
belonging to a newer one.

Signatures are informational only: their presence is reported on the
verdict but never changes the Verified/Modified outcome.
"""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace

from haven_viewer.archive.models import Manifest
from haven_viewer.config.settings import VerificationSettings
from haven_viewer.integrity.digest import digests_match, sha256_hex_async
from haven_viewer.utils.async_utils import run_async_safely

logger = logging.getLogger(__name__)


class TrustStatus(str, enum.Enum):
    CHECKING = "checking"
    VERIFIED = "verified"
    MODIFIED = "modified"
    UNSIGNED = "unsigned"

    @property
    def is_terminal(self) -> bool:
        return self is not TrustStatus.CHECKING


class MismatchReason(str, enum.Enum):
    MISSING = "missing"
    DIGEST = "digest"


@dataclass(frozen=True, slots=True)
class FileMismatch:
    path: str
    reason: MismatchReason
    expected: str
    actual: str | None = None


@dataclass(frozen=True, slots=True)
class TrustVerdict:
    """Snapshot of a verification run. Snapshots are replaced, never mutated."""

    status: TrustStatus
    checked: int = 0
    total: int = 0
    mismatches: tuple[FileMismatch, ...] = ()
    signature_present: bool = False

    @property
    def mismatched_paths(self) -> tuple[str, ...]:
        return tuple(mismatch.path for mismatch in self.mismatches)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


UNSIGNED = TrustVerdict(status=TrustStatus.UNSIGNED)

VerdictCallback = Callable[[TrustVerdict], None]


class CancelToken:
    """Cooperative cancellation flag, safe to set from any thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def requires_hashing(manifest: Manifest, files: Mapping[str, bytes] | None) -> bool:
    """Whether a manifest/file-mapping pair needs a hashing run at all."""
    if files is None:
        return False
    return bool(manifest.files) or manifest.is_signed


class IntegrityVerifier:
    """State machine ``Checking -> {Verified, Modified, Unsigned}``.

    Read :attr:`verdict` from any task at any time; ``checked`` never
    decreases and advances by one per resolved manifest entry.
    """

    def __init__(
        self,
        manifest: Manifest,
        files: Mapping[str, bytes] | None,
        *,
        cancel_token: CancelToken | None = None,
        on_update: VerdictCallback | None = None,
        settings: VerificationSettings | None = None,
    ) -> None:
        self._manifest = manifest
        self._files = files
        self._token = cancel_token or CancelToken()
        self._on_update = on_update
        self._settings = settings or VerificationSettings()
        self._verdict = TrustVerdict(
            status=TrustStatus.CHECKING,
            total=len(manifest.files),
            signature_present=manifest.is_signed,
        )

    @property
    def verdict(self) -> TrustVerdict:
        return self._verdict

    @property
    def cancel_token(self) -> CancelToken:
        return self._token

    def cancel(self) -> None:
        self._token.cancel()

    def _apply(self, verdict: TrustVerdict) -> bool:
        """Publish a new snapshot unless the run was cancelled or already finished."""
        if self._token.cancelled or self._verdict.is_terminal:
            return False
        self._verdict = verdict
        if self._on_update is not None:
            self._on_update(verdict)
        return True

    async def run(self) -> TrustVerdict:
        """Verify every manifest entry and return the last published verdict.

        After cancellation the returned verdict is the frozen ``Checking``
        snapshot: no terminal verdict is ever published for a cancelled run.
        """
        if self._verdict.is_terminal:
            return self._verdict

        if not requires_hashing(self._manifest, self._files):
            logger.debug("No file mapping or digests to check; export is unsigned")
            self._apply(replace(UNSIGNED, signature_present=self._manifest.is_signed))
            return self._verdict

        files = self._files or {}
        mismatches: list[FileMismatch] = []
        checked = 0

        for path, expected in self._manifest.files.items():
            if self._token.cancelled:
                logger.debug("Verification cancelled after %d/%d entries", checked, self._verdict.total)
                return self._verdict

            data = files.get(path)
            if data is None:
                mismatches.append(FileMismatch(path=path, reason=MismatchReason.MISSING, expected=expected.sha256))
            else:
                actual = await sha256_hex_async(data, offload=self._settings.offload_digests)
                if self._token.cancelled:
                    return self._verdict
                if not digests_match(expected.sha256, actual):
                    mismatches.append(
                        FileMismatch(path=path, reason=MismatchReason.DIGEST, expected=expected.sha256, actual=actual)
                    )

            checked += 1
            self._apply(replace(self._verdict, checked=checked, mismatches=tuple(mismatches)))

        status = TrustStatus.MODIFIED if mismatches else TrustStatus.VERIFIED
        if self._apply(replace(self._verdict, status=status)):
            log = logger.warning if mismatches else logger.info
            log(
                "Integrity %s: %d/%d files checked, %d mismatched",
                status.value,
                checked,
                self._verdict.total,
                len(mismatches),
            )
        return self._verdict


async def verify_archive(
    manifest: Manifest,
    files: Mapping[str, bytes] | None,
    cancel_token: CancelToken | None = None,
    on_update: VerdictCallback | None = None,
    *,
    settings: VerificationSettings | None = None,
) -> TrustVerdict:
    """Run a fresh verification for one manifest/file-mapping pair."""
    verifier = IntegrityVerifier(
        manifest,
        files,
        cancel_token=cancel_token,
        on_update=on_update,
        settings=settings,
    )
    return await verifier.run()


def verify_archive_sync(
    manifest: Manifest,
    files: Mapping[str, bytes] | None,
    cancel_token: CancelToken | None = None,
    on_update: VerdictCallback | None = None,
    *,
    settings: VerificationSettings | None = None,
) -> TrustVerdict:
    """Blocking wrapper around :func:`verify_archive`."""
    return run_async_safely(verify_archive(manifest, files, cancel_token, on_update, settings=settings))


__all__ = [
    "UNSIGNED",
    "CancelToken",
    "FileMismatch",
    "IntegrityVerifier",
    "MismatchReason",
    "TrustStatus",
    "TrustVerdict",
    "requires_hashing",
    "verify_archive",
    "verify_archive_sync",
]
