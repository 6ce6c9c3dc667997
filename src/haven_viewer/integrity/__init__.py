"""Integrity verification of container exports against their manifest."""

from haven_viewer.integrity.banner import BannerText, verdict_summary
from haven_viewer.integrity.digest import sha256_hex, sha256_hex_async
from haven_viewer.integrity.verifier import (
    UNSIGNED,
    CancelToken,
    FileMismatch,
    IntegrityVerifier,
    MismatchReason,
    TrustStatus,
    TrustVerdict,
    requires_hashing,
    verify_archive,
    verify_archive_sync,
)

__all__ = [
    "UNSIGNED",
    "BannerText",
    "CancelToken",
    "FileMismatch",
    "IntegrityVerifier",
    "MismatchReason",
    "TrustStatus",
    "TrustVerdict",
    "requires_hashing",
    "sha256_hex",
    "sha256_hex_async",
    "verdict_summary",
    "verify_archive",
    "verify_archive_sync",
]
