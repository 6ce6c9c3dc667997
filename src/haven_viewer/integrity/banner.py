"""Human-readable wording for a trust verdict."""

from __future__ import annotations

from dataclasses import dataclass

from haven_viewer.archive.models import Manifest
from haven_viewer.integrity.verifier import TrustStatus, TrustVerdict


@dataclass(frozen=True, slots=True)
class BannerText:
    status: TrustStatus
    title: str
    subtitle: str


def verdict_summary(manifest: Manifest | None, verdict: TrustVerdict) -> BannerText:
    """Build the banner shown above an opened archive."""
    status = verdict.status
    if manifest is None or status is TrustStatus.UNSIGNED:
        return BannerText(status, "Unsigned export", "Authenticity cannot be verified")

    if status is TrustStatus.CHECKING:
        return BannerText(
            status,
            f"Verifying archive integrity... ({verdict.checked}/{verdict.total} files)",
            "",
        )

    if status is TrustStatus.MODIFIED:
        count = len(verdict.mismatches)
        plural = "" if count == 1 else "s"
        return BannerText(
            status,
            "Warning: archive has been modified",
            f"{count} file{plural} failed integrity check",
        )

    username = manifest.exported_by.username
    export_date = manifest.exported_at.strftime("%B %d, %Y").replace(" 0", " ")
    subtitle = f"{export_date} · {verdict.checked}/{verdict.total} files verified"
    if manifest.user_signature:
        title = f"Verified export by {username}"
        subtitle += f" · Signature present (online verification required via {manifest.instance_url})"
    else:
        title = f"Integrity verified - exported by {username}"
    return BannerText(status, title, subtitle)


__all__ = ["BannerText", "verdict_summary"]
