"""Offline viewer for Haven chat export archives."""

from haven_viewer.archive import Archive, load_archive, load_archive_file
from haven_viewer.content import render_message
from haven_viewer.integrity import TrustStatus, TrustVerdict, verify_archive

__version__ = "0.1.0"

__all__ = [
    "Archive",
    "TrustStatus",
    "TrustVerdict",
    "__version__",
    "load_archive",
    "load_archive_file",
    "render_message",
    "verify_archive",
]
