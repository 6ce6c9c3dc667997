"""Tests for the progressive integrity verifier."""

from __future__ import annotations

import asyncio
import hashlib
from unittest.mock import patch

import pytest

from haven_viewer.archive import load_archive
from haven_viewer.archive.models import Manifest
from haven_viewer.config.settings import VerificationSettings
from haven_viewer.integrity import (
    UNSIGNED,
    CancelToken,
    IntegrityVerifier,
    MismatchReason,
    TrustStatus,
    TrustVerdict,
    requires_hashing,
    verify_archive,
    verify_archive_sync,
)
from tests.factories import build_signed_container, channel_dict, manifest_dict, message_dict, to_json_bytes

FILES = {f"channels/c{index}.json": f"payload {index}".encode() for index in range(5)}


def make_manifest(files: dict[str, bytes], **overrides) -> Manifest:
    return Manifest.model_validate(manifest_dict(files, **overrides))


@pytest.mark.asyncio
async def test_matching_files_are_verified():
    updates: list[TrustVerdict] = []

    verdict = await verify_archive(make_manifest(FILES), dict(FILES), on_update=updates.append)

    assert verdict.status is TrustStatus.VERIFIED
    assert verdict.mismatches == ()
    assert verdict.checked == verdict.total == 5
    assert updates[-1] == verdict


@pytest.mark.asyncio
async def test_loaded_container_round_trip():
    document = channel_dict("general", messages=[message_dict("m1", "hello", sender_id="u1", sender_name="Ann")])
    archive = load_archive(build_signed_container({"channels/general.json": document}))

    verdict = await verify_archive(archive.manifest, archive.raw_files)

    assert verdict.status is TrustStatus.VERIFIED


@pytest.mark.asyncio
async def test_tampered_entry_is_modified():
    document = channel_dict("general")
    tampered = to_json_bytes(channel_dict("general", messages=[message_dict("m1", "edited later")]))
    archive = load_archive(
        build_signed_container({"channels/general.json": document}, tamper={"channels/general.json": tampered})
    )

    verdict = await verify_archive(archive.manifest, archive.raw_files)

    assert verdict.status is TrustStatus.MODIFIED
    assert verdict.mismatched_paths == ("channels/general.json",)
    mismatch = verdict.mismatches[0]
    assert mismatch.reason is MismatchReason.DIGEST
    assert mismatch.actual == hashlib.sha256(tampered).hexdigest()


@pytest.mark.asyncio
async def test_missing_file_is_modified_without_hashing():
    files = dict(FILES)
    del files["channels/c2.json"]

    async def fake_digest(data, *, offload=True):
        return hashlib.sha256(data).hexdigest()

    with patch("haven_viewer.integrity.verifier.sha256_hex_async", side_effect=fake_digest) as mock_digest:
        verdict = await verify_archive(make_manifest(FILES), files)

    assert verdict.status is TrustStatus.MODIFIED
    assert verdict.mismatched_paths == ("channels/c2.json",)
    assert verdict.mismatches[0].reason is MismatchReason.MISSING
    assert verdict.mismatches[0].actual is None
    assert mock_digest.call_count == 4
    assert verdict.checked == 5


@pytest.mark.asyncio
async def test_expected_digest_comparison_ignores_case():
    manifest = make_manifest(FILES)
    upper = manifest.model_copy(
        update={
            "files": {
                path: digest.model_copy(update={"sha256": digest.sha256.upper()})
                for path, digest in manifest.files.items()
            }
        }
    )
    verdict = await verify_archive(upper, dict(FILES))
    assert verdict.status is TrustStatus.VERIFIED


@pytest.mark.asyncio
@pytest.mark.parametrize("files", [None, {}])
async def test_empty_unsigned_manifest_is_unsigned_without_hashing(files):
    with patch("haven_viewer.integrity.verifier.sha256_hex_async") as mock_digest:
        verdict = await verify_archive(make_manifest({}), files)

    assert verdict.status is TrustStatus.UNSIGNED
    assert verdict.checked == 0
    mock_digest.assert_not_called()


@pytest.mark.asyncio
async def test_no_file_mapping_is_unsigned_even_with_digests():
    with patch("haven_viewer.integrity.verifier.sha256_hex_async") as mock_digest:
        verdict = await verify_archive(make_manifest(FILES, user_signature="sig"), None)

    assert verdict.status is TrustStatus.UNSIGNED
    assert verdict.signature_present
    mock_digest.assert_not_called()


@pytest.mark.asyncio
async def test_signature_is_informational_only():
    files = dict(FILES)
    files["channels/c0.json"] = b"tampered"

    verdict = await verify_archive(make_manifest(FILES, server_signature="sig"), files)

    assert verdict.status is TrustStatus.MODIFIED
    assert verdict.signature_present


@pytest.mark.asyncio
async def test_signed_manifest_without_digests_is_verified():
    verdict = await verify_archive(make_manifest({}, user_signature="sig"), {})

    assert verdict.status is TrustStatus.VERIFIED
    assert verdict.total == 0
    assert verdict.signature_present


@pytest.mark.asyncio
async def test_progress_is_monotonic_and_incremental():
    updates: list[TrustVerdict] = []

    await verify_archive(make_manifest(FILES), dict(FILES), on_update=updates.append)

    progress = [update.checked for update in updates if update.status is TrustStatus.CHECKING]
    assert progress == [1, 2, 3, 4, 5]
    assert all(update.total == 5 for update in updates)
    assert [update.status for update in updates][-1] is TrustStatus.VERIFIED


@pytest.mark.asyncio
async def test_progress_is_observable_from_a_concurrent_task():
    verifier = IntegrityVerifier(
        make_manifest(FILES), dict(FILES), settings=VerificationSettings(offload_digests=False)
    )
    observed: list[int] = []

    async def observe():
        while not verifier.verdict.is_terminal:
            observed.append(verifier.verdict.checked)
            await asyncio.sleep(0)

    await asyncio.gather(verifier.run(), observe())

    assert observed == sorted(observed)
    assert len(set(observed)) > 1


@pytest.mark.asyncio
async def test_cancellation_freezes_progress():
    token = CancelToken()
    updates: list[TrustVerdict] = []

    def on_update(verdict: TrustVerdict) -> None:
        updates.append(verdict)
        if verdict.checked == 2:
            token.cancel()

    verdict = await verify_archive(make_manifest(FILES), dict(FILES), token, on_update)

    assert verdict.status is TrustStatus.CHECKING
    assert verdict.checked == 2
    assert [update.checked for update in updates] == [1, 2]
    assert not any(update.is_terminal for update in updates)


@pytest.mark.asyncio
async def test_cancel_during_digest_discards_result():
    verifier = IntegrityVerifier(make_manifest(FILES), dict(FILES))

    async def cancelling_digest(data, *, offload=True):
        verifier.cancel()
        return hashlib.sha256(data).hexdigest()

    with patch("haven_viewer.integrity.verifier.sha256_hex_async", side_effect=cancelling_digest):
        verdict = await verifier.run()

    assert verdict.status is TrustStatus.CHECKING
    assert verdict.checked == 0


@pytest.mark.asyncio
async def test_cancel_before_start_publishes_nothing():
    token = CancelToken()
    token.cancel()
    updates: list[TrustVerdict] = []

    verdict = await verify_archive(make_manifest(FILES), dict(FILES), token, updates.append)

    assert verdict.status is TrustStatus.CHECKING
    assert updates == []


@pytest.mark.asyncio
async def test_terminal_verdict_is_final():
    verifier = IntegrityVerifier(make_manifest(FILES), dict(FILES))
    first = await verifier.run()

    second = await verifier.run()

    assert first.status is TrustStatus.VERIFIED
    assert second is first


def test_requires_hashing():
    assert not requires_hashing(make_manifest(FILES), None)
    assert not requires_hashing(make_manifest({}), {})
    assert requires_hashing(make_manifest(FILES), {})
    assert requires_hashing(make_manifest({}, user_signature="sig"), {})


def test_unsigned_constant():
    assert UNSIGNED.status is TrustStatus.UNSIGNED
    assert UNSIGNED.is_terminal


def test_verify_archive_sync():
    verdict = verify_archive_sync(make_manifest(FILES), dict(FILES))
    assert verdict.status is TrustStatus.VERIFIED
