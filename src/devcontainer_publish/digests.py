"""Digest resolution from registry manifests, and the per-tag digest report."""

from __future__ import annotations

import json
import logging
import re
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from .builders.buildx import BuildxClient
from .exceptions import DigestResolutionFailure
from .matrix import BuildMode, ImageTask, references

logger = logging.getLogger(__name__)

DIGEST_PATTERN = re.compile(r"^sha256:[0-9a-f]{64}$")

IMAGE_MANIFEST_MEDIA_TYPES = (
    "application/vnd.oci.image.manifest.v1+json",
    "application/vnd.docker.distribution.manifest.v2+json",
)
REFERENCE_TYPE_ANNOTATION = "vnd.docker.reference.type"
ATTESTATION_MANIFEST = "attestation-manifest"


def is_valid_digest(value) -> bool:
    return isinstance(value, str) and DIGEST_PATTERN.match(value) is not None


def _is_attestation(entry: Mapping) -> bool:
    annotations = entry.get("annotations")
    if annotations is None:
        return False
    if not isinstance(annotations, dict):
        raise DigestResolutionFailure(f"manifest annotations are not an object: {annotations!r}")
    return annotations.get(REFERENCE_TYPE_ANNOTATION) == ATTESTATION_MANIFEST


def parse_manifest_digest(raw: str) -> str:
    """
    Extracts the content digest from a raw manifest document.

    A top-level ``digest`` wins. For a manifest list, the first image
    manifest entry that is not an attestation is used; when a list holds
    several image manifests only the first is considered.
    """
    try:
        manifest = json.loads(raw.strip())
    except json.JSONDecodeError as exc:
        raise DigestResolutionFailure(f"manifest is not valid JSON: {exc}") from exc
    if not isinstance(manifest, dict):
        raise DigestResolutionFailure("manifest is not a JSON object")

    digest = manifest.get("digest")
    if digest is None:
        entries = manifest.get("manifests")
        if not isinstance(entries, list):
            raise DigestResolutionFailure("manifest has neither a digest nor a manifest list")
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            if entry.get("mediaType") in IMAGE_MANIFEST_MEDIA_TYPES and not _is_attestation(entry):
                digest = entry.get("digest")
                break
        else:
            raise DigestResolutionFailure("manifest list has no image manifest entry")

    if not is_valid_digest(digest):
        raise DigestResolutionFailure(f"malformed digest {digest!r}")
    return digest


def resolve_digest(reference: str, buildx: Optional[BuildxClient] = None) -> Optional[str]:
    """
    Looks up the digest of a published reference. Never raises.

    Any failure is logged as a warning and returns None.
    """
    buildx = buildx or BuildxClient()
    try:
        result = buildx.inspect_raw(reference)
        if not result.ok:
            raise DigestResolutionFailure(
                f"inspect exited with code {result.returncode}: {result.stderr.strip()}"
            )
        return parse_manifest_digest(result.stdout)
    except (DigestResolutionFailure, OSError) as exc:
        logger.warning("Failed to get registry image digest for %s: %s", reference, exc)
        return None


class DigestReport:
    """Thread-safe mapping of tag -> platform key -> digest."""

    def __init__(self):
        self._digests: Dict[str, Dict[str, str]] = {}
        self._lock = threading.Lock()

    def add(self, tag: str, platform_key: str, digest: str) -> bool:
        """Records a digest. Malformed digests are dropped and False is returned."""
        if not is_valid_digest(digest):
            logger.warning("Ignoring malformed digest %r for %s (%s)", digest, tag, platform_key)
            return False
        with self._lock:
            self._digests.setdefault(tag, {})[platform_key] = digest
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._digests)

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        with self._lock:
            return {tag: dict(platforms) for tag, platforms in self._digests.items()}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))


def aggregate_digests(
    tasks: Sequence[ImageTask],
    mode: BuildMode,
    engine_digests: Optional[Mapping[str, str]] = None,
    resolve: Callable[[str], Optional[str]] = resolve_digest,
    max_workers: Optional[int] = None,
) -> DigestReport:
    """
    Builds the digest report for published tasks.

    A per-platform map from a multi-arch build is copied under every tag.
    Otherwise each distinct reference is resolved once, concurrently, and
    folded in as the lookups complete.
    """
    report = DigestReport()

    if engine_digests and not mode.split:
        for task in tasks:
            for platform, digest in engine_digests.items():
                report.add(task.tag, platform, digest)
        return report

    refs = references(tasks)
    if not refs:
        return report

    by_reference: Dict[str, List[ImageTask]] = {}
    for task in tasks:
        by_reference.setdefault(task.reference, []).append(task)

    with ThreadPoolExecutor(max_workers=max_workers or len(refs)) as executor:
        futures = {executor.submit(resolve, ref): ref for ref in refs}
        for future in as_completed(futures):
            digest = future.result()
            if digest is None:
                continue
            for task in by_reference[futures[future]]:
                report.add(task.tag, task.platform_key, digest)

    return report
