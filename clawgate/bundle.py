"""Asset bundle reading and manifest building utilities."""

from __future__ import annotations

import io
import zipfile
import zlib
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, Callable, Dict, List, Optional, Sequence

from .logging import get_logger
from .models import AssetEntry, IssueCode, ValidationIssue
from .rules.tables import RuleTables

SPRITESHEET = "spritesheet"
IMAGE = "image"
JSON = "json"

SCRIPT_ROLE = "script"
MANIFEST_ROLE = "manifest"
ASSET_ROLE = "asset"
STRAY_ROLE = "stray"
UNSAFE_ROLE = "unsafe"

_CHUNK_SIZE = 64 * 1024
_ENCRYPTED_FLAG = 0x1
_MEMBER_ERRORS = (
    zipfile.BadZipFile,
    zlib.error,
    NotImplementedError,
    RuntimeError,
    EOFError,
    OSError,
    ValueError,
)

_logger = get_logger("bundle")


class BundleError(RuntimeError):
    """Raised when an archive cannot be inspected any further."""

    def __init__(self, code: IssueCode, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.code = code
        self.detail = detail

    def to_issue(self) -> ValidationIssue:
        return ValidationIssue.error(self.code, str(self), **self.detail)


@dataclass
class BundleManifest:
    """Normalized view of a bundle's entries for the bundle validator."""

    assets: List[AssetEntry] = field(default_factory=list)
    roles: Dict[str, str] = field(default_factory=dict)
    duplicates: List[str] = field(default_factory=list)
    script: Optional[bytes] = None
    script_size: int = 0
    manifest: Optional[bytes] = None
    manifest_size: int = 0
    total_size: int = 0
    budget_exhausted: bool = False

    def has_path(self, path: str) -> bool:
        return path in self.roles


def entry_role(path: str, rules: RuleTables) -> str:
    if not _is_safe_path(path):
        return UNSAFE_ROLE
    if path == rules.bundle_script:
        return SCRIPT_ROLE
    if path == rules.bundle_manifest:
        return MANIFEST_ROLE
    if path.startswith(rules.bundle_asset_root) and len(path) > len(rules.bundle_asset_root):
        return ASSET_ROLE
    return STRAY_ROLE


def classify_assets(paths: Sequence[str], rules: RuleTables) -> Dict[str, Optional[str]]:
    """Map asset paths to categories; image + same-stem JSON pairs become sprite sheets."""
    categories: Dict[str, Optional[str]] = {}
    stems: Dict[str, List[str]] = {}
    for path in paths:
        suffix = PurePosixPath(path).suffix.lower()
        category = rules.asset_extensions.get(suffix)
        categories[path] = category
        if category in (IMAGE, JSON):
            stems.setdefault(path[: len(path) - len(suffix)], []).append(path)

    for members in stems.values():
        kinds = {categories[member] for member in members}
        if IMAGE in kinds and JSON in kinds:
            for member in members:
                categories[member] = SPRITESHEET
    return categories


def spritesheet_key(path: str) -> str:
    return path[: len(path) - len(PurePosixPath(path).suffix)]


class BundleReader:
    """Opens a zip bundle and measures its entries without trusting headers."""

    def __init__(
        self,
        rules: RuleTables,
        *,
        checkpoint: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.rules = rules
        self._checkpoint = checkpoint

    def read(self, payload: bytes, budget: int) -> BundleManifest:
        try:
            archive = zipfile.ZipFile(io.BytesIO(payload))
        except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, OSError, ValueError) as exc:
            raise BundleError(
                IssueCode.INVALID_GAME_FILE,
                "Asset bundle is not a readable zip archive",
                reason=str(exc),
            ) from exc

        with archive:
            try:
                members = [info for info in archive.infolist() if not info.is_dir()]
            except _MEMBER_ERRORS as exc:  # pragma: no cover - infolist is pre-parsed
                raise BundleError(
                    IssueCode.INVALID_GAME_FILE,
                    "Asset bundle directory could not be read",
                    reason=str(exc),
                ) from exc
            if len(members) > self.rules.max_entries:
                raise BundleError(
                    IssueCode.INVALID_ASSET_BUNDLE,
                    f"Asset bundle has {len(members)} entries; the limit is {self.rules.max_entries}",
                    entries=len(members),
                    limit=self.rules.max_entries,
                )
            return self._read_members(archive, members, budget)

    def _read_members(
        self, archive: zipfile.ZipFile, members: List[zipfile.ZipInfo], budget: int
    ) -> BundleManifest:
        manifest = BundleManifest()
        unique: List[zipfile.ZipInfo] = []
        for info in members:
            if info.filename in manifest.roles:
                manifest.duplicates.append(info.filename)
                continue
            manifest.roles[info.filename] = entry_role(info.filename, self.rules)
            unique.append(info)

        asset_paths = [path for path, role in manifest.roles.items() if role == ASSET_ROLE]
        categories = classify_assets(asset_paths, self.rules)

        # Small root files first so budget exhaustion never hides game.js.
        unique.sort(key=lambda info: manifest.roles[info.filename] not in (SCRIPT_ROLE, MANIFEST_ROLE))

        for info in unique:
            if self._checkpoint is not None:
                self._checkpoint("bundle")
            path = info.filename
            role = manifest.roles[path]
            self._reject_suspicious(info)

            if role in (UNSAFE_ROLE, STRAY_ROLE):
                _logger.debug("Not reading %s entry %s", role, path)
                manifest.total_size += info.file_size
                continue

            if role == SCRIPT_ROLE:
                data, size = self._read_member(archive, info, self.rules.size_limits["script"], keep=True)
                manifest.script, manifest.script_size = data, size
            elif role == MANIFEST_ROLE:
                data, size = self._read_member(archive, info, self.rules.asset_limits[JSON], keep=True)
                manifest.manifest, manifest.manifest_size = data, size
            else:
                category = categories.get(path)
                suffix = PurePosixPath(path).suffix.lower()
                if category is None or manifest.budget_exhausted:
                    size = info.file_size
                else:
                    _, size = self._read_member(archive, info, self.rules.asset_limits[category], keep=False)
                manifest.assets.append(
                    AssetEntry(path=path, extension=suffix, category=category, byte_size=size)
                )

            manifest.total_size += size
            if manifest.total_size > budget and not manifest.budget_exhausted:
                _logger.debug("Bundle exceeded its %d byte budget at %s", budget, path)
                manifest.budget_exhausted = True
        return manifest

    def _reject_suspicious(self, info: zipfile.ZipInfo) -> None:
        if info.flag_bits & _ENCRYPTED_FLAG:
            raise BundleError(
                IssueCode.INVALID_ASSET_BUNDLE,
                f"Entry '{info.filename}' is encrypted",
                entry=info.filename,
            )
        declared = info.file_size
        if declared > self.rules.compression_check_floor:
            ratio = declared / max(info.compress_size, 1)
            if ratio > self.rules.max_compression_ratio:
                raise BundleError(
                    IssueCode.INVALID_ASSET_BUNDLE,
                    f"Entry '{info.filename}' expands {ratio:.0f}x; the limit is "
                    f"{self.rules.max_compression_ratio}x",
                    entry=info.filename,
                    ratio=round(ratio, 1),
                )

    def _read_member(
        self, archive: zipfile.ZipFile, info: zipfile.ZipInfo, limit: int, *, keep: bool
    ) -> tuple[Optional[bytes], int]:
        """Stream an entry, stopping one byte past ``limit``.

        Returns the data (when ``keep``) and the measured size; an entry cut
        short at the limit reports the larger of measured and declared size.
        """
        chunks: List[bytes] = []
        read = 0
        try:
            with archive.open(info) as handle:
                while read <= limit:
                    chunk = handle.read(min(_CHUNK_SIZE, limit + 1 - read))
                    if not chunk:
                        break
                    read += len(chunk)
                    if keep:
                        chunks.append(chunk)
        except _MEMBER_ERRORS as exc:
            raise BundleError(
                IssueCode.INVALID_ASSET_BUNDLE,
                f"Entry '{info.filename}' could not be decompressed",
                entry=info.filename,
                reason=str(exc),
            ) from exc

        if read <= limit and read > info.file_size:
            raise BundleError(
                IssueCode.INVALID_ASSET_BUNDLE,
                f"Entry '{info.filename}' is larger than its header declares",
                entry=info.filename,
            )
        size = read if read <= limit else max(read, info.file_size)
        data = b"".join(chunks) if keep and read <= limit else None
        return data, size


def _is_safe_path(path: str) -> bool:
    if not path or path.startswith("/") or "\\" in path or ":" in path:
        return False
    return all(part not in ("", ".", "..") for part in path.split("/"))


__all__ = [
    "ASSET_ROLE",
    "BundleError",
    "BundleManifest",
    "BundleReader",
    "MANIFEST_ROLE",
    "SCRIPT_ROLE",
    "SPRITESHEET",
    "STRAY_ROLE",
    "UNSAFE_ROLE",
    "classify_assets",
    "entry_role",
    "spritesheet_key",
]
