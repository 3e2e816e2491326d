"""Folder scan: classify files, drop legacy-raster duplicates, attach companion PDFs, build records."""

import concurrent.futures
import logging
import mimetypes
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Protocol

from src.errors import InvalidIdentity, UnsupportedFormat
from src.identity import canonicalize, directory_of, split_extension
from src.models import Attachment, ScoredRecord

log = logging.getLogger("photo_judge.scan")

DISPLAYABLE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}
LEGACY_RASTER_TYPES = {"image/tiff", "image/bmp"}
AUXILIARY_TYPES = {"application/pdf"}

EXTENSION_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "gif": "image/gif",
    "tif": "image/tiff",
    "tiff": "image/tiff",
    "bmp": "image/bmp",
    "pdf": "application/pdf",
}


@dataclass
class FileDescriptor:
    """A file as delivered by a folder scan. `path` is relative and includes the scanned folder."""

    name: str
    path: str
    size: int = 0
    modified: float = 0.0
    media_type: str = ""
    data: bytes | None = field(default=None, repr=False)
    data_ref: str | None = None
    read_error: str | None = None


@dataclass
class ConversionResult:
    """Outcome of converting a legacy raster file. Exactly one of preview/error is set."""

    preview: Attachment | None = None
    error: str | None = None


class FormatConverter(Protocol):
    def convert(self, descriptor: FileDescriptor) -> ConversionResult: ...


@dataclass
class ScanResult:
    records: list[ScoredRecord] = field(default_factory=list)
    discarded: list[str] = field(default_factory=list)
    skipped: list[InvalidIdentity] = field(default_factory=list)
    unsupported: list[str] = field(default_factory=list)
    auxiliary_count: int = 0


def media_type_of(descriptor: FileDescriptor) -> str:
    """Declared media type, else by extension, else by mimetypes."""
    if descriptor.media_type:
        return descriptor.media_type.lower()
    _, ext = split_extension(descriptor.name)
    if ext in EXTENSION_TYPES:
        return EXTENSION_TYPES[ext]
    guessed, _ = mimetypes.guess_type(descriptor.name)
    return (guessed or "").lower()


def identity_of(descriptor: FileDescriptor) -> str:
    return canonicalize((descriptor.path or descriptor.name or "").strip())


def dedupe_format_variants(files: Iterable[FileDescriptor]) -> tuple[list[FileDescriptor], list[str]]:
    """
    Group image files by (directory, case-insensitive base name).
    When a group has any directly displayable variant, its legacy-raster variants are dropped
    with a note. Groups without one keep their legacy-raster files. Files of any other image
    type never replace anything and are always kept.
    """
    groups: dict[tuple[str, str], dict[str, list[FileDescriptor]]] = {}
    for f in files:
        key = identity_of(f)
        base, _ = split_extension(f.name or key)
        group_key = (directory_of(key), base.lower())
        group = groups.setdefault(group_key, {"displayable": [], "legacy": [], "other": []})
        media_type = media_type_of(f)
        if media_type in DISPLAYABLE_TYPES:
            group["displayable"].append(f)
        elif media_type in LEGACY_RASTER_TYPES:
            group["legacy"].append(f)
        else:
            group["other"].append(f)

    kept: list[FileDescriptor] = []
    notes: list[str] = []
    for (directory, base), group in groups.items():
        kept.extend(group["displayable"])
        kept.extend(group["other"])
        if not group["legacy"]:
            continue
        if not group["displayable"]:
            kept.extend(group["legacy"])
            continue
        dropped = ", ".join(f.name for f in group["legacy"])
        note = (
            f'"{dropped}" discarded in favour of "{group["displayable"][0].name}" '
            f'for base name "{directory}{base}"'
        )
        log.warning("Legacy raster variant discarded: %s", note)
        notes.append(note)
    return kept, notes


def associate_auxiliary(files: Iterable[FileDescriptor]) -> dict[str, Attachment]:
    """First PDF per directory (directory compared case-insensitively)."""
    by_dir: dict[str, Attachment] = {}
    for f in files:
        if media_type_of(f) not in AUXILIARY_TYPES:
            continue
        key = identity_of(f)
        dir_key = directory_of(key).lower()
        if dir_key in by_dir:
            log.warning(
                "Multiple PDFs in directory %r; keeping %s, ignoring %s", dir_key, by_dir[dir_key].name, f.name
            )
            continue
        by_dir[dir_key] = Attachment(name=f.name, path=key, media_type="application/pdf", size=f.size, data=f.data)
    return by_dir


def _preview_for(descriptor: FileDescriptor, key: str, media_type: str, converter: FormatConverter | None):
    """Return (preview, error). Conversion problems are kept on the record, never raised."""
    if descriptor.read_error:
        return None, descriptor.read_error
    if media_type in DISPLAYABLE_TYPES:
        if descriptor.data is None and not descriptor.data_ref:
            return None, f"No readable content for {descriptor.name} ({key})"
        return Attachment(descriptor.name, key, media_type, descriptor.size, descriptor.data), None
    if media_type in LEGACY_RASTER_TYPES:
        if converter is None:
            return None, f"Format conversion unavailable for {descriptor.name} ({key}); original file kept"
        try:
            result = converter.convert(descriptor)
        except Exception as exc:
            log.exception("Conversion failed for %s", key)
            return None, f"Conversion to PNG failed for {descriptor.name} ({key}): {exc}"
        return result.preview, result.error
    error = UnsupportedFormat(f"Unsupported file type for display or conversion: {descriptor.name} ({media_type or 'unknown'}, {key})")
    return None, str(error)


def build_records(files: Iterable[FileDescriptor], converter: FormatConverter | None = None) -> ScanResult:
    """Turn scanned files into fresh records (zero scores) ready for reconciliation."""
    files = list(files)
    result = ScanResult()

    images: list[FileDescriptor] = []
    for f in files:
        media_type = media_type_of(f)
        if not media_type.startswith("image/"):
            continue
        if not identity_of(f):
            exc = InvalidIdentity(f"Scanned file has no usable path: {f.name!r}", source="folder")
            log.warning("Skipping file: %s", exc)
            result.skipped.append(exc)
            continue
        images.append(f)

    auxiliary = associate_auxiliary(files)
    kept, result.discarded = dedupe_format_variants(images)
    kept.sort(key=identity_of)

    for f in kept:
        key = identity_of(f)
        media_type = media_type_of(f)
        preview, error = _preview_for(f, key, media_type, converter)
        if error:
            log.error("Error processing %s (%s): %s", f.name, key, error)
            if media_type not in DISPLAYABLE_TYPES | LEGACY_RASTER_TYPES:
                result.unsupported.append(key)
        attachment = auxiliary.get(directory_of(key).lower())
        if attachment:
            result.auxiliary_count += 1
        result.records.append(
            ScoredRecord(
                key=key,
                display_name=f.name,
                preview=preview,
                auxiliary=attachment,
                status_error=error,
            )
        )
    log.info(
        "Scan built %d records (%d legacy variants discarded, %d with companion PDF)",
        len(result.records), len(result.discarded), result.auxiliary_count,
    )
    return result


def _read_file(path: Path, relative: str) -> FileDescriptor:
    stat = path.stat()
    descriptor = FileDescriptor(
        name=path.name,
        path=relative,
        size=stat.st_size,
        modified=stat.st_mtime,
    )
    try:
        descriptor.data = path.read_bytes()
    except OSError as exc:
        descriptor.read_error = f"Could not read {relative}: {exc}"
    return descriptor


def scan_directory(root: str | Path, max_workers: int = 4) -> list[FileDescriptor]:
    """
    Read every image and PDF under `root`. Reads run concurrently; results are returned
    in path order so downstream folding happens one file at a time, deterministically.
    Paths are relative to the parent of `root` so they start with the folder name.
    """
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Folder not found: {root}")

    candidates: list[tuple[Path, str]] = []
    for dirpath, _dirnames, filenames in os.walk(root):
        for filename in filenames:
            path = Path(dirpath) / filename
            relative = path.relative_to(root.parent).as_posix()
            probe = FileDescriptor(name=filename, path=relative)
            media_type = media_type_of(probe)
            if media_type.startswith("image/") or media_type in AUXILIARY_TYPES:
                candidates.append((path, relative))

    by_relative: dict[str, FileDescriptor] = {}
    with concurrent.futures.ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
        future_map = {executor.submit(_read_file, path, relative): relative for path, relative in candidates}
        for future in concurrent.futures.as_completed(future_map):
            relative = future_map[future]
            try:
                by_relative[relative] = future.result()
            except OSError as exc:
                log.warning("Could not stat %s: %s", relative, exc)
    return [by_relative[rel] for rel in sorted(by_relative)]
