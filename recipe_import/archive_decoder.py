"""
Container sniffing and unpacking for exported recipe collections.

A Paprika export is a zip of per-recipe entries, each of which is usually a
gzip stream wrapping a JSON document. Other tools hand us bare gzip or raw
JSON. Everything is classified by binary signature first; unrecognised bytes
are simply "nothing extracted", never an error.
"""

import gzip
import io
import logging
import zipfile
import zlib
from dataclasses import dataclass
from enum import Enum

from recipe_import import config

logger = logging.getLogger(__name__)

ZIP_MAGIC = b"PK\x03\x04"
GZIP_MAGIC = b"\x1f\x8b"

# gzip layers stacked directly on each other; past this the branch is dropped
MAX_GZIP_LAYERS = 2


class ContainerKind(Enum):
    ZIP = "zip"
    GZIP = "gzip"
    JSON = "json"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class RawArchiveEntry:
    """A JSON payload recovered from a container, with its path inside it."""
    path: str
    data: bytes

    def text(self) -> str:
        return self.data.decode("utf-8-sig", errors="replace").strip()


def is_zip(data: bytes) -> bool:
    """Return True if *data* starts with the zip local-file-header magic."""
    return len(data) >= 4 and data[:4] == ZIP_MAGIC


def is_gzip(data: bytes) -> bool:
    """Return True if *data* starts with the gzip magic."""
    return len(data) >= 2 and data[:2] == GZIP_MAGIC


def looks_like_json_text(text: str) -> bool:
    """Return True if *text* (ignoring surrounding whitespace) opens a JSON object or array."""
    trimmed = text.strip()
    return trimmed.startswith("{") or trimmed.startswith("[")


def classify(data: bytes) -> ContainerKind:
    """Classify *data* by signature; text is only decoded when no magic matches."""
    if is_zip(data):
        return ContainerKind.ZIP
    if is_gzip(data):
        return ContainerKind.GZIP
    if looks_like_json_text(data.decode("utf-8-sig", errors="replace")):
        return ContainerKind.JSON
    return ContainerKind.UNKNOWN


def _read_zip_members(path: str, data: bytes) -> list[tuple[str, bytes]]:
    """Return (member path, bytes) for every readable file in a zip buffer."""
    members = []
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, zlib.error, OSError, ValueError) as e:
        logger.warning("Failed to open zip archive", extra={"path": path or "<root>", "error": str(e)})
        return members

    with archive:
        for info in archive.infolist():
            if info.is_dir():
                continue
            member_path = f"{path}/{info.filename}" if path else info.filename
            try:
                members.append((member_path, archive.read(info)))
            except (zipfile.BadZipFile, zlib.error, OSError, RuntimeError, NotImplementedError) as e:
                # Unreadable member (corrupt, encrypted, unsupported compression)
                logger.warning("Skipping unreadable archive member", extra={"path": member_path, "error": str(e)})
    return members


def decode_archive(data: bytes, max_depth: int = config.MAX_ARCHIVE_DEPTH, name: str = "") -> list[RawArchiveEntry]:
    """Unpack *data* into the JSON payloads it contains.

    Walks nested containers with an explicit worklist so the depth cap holds
    no matter how the nesting is arranged. Only zip archives open a new
    level: their members are re-classified one level deeper. A gunzipped
    payload is re-classified at the level of the stream that wrapped it, so
    gzip → zip → gzip → JSON and zip → zip → gzip → JSON both sit within a
    cap of 2. Runs of gzip-in-gzip are bounded by MAX_GZIP_LAYERS instead.
    Anything past either cap is dropped with a warning, as is any corrupt
    branch. Siblings are never affected.

    Args:
        data: Raw bytes (zip, gzip, or JSON text)
        max_depth: Deepest zip nesting level still inspected (root is 0)
        name: Optional display path for the root buffer

    Returns:
        JSON entries in archive order; empty when nothing was recognised
    """
    entries: list[RawArchiveEntry] = []
    # Stack of (path, bytes, zip depth, consecutive gzip layers);
    # pushed in reverse to preserve archive order
    worklist: list[tuple[str, bytes, int, int]] = [(name, data, 0, 0)]

    while worklist:
        path, payload, depth, gzip_layers = worklist.pop()

        if depth > max_depth:
            logger.warning("Max archive depth reached, skipping branch", extra={"path": path or "<root>", "max_depth": max_depth})
            continue

        kind = classify(payload)

        if kind is ContainerKind.ZIP:
            members = _read_zip_members(path, payload)
            for member_path, member_data in reversed(members):
                worklist.append((member_path, member_data, depth + 1, 0))

        elif kind is ContainerKind.GZIP:
            if gzip_layers >= MAX_GZIP_LAYERS:
                logger.warning("Too many nested gzip layers, skipping branch", extra={"path": path or "<root>", "max_gzip_layers": MAX_GZIP_LAYERS})
                continue
            try:
                inner = gzip.decompress(payload)
            except (OSError, EOFError, zlib.error) as e:
                logger.warning("Failed to decompress gzip stream", extra={"path": path or "<root>", "error": str(e)})
                continue
            worklist.append((path, inner, depth, gzip_layers + 1))

        elif kind is ContainerKind.JSON:
            entries.append(RawArchiveEntry(path=path, data=payload))

        else:
            logger.debug("Ignoring unrecognised payload", extra={"path": path or "<root>", "size": len(payload)})

    return entries
