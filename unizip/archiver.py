from __future__ import annotations

import os
import tempfile
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Iterable, List, Optional, Sequence, Tuple, Union

from unizip.model import ArchivedEntry, ArchiveResult, SkippedInput

PathInput = Union[str, "os.PathLike[str]"]

UTF8_FLAG = 0x800
UNICODE_PATH_EXTRA_ID = 0x7075
UNICODE_PATH_EXTRA_VERSION = 1

# zlib.Z_BEST_SPEED; compression level is not configurable
COMPRESS_LEVEL = 1
DEFAULT_BUFFER_SIZE = 1024

EXTRA_FIELD_POLICIES = ("always", "never", "not_ascii")


class ArchiveCreationError(Exception):
    """
    Raised when an archive could not be produced.
    The underlying I/O error is chained as __cause__.
    archive_path is the (possibly partial) file left on disk, or None
    when the temporary file could not be allocated.
    """

    def __init__(self, message: str, archive_path: Optional[Path] = None):
        super().__init__(message)
        self.archive_path = archive_path


@dataclass(frozen=True)
class ArchiveOptions:
    buffer_size: int = DEFAULT_BUFFER_SIZE
    unicode_extra_field: str = "always"  # always, never, not_ascii
    utf8_flag: bool = True

    temp_prefix: str = "zip"
    temp_suffix: str = ".zip"
    temp_dir: Optional[str] = None

    def __post_init__(self):
        if self.buffer_size <= 0:
            raise ValueError(f"buffer_size must be positive, got {self.buffer_size}")
        if self.unicode_extra_field not in EXTRA_FIELD_POLICIES:
            raise ValueError(f"Unknown unicode_extra_field policy: {self.unicode_extra_field!r}")


class Utf8ZipInfo(zipfile.ZipInfo):
    """
    ZipInfo that always encodes its name as UTF-8 and sets the language
    encoding flag (bit 11), ASCII names included. zipfile only sets the
    flag for names that are not pure ASCII.
    """

    # CPython calls _encodeFilenameFlags for both the local header and the
    # central directory; the base class picks ascii or utf-8 per name.
    def _encodeFilenameFlags(self):
        return self.filename.encode("utf-8"), self.flag_bits | UTF8_FLAG


def unicode_path_extra(name: str, header_name: bytes) -> bytes:
    """
    Info-ZIP Unicode Path Extra Field (0x7075):
    [id(2)][size(2)][version(1)][crc32 of header name(4)][utf-8 name]
    """
    utf8_name = name.encode("utf-8")
    payload = (
        UNICODE_PATH_EXTRA_VERSION.to_bytes(1, "little")
        + (zlib.crc32(header_name) & 0xFFFFFFFF).to_bytes(4, "little")
        + utf8_name
    )
    return (
        UNICODE_PATH_EXTRA_ID.to_bytes(2, "little")
        + len(payload).to_bytes(2, "little")
        + payload
    )


def _wants_extra_field(name: str, policy: str) -> bool:
    if policy == "always":
        return True
    if policy == "not_ascii":
        return not name.isascii()
    return False


def _utf8_safe(text: str) -> str:
    # Undecodable bytes in OS filenames arrive as surrogate escapes; they become "?"
    return text.encode("utf-8", "replace").decode("utf-8")


def _entry_info(path: Path, options: ArchiveOptions) -> zipfile.ZipInfo:
    name = _utf8_safe(path.name)
    cls = Utf8ZipInfo if options.utf8_flag else zipfile.ZipInfo
    zinfo = cls.from_file(path, arcname=name, strict_timestamps=False)
    zinfo.compress_type = zipfile.ZIP_DEFLATED
    # ZipFile.open(zinfo, "w") takes the level from the ZipInfo; 3.13 exposes
    # it as compress_level and keeps _compresslevel as an alias
    zinfo._compresslevel = COMPRESS_LEVEL

    if _wants_extra_field(name, options.unicode_extra_field):
        header_name, _ = zinfo._encodeFilenameFlags()
        zinfo.extra = unicode_path_extra(name, header_name)
    return zinfo


def _skip_reason(path: Path) -> Optional[str]:
    if path.is_file():
        return None
    if path.is_dir():
        return "directory"
    if not path.exists():
        return "missing"
    return "not_regular_file"


def _close_quietly(closeable) -> None:
    if closeable is None:
        return
    try:
        closeable.close()
    except (OSError, ValueError):
        pass


def _allocate_archive(options: ArchiveOptions) -> Tuple[Path, IO[bytes]]:
    fp = tempfile.NamedTemporaryFile(
        mode="w+b",
        prefix=options.temp_prefix,
        suffix=options.temp_suffix,
        dir=options.temp_dir,
        delete=False,
    )
    return Path(fp.name), fp


def _write_entry(zf: zipfile.ZipFile, path: Path, options: ArchiveOptions) -> ArchivedEntry:
    zinfo = _entry_info(path, options)
    dest = None
    with path.open("rb") as src:
        try:
            dest = zf.open(zinfo, "w")
            for chunk in iter(lambda: src.read(options.buffer_size), b""):
                dest.write(chunk)
            dest.close()
        except BaseException:
            _close_quietly(dest)
            raise

    return ArchivedEntry(
        name=zinfo.filename,
        source_path=_utf8_safe(str(path)),
        file_size=zinfo.file_size,
        compress_size=zinfo.compress_size,
        crc32=zinfo.CRC,
        utf8_flag=options.utf8_flag or not zinfo.filename.isascii(),
        unicode_extra_field=bool(zinfo.extra),
    )


def build_archive(paths: Iterable[PathInput], options: Optional[ArchiveOptions] = None) -> ArchiveResult:
    """
    Writes every regular file in `paths` as a top-level entry (basename only)
    of a new temporary ZIP file and returns what was written and skipped.
    Directories and missing paths are skipped without error.
    """
    options = options or ArchiveOptions()

    try:
        archive_path, fp = _allocate_archive(options)
    except OSError as e:
        raise ArchiveCreationError(f"Could not allocate archive file: {e}") from e

    entries: List[ArchivedEntry] = []
    skipped: List[SkippedInput] = []
    zf = None
    try:
        zf = zipfile.ZipFile(fp, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=COMPRESS_LEVEL)
        for raw in paths:
            path = Path(raw)
            reason = _skip_reason(path)
            if reason is not None:
                skipped.append(SkippedInput(source_path=_utf8_safe(str(path)), reason=reason))
                continue
            entries.append(_write_entry(zf, path, options))

        # writes the central directory
        zf.close()
        fp.close()
    except (OSError, zipfile.LargeZipFile) as e:
        raise ArchiveCreationError(f"Archive creation failed: {e}", archive_path) from e
    finally:
        _close_quietly(zf)
        _close_quietly(fp)

    return ArchiveResult(archive_path=str(archive_path), entries=entries, skipped=skipped)


def create_archive(paths: Sequence[PathInput], options: Optional[ArchiveOptions] = None) -> Path:
    return Path(build_archive(paths, options).archive_path)


def create_archive_from_strings(paths: Iterable[str], options: Optional[ArchiveOptions] = None) -> Path:
    return create_archive([Path(p) for p in paths], options)
