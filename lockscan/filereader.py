"""Reading and decoding of scanned files."""

import codecs
from pathlib import Path

from .exceptions import FileProcessingError

_BOMS = (
    (codecs.BOM_UTF32_LE, "utf-32"),
    (codecs.BOM_UTF32_BE, "utf-32"),
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)


def decode_content(data: bytes, path: str) -> str:
    """Decode file bytes, honouring a leading byte-order mark.

    Files without a BOM are read as UTF-8.

    Args:
        data: Raw file content
        path: Path of the file, used in error messages

    Returns:
        Decoded text.

    Raises:
        FileProcessingError: If the content is not valid in its encoding.
    """
    encoding = "utf-8"
    # UTF-32 LE starts with the UTF-16 LE mark, so it must be checked first
    for bom, candidate in _BOMS:
        if data.startswith(bom):
            encoding = candidate
            break

    try:
        return data.decode(encoding)
    except UnicodeDecodeError as e:
        raise FileProcessingError(f"Cannot decode {path} as {encoding}: {e}") from e


def read_file(path: str | Path) -> bytes:
    """Read a file's raw bytes.

    Raises:
        FileProcessingError: If the file cannot be read.
    """
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise FileProcessingError(f"Cannot read {path}: {e.strerror or e}") from e
