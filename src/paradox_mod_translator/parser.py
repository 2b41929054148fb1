"""Localisation file reading, repair and saving utilities."""

from __future__ import annotations

import os
import re
import logging
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .config import MAX_FILE_SIZE, SUPPORTED_EXTENSIONS
from .errors import (
    FileTooLargeError,
    InvalidStructureError,
    PreprocessError,
    WriteFailedError,
)

logger = logging.getLogger(__name__)

BOM = "\ufeff"

# 语言头，例如 "l_english:"
HEADER_PATTERN = re.compile(r"^\s*l_(\w+):\s*$")
LANGUAGE_TAG_PATTERN = re.compile(r"l_\w+:")

# key:0 "value" 形式的条目（版本号可省略）
ENTRY_PATTERN = re.compile(r'^\s*([\w.\-]+):(\d*)\s+"(.*)"\s*(#.*)?$')

# key:0 value 形式缺少引号的条目
UNQUOTED_PATTERN = re.compile(r'^(\s*)([\w.\-]+):(\d*)\s+([^"\s#][^"#]*?)\s*$')


def validate_localisation_file(path: Path) -> Optional[str]:
    """
    Validate a localisation file before processing.

    Returns:
        Error message if invalid, None if valid
    """
    if not path.exists():
        return f"File not found: {path}"

    if not path.is_file():
        return f"Not a file: {path}"

    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        return f"Invalid file extension: {suffix} (expected .yml or .yaml)"

    return None


def read_localisation_file(path: Path) -> str:
    """
    Read a file, dropping the UTF-8 BOM and normalising newlines to ``\\n``.

    Raises:
        FileTooLargeError: if the file exceeds MAX_FILE_SIZE
        PreprocessError: if the file cannot be read or decoded
    """
    size = path.stat().st_size
    if size > MAX_FILE_SIZE:
        raise FileTooLargeError(
            f"{path}: {size / 1024 / 1024:.1f}MB (max {MAX_FILE_SIZE // 1024 // 1024}MB)"
        )

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise PreprocessError(f"Cannot read {path}: {e}") from e

    return normalize_text(strip_bom(content))


def strip_bom(content: str) -> str:
    return content[1:] if content.startswith(BOM) else content


def normalize_text(content: str) -> str:
    """Unify line endings to ``\\n``."""
    return content.replace("\r\n", "\n").replace("\r", "\n")


def split_header(content: str) -> Tuple[str, str]:
    """
    Separate the ``l_<lang>:`` header line from the body.

    Blank lines before the header stay part of the header string so the output
    keeps the same leading layout. Content whose first non-blank line is not a
    header is returned whole as the body.

    Returns:
        (header, body); header is empty if none was found
    """
    lines = content.split("\n")
    for i, line in enumerate(lines):
        if not line.strip():
            continue
        if HEADER_PATTERN.match(line):
            return "\n".join(lines[:i] + [line.strip()]), "\n".join(lines[i + 1:])
        break
    return "", content


def header_language(header: str) -> Optional[str]:
    match = HEADER_PATTERN.match(header)
    return match.group(1) if match else None


def make_header(lang: str) -> str:
    return f"l_{lang}:"


def retarget_header(header: str, lang: str) -> str:
    """Swap the language in a header from :func:`split_header`, keeping its layout."""
    return LANGUAGE_TAG_PATTERN.sub(make_header(lang), header, count=1)


def fix_yaml_line(line: str) -> str:
    """
    Repair common hand-editing mistakes in one line.

    * tabs in the indentation become two spaces
    * trailing whitespace is removed
    * an unquoted value (``key:0 some text``) gets double quotes

    Comments, blank lines and the header are left untouched.
    """
    stripped = line.lstrip(" \t")
    indent = line[:len(line) - len(stripped)].replace("\t", "  ")
    line = (indent + stripped).rstrip()

    if not stripped or stripped.startswith("#") or HEADER_PATTERN.match(line):
        return line

    match = UNQUOTED_PATTERN.match(line)
    if match:
        lead, key, version, value = match.groups()
        return f'{lead}{key}:{version} "{value}"'

    return line


def fix_yaml_content(content: str) -> str:
    """Apply :func:`fix_yaml_line` to every line; the line count is unchanged."""
    return "\n".join(fix_yaml_line(line) for line in content.split("\n"))


def check_structure(body: str, path: Path) -> None:
    """
    Raises:
        InvalidStructureError: if the body holds no ``key: "value"`` entry
    """
    if not body.strip():
        raise InvalidStructureError(f"{path}: no content after language header")
    if not any(ENTRY_PATTERN.match(line) for line in body.split("\n")):
        raise InvalidStructureError(f"{path}: no localisation entries found")


def parse_entries(content: str) -> Dict[str, str]:
    """Map key -> quoted value for every entry line in ``content``."""
    entries: Dict[str, str] = {}
    for line in content.split("\n"):
        match = ENTRY_PATTERN.match(line)
        if match:
            entries[match.group(1)] = match.group(3)
    return entries


def derive_target_filename(source_filename: str, source_lang: str, target_lang: str) -> str:
    """
    Swap the language tag in a file name.

    ``l_english_events.yml`` -> ``l_simp_chinese_events.yml``;
    ``events_english.yaml`` -> ``events_simp_chinese.yaml``.
    """
    name = source_filename.replace(f"l_{source_lang}", f"l_{target_lang}")
    for suffix in (".yml", ".yaml"):
        name = name.replace(f"_{source_lang}{suffix}", f"_{target_lang}{suffix}")
    return name


def find_localisation_files(directory: Path) -> List[Path]:
    """All ``.yml``/``.yaml`` files below ``directory``, sorted."""
    return sorted(
        p for p in directory.rglob("*")
        if p.is_file() and p.suffix.lower() in SUPPORTED_EXTENSIONS
    )


def save_localisation_file(content: str, path: Path) -> None:
    """
    Write ``content`` as UTF-8 with BOM, which the game requires.

    The file is written to a temporary sibling first and then moved into
    place, so a failed write never leaves a half-written file behind.

    Raises:
        WriteFailedError: if the file cannot be written
    """
    if not content.endswith("\n"):
        content += "\n"

    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8-sig",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp_name = f.name
            f.write(content)
        os.replace(tmp_name, path)
    except (OSError, UnicodeError) as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise WriteFailedError(f"Failed to write {path}: {e}") from e

    logger.info(f"Saved {path}")
