"""Multilingual glossary loading and lookup."""

from __future__ import annotations

import csv
import io
import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Set

from .data_files import find_data_file, search_roots
from .errors import GlossaryNotFoundError, GlossaryParseError

logger = logging.getLogger(__name__)


class Language(str, Enum):
    """Supported game languages, in glossary-key order ("1".."10")."""

    ENGLISH = "english"
    SIMP_CHINESE = "simp_chinese"
    SPANISH = "spanish"
    FRENCH = "french"
    BRAZ_POR = "braz_por"
    RUSSIAN = "russian"
    GERMAN = "german"
    JAPANESE = "japanese"
    KOREAN = "korean"
    POLISH = "polish"

    @classmethod
    def from_key(cls, key: str) -> Optional["Language"]:
        """Decode a numeric glossary key; unknown keys give None."""
        try:
            index = int(key)
        except (TypeError, ValueError):
            return None
        members = list(cls)
        if 1 <= index <= len(members):
            return members[index - 1]
        return None

    @classmethod
    def parse(cls, code: str | Language) -> Optional["Language"]:
        if isinstance(code, cls):
            return code
        try:
            return cls(code)
        except ValueError:
            return None


@dataclass(frozen=True)
class GlossaryEntry:
    """One canonical term with its rendering in each language it has."""

    values: Mapping[Language, str]

    def get(self, lang: str | Language) -> Optional[str]:
        language = Language.parse(lang)
        if language is None:
            return None
        return self.values.get(language)

    def has_language(self, lang: str | Language) -> bool:
        return self.get(lang) is not None

    @classmethod
    def from_raw(cls, raw: Any) -> "GlossaryEntry":
        """
        Decode ``{"1": "energy", "2": "能量"}`` into an entry.

        Raises:
            ValueError: if ``raw`` is not an object or has no usable value
        """
        if not isinstance(raw, dict):
            raise ValueError(f"entry must be an object, got {type(raw).__name__}")

        values: Dict[Language, str] = {}
        for key, value in raw.items():
            language = Language.from_key(key)
            if language is None:
                continue  # 未知的语言键直接忽略
            if value is None:
                continue
            if not isinstance(value, str):
                raise ValueError(f"value for key {key!r} must be a string")
            if value.strip():
                values[language] = value

        if not values:
            raise ValueError("entry must contain at least one language field")
        return cls(values=values)


class Glossary:
    """
    Term id -> GlossaryEntry mapping.

    Built once per task and then only read, so a single instance can be shared
    by every concurrent chunk translation.
    """

    def __init__(self, entries: Optional[Mapping[str, GlossaryEntry]] = None):
        self._entries: Dict[str, GlossaryEntry] = dict(entries or {})

    @property
    def entries(self) -> Mapping[str, GlossaryEntry]:
        return self._entries

    def get(self, term_id: str) -> Optional[GlossaryEntry]:
        return self._entries.get(term_id)

    def translation_map(
        self,
        source_lang: str | Language,
        target_lang: str | Language,
    ) -> Dict[str, str]:
        """Map source term -> target term for entries that have both."""
        mapping: Dict[str, str] = {}
        for entry in self._entries.values():
            source_term = entry.get(source_lang)
            target_term = entry.get(target_lang)
            if source_term is not None and target_term is not None:
                mapping[source_term] = target_term
        return mapping

    def apply(
        self,
        text: str,
        source_lang: str | Language,
        target_lang: str | Language,
    ) -> str:
        """
        Replace every source term in ``text`` with its target rendering.

        Plain case-sensitive substitution, longest terms first so "energy
        credits" wins over "energy".
        """
        mapping = self.translation_map(source_lang, target_lang)
        for source_term in sorted(mapping, key=lambda t: (-len(t), t)):
            text = text.replace(source_term, mapping[source_term])
        return text

    def find_terms_in_text(self, text: str, source_lang: str | Language) -> Set[str]:
        """
        Find the source-language terms that occur in ``text``.

        Matching is case-insensitive substring containment without word
        boundaries, so "ore" also matches inside "more".
        """
        text_lower = text.lower()
        found: Set[str] = set()
        for entry in self._entries.values():
            term = entry.get(source_lang)
            if term and term.lower() in text_lower:
                found.add(term)
        return found

    def to_delimited_table(
        self,
        source_lang: str | Language,
        target_lang: str | Language,
        terms: Iterable[str],
    ) -> str:
        """
        Render ``terms`` as a CSV table for prompt embedding::

            english,simp_chinese
            energy,能量
            minerals,矿物

        Rows follow the order of ``terms``; terms without both languages are
        left out.
        """
        source_name = Language.parse(source_lang)
        target_name = Language.parse(target_lang)
        mapping = self.translation_map(source_lang, target_lang)

        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerow([
            source_name.value if source_name else str(source_lang),
            target_name.value if target_name else str(target_lang),
        ])
        for term in terms:
            target_term = mapping.get(term)
            if target_term is not None:
                writer.writerow([term, target_term])
        return buf.getvalue()

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return len(self._entries) > 0

    def __contains__(self, term_id: object) -> bool:
        return term_id in self._entries


def parse_glossary(data: Any, source_name: str = "<glossary>") -> Glossary:
    """
    Build a Glossary from decoded JSON.

    Raises:
        GlossaryParseError: if ``data`` is not a term -> entry object
    """
    if not isinstance(data, dict):
        raise GlossaryParseError(f"{source_name}: glossary must be a JSON object")

    entries: Dict[str, GlossaryEntry] = {}
    for term_id, raw in data.items():
        try:
            entries[term_id] = GlossaryEntry.from_raw(raw)
        except ValueError as e:
            logger.warning(f"Skipping glossary entry {term_id!r} in {source_name}: {e}")

    return Glossary(entries)


def load_glossary(path: Path) -> Glossary:
    """
    Load a glossary from a JSON file.

    Format::

        {
          "energy": {"1": "energy", "2": "能量", "3": "energía"},
          "minerals": {"1": "minerals", "2": "矿物"}
        }

    Raises:
        GlossaryNotFoundError: if the file does not exist
        GlossaryParseError: if the file is unreadable, not JSON or not an object
    """
    if not path.exists():
        raise GlossaryNotFoundError(f"Glossary file not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8-sig"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise GlossaryParseError(f"{path}: {e}") from e

    glossary = parse_glossary(data, str(path))
    logger.debug(f"Loaded {len(glossary)} entries from {path}")
    return glossary


def merge_glossaries(glossaries: Sequence[Glossary]) -> Glossary:
    """Union of all entries; later glossaries win on duplicate ids."""
    merged: Dict[str, GlossaryEntry] = {}
    for glossary in glossaries:
        merged.update(glossary.entries)
    return Glossary(merged)


def load_task_glossaries(names: Sequence[str]) -> Glossary:
    """
    Load the glossaries a task names and merge them in declaration order.

    ``glossary_custom/<name>.json`` takes precedence over
    ``glossary/<name>.json`` in the data search path.

    Raises:
        GlossaryNotFoundError: if a name resolves to no file
    """
    glossaries = []
    for name in names:
        custom = f"glossary_custom/{name}.json"
        default = f"glossary/{name}.json"
        path = find_data_file(custom) or find_data_file(default)
        if path is None:
            searched = ", ".join(str(root) for root in search_roots())
            raise GlossaryNotFoundError(
                f"Glossary '{name}' not found as {custom} or {default} in: {searched}"
            )
        glossary = load_glossary(path)
        logger.info(f"Loaded glossary '{name}' with {len(glossary)} entries")
        glossaries.append(glossary)

    return merge_glossaries(glossaries)
