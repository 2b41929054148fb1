"""System prompt assembly for chunk translation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .data_files import find_data_file
from .errors import TemplateLoadError
from .glossary import Glossary

logger = logging.getLogger(__name__)

GLOSSARY_PLACEHOLDER = "{{glossary_csv}}"
NO_TERMS_MARKER = "(no related terms)"
DEFAULT_TEMPLATE = "prompts/translate_system.txt"


def load_prompt_template(path: Optional[Path] = None) -> str:
    """
    Load the translation system prompt template.

    Args:
        path: Explicit template file; defaults to
            ``prompts/translate_system.txt`` in the data search path

    Raises:
        TemplateLoadError: if the template is missing, unreadable, or does not
            contain the glossary placeholder exactly once
    """
    if path is None:
        path = find_data_file(DEFAULT_TEMPLATE)
        if path is None:
            raise TemplateLoadError(f"Prompt template not found: {DEFAULT_TEMPLATE}")

    try:
        template = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TemplateLoadError(f"Failed to load prompt template from {path}: {e}") from e

    count = template.count(GLOSSARY_PLACEHOLDER)
    if count != 1:
        raise TemplateLoadError(
            f"Prompt template {path} must contain {GLOSSARY_PLACEHOLDER} exactly once "
            f"(found {count})"
        )

    logger.debug(f"Loaded prompt template from {path}")
    return template


def build_prompt(
    template: str,
    source_lang: str,
    target_lang: str,
    chunk_text: str,
    glossary: Glossary,
) -> str:
    """
    Fill the glossary placeholder with the terms that occur in ``chunk_text``.

    Terms are sorted so identical chunks always yield identical prompts.
    """
    terms = sorted(glossary.find_terms_in_text(chunk_text, source_lang))

    table = ""
    if terms:
        table = glossary.to_delimited_table(source_lang, target_lang, terms).rstrip("\n")
        # 表头之外没有任何行时视为无术语
        if "\n" not in table:
            table = ""

    if not table:
        return template.replace(GLOSSARY_PLACEHOLDER, NO_TERMS_MARKER)

    logger.debug(f"Using {table.count(chr(10))} glossary terms:\n{table}")
    return template.replace(GLOSSARY_PLACEHOLDER, table)


class PromptBuilder:
    """Binds a template and glossary shared by every chunk of a task."""

    def __init__(self, template: str, glossary: Optional[Glossary] = None):
        self.template = template
        self.glossary = glossary if glossary is not None else Glossary()

    def build(self, source_lang: str, target_lang: str, chunk_text: str) -> str:
        return build_prompt(
            self.template, source_lang, target_lang, chunk_text, self.glossary
        )
