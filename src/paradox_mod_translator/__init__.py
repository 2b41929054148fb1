"""
Paradox Mod Translator - LLM-powered translation for Paradox game localisation.

Features:
- Token-budgeted, line-aligned chunking of localisation files
- Multilingual glossary support for consistent terminology
- Bounded-concurrency async translation with per-chunk isolation
- Marker checks for icons, variables and color codes
- Lossless reassembly with language header restoration
"""

__version__ = "0.3.0"

from .models import FileChunk, TranslationSlice
from .text_utils import estimate_tokens, is_cjk_character
from .chunker import Chunker, split_content
from .glossary import (
    Glossary,
    GlossaryEntry,
    Language,
    load_glossary,
    merge_glossaries,
    parse_glossary,
)
from .prompt import PromptBuilder, build_prompt, load_prompt_template
from .llm_client import ChatClient, ChatResult
from .translator import Translator
from .validator import FormatValidator
from .reconstructor import Reconstructor
from .parser import derive_target_filename
from .config import ClientSettings, TranslationTask, load_task_file
from .pipeline import translate_file, translate_task, validate_task

__all__ = [
    # Models
    "FileChunk",
    "TranslationSlice",
    "ClientSettings",
    "TranslationTask",
    # Chunking
    "estimate_tokens",
    "is_cjk_character",
    "Chunker",
    "split_content",
    # Glossary
    "Glossary",
    "GlossaryEntry",
    "Language",
    "load_glossary",
    "merge_glossaries",
    "parse_glossary",
    # Prompt
    "PromptBuilder",
    "build_prompt",
    "load_prompt_template",
    # Translation
    "ChatClient",
    "ChatResult",
    "Translator",
    "FormatValidator",
    "Reconstructor",
    # Files & tasks
    "derive_target_filename",
    "load_task_file",
    "translate_file",
    "translate_task",
    "validate_task",
]
