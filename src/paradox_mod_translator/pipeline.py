"""File- and task-level translation workflow."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from tqdm import tqdm

from .chunker import Chunker
from .config import ClientSettings, TranslationTask, load_api_key
from .errors import AuthenticationFailedError, PreprocessError, TranslatorError
from .glossary import Language, load_task_glossaries
from .llm_client import ChatClient
from .parser import (
    check_structure,
    derive_target_filename,
    find_localisation_files,
    fix_yaml_content,
    parse_entries,
    read_localisation_file,
    retarget_header,
    save_localisation_file,
    split_header,
    validate_localisation_file,
)
from .prompt import PromptBuilder, load_prompt_template
from .reconstructor import Reconstructor
from .translator import Translator
from .validator import FormatValidator

logger = logging.getLogger(__name__)


@dataclass
class FileResult:
    """A file that was translated and written."""
    source: Path
    output: Path
    target_lang: str
    chunks: int
    warnings: List[str] = field(default_factory=list)


@dataclass
class FileFailure:
    source: Path
    target_lang: str
    error: str


@dataclass
class TaskReport:
    """Outcome of one translation task across all target languages."""
    written: List[FileResult] = field(default_factory=list)
    failed: List[FileFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def warning_count(self) -> int:
        return sum(len(r.warnings) for r in self.written)


@dataclass
class ValidationReport:
    """Outcome of checking existing translations against their sources."""
    checked: int = 0
    missing_files: List[Path] = field(default_factory=list)
    issues: Dict[Path, List[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.missing_files and not self.issues


def target_path_for(
    source_path: Path,
    source_dir: Path,
    target_dir: Path,
    source_lang: str,
    target_lang: str,
) -> Path:
    """Mirror ``source_path`` under ``target_dir`` with the language swapped."""
    relative = source_path.relative_to(source_dir)
    name = derive_target_filename(relative.name, source_lang, target_lang)
    return target_dir / relative.parent / name


async def translate_file(
    translator: Translator,
    source_path: Path,
    source_dir: Path,
    target_dir: Path,
    source_lang: str,
    target_lang: str,
    max_chunk_tokens: int,
) -> FileResult:
    """
    Translate one localisation file into one target language.

    The output is written only once every chunk has been translated and
    merged; any failure leaves the target untouched.

    Raises:
        PreprocessError: malformed or oversized source
        TranslateError: one or more chunks failed
        PostprocessError: slices could not be merged or written
    """
    error = validate_localisation_file(source_path)
    if error:
        raise PreprocessError(error)

    content = read_localisation_file(source_path)
    header, body = split_header(content)
    body = fix_yaml_content(body)
    check_structure(body, source_path)

    output_path = target_path_for(source_path, source_dir, target_dir, source_lang, target_lang)

    chunks = Chunker().split(output_path.name, body, max_chunk_tokens)
    logger.info(f"Translating {source_path.name} -> {target_lang} in {len(chunks)} chunk(s)")

    slices = await translator.translate_batch(chunks, source_lang, target_lang)

    target_header = retarget_header(header, target_lang) if header else ""
    text = Reconstructor().reconstruct(slices, target_header)
    save_localisation_file(text, output_path)

    warnings = [issue for s in slices for issue in s.issues]
    if warnings:
        logger.warning(f"{output_path.name}: {len(warnings)} format issue(s) need review")

    return FileResult(
        source=source_path,
        output=output_path,
        target_lang=target_lang,
        chunks=len(chunks),
        warnings=warnings,
    )


def _warn_unknown_languages(task: TranslationTask) -> None:
    for lang in [task.source_lang, *task.target_langs]:
        if Language.parse(lang) is None:
            logger.warning(f"'{lang}' is not a glossary language; glossary terms will not apply")


async def translate_task(
    task: TranslationTask,
    settings: ClientSettings,
    api_key: Optional[str] = None,
    show_progress: bool = True,
    client: Optional[ChatClient] = None,
) -> TaskReport:
    """
    Translate every source file of ``task`` into each target language.

    Glossary, prompt template and settings are loaded once and shared by all
    files. A failing file is recorded in the report and the rest continue;
    an authentication failure stops the whole task.
    """
    _warn_unknown_languages(task)

    glossary = load_task_glossaries(task.glossaries)
    template = load_prompt_template()

    if client is None:
        client = ChatClient(settings, api_key or load_api_key())

    translator = Translator(
        client=client,
        prompt_builder=PromptBuilder(template, glossary),
        show_progress=show_progress,
    )

    files = find_localisation_files(task.source_dir)
    logger.info(f"Found {len(files)} localisation file(s) in {task.source_dir}")

    report = TaskReport()
    try:
        for target_lang in task.target_langs:
            target_dir = task.target_dir(target_lang)
            for source_path in tqdm(files, desc=target_lang, disable=not show_progress):
                try:
                    result = await translate_file(
                        translator,
                        source_path,
                        task.source_dir,
                        target_dir,
                        task.source_lang,
                        target_lang,
                        settings.max_chunk_tokens,
                    )
                except AuthenticationFailedError:
                    raise
                except TranslatorError as e:
                    logger.error(f"Failed to translate {source_path.name} -> {target_lang}: {e}")
                    report.failed.append(FileFailure(source_path, target_lang, str(e)))
                else:
                    report.written.append(result)
    finally:
        await client.close()

    logger.info(
        f"Task {task.source_lang} -> {', '.join(task.target_langs)}: "
        f"{len(report.written)} written, {len(report.failed)} failed, "
        f"{report.warning_count} warning(s)"
    )
    return report


def validate_task(task: TranslationTask) -> ValidationReport:
    """
    Check already translated files against their sources, key by key.

    Reports target files that do not exist, keys missing from a translation,
    and marker mismatches.
    """
    validator = FormatValidator()
    report = ValidationReport()

    files = find_localisation_files(task.source_dir)
    for target_lang in task.target_langs:
        target_dir = task.target_dir(target_lang)
        for source_path in files:
            target_path = target_path_for(
                source_path, task.source_dir, target_dir, task.source_lang, target_lang
            )
            if not target_path.exists():
                logger.warning(f"Missing translation: {target_path}")
                report.missing_files.append(target_path)
                continue

            try:
                source_entries = parse_entries(read_localisation_file(source_path))
                target_entries = parse_entries(read_localisation_file(target_path))
            except PreprocessError as e:
                logger.error(f"Cannot validate {target_path.name}: {e}")
                report.issues[target_path] = [str(e)]
                continue
            report.checked += 1

            problems: List[str] = []
            for key, source_value in source_entries.items():
                if key not in target_entries:
                    problems.append(f"{key}: missing from translation")
                    continue
                for issue in validator.validate(source_value, target_entries[key]):
                    problems.append(f"{key}: {issue}")

            if problems:
                for problem in problems:
                    logger.warning(f"{target_path.name}: {problem}")
                report.issues[target_path] = problems
            else:
                logger.info(f"{target_path.name}: OK")

    return report
