"""Command-line interface for Paradox Mod Translator."""

from __future__ import annotations

import asyncio
import argparse
import logging
import sys
from pathlib import Path

from tqdm import tqdm

from .config import has_api_key, load_api_key, load_task_file
from .errors import AuthenticationFailedError, TranslatorError
from .pipeline import translate_task, validate_task
from .text_utils import mask_secret

DEFAULT_LOG_FILE = "paradox-mod-translator.log"


class TqdmLoggingHandler(logging.Handler):
    """Console handler that writes through tqdm so progress bars stay intact."""

    def emit(self, record):
        try:
            msg = self.format(record)
            tqdm.write(msg, file=sys.stderr)
            self.flush()
        except (KeyboardInterrupt, SystemExit):
            raise
        except Exception:
            self.handleError(record)


def setup_logging(verbose: bool = False, log_file: str | None = DEFAULT_LOG_FILE) -> None:
    """
    Configure logging.

    Everything goes to ``log_file`` at DEBUG; the console shows INFO, or DEBUG
    with ``verbose``.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers.clear()

    console = TqdmLoggingHandler()
    console.setLevel(logging.DEBUG if verbose else logging.INFO)
    console.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(message)s", datefmt="%H:%M:%S"
    ))
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        ))
        root.addHandler(file_handler)

    # HTTP 库的调试日志太多
    for noisy in ("httpx", "httpcore", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def parse_arguments(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="pmt",
        description="Paradox Mod Translator - AI-powered translation for Paradox game mods",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s translate task.toml                  # Run every task in the file
  %(prog)s translate task.toml --concurrency 4  # Override concurrency
  %(prog)s validate task.toml                   # Check existing translations
  %(prog)s check-api                            # Verify OPENAI_API_KEY
        """
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    parser.add_argument("--log-file", default=DEFAULT_LOG_FILE, help="Log file path")

    sub = parser.add_subparsers(dest="command", required=True)

    translate = sub.add_parser("translate", help="Run translation tasks")
    translate.add_argument("task_file", type=Path, help="Task configuration file (TOML)")
    translate.add_argument("--concurrency", type=int, help="Max concurrent requests")
    translate.add_argument("--model", help="Override the model name")
    translate.add_argument("--api-base", help="Override the API base URL")
    translate.add_argument("--no-progress", action="store_true", help="Hide progress bars")

    validate = sub.add_parser("validate", help="Check translated files without translating")
    validate.add_argument("task_file", type=Path, help="Task configuration file (TOML)")

    sub.add_parser("check-api", help="Check that the API key is configured")

    return parser.parse_args(argv)


async def run_translate(args: argparse.Namespace) -> int:
    """Load the task file and run every task in order."""
    logger = logging.getLogger(__name__)

    api_key = load_api_key()

    logger.info("Loading task configuration...")
    settings, tasks = load_task_file(args.task_file)
    settings = settings.with_overrides(
        concurrency=args.concurrency,
        model=args.model,
        api_base=args.api_base,
    )
    problems = settings.validate()
    if problems:
        for problem in problems:
            logger.error(problem)
        return 1

    logger.info(f"Use API: {settings.api_base}")
    logger.info(f"Use Model: {settings.model}")
    logger.info(f"Configuration loaded successfully, found {len(tasks)} task(s)")

    failed = 0
    for i, task in enumerate(tasks, 1):
        logger.info(f"Processing task {i}/{len(tasks)}")
        logger.debug(f"Source language: {task.source_lang}")
        logger.debug(f"Target languages: {task.target_langs}")
        logger.debug(f"Glossaries: {task.glossaries}")

        report = await translate_task(
            task, settings, api_key, show_progress=not args.no_progress
        )
        for failure in report.failed:
            logger.error(f"  {failure.source.name} -> {failure.target_lang}: {failure.error}")
        failed += len(report.failed)

    if failed:
        logger.error(f"Finished with {failed} failed file(s)")
        return 1

    logger.info("All translation tasks completed!")
    return 0


def run_validate(args: argparse.Namespace) -> int:
    logger = logging.getLogger(__name__)

    _, tasks = load_task_file(args.task_file)
    logger.info(f"Configuration is loaded! Found {len(tasks)} task(s)")

    all_ok = True
    for i, task in enumerate(tasks, 1):
        logger.info(f"Task {i}:")
        logger.info(f"  - Source language: {task.source_lang}")
        logger.info(f"  - Target languages: {', '.join(task.target_langs)}")
        logger.info(f"  - Glossaries: {', '.join(task.glossaries)}")
        logger.info(f"  - Localisation directory: {task.localisation_dir}")

        report = validate_task(task)
        logger.info(
            f"Checked {report.checked} file(s): {len(report.missing_files)} missing, "
            f"{len(report.issues)} with issues"
        )
        all_ok = all_ok and report.ok

    return 0 if all_ok else 1


def run_check_api() -> int:
    logger = logging.getLogger(__name__)

    if not has_api_key():
        logger.error("API key is not configured")
        logger.info("Please set OPENAI_API_KEY environment variable or create a .env file")
        return 1

    logger.info("API key is configured")
    logger.info(f"API key (masked): {mask_secret(load_api_key())}")
    return 0


def main(argv=None) -> None:
    """CLI entry point."""
    args = parse_arguments(argv)
    setup_logging(args.verbose, args.log_file)
    logger = logging.getLogger(__name__)

    try:
        if args.command == "translate":
            exit_code = asyncio.run(run_translate(args))
        elif args.command == "validate":
            exit_code = run_validate(args)
        else:
            exit_code = run_check_api()
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
        sys.exit(130)
    except AuthenticationFailedError as e:
        logger.error(f"{e}. Check OPENAI_API_KEY; aborting.")
        sys.exit(1)
    except TranslatorError as e:
        logger.error(str(e))
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
