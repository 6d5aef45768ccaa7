#!/usr/bin/env python3
"""
Content Cleaner
Command-line entry point for the feed cleaner and the email formatter

Results go to stdout, logs to stderr, so the output can be piped:

    content-cleaner --each-line title titles.txt > clean_titles.txt
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Callable, List, Optional

from content_cleaner.modules.email_formatter import (
    format_email_for_chat,
    get_email_summary,
    is_email_like_message,
)
from content_cleaner.modules.mime_parser import is_mime_multipart_message, parse_mime_multipart_message
from content_cleaner.modules.text_cleaning import (
    clean_html_content,
    clean_news_title,
    extract_clean_text,
    is_valid_cleaned_content,
)
from content_cleaner.utils.colors import Colors
from content_cleaner.utils.config import EMAIL_FORMATS, Config, ConfigurationError
from content_cleaner.utils.logging_utils import ColoredFormatter
from content_cleaner.utils.metrics import Metrics
from content_cleaner.utils.structured_logging import JSONFormatter


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

EXIT_OK = 0
EXIT_FALSE = 1
EXIT_INPUT_ERROR = 1
EXIT_CONFIG_ERROR = 2

# Commands that accept --each-line
LINE_COMMANDS = ("clean", "title", "extract", "validate")

logger = logging.getLogger("ContentCleaner")


def build_formatter(log_format: str) -> logging.Formatter:
    """Console formatter for the configured LOG_FORMAT"""
    if log_format == "json":
        return JSONFormatter()
    if log_format == "color":
        return ColoredFormatter(LOG_FORMAT)
    return logging.Formatter(LOG_FORMAT)


def setup_logging(config: Config):
    """Setup logging configuration"""
    system = config.system

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(build_formatter(system.log_format))
    handlers = [console]

    if system.log_file:
        # Create logs directory if needed
        log_path = Path(system.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(
            JSONFormatter() if system.log_format == "json" else logging.Formatter(LOG_FORMAT)
        )
        handlers.append(file_handler)

    # Resolve log level with safe fallback
    level_name = str(system.log_level).upper()
    level = logging._nameToLevel.get(level_name, logging.INFO)

    logging.basicConfig(level=level, handlers=handlers)

    if level_name not in logging._nameToLevel:
        logger.warning(
            "Invalid log level '%s'; defaulting to INFO",
            system.log_level
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="content-cleaner",
        description="Clean feed text and HTML fragments, and format pasted emails for display.",
    )
    parser.add_argument("--env", default=".env", help="Path to environment file (default: .env)")
    parser.add_argument(
        "--max-length", type=int, default=None,
        help="Output length cap for clean/title/extract (default: CLEANER_MAX_CONTENT_LENGTH)",
    )
    parser.add_argument(
        "--each-line", action="store_true",
        help="Treat every non-blank input line as a separate item (clean, title, extract, validate)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    def add_command(name: str, help_text: str) -> argparse.ArgumentParser:
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument("file", nargs="?", help="Input file (default: stdin)")
        return sub

    add_command("clean", "Clean an HTML fragment or feed description")
    add_command("title", "Clean a feed item title")
    add_command("extract", "Clean text that is usually plain already")
    add_command("validate", "Exit 0 if the input is worth displaying")
    detect = add_command("detect", "Exit 0 if the input is a multipart email")
    detect.add_argument(
        "--email-like", action="store_true",
        help="Also accept header-only messages and HTML documents",
    )
    add_command("parse", "Print the parsed multipart message as JSON")
    email = add_command("email", "Format a pasted email for display")
    email.add_argument("--format", choices=EMAIL_FORMATS, default=None,
                       help="Preferred rendering (default: EMAIL_FORMAT)")
    summary = add_command("summary", "Print a short preview of a pasted email")
    summary.add_argument("--length", type=int, default=None,
                         help="Summary length (default: CLEANER_SUMMARY_LENGTH)")

    return parser


def read_input(path: Optional[str], max_chars: int) -> str:
    """
    Read the command input, capped to max_chars characters.

    Raises:
        OSError: If the file cannot be read
    """
    if path:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            text = f.read()
    else:
        text = sys.stdin.read()

    if len(text) > max_chars:
        logger.warning(f"Input truncated to {max_chars} characters (was {len(text)})")
        text = text[:max_chars]
    return text


def _line_cleaner(command: str, max_length: int) -> Callable[[str], str]:
    cleaners = {
        "clean": clean_html_content,
        "title": clean_news_title,
        "extract": extract_clean_text,
    }
    cleaner = cleaners[command]
    return lambda text: cleaner(text, max_length)


def run_each_line(command: str, lines: List[str], max_length: int) -> int:
    """
    Process every non-blank line as its own item and log a batch summary.

    Returns:
        Exit code. For validate, 0 only if every item passed.
    """
    metrics = Metrics()
    all_valid = True
    cleaner = None if command == "validate" else _line_cleaner(command, max_length)

    for line in lines:
        if not line.strip():
            continue

        started = time.perf_counter()
        if cleaner is None:
            valid = is_valid_cleaned_content(line.strip())
            all_valid = all_valid and valid
            print("true" if valid else "false")
            outcome = "ok" if valid else "rejected"
        else:
            result = cleaner(line)
            print(result)
            outcome = "ok" if result else "empty"
        metrics.record_item((time.perf_counter() - started) * 1000, outcome)

    summary = metrics.get_summary()
    logger.info(
        f"Batch complete: {summary['items_processed']} items, outcomes {summary['outcomes']}",
        extra={"extra_fields": summary},
    )
    return EXIT_OK if all_valid else EXIT_FALSE


def run_command(args: argparse.Namespace, config: Config, text: str) -> int:
    """Run a single-item command and print its result"""
    cleaning = config.cleaning
    max_length = args.max_length or cleaning.max_content_length
    command = args.command

    if command in ("clean", "title", "extract"):
        print(_line_cleaner(command, max_length)(text))
        return EXIT_OK

    if command in ("validate", "detect"):
        if command == "validate":
            result = is_valid_cleaned_content(text.strip())
        elif args.email_like:
            result = is_email_like_message(text)
        else:
            result = is_mime_multipart_message(text)
        print("true" if result else "false")
        return EXIT_OK if result else EXIT_FALSE

    if command == "parse":
        parsed = parse_mime_multipart_message(text)
        print(json.dumps(parsed.to_dict(), indent=2, ensure_ascii=False))
        return EXIT_OK

    if command == "email":
        print(format_email_for_chat(text, args.format or cleaning.email_format))
        return EXIT_OK

    # summary
    print(get_email_summary(text, args.length or cleaning.summary_max_length))
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)

    try:
        config = Config(args.env)
        config.validate()
    except ConfigurationError as e:
        print(Colors.error(f"Configuration error: {e}"), file=sys.stderr)
        return EXIT_CONFIG_ERROR

    setup_logging(config)

    if args.max_length is not None and args.max_length <= 0:
        print(Colors.error("Error: --max-length must be positive"), file=sys.stderr)
        return EXIT_CONFIG_ERROR

    if getattr(args, "length", None) is not None and args.length <= 0:
        print(Colors.error("Error: --length must be positive"), file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        text = read_input(args.file, config.cleaning.max_input_chars)
    except OSError as e:
        print(Colors.error(f"Error: cannot read input: {e}"), file=sys.stderr)
        return EXIT_INPUT_ERROR

    if args.each_line:
        if args.command not in LINE_COMMANDS:
            print(
                Colors.error(f"Error: --each-line is not supported for '{args.command}'"),
                file=sys.stderr,
            )
            return EXIT_CONFIG_ERROR
        max_length = args.max_length or config.cleaning.max_content_length
        return run_each_line(args.command, text.splitlines(), max_length)

    return run_command(args, config, text)


if __name__ == "__main__":
    sys.exit(main())
