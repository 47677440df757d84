#!/usr/bin/env python3
"""
termclean CLI - Main command-line interface
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional
from importlib.metadata import version as _pkg_version, PackageNotFoundError

import yaml

from .config import CleanerConfig, ConfigManager, load_config
from .models import ErrorSeverity, ProcessingError, ProcessingStage, TextStats

# Resolve package version for --version flag
try:
    _TCVERSION = _pkg_version("termclean")
except PackageNotFoundError:
    from . import __version__ as _TCVERSION

logger = logging.getLogger(__name__)


class ColoredFormatter(logging.Formatter):
    """Log formatter that colours records by level."""

    COLORS = {
        'DEBUG': '\033[94m',     # Blue
        'INFO': '\033[0m',       # Default color for INFO prefix
        'WARNING': '\033[93m',   # Yellow
        'ERROR': '\033[91m',     # Red
        'CRITICAL': '\033[95m',  # Magenta
        'RESET': '\033[0m',
        'GREEN': '\033[92m',     # Green for INFO content
    }

    def format(self, record):
        original = super().format(record)

        if record.levelname == 'DEBUG':
            return f"{self.COLORS['DEBUG']}{original}{self.COLORS['RESET']}"
        if record.levelname == 'INFO':
            # Colour text after the first colon green
            prefix, sep, content = original.partition(':')
            if sep:
                return f"{prefix}{sep}{self.COLORS['GREEN']}{content}{self.COLORS['RESET']}"
            return original

        color = self.COLORS.get(record.levelname, '')
        return f"{color}{original}{self.COLORS['RESET']}" if color else original


def configure_logging(level: str = "WARNING", use_color: Optional[bool] = None) -> None:
    """
    Configure the root logger with a single stderr handler.

    Args:
        level: Logging level name
        use_color: Force coloured output on or off; defaults to stderr being a TTY
    """
    if use_color is None:
        use_color = sys.stderr.isatty()

    fmt = '%(levelname)s:%(name)s:%(message)s'
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ColoredFormatter(fmt) if use_color else logging.Formatter(fmt))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper(), logging.WARNING))


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all commands."""
    parser = argparse.ArgumentParser(
        prog="termclean",
        description="termclean - Clean copy-pasted terminal output into readable plain text",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pbpaste | termclean clean
  termclean clean --input session.log --output session.txt --stats
  termclean clean --input logs/ --output cleaned/
  termclean stats --input session.log
  termclean rules --format json
  termclean config template --output configs/termclean.yaml
        """
    )
    parser.add_argument('-V', '--version', action='version', version=f"termclean {_TCVERSION}")

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Shared logging/config options
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--config', help='YAML configuration file')
    common.add_argument('--verbose', '-v', action='store_true', help='Verbose output (INFO level)')
    common.add_argument('--debug', action='store_true', help='Enable debug logging (DEBUG level)')

    # Clean command
    clean_parser = subparsers.add_parser('clean', parents=[common], help='Clean terminal output')
    clean_parser.add_argument('--input', '-i', default='-', help="Input file, directory, or '-' for stdin (default)")
    clean_parser.add_argument('--output', '-o', help='Output file or directory (default: stdout)')
    clean_parser.add_argument('--stats', action='store_true', default=None, help='Print statistics to stderr')
    clean_parser.add_argument('--stats-format', choices=['text', 'json'], help='Statistics format')

    # Stats command
    stats_parser = subparsers.add_parser('stats', parents=[common], help='Show cleaning statistics only')
    stats_parser.add_argument('--input', '-i', default='-', help="Input file or '-' for stdin (default)")
    stats_parser.add_argument('--format', choices=['text', 'json'], help='Statistics format')

    # Rules command
    rules_parser = subparsers.add_parser('rules', help='List the active cleaning rules')
    rules_parser.add_argument('--format', choices=['table', 'json'], default='table', help='Output format')

    # Config commands
    config_parser = subparsers.add_parser('config', help='Configuration management')
    config_subparsers = config_parser.add_subparsers(dest='config_action', help='Config actions')

    config_show_parser = config_subparsers.add_parser('show', help='Show current configuration')
    config_show_parser.add_argument('--file', help='Configuration file to show')

    config_template_parser = config_subparsers.add_parser('template', help='Generate configuration template')
    config_template_parser.add_argument('--output', required=True, help='Output file for template')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == 'clean':
            return run_clean_command(args)
        elif args.command == 'stats':
            return run_stats_command(args)
        elif args.command == 'rules':
            return run_rules_command(args)
        elif args.command == 'config':
            return run_config_command(args)
        else:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return 1
    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 1
    except (ProcessingError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.debug("Command failed", exc_info=True)
        return 1


def _load_command_config(args) -> CleanerConfig:
    """Load configuration and configure logging for a command."""
    config = load_config(getattr(args, 'config', None))

    if getattr(args, 'debug', False):
        level = "DEBUG"
    elif getattr(args, 'verbose', False):
        level = "INFO"
    else:
        level = config.log_level
    configure_logging(level)
    return config


def _format_stats(stats: TextStats, fmt: str, label: Optional[str] = None) -> str:
    if fmt == 'json':
        data = stats.to_dict()
        if label:
            data = {"document": label, **data}
        return json.dumps(data)

    line = (
        f"Lines: {stats.line_count} | "
        f"Characters: {stats.character_count} | "
        f"Cleaned: {stats.characters_removed}"
    )
    return f"{label}: {line}" if label else line


def _with_trailing_newline(text: str) -> str:
    return text + "\n" if text else ""


def run_clean_command(args) -> int:
    """Run the clean command."""
    from .clean import CleaningPipeline, read_input

    config = _load_command_config(args)
    show_stats = config.output.show_stats if args.stats is None else args.stats
    stats_format = args.stats_format or config.output.stats_format

    if args.input != '-' and Path(args.input).is_dir():
        return _clean_directory(args, config, show_stats, stats_format)

    decoded = read_input(args.input, config.input)
    result = CleaningPipeline().clean_text(decoded.text, decoded.source)
    logger.info("Rules applied: %s", ", ".join(result.rules_applied) or "none")

    if args.output:
        output_path = Path(args.output)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(_with_trailing_newline(result.cleaned_text), encoding=config.output.encoding)
        except OSError as e:
            raise ProcessingError(
                stage=ProcessingStage.OUTPUT.value,
                error_type="WriteError",
                message=f"Cannot write {output_path}: {e.strerror or e}",
                severity=ErrorSeverity.HIGH,
                document_id=str(output_path)
            )
    else:
        sys.stdout.write(_with_trailing_newline(result.cleaned_text))
        sys.stdout.flush()

    if show_stats:
        print(_format_stats(result.stats, stats_format), file=sys.stderr)

    return 0


def _collect_files(input_dir: Path, patterns: List[str]) -> List[Path]:
    files = set()
    for pattern in patterns:
        files.update(p for p in input_dir.rglob(pattern) if p.is_file())
    return sorted(files)


def _clean_directory(args, config: CleanerConfig, show_stats: bool, stats_format: str) -> int:
    """Clean every matching file of a directory into the output directory."""
    from .clean import CleaningPipeline, read_input

    if not args.output:
        raise ValueError("--output directory is required when --input is a directory")

    input_dir = Path(args.input)
    output_dir = Path(args.output)
    files = _collect_files(input_dir, config.input.file_patterns)
    if not files:
        print(f"No files matching {', '.join(config.input.file_patterns)} in {input_dir}", file=sys.stderr)
        return 1

    documents: Dict[str, str] = {}
    read_errors: Dict[str, ProcessingError] = {}
    for path in files:
        doc_id = path.relative_to(input_dir).as_posix()
        try:
            documents[doc_id] = read_input(path, config.input).text
        except ProcessingError as e:
            logger.warning("Skipping %s: %s", doc_id, e.message)
            read_errors[doc_id] = e

    batch = CleaningPipeline().clean_documents(documents)
    for doc_id, error in read_errors.items():
        batch.add_failure(doc_id, error)

    for doc_id, result in list(batch.document_results.items()):
        relative = Path(doc_id)
        target = output_dir / relative.with_name(relative.stem + config.output.suffix + relative.suffix)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(_with_trailing_newline(result.cleaned_text), encoding=config.output.encoding)
        except OSError as e:
            logger.warning("Could not write %s: %s", target, e)
            batch.add_failure(doc_id, ProcessingError(
                stage=ProcessingStage.OUTPUT.value,
                error_type="WriteError",
                message=f"Cannot write {target}: {e.strerror or e}",
                severity=ErrorSeverity.HIGH,
                document_id=doc_id
            ))
            continue

        if show_stats:
            print(_format_stats(result.stats, stats_format, doc_id), file=sys.stderr)

    print(
        f"Cleaned {batch.processed_documents}/{batch.total_documents} files -> {output_dir} "
        f"({batch.get_overall_compression_ratio():.1%} removed)",
        file=sys.stderr
    )
    for doc_id, error in batch.errors.items():
        print(f"   Error: {doc_id}: {error['message']}", file=sys.stderr)

    return 0 if batch.failed_documents == 0 else 1


def run_stats_command(args) -> int:
    """Run the stats command."""
    from .clean import clean, compute_stats, read_input

    config = _load_command_config(args)
    decoded = read_input(args.input, config.input)
    stats = compute_stats(decoded.text, clean(decoded.text))
    print(_format_stats(stats, args.format or config.output.stats_format))
    return 0


def run_rules_command(args) -> int:
    """Run the rules command."""
    from .clean import CleaningPipeline

    rules = CleaningPipeline().describe_rules()
    if args.format == 'json':
        print(json.dumps(rules, indent=2))
        return 0

    print("Active Cleaning Rules:")
    width = max(len(rule['name']) for rule in rules)
    for rule in rules:
        print(f"  {rule['position']}. {rule['name']:<{width}}  {rule['description']}")
    return 0


def run_config_command(args) -> int:
    """Run config management commands."""
    if args.config_action == 'show':
        config = load_config(args.file)
        print(yaml.safe_dump(config.model_dump(), default_flow_style=False, sort_keys=False), end="")
        return 0

    if args.config_action == 'template':
        output_path = Path(args.output)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ProcessingError(
                stage=ProcessingStage.OUTPUT.value,
                error_type="WriteError",
                message=f"Cannot create {output_path.parent}: {e.strerror or e}",
                severity=ErrorSeverity.HIGH,
                document_id=str(output_path)
            )
        manager = ConfigManager(str(output_path.parent))
        written = manager.save_config_template(output_path.name)
        print(f"Configuration template written to {written}", file=sys.stderr)
        return 0

    print("Usage: termclean config {show,template}", file=sys.stderr)
    return 1


if __name__ == '__main__':
    sys.exit(main())
