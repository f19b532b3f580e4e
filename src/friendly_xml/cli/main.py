"""Main CLI entry point for the friendly-xml command-line tool.

Provides parse diagnostics, scope ranges, friendly views, file-set search and
pretty-printing for XML files.
"""

import argparse
import json
import logging
import sys
import threading
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from lxml import etree

from friendly_xml import __version__
from friendly_xml.diagnostics import ParseDiagnosticsEngine, format_xml
from friendly_xml.friendly import FriendlyViewBuilder
from friendly_xml.scopes import get_scope_ranges
from friendly_xml.search import (
    FriendlySearchEngine,
    RawSearchEngine,
    find_xml_files,
    read_xml_text,
)
from friendly_xml.shared import ConfigError, ToolkitConfig, get_logger, new_correlation_id
from friendly_xml.shared.xml import DoctypeProhibitedError


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self, toolkit: Optional[ToolkitConfig] = None):
        self.toolkit = toolkit or ToolkitConfig.default()
        self.output_format = "text"
        self.verbose = False
        self.quiet = False
        self.correlation_id: Optional[str] = None

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a ToolkitConfig JSON file.

        Raises:
            ConfigError: The file cannot be read or does not hold a valid configuration
        """
        try:
            text = config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Could not read config file {config_path}: {e}") from e
        return cls(ToolkitConfig.from_json(text))

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "CLIConfig":
        config = cls.from_file(args.config) if args.config else cls()
        config.output_format = getattr(args, "format", config.output_format)
        config.verbose = args.verbose
        config.quiet = args.quiet
        if config.toolkit.global_.enable_correlation_tracking:
            config.correlation_id = new_correlation_id()
        return config


class ProgressTracker:
    """Progress tracking for long-running operations.

    ``update`` may be called from search worker threads.
    """

    def __init__(self, total: int, description: str = "Processing", enabled: bool = True):
        self.total = total
        self.completed = 0
        self.description = description
        self.enabled = enabled
        self.start_time = time.time()
        self.last_update = 0.0
        self._lock = threading.Lock()

    def update(self, increment: int = 1):
        """Update progress and display if needed."""
        with self._lock:
            self.completed += increment
            current_time = time.time()

            # Update every second or on completion
            if current_time - self.last_update >= 1.0 or self.completed >= self.total:
                self._display_progress()
                self.last_update = current_time

    def _display_progress(self):
        if not self.enabled or self.total == 0:
            return

        percentage = (self.completed / self.total) * 100
        elapsed = time.time() - self.start_time

        if self.completed > 0 and elapsed > 0:
            rate = self.completed / elapsed
            eta = (self.total - self.completed) / rate if rate > 0 else 0
            eta_str = f", ETA: {eta:.0f}s" if eta > 0 else ""
        else:
            eta_str = ""

        progress_bar = "=" * int(percentage // 2)
        progress_bar += " " * (50 - len(progress_bar))

        print(f"\r{self.description}: [{progress_bar}] "
              f"{percentage:.1f}% ({self.completed}/{self.total}){eta_str}",
              end="", file=sys.stderr)

        if self.completed >= self.total:
            print(file=sys.stderr)  # New line on completion


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="friendly-xml",
        description="Friendly views, diagnostics and search for schema-less XML files"
    )

    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="ToolkitConfig JSON file"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Problems command
    problems_parser = subparsers.add_parser(
        "problems", help="Report parse errors and lint warnings"
    )
    problems_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="XML files to check"
    )
    _add_format_argument(problems_parser)

    # Scopes command
    scopes_parser = subparsers.add_parser(
        "scopes", help="Print element line ranges and depths"
    )
    scopes_parser.add_argument("path", type=Path, help="XML file to scan")
    scopes_parser.add_argument(
        "--tolerant",
        action="store_true",
        help="Skip the conformant scan and use the tolerant scanner only"
    )
    _add_format_argument(scopes_parser)

    # Friendly command
    friendly_parser = subparsers.add_parser(
        "friendly", help="Show the collections and entries of a document"
    )
    friendly_parser.add_argument("path", type=Path, help="XML file to view")
    friendly_parser.add_argument(
        "--fields",
        action="store_true",
        help="Include the flattened fields of every entry"
    )
    friendly_parser.add_argument(
        "--collection",
        help="Only show the collection with this title"
    )
    _add_format_argument(friendly_parser)

    # Search command
    search_parser = subparsers.add_parser("search", help="Search XML files")
    search_parser.add_argument("query", help="Text to search for")
    search_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="XML files or directories to search"
    )
    search_parser.add_argument(
        "--friendly",
        action="store_true",
        help="Search friendly-view fields instead of raw text"
    )
    search_parser.add_argument(
        "--case-sensitive",
        action="store_true",
        help="Match case exactly"
    )
    search_parser.add_argument(
        "--max-results", "-m",
        type=int,
        help="Maximum number of hits (default: from configuration)"
    )
    search_parser.add_argument(
        "--sequential",
        action="store_true",
        help="Search files one at a time (deterministic hit order)"
    )
    search_parser.add_argument(
        "--no-recursive",
        dest="recursive",
        action="store_false",
        help="Do not descend into subdirectories"
    )
    _add_format_argument(search_parser)

    # Format command
    format_parser = subparsers.add_parser("format", help="Pretty-print an XML file")
    format_parser.add_argument("path", type=Path, help="XML file to format")
    format_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )

    return parser


def _add_format_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Output format (default: text)"
    )


def format_results(results: List[Dict[str, Any]], format_type: str, command: str) -> str:
    """Format command results for output."""
    if format_type == "json":
        return json.dumps(results, indent=2, ensure_ascii=False)

    if not results:
        return "No results to display."

    lines: List[str] = []

    if command == "problems":
        clean = sum(1 for r in results if not r.get("problems") and not r.get("error"))
        lines.append(f"Checked {len(results)} files, {clean} without problems")
        lines.append("-" * 60)
        for result in results:
            if result.get("error"):
                lines.append(f"✗ {result['file']}: {result['error']}")
                continue
            problems = result.get("problems", [])
            status = "✓" if not problems else "✗"
            lines.append(f"{status} {result['file']}")
            for problem in problems:
                lines.append(
                    f"   {problem['severity']} {problem['line']}:{problem['column']} "
                    f"{problem['message']}"
                )

    elif command == "scopes":
        for result in results:
            indent = "  " * result["depth"]
            lines.append(f"{indent}{result['start_line']}-{result['end_line']}")

    elif command == "friendly":
        for result in results:
            lines.append(f"{result['title']} ({len(result['entries'])} entries)")
            for entry in result["entries"]:
                suffix = f" #{entry['occurrence']}" if entry["occurrence"] > 1 else ""
                lines.append(f"   {entry['key']}{suffix}: {entry['display']}")
                for key, value in entry.get("fields", {}).items():
                    lines.append(f"      {key} = {value}")

    elif command == "search":
        for result in results:
            if "line" in result:
                lines.append(
                    f"{result['path']}:{result['line']}:{result['column']}: {result['preview']}"
                )
            else:
                lines.append(
                    f"{result['path']} [{result['collection_title']}] "
                    f"{result['entry_key']}#{result['entry_occurrence']} {result['preview']}"
                )

    else:
        return json.dumps(results, indent=2, ensure_ascii=False)

    return "\n".join(lines)


def _read_file(path: Path) -> str:
    with path.open(encoding="utf-8-sig") as f:
        return f.read()


def cmd_problems(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle problems command."""
    engine = ParseDiagnosticsEngine(config.toolkit.diagnostics)
    results = []

    for path in args.paths:
        try:
            text = _read_file(path)
        except (OSError, UnicodeDecodeError) as e:
            results.append({"file": str(path), "error": str(e), "problems": []})
            continue

        problems = engine.get_parse_problems(text)
        results.append({
            "file": str(path),
            "problems": [problem.to_dict() for problem in problems],
        })

    print(format_results(results, config.output_format, "problems"))
    found = any(r.get("problems") or r.get("error") for r in results)
    return 1 if found else 0


def cmd_scopes(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle scopes command."""
    try:
        text = _read_file(args.path)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error reading {args.path}: {e}", file=sys.stderr)
        return 1

    scope_config = config.toolkit.scopes
    if args.tolerant:
        scope_config = config.toolkit.override(scopes__prefer_conformant=False).scopes

    ranges = sorted(
        get_scope_ranges(text, scope_config),
        key=lambda r: (r.start_line, r.depth),
    )
    results = [
        {"start_line": r.start_line, "end_line": r.end_line, "depth": r.depth}
        for r in ranges
    ]
    print(format_results(results, config.output_format, "scopes"))
    return 0


def cmd_friendly(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle friendly command."""
    try:
        text = _read_file(args.path)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error reading {args.path}: {e}", file=sys.stderr)
        return 1

    document = FriendlyViewBuilder(config.toolkit.friendly, config.correlation_id).try_build(text)
    if document is None:
        print(f"No friendly view can be built for {args.path}", file=sys.stderr)
        return 1

    collections = document.collections
    if args.collection:
        match = document.find_collection(args.collection)
        if match is None:
            print(f"Collection not found: {args.collection}", file=sys.stderr)
            return 1
        collections = [match]

    results = []
    for collection in collections:
        entries = []
        for entry in collection.entries:
            item: Dict[str, Any] = {
                "key": entry.key,
                "occurrence": entry.occurrence,
                "display": entry.display,
            }
            if args.fields:
                item["fields"] = {key: f.value for key, f in entry.fields.items()}
            entries.append(item)
        results.append({
            "title": collection.title,
            "primary": collection.title == document.primary_collection_key,
            "entries": entries,
        })

    print(format_results(results, config.output_format, "friendly"))
    return 0


def _collect_search_files(paths: List[Path], recursive: bool) -> List[str]:
    files: List[str] = []
    for path in paths:
        if path.is_dir():
            files.extend(find_xml_files(path, recursive))
        else:
            files.append(str(path))
    return files


def cmd_search(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle search command."""
    search_config = config.toolkit.search
    try:
        files = _collect_search_files(args.paths, args.recursive)
    except (ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not files:
        print("No XML files to search", file=sys.stderr)
        return 1

    progress = ProgressTracker(
        len(files), "Searching XML files", enabled=not config.quiet and len(files) > 1
    )

    def on_file_done(path: str) -> None:
        progress.update()

    if args.friendly:
        engine = FriendlySearchEngine(
            search_config, config.toolkit.friendly, config.correlation_id
        )
        hits = engine.search(
            files,
            args.query,
            case_sensitive=args.case_sensitive,
            max_results=args.max_results,
            on_file_done=on_file_done,
            use_parallel=False if args.sequential else None,
        )
    else:
        engine = RawSearchEngine(search_config, config.correlation_id)
        hits = engine.search(
            files,
            args.query,
            case_sensitive=args.case_sensitive,
            max_results=args.max_results,
            on_file_done=on_file_done,
        )

    results = [hit.to_dict() for hit in hits]
    print(format_results(results, config.output_format, "search"))
    return 0 if hits else 1


def cmd_format(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle format command."""
    text = read_xml_text(str(args.path), config.toolkit.search.encoding)
    if text is None:
        print(f"Error reading {args.path}", file=sys.stderr)
        return 1

    try:
        formatted = format_xml(text, prohibit_dtd=config.toolkit.diagnostics.prohibit_dtd)
    except (etree.XMLSyntaxError, DoctypeProhibitedError) as e:
        print(f"Cannot format {args.path}: {e}", file=sys.stderr)
        return 1

    if args.output:
        try:
            args.output.write_text(formatted, encoding="utf-8")
            print(f"Formatted XML written to {args.output}", file=sys.stderr)
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
    else:
        print(formatted, end="" if formatted.endswith("\n") else "\n")

    return 0


def _configure_logging(config: CLIConfig) -> None:
    if config.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif config.quiet:
        logging.basicConfig(level=logging.ERROR)
    else:
        logging.basicConfig(level=config.toolkit.global_.logging_level)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = CLIConfig.from_args(args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    _configure_logging(config)
    log = get_logger(__name__, config.correlation_id, "cli").bind(command=args.command)
    log.debug("Running command")

    handlers = {
        "problems": cmd_problems,
        "scopes": cmd_scopes,
        "friendly": cmd_friendly,
        "search": cmd_search,
        "format": cmd_format,
    }

    # Route to appropriate command handler
    try:
        handler = handlers.get(args.command)
        if handler is None:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return 1
        return handler(args, config)

    except KeyboardInterrupt:
        log.info("Command interrupted")
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
