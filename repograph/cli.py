"""CLI entrypoints for repograph commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Mapping

from .config import load_config
from .errors import RepographError
from .logging import configure_logging
from .models import RepositoryAnalysis
from .pipeline import Pipeline


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_output_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-o",
        "--output",
        help="Write the JSON result to this file instead of stdout.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repograph",
        description="Analyse repository structure and build file-level dependency graphs.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        help="Path to a .repograph.yml file or the directory containing it.",
    )
    parser.add_argument(
        "--log-file",
        help="Also write debug-level logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Clone a repository and extract imports, exports and entities per file.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    _add_output_option(analyze_parser)
    analyze_parser.add_argument("url", help="Git URL of the repository to analyse.")
    analyze_parser.add_argument("--branch", help="Branch to clone (defaults to the remote HEAD).")
    analyze_parser.add_argument(
        "--repository-id",
        help="Identifier used to namespace the temporary clone (defaults to the repository name).",
    )
    analyze_parser.add_argument(
        "--max-files", type=int, help="Analyse at most this many files."
    )
    analyze_parser.add_argument(
        "--skip-files", type=int, help="Skip this many files before analysing."
    )
    analyze_parser.add_argument(
        "--batch-size",
        type=int,
        help="Analyse the whole repository in batches of this size from a single clone.",
    )

    graph_parser = subparsers.add_parser(
        "graph",
        help="Build a dependency graph from a saved analysis JSON file.",
    )
    _add_verbose_option(graph_parser, suppress_default=True)
    _add_output_option(graph_parser)
    graph_parser.add_argument("analysis", help="Path to the output of `repograph analyze`.")

    count_parser = subparsers.add_parser(
        "count",
        help="Count the source files that would be analysed under a local directory.",
    )
    _add_verbose_option(count_parser, suppress_default=True)
    count_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Directory to scan (defaults to current directory).",
    )

    summarize_parser = subparsers.add_parser(
        "summarize",
        help="Generate a short technical summary for a file or a named entity in it.",
    )
    _add_verbose_option(summarize_parser, suppress_default=True)
    summarize_parser.add_argument("file", help="Source file to summarise.")
    summarize_parser.add_argument(
        "--entity", help="Summarise this entity within the file instead of the whole file."
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for repograph commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        log_file=Path(args.log_file) if args.log_file else None,
    )

    try:
        config = load_config(Path(args.config) if args.config else None)
    except RepographError as exc:
        parser.exit(1, f"{exc}\n")

    pipeline = Pipeline(config)

    if args.command == "analyze":
        try:
            if args.batch_size is not None:
                analysis = pipeline.run_batched(
                    args.url,
                    args.branch,
                    args.repository_id,
                    batch_size=args.batch_size,
                )
            else:
                analysis = pipeline.run_analysis(
                    args.url,
                    args.branch,
                    args.repository_id,
                    max_files=args.max_files,
                    skip_files=args.skip_files,
                )
        except (RepographError, ValueError) as exc:
            parser.exit(1, f"repograph analyze failed: {exc}\nRun with --verbose for more details.\n")
        _emit(analysis.to_dict(), args.output)
    elif args.command == "graph":
        try:
            raw = json.loads(Path(args.analysis).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            parser.exit(1, f"Unable to read analysis file {args.analysis}: {exc}\n")
        if not isinstance(raw, Mapping):
            parser.exit(1, f"{args.analysis} does not contain an analysis object\n")
        analysis = RepositoryAnalysis.from_dict(raw)
        try:
            graph = pipeline.build_graph(analysis.files)
        except RepographError as exc:
            parser.exit(1, f"repograph graph failed: {exc}\n")
        _emit(graph.to_dict(), args.output)
    elif args.command == "count":
        try:
            total = pipeline.count(args.path)
        except (FileNotFoundError, NotADirectoryError) as exc:
            parser.exit(1, f"{exc}\n")
        print(total)
    elif args.command == "summarize":
        path = Path(args.file)
        try:
            code = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            parser.exit(1, f"Unable to read {path}: {exc}\n")
        summary_type = "entity" if args.entity else "file"
        try:
            summary = pipeline.summaries.summarize(
                code,
                summary_type,
                entity_name=args.entity,
                file_path=_relativize(path),
            )
        except RepographError as exc:
            parser.exit(1, f"repograph summarize failed: {exc}\nRun with --verbose for more details.\n")
        print(summary)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _emit(payload: Any, output: str | None) -> None:
    text = json.dumps(payload, indent=2)
    if output:
        destination = Path(output)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(text + "\n", encoding="utf-8")
        print(f"Wrote {_relativize(destination)}")
    else:
        print(text)


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
