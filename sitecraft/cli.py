"""CLI entrypoints for sitecraft commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from .config import ConfigError, SiteCraftConfig, load_config
from .export import export_zip, read_files, write_files
from .llm import ProviderError
from .logging import configure_logging, get_logger, log_issues
from .models import ExtractionResult, ProjectFileSet
from .pipeline import SiteGenerator, build_composer, build_extractor
from .preview import RuleError

logger = get_logger("cli")


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )


def _add_project_argument(parser: argparse.ArgumentParser, help_text: str) -> None:
    parser.add_argument("project", nargs="?", default=".", help=help_text)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sitecraft",
        description="Turn language-model website responses into navigable previews.",
    )
    _add_verbose_option(parser)
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors.")
    parser.add_argument("--config", type=Path, default=None, help="Path to .sitecraft.yml.")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract_parser = subparsers.add_parser(
        "extract",
        help="Recover project files from a saved model response.",
    )
    _add_verbose_option(extract_parser, suppress_default=True)
    extract_parser.add_argument("input", help="Response file, or '-' to read stdin.")
    extract_parser.add_argument("--out", type=Path, default=None, help="Write recovered files here.")
    extract_parser.add_argument("--json", action="store_true", help="Print the full result as JSON.")
    extract_parser.add_argument(
        "--no-cross-check",
        action="store_true",
        help="Do not synthesise files for unresolved asset references.",
    )

    preview_parser = subparsers.add_parser(
        "preview",
        help="Compose one page of a project into a self-contained document.",
    )
    _add_verbose_option(preview_parser, suppress_default=True)
    _add_project_argument(preview_parser, "Project directory (defaults to current directory).")
    preview_parser.add_argument("--page", default=None, help="Page to compose (defaults to the entry page).")
    preview_parser.add_argument("--output", type=Path, default=None, help="Write the document here instead of stdout.")

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate a new project from a description.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    generate_parser.add_argument("prompt", help="Natural-language description of the website.")
    generate_parser.add_argument("--out", type=Path, required=True, help="Directory for the generated files.")
    generate_parser.add_argument("--provider", default=None, help="cerebras, openai, anthropic or gemini.")
    generate_parser.add_argument("--model", default=None, help="Override the provider's default model.")
    generate_parser.add_argument("--stream", action="store_true", help="Stream the response while generating.")

    modify_parser = subparsers.add_parser(
        "modify",
        help="Apply a change request to an existing project.",
    )
    _add_verbose_option(modify_parser, suppress_default=True)
    modify_parser.add_argument("prompt", help="Requested change.")
    _add_project_argument(modify_parser, "Project directory (defaults to current directory).")
    modify_parser.add_argument("--provider", default=None, help="cerebras, openai, anthropic or gemini.")
    modify_parser.add_argument("--model", default=None, help="Override the provider's default model.")

    export_parser = subparsers.add_parser(
        "export",
        help="Bundle a project as a zip archive.",
    )
    _add_verbose_option(export_parser, suppress_default=True)
    _add_project_argument(export_parser, "Project directory (defaults to current directory).")
    export_parser.add_argument("--output", type=Path, default=None, help="Archive path or directory.")
    export_parser.add_argument("--title", default=None, help="Project title used in README.md.")
    export_parser.add_argument("--description", default=None, help="Short project description.")

    serve_parser = subparsers.add_parser(
        "serve",
        help="Serve the HTTP API and a live preview of a project.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("project", nargs="?", default=None, help="Project directory to preview.")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for sitecraft commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), quiet=bool(args.quiet), log_file=args.log_file)

    try:
        config = _load_config(args)
        if args.command == "extract":
            _run_extract(args, config)
        elif args.command == "preview":
            _run_preview(args, config)
        elif args.command == "generate":
            _run_generate(args, config)
        elif args.command == "modify":
            _run_modify(args, config)
        elif args.command == "export":
            _run_export(args, config)
        elif args.command == "serve":
            _run_serve(args, config)
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except (ConfigError, RuleError) as exc:
        parser.exit(1, f"sitecraft {args.command} failed: {exc}\n")
    except ProviderError as exc:
        parser.exit(1, f"sitecraft {args.command} failed: {exc}\nRun with --verbose for more details.\n")
    except (FileNotFoundError, NotADirectoryError, ValueError) as exc:
        parser.exit(1, f"{exc}\n")


def _load_config(args: argparse.Namespace) -> SiteCraftConfig:
    if args.config is not None:
        return load_config(args.config)
    project = getattr(args, "project", None)
    base = Path(project) if project else Path.cwd()
    return load_config(base if base.is_dir() else Path.cwd())


def _run_extract(args: argparse.Namespace, config: SiteCraftConfig) -> None:
    raw = sys.stdin.read() if args.input == "-" else _read_text(Path(args.input))
    extractor = build_extractor(config)
    if args.no_cross_check:
        extractor.cross_check = False
    result = extractor.extract(raw)
    log_issues(logger, result.issues, context="extract")
    if args.out is not None:
        write_files(result.files, args.out)
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return
    _print_summary(result)
    if args.out is not None:
        print(f"Files written to {_relativize(args.out)}")


def _run_preview(args: argparse.Namespace, config: SiteCraftConfig) -> None:
    files = read_files(_project_dir(args.project))
    preview = build_composer(config).compose(files, args.page)
    log_issues(logger, preview.issues, context="preview")
    if not preview.previewable:
        raise ValueError("Project has no page to preview")
    if args.output is None:
        sys.stdout.write(preview.document)
        return
    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(preview.document, encoding="utf-8")
    print(f"Preview of {preview.target} written to {_relativize(args.output)}")


def _run_generate(args: argparse.Namespace, config: SiteCraftConfig) -> None:
    _apply_llm_overrides(args, config)
    if args.stream:
        config.llm.stream = True
    generator = SiteGenerator.from_config(config)
    outcome = generator.generate(args.prompt)
    log_issues(logger, outcome.issues, context="generate")
    write_files(outcome.files, args.out)
    _print_summary(outcome.extraction)
    print(f"Files written to {_relativize(args.out)}")


def _run_modify(args: argparse.Namespace, config: SiteCraftConfig) -> None:
    _apply_llm_overrides(args, config)
    project = _project_dir(args.project)
    generator = SiteGenerator.from_config(config)
    outcome = generator.modify(args.prompt, read_files(project))
    log_issues(logger, outcome.issues, context="modify")
    if not outcome.changed:
        print("No files changed")
        return
    changed = set(outcome.changed)
    write_files(ProjectFileSet(item for item in outcome.files if item.path in changed), project)
    for path in outcome.changed:
        print(f"updated {path}")


def _run_export(args: argparse.Namespace, config: SiteCraftConfig) -> None:
    project = _project_dir(args.project)
    files = read_files(project)
    title = args.title or config.title or project.resolve().name or "site"
    destination = args.output or Path.cwd()
    archive = export_zip(files, destination, title=title, description=args.description)
    print(f"Archive written to {_relativize(archive)}")


def _run_serve(args: argparse.Namespace, config: SiteCraftConfig) -> None:  # pragma: no cover - starts a server
    from .service.app import run_service

    project = _project_dir(args.project) if args.project else None
    run_service(host=args.host, port=args.port, project=project, config=config)


def _apply_llm_overrides(args: argparse.Namespace, config: SiteCraftConfig) -> None:
    if args.provider:
        config.llm.provider = args.provider
    if args.model:
        config.llm.model = args.model


def _project_dir(value: Optional[str]) -> Path:
    path = Path(value or ".")
    if not path.is_dir():
        raise NotADirectoryError(f"Project directory not found: {path}")
    return path


def _read_text(path: Path) -> str:
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    return path.read_text(encoding="utf-8")


def _print_summary(result: ExtractionResult) -> None:
    print(f"Recovered {len(result.files)} file(s) using the {result.strategy} strategy")
    for item in result.files:
        print(f"  {item.path} ({item.kind.value}, {item.size} chars)")
    if result.issues:
        print(f"{len(result.issues)} issue(s) reported")


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
