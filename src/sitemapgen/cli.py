"""Command-line interface for sitemapgen."""

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from . import __version__
from .autodetect import PLACEHOLDER_SITE_URL, find_public_dir, infer_site_url
from .core.generator import SitemapGenerator
from .exceptions import ConfigurationError, ProtocolViolation, SitemapError
from .logging_config import setup_logging
from .models.config import ChangeFreq, LastmodStrategy, SitemapConfig, build_config, deep_update, read_yaml_file
from .models.events import EventType, SitemapEvent
from .validation import BatchReport, Severity, SitemapValidator

SEVERITY_STYLES = {
    Severity.ERROR.value: "red",
    Severity.WARNING.value: "yellow",
    Severity.INFO.value: "dim",
}


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="sitemapgen",
        description="Generate and validate sitemaps for a built static site",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate sitemap.xml, sitemap.xml.gz and sitemap.txt in ./dist
  sitemapgen dist --site-url https://example.com/

  # Let sitemapgen find the build directory and site URL (CNAME / GitHub Pages)
  sitemapgen

  # Read settings from a YAML file, fail on any protocol violation
  sitemapgen --config sitemap.yaml --strict

  # Only validate existing sitemaps
  sitemapgen --validate-only --validate dist/sitemap.xml dist/sitemap.txt
        """,
    )

    parser.add_argument(
        "public_dir",
        nargs="?",
        type=Path,
        help="Directory holding the built site (auto-detected if omitted)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--site-url",
        "-u",
        help="Base URL of the published site (inferred from CNAME or $GITHUB_REPOSITORY if omitted)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        metavar="FILE",
        help="YAML configuration file (command-line options take precedence)",
    )
    parser.add_argument(
        "--no-autodetect",
        action="store_true",
        help="Do not guess the public directory or site URL",
    )

    # Discovery settings
    discovery_group = parser.add_argument_group("discovery settings")
    discovery_group.add_argument(
        "--include",
        nargs="+",
        metavar="GLOB",
        help="File patterns to include (default: **/*.html **/*.htm)",
    )
    discovery_group.add_argument(
        "--exclude",
        nargs="+",
        metavar="GLOB",
        help="File patterns to skip (default: **/*.map)",
    )
    discovery_group.add_argument(
        "--exclude-urls",
        nargs="+",
        metavar="URL",
        help="Exact URLs or wildcard patterns (* and ?) to drop",
    )
    discovery_group.add_argument(
        "--exclude-extensions",
        nargs="+",
        metavar="EXT",
        help="File extensions that must never be listed",
    )
    discovery_group.add_argument(
        "--additional-urls",
        nargs="+",
        metavar="URL",
        help="Absolute URLs to add manually",
    )
    discovery_group.add_argument(
        "--no-canonical",
        action="store_true",
        help='Ignore <link rel="canonical">',
    )
    discovery_group.add_argument(
        "--no-discover-links",
        action="store_true",
        help="Do not add internal <a href> targets",
    )
    discovery_group.add_argument(
        "--max-discovered-links",
        type=int,
        default=None,
        help="Cap on links added via discovery (default: 10000)",
    )
    discovery_group.add_argument(
        "--max-total-urls",
        type=int,
        default=None,
        help="Cap on the collected URL count (default: 100000)",
    )

    # Entry settings
    entry_group = parser.add_argument_group("entry settings")
    entry_group.add_argument(
        "--lastmod",
        dest="lastmod_strategy",
        metavar="STRATEGY",
        help=f"Lastmod source: {', '.join(s.value for s in LastmodStrategy)} (default: git)",
    )
    entry_group.add_argument(
        "--changefreq",
        choices=[f.value for f in ChangeFreq],
        help="<changefreq> for every URL",
    )
    entry_group.add_argument(
        "--priority",
        type=float,
        default=None,
        help="<priority> for every URL (0.0-1.0)",
    )

    # Output settings
    output_group = parser.add_argument_group("output settings")
    output_group.add_argument(
        "--output-dir",
        "-o",
        type=Path,
        default=None,
        help="Output directory (default: the public directory)",
    )
    output_group.add_argument(
        "--filename",
        help="XML sitemap filename (default: sitemap.xml)",
    )
    output_group.add_argument(
        "--index-filename",
        help="Sitemap index filename (default: sitemap-index.xml)",
    )
    output_group.add_argument("--no-xml", action="store_true", help="Do not write the XML sitemap")
    output_group.add_argument("--no-txt", action="store_true", help="Do not write the TXT sitemap")
    output_group.add_argument("--no-gzip", action="store_true", help="Do not write .gz copies")
    output_group.add_argument(
        "--max-urls-per-file",
        type=int,
        default=None,
        help="Split into numbered files above this many URLs (default: 50000)",
    )
    output_group.add_argument(
        "--xml-max-size",
        metavar="SIZE",
        help="Size limit per XML sitemap, e.g. 50mb",
    )
    output_group.add_argument(
        "--txt-max-size",
        metavar="SIZE",
        help="Size limit per TXT sitemap, e.g. 50mb",
    )

    # Validation settings
    validation_group = parser.add_argument_group("validation")
    validation_group.add_argument(
        "--validate",
        nargs="+",
        type=Path,
        metavar="PATH",
        help="Existing sitemap files to validate",
    )
    validation_group.add_argument(
        "--validate-only",
        action="store_true",
        help="Validate the --validate files without generating anything",
    )
    validation_group.add_argument(
        "--strict",
        action="store_true",
        help="Treat protocol violations as errors and exit non-zero",
    )

    # Output control
    control_group = parser.add_argument_group("output control")
    control_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )
    control_group.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress output",
    )
    control_group.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log messages to this file",
    )

    return parser


def _log_level(args: argparse.Namespace) -> Optional[str]:
    if args.verbose:
        return "DEBUG"
    if args.quiet:
        return "ERROR"
    return None


def build_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Map parsed arguments to a nested config mapping (unset options are omitted)."""
    config_kwargs: dict[str, Any] = {}

    if args.site_url:
        config_kwargs["site_url"] = args.site_url
    if args.public_dir:
        config_kwargs["public_dir"] = args.public_dir

    # Discovery settings
    discovery_kwargs: dict[str, Any] = {}
    if args.include:
        discovery_kwargs["include_patterns"] = args.include
    if args.exclude:
        discovery_kwargs["exclude_patterns"] = args.exclude
    if args.exclude_urls:
        discovery_kwargs["exclude_urls"] = args.exclude_urls
    if args.exclude_extensions:
        discovery_kwargs["exclude_extensions"] = args.exclude_extensions
    if args.additional_urls:
        discovery_kwargs["additional_urls"] = args.additional_urls
    if args.no_canonical:
        discovery_kwargs["parse_canonical"] = False
    if args.no_discover_links:
        discovery_kwargs["discover_links"] = False
    if args.max_discovered_links is not None:
        discovery_kwargs["max_discovered_links"] = args.max_discovered_links
    if args.max_total_urls is not None:
        discovery_kwargs["max_total_urls"] = args.max_total_urls
    if discovery_kwargs:
        config_kwargs["discovery"] = discovery_kwargs

    # Entry settings
    entry_kwargs: dict[str, Any] = {}
    if args.lastmod_strategy:
        entry_kwargs["lastmod_strategy"] = args.lastmod_strategy
    if args.changefreq:
        entry_kwargs["changefreq"] = args.changefreq
    if args.priority is not None:
        entry_kwargs["priority"] = args.priority
    if entry_kwargs:
        config_kwargs["entries"] = entry_kwargs

    # Output settings
    output_kwargs: dict[str, Any] = {}
    if args.output_dir:
        output_kwargs["directory"] = args.output_dir
    if args.filename:
        output_kwargs["filename"] = args.filename
    if args.index_filename:
        output_kwargs["index_filename"] = args.index_filename
    if args.no_xml:
        output_kwargs["generate_xml"] = False
    if args.no_txt:
        output_kwargs["generate_txt"] = False
    if args.no_gzip:
        output_kwargs["generate_gzip"] = False
    if args.max_urls_per_file is not None:
        output_kwargs["max_urls_per_file"] = args.max_urls_per_file
    if args.xml_max_size:
        output_kwargs["xml_max_size"] = args.xml_max_size
    if args.txt_max_size:
        output_kwargs["txt_max_size"] = args.txt_max_size
    if output_kwargs:
        config_kwargs["output"] = output_kwargs

    # Validation settings
    validation_kwargs: dict[str, Any] = {}
    if args.strict:
        validation_kwargs["strict"] = True
    if args.validate:
        validation_kwargs["external_paths"] = args.validate
    if validation_kwargs:
        config_kwargs["validation"] = validation_kwargs

    level = _log_level(args)
    if level:
        config_kwargs["log_level"] = level
    if args.log_file:
        config_kwargs["log_file"] = args.log_file

    return config_kwargs


def apply_autodetect(data: dict[str, Any], console: Console, quiet: bool = False) -> dict[str, Any]:
    """
    Fill in public_dir and site_url when neither the options nor the file set them.

    Only this function reads $GITHUB_REPOSITORY.
    """
    data = dict(data)
    if not data.get("public_dir"):
        detected = find_public_dir()
        if detected is not None:
            data["public_dir"] = detected
            if not quiet:
                console.print(f"[dim]Detected public directory: {detected}[/dim]")

    if not data.get("site_url"):
        public_dir = Path(data["public_dir"]) if data.get("public_dir") else None
        inferred = infer_site_url(public_dir, os.environ.get("GITHUB_REPOSITORY"))
        if inferred:
            data["site_url"] = inferred
            if not quiet:
                console.print(f"[dim]Inferred site URL: {inferred}[/dim]")

    return data


def load_config(args: argparse.Namespace, console: Console) -> SitemapConfig:
    """
    Build the validated configuration from the config file and options.

    Raises:
        ConfigurationError: If any setting is missing or invalid
    """
    data = read_yaml_file(args.config) if args.config else {}
    data = deep_update(data, build_overrides(args))
    if not args.no_autodetect:
        data = apply_autodetect(data, console, quiet=args.quiet)
    return build_config(**data)


def print_batch_report(batch: BatchReport, console: Console, verbose: bool = False) -> None:
    """Print every file's findings and a one-line verdict."""
    for report in batch.files:
        kind = report.kind.value if report.kind else "unknown"
        console.print(f"[bold]{report.path}[/bold] ({kind}, {report.size_formatted})")
        for finding in report.findings:
            if finding.severity == Severity.INFO and not verbose:
                continue
            style = SEVERITY_STYLES[finding.severity.value]
            console.print(f"  [{style}]{finding.severity.value}:[/{style}] {finding.message}")

    verdict = "[green]valid[/green]" if batch.valid else "[red]invalid[/red]"
    console.print(f"{len(batch.files)} file(s) {verdict}: {batch.error_count} error(s), {batch.warning_count} warning(s)")


def run_validate_only(args: argparse.Namespace, console: Console) -> int:
    """Validate existing sitemap files without generating anything."""
    if not args.validate:
        console.print("[red]Error:[/red] --validate-only needs at least one --validate PATH")
        return 1

    validator = SitemapValidator(strict=args.strict)
    batch = validator.validate_files(args.validate)
    if not args.quiet:
        print_batch_report(batch, console, verbose=args.verbose)
    return 0 if batch.valid else 1


def _print_event(event: SitemapEvent, console: Console, verbose: bool) -> None:
    if event.type == EventType.VALIDATION_FINDING or event.type == EventType.CONFIG_PROBLEM:
        severity = event.severity or Severity.WARNING.value
        if severity == Severity.INFO.value and not verbose:
            return
        style = SEVERITY_STYLES.get(severity, "yellow")
        where = f"{event.path.name}: " if event.path else ""
        console.print(f"[{style}]{severity}:[/{style}] {where}{event.message}")
    elif event.type == EventType.LIMIT_REACHED:
        console.print(f"[yellow]warning:[/yellow] {event.message}")
    elif event.type == EventType.ARTIFACT_FAILED:
        console.print(f"[red]Failed:[/red] {event.path} - {event.error}")


def run_generator(args: argparse.Namespace) -> int:
    """Run the generator with given arguments."""
    console = Console()
    setup_logging(_log_level(args) or "WARNING", console=console, force=True)

    if args.validate_only:
        return run_validate_only(args, console)

    try:
        config = load_config(args, console)
    except ConfigurationError as e:
        console.print("[red]Configuration error:[/red]")
        for problem in e.problems:
            console.print(f"  - {problem}")
        return 1

    setup_logging(
        config.log_level if "log_level" in config.model_fields_set else "WARNING",
        log_file=str(config.log_file) if config.log_file else None,
        console=console,
        force=True,
    )

    if config.site_url.rstrip("/") == PLACEHOLDER_SITE_URL.rstrip("/"):
        console.print(
            f"[yellow]warning:[/yellow] site URL is the placeholder {PLACEHOLDER_SITE_URL}; "
            "set --site-url to your real domain"
        )

    async def run() -> int:
        if not args.quiet:
            console.print(f"[bold blue]sitemapgen[/bold blue] v{__version__}")
            console.print(f"Site: {config.site_url}")
            console.print(f"Source: {config.public_dir}")
            console.print()

        generator = SitemapGenerator(config)
        try:
            if args.quiet:
                async for _ in generator.run():
                    pass
            else:
                with Progress(
                    SpinnerColumn(),
                    TextColumn("[progress.description]{task.description}"),
                    console=console,
                    transient=True,
                ) as progress:
                    task = progress.add_task("Starting...", total=None)

                    async for event in generator.run():
                        if event.type in (
                            EventType.STARTED,
                            EventType.COLLECTION_STARTED,
                            EventType.CHUNKS_PLANNED,
                        ):
                            progress.update(task, description=f"[cyan]{event.message}")
                        elif event.type == EventType.COLLECTION_COMPLETE:
                            progress.update(task, description=f"[green]Found {event.total} URLs")
                        elif event.type in (EventType.ARTIFACT_WRITTEN, EventType.ARTIFACT_COMPRESSED):
                            progress.update(task, description=f"[cyan]{event.message}")
                            if args.verbose:
                                console.print(f"[green]Wrote[/green] {event.path} ({event.total} URLs)")
                        elif event.type == EventType.COMPLETED:
                            progress.update(task, description=f"[green]{event.message}")
                        else:
                            _print_event(event, console, args.verbose)

        except ProtocolViolation as e:
            console.print(f"[red]Strict validation failed:[/red] {e.message}")
            for error in e.errors:
                console.print(f"  - {error}")
            return 1

        # Print stats
        stats = generator.stats
        if not args.quiet:
            console.print()
            console.print("[bold]Results:[/bold]")
            console.print(f"  Files scanned: {stats.files_walked}")
            console.print(f"  Canonical URLs: {stats.canonical_urls}")
            console.print(f"  Links discovered: {stats.links_discovered}")
            console.print(f"  URLs excluded: {stats.urls_excluded}")
            console.print(f"  URLs in sitemap: {stats.urls_total}")
            console.print(f"  Files written: {stats.artifacts_written}")
            console.print(
                f"  Validation: {stats.validation_errors} error(s), {stats.validation_warnings} warning(s)"
            )
            console.print(f"  Duration: {stats.duration_seconds:.1f}s")

        return 1 if stats.failed else 0

    try:
        return asyncio.run(run())
    except SitemapError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        return 1


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        return run_generator(args)
    except Exception as e:
        Console(stderr=True).print(f"[red]Fatal error:[/red] {e}")
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
