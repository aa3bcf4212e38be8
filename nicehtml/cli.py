"""CLI entrypoint: render the NiceHTML fragments of a page to plain HTML."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

from dotenv import load_dotenv

from nicehtml.configuration import (
    DEFAULT_CONFIG_PATH,
    LoaderSettings,
    build_loader_settings,
    load_config,
)
from nicehtml.discovery import page_from_path
from nicehtml.exceptions import (
    ConfigurationError,
    EngineLoadError,
    FragmentResolutionError,
)
from nicehtml.logging import configure_console_logging, setup_file_logger
from nicehtml.orchestrator import FragmentOrchestrator
from nicehtml.output import render_document
from nicehtml.session import PageSession
from nicehtml.types import Page

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PAGE_ERROR = 1
EXIT_ENGINE_ERROR = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Load the NiceHTML fragments of a page and render them to HTML."
        )
    )
    parser.add_argument(
        "page",
        type=str,
        help="Path or http(s) URL of the page holding the fragments.",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Write the rendered document here (default: stdout).",
    )
    parser.add_argument(
        "--config",
        type=str,
        help=(
            "Path to a YAML config. If omitted, uses "
            "configs/default_config.yaml when present."
        ),
    )
    parser.add_argument(
        "--engine",
        type=str,
        help="Engine name (nicehtml, preformatted) or module:Class path.",
    )
    parser.add_argument(
        "--base-url",
        type=str,
        help="Base URL used to resolve relative fragment sources.",
    )
    parser.add_argument(
        "--no-cache-bust",
        action="store_true",
        help="Do not append the timestamp query parameter to fetches.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Timeout in seconds for each remote fetch (default: none).",
    )
    parser.add_argument(
        "--title",
        type=str,
        help="Title of the rendered document.",
    )
    parser.add_argument(
        "--events",
        type=str,
        help="Append a JSONL log of run events to this file.",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="Also write logs to this rotating log file.",
    )
    parser.add_argument(
        "--plugin-module",
        action="append",
        dest="plugin_modules",
        help="Import the given module before loading (registers engines).",
    )
    parser.add_argument(
        "--report",
        action="store_true",
        help="Print the run report as JSON on stderr.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging.",
    )
    return parser


def _apply_cli_overrides(args: argparse.Namespace, config: dict) -> dict:
    root_cfg = config.setdefault("nicehtml", {})
    fetch_cfg = root_cfg.setdefault("fetch", {})
    if args.no_cache_bust:
        fetch_cfg["cache_bust"] = False
    if args.timeout is not None:
        fetch_cfg["timeout_s"] = args.timeout

    if args.engine:
        engine_cfg = root_cfg.setdefault("engine", {})
        engine_cfg["kind"] = args.engine

    plugin_cfg = root_cfg.setdefault("plugins", {})
    modules = plugin_cfg.setdefault("modules", [])
    if args.plugin_modules:
        for mod in args.plugin_modules:
            if mod not in modules:
                modules.append(mod)

    if args.events:
        root_cfg.setdefault("runtime", {})["events_path"] = str(
            Path(args.events).resolve()
        )
    logging_cfg = root_cfg.setdefault("logging", {})
    if args.log_file:
        logging_cfg["log_file"] = str(Path(args.log_file).resolve())
    if args.verbose:
        logging_cfg["level"] = "DEBUG"
    if args.title:
        root_cfg.setdefault("output", {})["title"] = args.title
    return config


def _load_settings(args: argparse.Namespace) -> LoaderSettings:
    if args.config:
        config_path = Path(args.config)
        config = load_config(config_path)
    elif DEFAULT_CONFIG_PATH.exists():
        config_path = DEFAULT_CONFIG_PATH
        config = load_config(config_path)
    else:
        config_path = Path("nicehtml.yaml")
        config = {}
    config = _apply_cli_overrides(args, config)
    return build_loader_settings(
        config, config_root=config_path.resolve().parent
    )


def _load_page(
    location: str, session: PageSession, base_url: Optional[str]
) -> Page:
    if urlsplit(location).scheme in ("http", "https"):
        html = session.resolver.fetch_text(location, cache_bust=False)
        return Page(html=html, base_url=base_url or location)
    path = Path(location)
    if not path.exists():
        raise FragmentResolutionError(f"Page '{location}' not found.")
    page = page_from_path(path)
    if base_url:
        page.base_url = base_url
    return page


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    load_dotenv()

    try:
        settings = _load_settings(args)
    except (ConfigurationError, FileNotFoundError) as exc:
        parser.error(str(exc))
        return EXIT_PAGE_ERROR

    configure_console_logging(settings.logging.level)
    if settings.logging.log_file is not None:
        setup_file_logger(settings.logging.log_file, level=settings.logging.level)

    with PageSession(settings) as session:
        try:
            page = _load_page(args.page, session, args.base_url)
        except FragmentResolutionError as exc:
            print(f"Could not load page: {exc}", file=sys.stderr)
            return EXIT_PAGE_ERROR

        orchestrator = FragmentOrchestrator(session)
        try:
            report = orchestrator.run_all(page)
        except EngineLoadError as exc:
            print(f"Engine failed to load: {exc}", file=sys.stderr)
            return EXIT_ENGINE_ERROR

        document = render_document(
            session.sink,
            title=settings.output.title,
            template=settings.output.template,
        )

    if args.output:
        target = Path(args.output)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(document, encoding="utf-8")
        print(
            f"Rendered {len(report.converted)} fragment(s) -> {target}",
            file=sys.stderr,
        )
    else:
        sys.stdout.write(document)
    if args.report:
        print(json.dumps(report.to_dict(), indent=2), file=sys.stderr)
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
