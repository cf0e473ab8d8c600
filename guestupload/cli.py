"""Command line interface for guestupload package."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.logging import RichHandler

from . import __version__
from .cli_progress import BatchProgressDisplay, render_configuration_summary
from .exceptions import UploaderError
from .models import UploadConfig
from .orchestrator import UploadOrchestrator
from .orchestrator.file_collector import FileCollector

FOLDER_ID_ENV = "GOOGLE_DRIVE_FOLDER_ID"
TOKEN_ENV = "GOOGLE_DRIVE_ACCESS_TOKEN"


class CLIError(RuntimeError):
    """Raised when CLI validation/execution fails."""


def _setup_logging(debug: bool, silent: bool, log_level: Optional[str]) -> str:
    """
    Configure logging.

    Default behavior is silent unless --debug, --log-level or LOG_LEVEL is provided.
    Returns a string describing effective mode.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    logging.disable(logging.NOTSET)
    env_level = os.getenv("LOG_LEVEL")

    if silent or (not debug and not log_level and not env_level):
        logging.disable(logging.CRITICAL)
        root_logger.setLevel(logging.CRITICAL + 1)
        return "silent"

    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, (log_level or env_level).upper(), logging.INFO)

    handler = RichHandler(
        rich_tracebacks=True,
        markup=False,
        show_time=False,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    return logging.getLevelName(level)


def _strip_optional_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def _load_env_file(path: Path, override: bool = False) -> None:
    if not path.exists():
        raise CLIError(f"env file not found: {path}")
    if not path.is_file():
        raise CLIError(f"env path is not a file: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CLIError(f"could not read env file {path}: {exc}") from exc

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue

        value = _strip_optional_quotes(value.strip())
        if override or key not in os.environ:
            os.environ[key] = value


def _resolve_default_env_file() -> Optional[Path]:
    default_env = Path(".env")
    return default_env if default_env.exists() and default_env.is_file() else None


async def _run_upload(
    name: str,
    sources: Sequence[Path],
    token: str,
    config: UploadConfig,
) -> int:
    assets, rejected = FileCollector.collect_assets(sources)
    for path in rejected:
        print(f"WARNING: {path.name} is not a valid image or video, skipping", file=sys.stderr)
    if not assets:
        raise CLIError("no image or video files to upload")

    display = BatchProgressDisplay()
    async with UploadOrchestrator(config) as orchestrator:
        try:
            process = orchestrator.upload_batch(token, name, assets)
        except UploaderError as exc:
            raise CLIError(str(exc)) from exc

        process.on_folder_resolved(display.on_folder_resolved)
        process.on_snapshot(display.on_snapshot)
        process.on_error(display.on_error)

        try:
            result = await process.wait()
        except UploaderError as exc:
            raise CLIError(str(exc)) from exc

        display.on_finish(result)
        return 0 if result.success else 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="guest-upload",
        description="Upload photos and videos into your own folder of the shared wedding Drive folder.",
    )
    parser.add_argument("name", nargs="?", help="Your name (used as the folder name)")
    parser.add_argument("sources", nargs="*", type=Path, help="Files or folders to upload")
    parser.add_argument(
        "-f",
        "--folder-id",
        default=None,
        help=f"Shared root folder ID (default from {FOLDER_ID_ENV})",
    )
    parser.add_argument(
        "-t",
        "--token",
        default=None,
        help=f"OAuth access token (default from {TOKEN_ENV})",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help="Bytes per streamed chunk (default 1 MiB)",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this .env file",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logs")
    parser.add_argument("--silent", action="store_true", help="Disable all logging")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Explicit log level (DEBUG/INFO/WARNING/ERROR)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"guest-upload {__version__}",
    )
    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    used_env_file = args.env_file or _resolve_default_env_file()
    if used_env_file is not None:
        try:
            _load_env_file(Path(used_env_file))
        except CLIError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

    effective_log_mode = _setup_logging(
        debug=args.debug,
        silent=args.silent,
        log_level=args.log_level,
    )

    if args.name is None:
        parser.print_help()
        return 0

    if not args.name.strip():
        print("ERROR: please enter your name", file=sys.stderr)
        return 1

    if not args.sources:
        print("ERROR: please select at least one file", file=sys.stderr)
        return 1

    sources = [Path(source).expanduser() for source in args.sources]
    missing = [source for source in sources if not source.exists()]
    if missing:
        print(f"ERROR: source does not exist: {missing[0]}", file=sys.stderr)
        return 1

    folder_id = args.folder_id or os.getenv(FOLDER_ID_ENV, "")
    token = args.token or os.getenv(TOKEN_ENV, "")
    if not folder_id:
        print(f"ERROR: {FOLDER_ID_ENV} is not set", file=sys.stderr)
        return 1
    if not token:
        print(f"ERROR: {TOKEN_ENV} is not set", file=sys.stderr)
        return 1

    config_kwargs = {"root_folder_id": folder_id}
    if args.chunk_size:
        config_kwargs["chunk_size"] = args.chunk_size
    config = UploadConfig(**config_kwargs)

    render_configuration_summary(
        {
            "Name": args.name,
            "Sources": ", ".join(str(source) for source in sources),
            "Root Folder": folder_id,
            "Chunk Size": config.chunk_size,
            "Env File": str(used_env_file) if used_env_file else "-",
            "Logging": effective_log_mode,
        }
    )

    try:
        return asyncio.run(_run_upload(args.name, sources, token, config))
    except CLIError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return 130


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
