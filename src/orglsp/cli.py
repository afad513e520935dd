"""Command-line interface for orglsp."""

from __future__ import annotations

import argparse
import dataclasses
from collections.abc import Sequence
from pathlib import Path
from typing import Literal

from orglsp.logging import configure_logging, get_logger
from orglsp.lsp.server import create_server
from orglsp.org.loader import KnowledgeLoadError
from orglsp.org.registry_provider import default_registry_provider


@dataclasses.dataclass(frozen=True)
class CliArgs:
    """Parsed command-line arguments."""

    transport: Literal["stdio", "tcp"]
    host: str
    port: int
    log_level: str
    log_file: Path | None
    debug: bool
    load_paths: tuple[Path, ...]
    knowledge_files: tuple[Path, ...]
    include_defaults: bool


def parse_args(argv: Sequence[str] | None = None) -> CliArgs:
    """
    Parse command-line arguments.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:].

    Returns:
        Parsed arguments as CliArgs dataclass.
    """
    parser = argparse.ArgumentParser(
        prog="orglsp",
        description="Language server completing Org-mode block header lines",
    )

    parser.add_argument(
        "--transport",
        choices=["stdio", "tcp"],
        default="stdio",
        help="Transport mode (default: stdio)",
    )

    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host for TCP transport (default: 127.0.0.1)",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=4390,
        help="Port for TCP transport (default: 4390)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Log level (default: INFO, or DEBUG if --debug is set)",
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Log file path (default: stderr)",
    )

    parser.add_argument(
        "-v",
        "--debug",
        action="store_true",
        help="Enable debug mode (sets log level to DEBUG unless --log-level is specified)",
    )

    parser.add_argument(
        "-L",
        "--load-path",
        dest="load_paths",
        type=Path,
        action="append",
        default=[],
        help="Emacs Lisp directory or .el file to read handlers from (repeatable)",
    )

    parser.add_argument(
        "-k",
        "--knowledge",
        dest="knowledge_files",
        type=Path,
        action="append",
        default=[],
        help="YAML knowledge file with handlers, schemas and commentary (repeatable)",
    )

    parser.add_argument(
        "--no-defaults",
        action="store_true",
        help="Do not load the bundled common header arguments",
    )

    args = parser.parse_args(argv)

    # Explicit --log-level wins, otherwise --debug sets DEBUG
    if args.log_level is not None:
        log_level = args.log_level
    elif args.debug:
        log_level = "DEBUG"
    else:
        log_level = "INFO"

    return CliArgs(
        transport=args.transport,
        host=args.host,
        port=args.port,
        log_level=log_level,
        log_file=args.log_file,
        debug=args.debug,
        load_paths=tuple(args.load_paths),
        knowledge_files=tuple(args.knowledge_files),
        include_defaults=not args.no_defaults,
    )


def run(argv: Sequence[str] | None = None) -> int:
    """
    Run the LSP server.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:].

    Returns:
        Exit code (0 for success, 1 for error).
    """
    args = parse_args(argv)

    configure_logging(level=args.log_level, log_file=args.log_file)
    logger = get_logger("main")

    logger.info("Starting orglsp server")
    logger.debug("Configuration: %s", args)

    try:
        get_registry = default_registry_provider(
            args.load_paths,
            args.knowledge_files,
            include_defaults=args.include_defaults,
        )
        # Load eagerly so unreadable sources fail at startup
        get_registry()

        server = create_server(get_registry=get_registry)

        if args.transport == "stdio":
            logger.info("Starting in stdio mode")
            server.start_io()
        else:
            logger.info("Starting in TCP mode on %s:%d", args.host, args.port)
            server.start_tcp(args.host, args.port)

        return 0

    except KnowledgeLoadError as e:
        logger.error("Cannot load knowledge sources: %s", e)
        return 1

    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        return 0

    except Exception:
        logger.critical("Fatal error in server", exc_info=True)
        return 1
