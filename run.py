import argparse
import os
import sys
import uvicorn


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="sshed",
        description="Keep a searchable host/tag/group graph in sync with an ssh config file.",
    )
    parser.add_argument("-c", "--config", help="TOML config file ([general] ssh_config_path = ...)")
    parser.add_argument("--host", default=None, help="Bind address for the API server")
    parser.add_argument("--port", type=int, default=None, help="Port for the API server")
    parser.add_argument("--reload", action="store_true", help="Reload the server on code changes")
    parser.add_argument("--once", action="store_true", help="Run a single sync pass and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    return parser.parse_args(argv)


def run_once(verbose: bool = False) -> int:
    import logging
    from sshed.core.database import create_db_and_tables
    from sshed.core.logging import setup_logging
    from sshed.dependencies import sync_service

    setup_logging(logging.DEBUG if verbose else None)
    create_db_and_tables()
    report = sync_service.run("cli")
    print(report.model_dump_json(indent=2))
    return 0 if report.ok else 1


def main(argv=None):
    args = parse_args(argv)
    # Settings are read from the environment on first import of sshed
    if args.config:
        os.environ["SSHED_CONFIG_FILE"] = os.path.abspath(os.path.expanduser(args.config))

    if args.verbose:
        os.environ["SSHED_DEBUG"] = "true"

    if args.once:
        sys.exit(run_once(args.verbose))

    from sshed.core.config import get_settings
    settings = get_settings()
    uvicorn.run(
        "sshed.main:app",
        host=args.host or settings.HOST,
        port=args.port or settings.PORT,
        reload=args.reload,
        log_level="debug" if settings.DEBUG else "info"
    )

if __name__ == "__main__":
    main()
