import os
import sys
from typing import List, Optional, Tuple

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from s3proxy.config import ConfigError, load_envs, load_settings
from s3proxy.logger import configure_logging, log
from s3proxy.services.storage import StorageError, create_storage_backend

GRACEFUL_SHUTDOWN_SECONDS = 5


def _parse_cli_args(args: List[str]) -> Tuple[Optional[str], List[str]]:
    """Extract ``--config <path>`` and return remaining arguments."""

    config_file: Optional[str] = None
    remaining: List[str] = []

    i = 0
    while i < len(args):
        token = args[i]
        if token == "--config":
            if i + 1 >= len(args):
                raise ValueError("--config flag requires a value.")
            config_file = args[i + 1]
            i += 2
            continue
        if token.startswith("--config="):
            config_file = token.split("=", 1)[1]
        else:
            remaining.append(token)
        i += 1

    return config_file, remaining


def _print_usage() -> None:
    usage = (
        "Usage:\n"
        "  python run.py [--config config.yml]\n"
        "Settings are read from the environment, a .env file and the optional YAML file.\n"
    )
    print(usage.strip())


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv

    if "-h" in args or "--help" in args:
        _print_usage()
        return 0

    try:
        config_file, residual = _parse_cli_args(args)
    except ValueError as exc:
        print(f"[s3proxy error] {exc}", file=sys.stderr)
        _print_usage()
        return 1

    if residual:
        print(f"[s3proxy error] Unexpected arguments: {' '.join(residual)}", file=sys.stderr)
        _print_usage()
        return 1

    load_envs(PROJECT_ROOT)

    try:
        settings = load_settings(config_file)
    except ConfigError as exc:
        print(f"[s3proxy error] Failed to load configuration: {exc}", file=sys.stderr)
        return 1

    configure_logging(settings.log_level)

    try:
        storage = create_storage_backend(settings)
    except StorageError as exc:
        print(f"[s3proxy error] Failed to initialize S3 storage: {exc}", file=sys.stderr)
        return 1
    log("[s3proxy] S3 storage initialized successfully")

    import uvicorn

    from s3proxy.api.main import create_app

    app = create_app(settings, storage)
    log(f"» {settings.app_name} {settings.app_version} listen: {settings.listen}")

    uvicorn.run(
        app,
        host=settings.listen_host,
        port=settings.listen_port,
        log_level="warning",
        timeout_graceful_shutdown=GRACEFUL_SHUTDOWN_SECONDS,
    )

    log("[s3proxy] Server exited")
    return 0


if __name__ == "__main__":
    sys.exit(main())
