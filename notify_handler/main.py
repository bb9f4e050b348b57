"""Console entry point: run the control API and the webhook listener under uvicorn."""

import argparse
import logging

import uvicorn

from notify_handler import __version__, server

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notify-handler",
        description="Receive webhook notifications and show them on the desktop.",
    )
    parser.add_argument(
        "-p", "--webhook-port", type=int, help="Port the webhook listener binds"
    )
    parser.add_argument("--webhook-host", help="Interface the webhook listener binds")
    parser.add_argument("--api-port", type=int, help="Port of the control API")
    parser.add_argument("--api-host", help="Interface of the control API")
    parser.add_argument(
        "--no-desktop",
        action="store_true",
        help="Log notifications instead of showing them on the desktop",
    )
    parser.add_argument("--log-level", help="Logging level, e.g. DEBUG or INFO")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def apply_overrides(args: argparse.Namespace) -> None:
    """Copy command line options over the environment-derived settings."""
    settings = server.settings
    for name in ("webhook_port", "webhook_host", "api_port", "api_host", "log_level"):
        value = getattr(args, name)
        if value is not None:
            setattr(settings, name, value)
    if args.no_desktop:
        settings.desktop_notifications = False
    if args.log_level:
        logging.getLogger().setLevel(args.log_level.upper())


def main(argv: list[str] | None = None) -> int:
    """Run the server."""
    args = build_parser().parse_args(argv)
    apply_overrides(args)

    settings = server.settings
    logger.info(
        f"Control API on {settings.api_host}:{settings.api_port}, "
        f"webhooks on {settings.webhook_host}:{settings.webhook_port}"
    )
    uvicorn.run(
        server.app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
