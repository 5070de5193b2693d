import argparse
import asyncio
import logging
import os
import sys

from rich.logging import RichHandler

log = logging.getLogger("site_controller")


class _Parser(argparse.ArgumentParser):
    """Prints usage and exits with status 1 on bad arguments."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _float_env(name: str, default: float) -> float:
    value = os.environ.get(name)
    try:
        return float(value) if value else default
    except ValueError:
        return default


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="site-controller",
        description="Turn IIS app pools, websites and their Windows services on and off by site",
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to the sites JSON config file "
             "(default: $SITE_CONTROLLER_CONFIG or sites.json next to the executable)",
    )
    parser.add_argument(
        "--host",
        default=os.environ.get("SITE_CONTROLLER_HOST"),
        help="Run appcmd/sc on this Windows host over SSH instead of locally",
    )
    parser.add_argument(
        "--appcmd",
        default=None,
        help="Path to appcmd.exe (default: $SITE_CONTROLLER_APPCMD or the inetsrv copy)",
    )
    parser.add_argument(
        "--warm-wait",
        type=float,
        default=_float_env("SITE_CONTROLLER_WARM_WAIT", 5.0),
        help="Seconds to wait for warm-up requests before exiting (0 to not wait)",
    )
    parser.add_argument(
        "--log", "-l",
        default=None,
        help="Also write a debug log to this file",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose console output")

    commands = parser.add_subparsers(dest="command", metavar="COMMAND", parser_class=_Parser)
    commands.add_parser("status", help="Display the current status of all sites and services")
    for name, verb in (("up", "on"), ("down", "off")):
        sub = commands.add_parser(name, help=f"Turn a site {verb}")
        sub.add_argument("--site", required=True, help=f"The site name to turn {verb}")
    commands.add_parser("allup", help="Start all the sites")
    commands.add_parser("alldown", help="Stop all the sites")
    return parser


def setup_logging(debug: bool = False, log_file: str | None = None) -> None:
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    console = RichHandler(show_path=False, markup=False)
    console.setLevel(logging.DEBUG if debug else logging.INFO)
    root.addHandler(console)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))
        root.addHandler(file_handler)
    # asyncssh is chatty at INFO
    logging.getLogger("asyncssh").setLevel(logging.WARNING)


def run(args: argparse.Namespace) -> int:
    from site_controller.app import SiteControllerApp
    from site_controller.config import ConfigError, load_config, resolve_config_path
    from site_controller.runner import LocalRunner
    from site_controller.ssh import SSHRunner

    config_path = resolve_config_path(args.config)
    try:
        groups = load_config(config_path)
    except ConfigError as exc:
        log.critical("%s", exc)
        return 1
    log.debug("Loaded %d site(s) from %s", len(groups), config_path)

    runner = SSHRunner(args.host) if args.host else LocalRunner()
    app = SiteControllerApp(groups, runner, appcmd=args.appcmd, warm_wait=args.warm_wait)
    return asyncio.run(app.run(args.command, getattr(args, "site", None)))


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help(sys.stderr)
        return 1

    setup_logging(args.debug, args.log)
    try:
        return run(args)
    except Exception:
        log.critical("Uncaught exception", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
