"""Main entry point for the valet-router command line"""

import argparse
import json
import sys
from pathlib import Path

from . import __version__
from .certificates import is_secured, load_certificates, site_url
from .config import ConfigStore, UnsupportedConfigValue, certificates_path, config_path, validate_config
from .drivers import DriverRegistry
from .output import print_checks, print_error, print_sites, print_success, print_warning
from .router.resolver import SiteResolver
from .structured_logging import setup_logging

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 80


def handle_serve(args) -> bool:
    """Run the router under uvicorn"""
    import uvicorn

    setup_logging(level=args.log_level)
    uvicorn.run(
        "valet_cli.router.core:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        log_level=(args.log_level or "info").lower(),
    )
    return True


def handle_check(args) -> bool:
    """Validate config.json and the configured drivers"""
    path = config_path()
    checks: list[tuple[str, bool, str]] = []

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print_error(f"Cannot read {path}: {e}")
        return False
    checks.append(("Config file", True, str(path)))

    is_valid, errors = validate_config(data)
    for error in errors:
        checks.append(("Config", False, error))
    if not is_valid:
        print_checks(checks)
        return False

    store = ConfigStore(path)
    config = store.snapshot()
    checks.append(("Domain", True, config.domain))
    for project_path in config.paths:
        exists = Path(project_path).is_dir()
        checks.append(("Path", exists, project_path if exists else f"{project_path} does not exist"))

    try:
        registry = DriverRegistry.from_config(config)
        checks.append(("Drivers", True, ", ".join(registry.names)))
    except UnsupportedConfigValue as e:
        checks.append(("Drivers", False, str(e)))
        print_checks(checks)
        return False

    print_checks(checks)
    missing = [c for c in checks if c[0] == "Path" and not c[1]]
    if missing:
        print_warning(f"{len(missing)} configured path(s) missing; they are skipped when resolving sites")
    else:
        print_success("Configuration looks good")
    return True


def handle_sites(args) -> bool:
    """List every site the router can serve"""
    try:
        config = ConfigStore().snapshot()
        registry = DriverRegistry.from_config(config)
    except UnsupportedConfigValue as e:
        print_error(str(e))
        return False

    certificates = load_certificates(certificates_path())
    rows = []
    for base, site_dirs in SiteResolver(config.paths).list_sites():
        for site_dir in site_dirs:
            secured = is_secured(site_dir.name, config.domain, certificates)
            url = site_url(site_dir.name, config.domain, certificates)
            driver = registry.select(site_dir, site_dir.name, "/")
            rows.append((site_dir.name, url, driver.name if driver else "", secured, str(site_dir)))

    print_sites(rows)
    return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="valet-router", description="Local development site router")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Run the router")
    serve.add_argument("--host", default=DEFAULT_HOST)
    serve.add_argument("--port", type=int, default=DEFAULT_PORT)
    serve.add_argument("--log-level", default=None, help="Override VALET_LOG_LEVEL")
    serve.set_defaults(func=handle_serve)

    check = subparsers.add_parser("check", help="Validate the configuration")
    check.set_defaults(func=handle_check)

    sites = subparsers.add_parser("sites", help="List discoverable sites")
    sites.set_defaults(func=handle_sites)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 1
    return 0 if args.func(args) else 1


if __name__ == "__main__":
    sys.exit(main())
