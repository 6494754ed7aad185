"""CLI entrypoints for installing the AppFlowy LAI plugin and checking its status."""

from __future__ import annotations

import argparse
import json
import platform
import sys
from dataclasses import asdict
from pathlib import Path

from .config import PLATFORM_NAMES, InstallerConfig, config_path, load_config, save_config
from .errors import BinaryNotFound, InstallerError
from .installer import binary_filename, default_install_dir, plugin_status
from .logging_setup import configure_logging, get_logger
from .resolver import Platform, resolve_platform
from .service import install_plugin

LOGGER = get_logger("cli")


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _target(args: argparse.Namespace, cfg: InstallerConfig) -> Platform:
    name = getattr(args, "platform", None) or cfg.install.platform
    if name:
        return Platform.from_name(name)
    return resolve_platform(platform.system())


def _dest_dir(args: argparse.Namespace, cfg: InstallerConfig, target: Platform) -> Path:
    raw = getattr(args, "dest", None) or cfg.install.dest_dir
    if raw:
        return Path(raw).expanduser()
    return default_install_dir(target)


def cmd_install(args: argparse.Namespace) -> int:
    cfg = load_config()
    target = _target(args, cfg)
    dest_dir = _dest_dir(args, cfg, target)
    name = binary_filename(args.binary_name or cfg.install.binary_name, target)

    try:
        result = install_plugin(
            repo=args.repo or cfg.release.repo,
            version=args.version or cfg.release.version,
            dest_dir=dest_dir,
            target=target,
            binary_name=name,
            strict_asset=args.strict_asset or cfg.release.strict_asset,
            verify_checksums=cfg.release.verify_checksums and not args.no_verify,
            api_timeout_s=cfg.network.api_timeout_s,
            download_timeout_s=cfg.network.download_timeout_s,
            work_dir=Path(args.work_dir) if args.work_dir else None,
            progress=lambda msg: print(msg, flush=True),
        )
    except InstallerError as exc:
        LOGGER.error(exc.diagnosis(), extra={"event": "install_failed"})
        print(exc.diagnosis(), file=sys.stderr)
        if isinstance(exc, BinaryNotFound):
            print("Contents of the extracted archive:", file=sys.stderr)
            for entry in exc.listing:
                print(f"  {entry}", file=sys.stderr)
        return exc.exit_code
    except KeyboardInterrupt:
        LOGGER.warning("install interrupted", extra={"event": "install_interrupted"})
        print("error: interrupted", file=sys.stderr)
        return 130

    print(f"AppFlowy LAI plugin {result.release.tag_name} successfully installed to {result.artifact.path}")
    print(f"You can now use it by running: {name}")
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    cfg = load_config()
    target = _target(args, cfg)
    name = binary_filename(cfg.install.binary_name, target)
    payload = plugin_status(_dest_dir(args, cfg, target), name)
    payload["platform"] = target.token
    _print_json(payload)
    return 0 if payload["ready"] else 1


def cmd_config(args: argparse.Namespace) -> int:
    cfg = load_config()
    if args.save:
        path = save_config(cfg)
        print(str(path))
        return 0
    payload = asdict(cfg)
    payload["path"] = str(config_path())
    _print_json(payload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lai-bootstrap", description="AppFlowy LAI plugin installer")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to the console")
    sub = parser.add_subparsers(dest="command")

    install_cmd = sub.add_parser("install", help="Download and install the latest plugin release (default)")
    install_cmd.add_argument("--repo", default=None, help="GitHub owner/repo publishing the releases")
    install_cmd.add_argument("--version", default=None, help="Release tag or 'latest'")
    install_cmd.add_argument("--dest", default=None, help="Install directory override")
    install_cmd.add_argument("--platform", choices=list(PLATFORM_NAMES), default=None, help="Target platform override")
    install_cmd.add_argument("--binary-name", default=None, help="Executable name inside the release archive")
    install_cmd.add_argument("--strict-asset", action="store_true", help="Fail when several assets match the platform")
    install_cmd.add_argument("--no-verify", action="store_true", help="Skip checksums.txt verification")
    install_cmd.add_argument("--work-dir", default=None, help="Parent directory for the temporary workspace")
    install_cmd.set_defaults(func=cmd_install)

    status_cmd = sub.add_parser("status", help="Report whether the plugin is installed")
    status_cmd.add_argument("--dest", default=None, help="Install directory override")
    status_cmd.add_argument("--platform", choices=list(PLATFORM_NAMES), default=None)
    status_cmd.set_defaults(func=cmd_status)

    config_cmd = sub.add_parser("config", help="Show effective settings")
    config_cmd.add_argument("--save", action="store_true", help="Write the effective settings to the config file")
    config_cmd.set_defaults(func=cmd_config)

    return parser


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    args = parser.parse_args(argv)
    if getattr(args, "func", None) is None:
        args = parser.parse_args([*argv, "install"])

    configure_logging(console=args.verbose, verbose=args.verbose)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
