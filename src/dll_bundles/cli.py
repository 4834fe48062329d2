"""dll-bundles CLI: check / build / save."""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from loguru import logger

from dll_bundles.builder import CommandBundleBuilder
from dll_bundles.config import DllBundlesOptions, load_config
from dll_bundles.control import DllBundlesControl
from dll_bundles.core.exceptions import DllBundlesError
from dll_bundles.runner import run_bundles


def _load_options(args: argparse.Namespace) -> DllBundlesOptions:
    options = load_config(args.config)
    if args.dll_dir is not None:
        options = replace(options, dll_dir=args.dll_dir.resolve())
    if args.ignore_package_error:
        options = replace(options, ignore_package_error=True)
    return options


def _cmd_check(options: DllBundlesOptions, args: argparse.Namespace) -> int:
    bundles = DllBundlesControl(options).check_bundles()
    for bundle in bundles:
        print(bundle.name)
    return 0


def _cmd_build(options: DllBundlesOptions, args: argparse.Namespace) -> int:
    control = DllBundlesControl(options)
    builder = CommandBundleBuilder(options.build_command, options.dll_dir, options.context)
    run_bundles(control, builder, force=args.force)
    return 0


def _cmd_save(options: DllBundlesOptions, args: argparse.Namespace) -> int:
    DllBundlesControl(options).save_bundle_state()
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="dll-bundles", description="DLL bundle staleness check and rebuild")
    p.add_argument(
        "--config",
        type=Path,
        default=Path("bundles.yml"),
        help="bundles.yml path",
    )
    p.add_argument(
        "--dll-dir",
        type=Path,
        default=None,
        help="override dll_dir from the config",
    )
    p.add_argument(
        "--ignore-package-error",
        action="store_true",
        help="report package errors but do not fail the check",
    )
    sub = p.add_subparsers(dest="command", required=True)
    sub.add_parser("check", help="print bundles that require a rebuild").set_defaults(func=_cmd_check)
    build = sub.add_parser("build", help="rebuild stale bundles and save the bundle state")
    build.add_argument("--force", action="store_true", help="rebuild all bundles")
    build.set_defaults(func=_cmd_build)
    sub.add_parser("save", help="save the current bundle state").set_defaults(func=_cmd_save)
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        options = _load_options(args)
        return args.func(options, args)
    except (DllBundlesError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
