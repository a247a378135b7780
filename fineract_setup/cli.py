# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Command-line interface for fineract-setup.

Commands:

    run: Upload every template to Fineract
    validate: Check that every template is a readable workbook (no network)
    list: Show the template-to-endpoint table

Example:
    Upload everything:
        ```bash
        $ fineract-setup run --config fineract-setup.yaml
        ```

    Upload two templates with verbose output:
        ```bash
        $ fineract-setup run --only offices --only staff --verbose
        ```

    Validate local templates:
        ```bash
        $ fineract-setup validate --templates-dir ./templates
        ```

Exit Codes:

- 0: Success (including runs where every template was skipped)
- 1: At least one template failed or was cancelled, or a configuration error

Note:
    SIGINT and SIGTERM set the run's cancel event: backoff waits are cut
    short, no further attempts are made, and remaining templates are
    reported as cancelled.

"""

from __future__ import annotations

import argparse
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
import signal
import sys
import threading

from fineract_setup import __version__
from fineract_setup.core import run_setup, validate_templates
from fineract_setup.exceptions import FineractSetupError
from fineract_setup.logging import get_logger, set_global_logger
from fineract_setup.results import Summary
from fineract_setup.templates import ARTIFACTS


def _installed_version() -> str:
    try:
        return version("fineract-setup")
    except PackageNotFoundError:
        return __version__


def _install_signal_handlers(cancel_event: threading.Event) -> None:
    def _handler(signum, frame) -> None:
        print(f"\nReceived {signal.Signals(signum).name}, cancelling run...")
        cancel_event.set()

    signal.signal(signal.SIGINT, _handler)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _handler)


def _print_summary(title: str, summary: Summary) -> None:
    print("=" * 70)
    print(title)
    print("=" * 70)
    for outcome in summary.details:
        line = f"{outcome.artifact:<24} {outcome.status.value.upper():<10}"
        if outcome.attempts:
            line += f" attempts={outcome.attempts}"
        if outcome.last_error is not None:
            line += f" [{outcome.last_error.value}]"
        print(line)
        if outcome.message and not outcome.succeeded:
            print(f"    {outcome.message}")
    print("-" * 70)
    print(
        f"Succeeded: {summary.succeeded}   Failed: {summary.failed}   "
        f"Skipped: {summary.skipped}   Total: {summary.total}"
    )
    print("=" * 70)


def _report_error(err: Exception, args: argparse.Namespace) -> int:
    print(f"Error: {err}")
    if getattr(args, "verbose", False) or getattr(args, "debug", False):
        import traceback

        traceback.print_exc()
    return 1


def cmd_run(args: argparse.Namespace) -> int:
    """Handler for 'fineract-setup run'.

    Loads settings, authenticates against Keycloak, and uploads every
    selected template in table order.

    Returns:
        Exit code (0 when no template failed, 1 otherwise).
    """
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)

    cancel_event = threading.Event()
    _install_signal_handlers(cancel_event)

    print("Starting Fineract template import...")
    print()

    try:
        summary = run_setup(
            args.config,
            templates_dir=args.templates_dir,
            only=args.only,
            cancel_event=cancel_event,
        )
    except FineractSetupError as err:
        return _report_error(err, args)

    print()
    _print_summary("IMPORT RESULTS", summary)
    print()
    if cancel_event.is_set():
        print("[CANCELLED] Run was cancelled before completion.")
    elif summary.ok:
        print("[SUCCESS] Template import completed.")
    else:
        print(f"[FAILED] {summary.failed} template(s) failed to import.")
    return summary.exit_code


def cmd_validate(args: argparse.Namespace) -> int:
    """Handler for 'fineract-setup validate'.

    Opens every template as a workbook without authenticating or uploading.
    Missing templates are reported as skipped.
    """
    logger = get_logger(verbose=args.verbose, debug=False)
    set_global_logger(logger)

    try:
        summary = validate_templates(
            args.config, templates_dir=args.templates_dir, only=args.only
        )
    except FineractSetupError as err:
        return _report_error(err, args)

    print()
    _print_summary("VALIDATION RESULTS", summary)
    return summary.exit_code


def cmd_list(args: argparse.Namespace) -> int:
    """Handler for 'fineract-setup list'."""
    for artifact in ARTIFACTS:
        extras = dict(artifact.extra_fields)
        extras.update({f"?{k}": v for k, v in artifact.query_params.items()})
        suffix = f"  {extras}" if extras else ""
        print(f"{artifact.name:<22} {artifact.resource:<30} {artifact.endpoint}{suffix}")
    return 0


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="YAML settings file (environment variables override it)",
    )
    parser.add_argument(
        "--templates-dir",
        type=Path,
        default=None,
        help="Directory containing the data/*.xls templates (default: bundled)",
    )
    parser.add_argument(
        "--only",
        action="append",
        metavar="NAME",
        default=None,
        help="Process only this template (repeatable; see 'fineract-setup list')",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fineract-setup",
        description="Upload Excel bulk-import templates to Apache Fineract",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"fineract-setup {_installed_version()}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    # 'run' command
    parser_run = subparsers.add_parser(
        "run",
        help="Upload templates to Fineract",
        description="Authenticate with Keycloak and upload every template to its Fineract endpoint.",
    )
    _add_common_arguments(parser_run)
    parser_run.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )
    parser_run.set_defaults(func=cmd_run)

    # 'validate' command
    parser_validate = subparsers.add_parser(
        "validate",
        help="Validate templates locally (no network)",
        description="Open every template as a workbook and report sheets and rows.",
    )
    _add_common_arguments(parser_validate)
    parser_validate.set_defaults(func=cmd_validate, debug=False)

    # 'list' command
    parser_list = subparsers.add_parser(
        "list",
        help="Show the template-to-endpoint table",
    )
    parser_list.set_defaults(func=cmd_list)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the fineract-setup CLI.

    This function is registered as the 'fineract-setup' console script in
    pyproject.toml.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
