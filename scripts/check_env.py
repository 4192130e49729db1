"""Utility for verifying that the service configuration is intact.

The tool performs three checks:

1. It instantiates ``AppSettings`` with the values of the provided ``.env``
   file, surfacing missing or malformed entries (for example a missing
   ``OPENCAGE_API_KEY``) before the service starts failing analyses.
2. It loads the dam registry the settings point at, so a broken
   ``dams.json`` is caught before gate decisions silently degrade.
3. It can record and verify a checksum for the ``.env`` file so unexpected
   edits are detected. Baselines use the ``sha256sum`` line format.

Example usages::

    # Validate settings and record the expected checksum.
    python -m scripts.check_env record --env-file /opt/damwatch/.env \
        --hash-file /opt/damwatch/.env.sha256

    # Run later (e.g. from cron/systemd) to alert on drift.
    python -m scripts.check_env verify --env-file /opt/damwatch/.env \
        --hash-file /opt/damwatch/.env.sha256
"""

from __future__ import annotations

import argparse
import hashlib
import json
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterator

from dotenv import dotenv_values
from pydantic import ValidationError

from damwatch.core.config import AppSettings
from damwatch.services.dam_registry import DamRegistry

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_RUNTIME_ERROR = 5


def _compute_hash(env_file: Path) -> str:
    """Return the SHA256 checksum for the target environment file."""
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


@contextmanager
def _env_overlay(values: Dict[str, str]) -> Iterator[None]:
    """Temporarily expose ``values`` as environment variables."""
    previous = {key: os.environ.get(key) for key in values}
    os.environ.update(values)
    try:
        yield
    finally:
        for key, value in previous.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value


def _validate_settings(env_file: Path) -> AppSettings:
    """Ensure required settings can be loaded from the supplied env file."""
    values = {
        key: value
        for key, value in dotenv_values(env_file).items()
        if value is not None
    }
    with _env_overlay(values):
        return AppSettings()  # type: ignore[call-arg]


def _validate_registry(settings: AppSettings) -> int:
    registry = DamRegistry.from_file(settings.dam_registry_path)
    print(f"Dam registry OK ({len(registry)} dams from {settings.dam_registry_path})")
    return len(registry)


def _read_baseline(hash_file: Path) -> str:
    """Return the digest from a ``sha256sum``-style baseline line."""
    content = hash_file.read_text(encoding="utf-8").strip()
    return content.split()[0] if content else ""


def _record_checksum(env_file: Path, hash_file: Path) -> int:
    """Write a baseline that ``sha256sum -c`` can also verify."""
    checksum = _compute_hash(env_file)
    hash_file.write_text(f"{checksum}  {env_file.name}\n", encoding="utf-8")
    print(f"Recorded baseline for {env_file} in {hash_file}")
    return EXIT_OK


def _verify_checksum(env_file: Path, hash_file: Path) -> int:
    if not hash_file.exists():
        print(
            f"No baseline at {hash_file}; run the 'record' command first.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    expected = _read_baseline(hash_file)
    actual = _compute_hash(env_file)
    if expected == actual:
        print(f"{env_file}: checksum OK")
        return EXIT_OK

    print(
        f"{env_file}: checksum drift detected (baseline {expected[:12]}..., "
        f"current {actual[:12]}...). Review the change before restarting DamWatch.",
        file=sys.stderr,
    )
    return EXIT_CHECKSUM_ERROR


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate settings and the dam registry, and detect .env drift."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common_arguments(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--env-file",
            default=".env",
            type=Path,
            help="Path to the environment file (default: .env in the repo root).",
        )

    for command, help_text in (
        ("record", "Validate settings and store the checksum baseline."),
        ("verify", "Validate settings and compare the checksum with the baseline."),
    ):
        command_parser = subparsers.add_parser(command, help=help_text)
        add_common_arguments(command_parser)
        command_parser.add_argument(
            "--hash-file",
            required=True,
            type=Path,
            help="Location of the checksum baseline.",
        )

    check_parser = subparsers.add_parser(
        "check",
        help="Validate settings without touching any checksum files.",
    )
    add_common_arguments(check_parser)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    env_file: Path = args.env_file

    try:
        if not env_file.exists():
            raise FileNotFoundError(
                f"Environment file {env_file} does not exist. "
                "Ensure the path is correct or create it before running this tool."
            )
        settings = _validate_settings(env_file)
        _validate_registry(settings)
    except ValidationError as exc:
        print(
            "Validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR
    except (FileNotFoundError, json.JSONDecodeError) as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    command: str = args.command
    handlers: dict[str, Callable[[], int]] = {
        "record": lambda: _record_checksum(env_file, args.hash_file),
        "verify": lambda: _verify_checksum(env_file, args.hash_file),
        "check": lambda: EXIT_OK,
    }
    return handlers[command]()


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
