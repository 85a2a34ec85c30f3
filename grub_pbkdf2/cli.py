from __future__ import annotations

import argparse
import logging
import re
import sys
from typing import BinaryIO, Sequence

from pydantic import ValidationError

from grub_pbkdf2.core.errors import GrubPbkdf2Error
from grub_pbkdf2.core.settings import APP_NAME, APP_VERSION, PACKAGE_NAME, Settings, get_settings
from grub_pbkdf2.pipeline import CredentialPipeline
from grub_pbkdf2.services.entropy import EntropySource
from grub_pbkdf2.services.parameters import resolve_parameters
from grub_pbkdf2.services.prompt import SecurePrompt, TerminalChannel

EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130

UINT_PATTERN = re.compile(r"\+?(?:0[xX]([0-9a-fA-F]+)|0([0-7]*)|([1-9][0-9]*))")


def parse_uint(text: str) -> int:
    """按 strtoul(..., 0) 的规则解析：0x 十六进制，0 开头八进制，其余十进制。"""
    match = UINT_PATTERN.fullmatch(text.strip())
    if match is None:
        raise argparse.ArgumentTypeError(f"invalid number: {text!r}")
    hex_digits, octal_digits, decimal_digits = match.groups()
    if hex_digits is not None:
        return int(hex_digits, 16)
    if octal_digits is not None:
        return int(octal_digits, 8) if octal_digits else 0
    return int(decimal_digits, 10)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Generate a PBKDF2 password hash for GRUB.",
        epilog="The hash is printed as grub.pbkdf2.sha512.<iterations>.<salt>.<hash>.",
    )
    parser.add_argument(
        "-c",
        "--iteration-count",
        dest="iteration_count",
        type=parse_uint,
        metavar="NUMBER",
        help=f"Number of PBKDF2 iterations (default: {settings.iteration_count})",
    )
    parser.add_argument(
        "-l",
        "--buflen",
        type=parse_uint,
        metavar="NUMBER",
        help=f"Length of generated hash in bytes (default: {settings.buflen})",
    )
    parser.add_argument(
        "-s",
        "--saltlen",
        "--salt",
        dest="saltlen",
        type=parse_uint,
        metavar="NUMBER",
        help=f"Length of salt in bytes (default: {settings.saltlen})",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s ({PACKAGE_NAME}) {APP_VERSION}",
    )
    return parser


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stderr,
    )


def main(
    argv: Sequence[str] | None = None,
    *,
    channel: TerminalChannel | None = None,
    stdout: BinaryIO | None = None,
) -> int:
    try:
        settings = get_settings()
    except ValidationError as exc:
        print(f"{APP_NAME}: error: invalid configuration ({exc.error_count()} errors).", file=sys.stderr)
        return EXIT_USAGE
    configure_logging(settings)

    parser = build_parser(settings)
    args = parser.parse_args(argv)
    try:
        params = resolve_parameters(
            settings,
            iteration_count=args.iteration_count,
            buflen=args.buflen,
            saltlen=args.saltlen,
        )
    except ValidationError as exc:
        fields = ", ".join(str(err["loc"][0]) for err in exc.errors())
        parser.error(f"values must be positive integers: {fields}")

    out = stdout if stdout is not None else sys.stdout.buffer
    try:
        with channel or TerminalChannel.open(settings.tty_device_path) as terminal:
            pipeline = CredentialPipeline(SecurePrompt(terminal), EntropySource(settings.random_device_path))
            pipeline.run(params, out)
    except GrubPbkdf2Error as exc:
        print(f"{APP_NAME}: error: {exc}.", file=sys.stderr)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        print(f"{APP_NAME}: error: interrupted.", file=sys.stderr)
        return EXIT_INTERRUPTED
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
