"""Command-line entry point: ``ingestkit-unnest INPUT -f ZIP,EML``."""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from ingestkit_unnest.config import UnnestConfig
from ingestkit_unnest.router import UnnestRouter

logger = logging.getLogger("ingestkit_unnest")


def _format_path(value: str) -> list[str]:
    return [tag.strip() for tag in value.split(",") if tag.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ingestkit-unnest",
        description="Extract all the emails from the provided file.",
    )
    parser.add_argument("input", help="The file whose content to extract.")
    parser.add_argument(
        "-f",
        "--filetype",
        type=_format_path,
        required=True,
        help="Comma separated layers of the file to extract, e.g. ZIP,EML",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output path to extract files to (default: ./output)",
    )
    parser.add_argument(
        "-b",
        "--buffer",
        type=int,
        default=None,
        help="Size of the buffers allocated when reading/writing files (default: 8192)",
    )
    parser.add_argument(
        "-l",
        "--limit",
        type=int,
        default=None,
        help="Maximum number of bytes to write per output file (default: 1 GiB)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="YAML or JSON file with configuration overrides",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = UnnestConfig.from_file(args.config) if args.config else UnnestConfig()
    overrides = {}
    if args.output is not None:
        overrides["output_dir"] = args.output
    if args.buffer is not None:
        overrides["buffer_size"] = args.buffer
    if args.limit is not None:
        overrides["max_output_size_bytes"] = args.limit
    if overrides:
        try:
            config = UnnestConfig(**{**config.model_dump(), **overrides})
        except ValidationError as exc:
            parser.error(str(exc))

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    router = UnnestRouter(config)
    if not router.can_handle(args.input):
        logger.warning(
            "ingestkit_unnest | unexpected_extension | file=%s | format_path=%s",
            args.input,
            ",".join(args.filetype),
        )

    result = router.process(args.input, args.filetype)
    if not result.succeeded:
        for error in result.error_details:
            if error.code.value.startswith("E_"):
                print(f"ERROR: {error.code.value}: {error.message}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
