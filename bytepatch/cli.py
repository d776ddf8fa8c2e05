#!/usr/bin/env python3
# ruff: noqa: T201
import argparse
import logging
import sys

from bytepatch.bpatch import diff_files, patch_file
from bytepatch.codec import decode_patch
from bytepatch.config import PatchSettings
from bytepatch.errors import HashMismatch, MalformedPatch, ResourceExhausted
from bytepatch.fileio import default_output_name, default_patch_name, read_file, read_file_with_digest, write_atomic
from bytepatch.patch_model import patch_summary


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_HASH_MISMATCH = 2
EXIT_MALFORMED_PATCH = 3
EXIT_RESOURCE_EXHAUSTED = 4

ACTIONS_HELP = """\
Action Options:
  diff          Create a diff file that can convert BASE_FILE to OTHER_FILE
  patch         Update the BASE_FILE using the diff file in OTHER_FILE
  info          Describe the diff file in OTHER_FILE and check it against BASE_FILE
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bpatch",
        description="Create and apply integrity-checked binary patches.",
        epilog=ACTIONS_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("action", metavar="ACTION", help="diff, patch or info")
    parser.add_argument("base_file", metavar="BASE_FILE", help="File the patch is built against / applied to")
    parser.add_argument("other_file", metavar="OTHER_FILE", help="Target file (diff) or patch file (patch, info)")
    parser.add_argument("-o", "--out", help="output name")
    parser.add_argument("-f", "--force", action="store_true",
                        help="force the patch even if target integrity check fails")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def run_diff(args: argparse.Namespace, settings: PatchSettings) -> int:
    patch_data = diff_files(args.base_file, args.other_file, settings=settings)
    filename = args.out or default_patch_name(args.base_file)
    write_atomic(filename, patch_data)
    logger.info(f"Wrote patch {filename} ({len(patch_data)} bytes)")
    return EXIT_OK


def run_patch(args: argparse.Namespace) -> int:
    patch_data = read_file(args.other_file)
    output = patch_file(args.base_file, patch_data, force=args.force)
    filename = args.out or default_output_name(args.base_file)
    write_atomic(filename, output)
    logger.info(f"Wrote {filename} ({len(output)} bytes)")
    return EXIT_OK


def run_info(args: argparse.Namespace) -> int:
    decoded = decode_patch(read_file(args.other_file))
    _, digest = read_file_with_digest(args.base_file)
    summary = patch_summary(decoded)

    print(f"Fingerprint: {summary['fingerprint']}")
    print(f"Operations:  {summary['operations']}")
    print(f"Deleted:     {summary['deleted']} bytes")
    print(f"Inserted:    {summary['inserted']} bytes")
    matches = digest == decoded.base_fingerprint
    print(f"Base match:  {'yes' if matches else 'no'} ({args.base_file})")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format='%(levelname)s: %(message)s')

    action = args.action.lower()
    try:
        settings = PatchSettings.from_env()
        if action == "diff":
            return run_diff(args, settings)
        elif action == "patch":
            return run_patch(args)
        elif action == "info":
            return run_info(args)
        logger.error(f"unknown ACTION: {args.action}, must be either DIFF, PATCH or INFO")
        return EXIT_FAILURE
    except HashMismatch as e:
        logger.error(f"hash mismatch, giving up (use --force to apply anyway): {e}")
        return EXIT_HASH_MISMATCH
    except MalformedPatch as e:
        logger.error(f"malformed patch: {e}")
        return EXIT_MALFORMED_PATCH
    except ResourceExhausted as e:
        logger.error(f"inputs too large to diff: {e}")
        return EXIT_RESOURCE_EXHAUSTED
    except ValueError as e:
        # Bad BYTEPATCH_* settings
        logger.error(f"Error: {e}")
        return EXIT_FAILURE
    except OSError as e:
        logger.error(f"Error: {e}")
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
