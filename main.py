import argparse
import json
import logging
import os
import sys

from tqdm.contrib.logging import logging_redirect_tqdm

from core.utils import validate_root
from pipeline.coordinator import ShutdownCoordinator, print_report
from tools.region_extractor import extract_regions

BANNER = "EvilQuest/ThiefQuest Mach-O Stats\n"


def _positive_int(value):
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {n}")
    return n


def build_parser():
    parser = argparse.ArgumentParser(
        prog="quest-stats",
        description="Cluster fingerprint-sized samples by the digests of their code and string regions.",
    )
    parser.add_argument("-i", "--input", help="file or folder to analyse")
    parser.add_argument(
        "-n", "--jobs", type=_positive_int, default=1,
        help="number of parallel scanners to run (default 1)",
    )
    parser.add_argument("--json", action="store_true", help="print the report as JSON")
    parser.add_argument("--no-progress", action="store_true", help="disable the progress bar")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def configure_logging(debug):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def print_json_report(report):
    print(json.dumps(report.to_dict(), indent=2), flush=True)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    # Debug flag: set DEBUG=1 (or pass -v) to see skipped files and state changes
    debug = args.verbose or os.getenv("DEBUG", "0") == "1"
    configure_logging(debug)

    if not args.json:
        print(BANNER)

    if not args.input:
        print("[-] ERROR: please set a file or folder to analyse", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1

    try:
        root = validate_root(args.input)
    except FileNotFoundError as exc:
        print(f"[-] ERROR: {exc}", file=sys.stderr)
        return 1

    coordinator = ShutdownCoordinator(
        root,
        extractor=extract_regions,
        jobs=args.jobs,
        report_sink=print_json_report if args.json else print_report,
        show_progress=not args.no_progress,
    )

    with logging_redirect_tqdm(), coordinator.handle_signals():
        coordinator.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
