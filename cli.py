"""
Command line entry point for the Raw Volume Slicer.

Converts a raw little-endian float32 volume into a zip of grayscale PNG
slices (load -> range -> slice).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from typing import Optional, Sequence

from config import DEFAULT_LOG_REPEATS, DEFAULT_PERMUTATION, EXPORT_MAX_WORKERS, LOG_FORMAT
from core import (
    ConfigurationError,
    Permutation,
    SliceExportDTO,
    SliceStackError,
    parse_dimensions,
    resolve_pipeline_stages,
    run_slice_pipeline,
)
from core.progress import ProgressBus, StageProgressMapper, TerminalProgressObserver


def run_batch(dto: SliceExportDTO, show_progress: bool = True) -> dict:
    """
    Execute the full pipeline.

    Returns:
        Dict keyed by stage name containing each stage output.
    """
    progress_bus = ProgressBus()
    if show_progress:
        mapper = StageProgressMapper(resolve_pipeline_stages())
        progress_bus.subscribe(TerminalProgressObserver(mapper=mapper))

    t_start = time.perf_counter()
    results = run_slice_pipeline(
        dto,
        progress_bus=progress_bus,
        dag_progress=progress_bus.dag_callback(),
    )
    elapsed = time.perf_counter() - t_start

    exported = results["slice"]
    print(f"\nWrote {exported.slice_count} slices to {exported.path} in {elapsed:.2f}s")
    return results


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="raw-volume-slicer",
        description="Slice a raw float32 volume into a zip of grayscale PNG images",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--config",
        metavar="FILE",
        help="Path to YAML or JSON config file. Overrides other flags.",
    )
    parser.add_argument("-inp", "--inp", "--input", dest="input", metavar="PATH", default="",
                        help="Path to the input file.")
    parser.add_argument("-out", "--out", "--output", dest="output", metavar="PATH", default="",
                        help="Path or name of the output zip file.")
    parser.add_argument(
        "-dim", "--dim",
        dest="dim",
        metavar="X,Y,Z",
        default="",
        help="Stored dimensions of the input file, e.g. 192,2048,192.",
    )
    parser.add_argument("-inv", "--inv", "--invert", dest="invert", action="store_true",
                        help="Multiply the data by -1.")
    parser.add_argument("-log", "--log", dest="log", metavar="N", type=int, default=DEFAULT_LOG_REPEATS,
                        help="Apply ln(x + 1) to the data N times.")
    parser.add_argument(
        "-perm", "--perm",
        dest="perm",
        metavar="CODE",
        default=str(DEFAULT_PERMUTATION),
        help="Permute the output dimensions, e.g. 312 changes output from xyz to zxy. "
             f"One of: {', '.join(str(int(p)) for p in Permutation)}.",
    )
    parser.add_argument("--workers", metavar="N", type=int, default=EXPORT_MAX_WORKERS,
                        help="Threads used to encode slices.")
    parser.add_argument("--dry-run", action="store_true", help="Print resolved config without running.")
    parser.add_argument("--quiet", action="store_true", help="Hide the progress bar.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def _resolve_dto(args: argparse.Namespace) -> SliceExportDTO:
    """Resolve DTO from config file or inline CLI flags, then validate it."""
    if args.config:
        cfg_path = args.config
        if cfg_path.endswith(".json"):
            dto = SliceExportDTO.from_json(cfg_path)
        else:
            dto = SliceExportDTO.from_yaml(cfg_path)
        return dto.validate()

    if not args.input:
        raise ConfigurationError("Input path is required (--inp PATH).")
    if not args.output:
        raise ConfigurationError("Output path is required (--out PATH).")

    dto = SliceExportDTO(
        input_path=args.input,
        dimensions=parse_dimensions(args.dim),
        invert=args.invert,
        log_repeats=args.log,
        output_path=args.output,
        permutation=int(Permutation.from_code(args.perm)),
        max_workers=args.workers,
    )
    return dto.validate()


def main(argv: Optional[Sequence[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv:
        print('Please enter command line arguments. To list the options, add " --help" to your command.')
        return 0

    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=LOG_FORMAT)

    try:
        dto = _resolve_dto(args)
    except (SliceStackError, OSError) as exc:
        print(f"Error: {exc}")
        return 1

    if args.dry_run:
        print("Resolved SliceExportDTO:")
        print(json.dumps(dto.to_dict(), indent=2))
        return 0

    try:
        run_batch(dto, show_progress=not args.quiet)
    except KeyboardInterrupt:
        print("\nAborted by user.")
        return 1
    except (SliceStackError, OSError) as exc:
        print(f"\nError: {exc}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
