"""Command line interface for prdkit."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .api import (
    ExtractOptions,
    classify_directory,
    extract_all,
    list_directory,
)
from .codec.errors import PrdError
from .codec.palette import ClutLayout
from .codec.rle import RleScheme
from .config import ExtractConfig, load_config
from .logging import configure_logging, get_logger
from .reporting import (
    REPORTERS,
    PlainReporter,
    get_reporter,
    make_reporter,
    set_reporter,
    set_verbosity,
)


def _extract_cmd(args: argparse.Namespace) -> int:
    config = load_config(args.config) if args.config else ExtractConfig()
    config = config.with_overrides(
        palette_layout=args.palette_layout,
        rle_scheme=args.rle_scheme,
        write_frames=False if args.no_frames else None,
    )
    opts = ExtractOptions(
        data_dir=args.data_dir,
        output_dir=args.output,
        config=config,
        manifest_path=args.emit_manifest,
    )
    result = extract_all(opts)
    return 0 if result.ok else 1


def _list_cmd(args: argparse.Namespace) -> int:
    directory = list_directory(args.directory)
    rep = get_reporter()
    rep.flush()
    if args.json:
        print(
            json.dumps(
                {
                    "directory": directory.path.name,
                    "container": directory.container_path.name,
                    "dropped": directory.dropped,
                    "records": [r.to_dict() for r in directory.records],
                },
                indent=2,
                sort_keys=True,
            )
        )
        return 0
    print(f"{directory.path.name} -> {directory.container_path.name}")
    print(f"{'TYPE':<5}{'ID':>6}  {'OFFSET':>10}  {'LENGTH':>8}  NAME")
    for r in directory.records:
        print(
            f"{r.asset_type:<5}{r.id:>6}  {r.offset:>10}  {r.length:>8}  "
            f"{r.display_name}"
        )
    rep.status(
        f"Directory summary: name={directory.path.name} "
        f"records={len(directory.records)} dropped={directory.dropped}"
    )
    return 0


def _classify_cmd(args: argparse.Namespace) -> int:
    entries = classify_directory(args.directory)
    get_reporter().flush()
    failed = 0
    for record, fmt in entries:
        if isinstance(fmt, PrdError):
            failed += 1
            label = fmt.code
        else:
            label = fmt.value
        print(f"{record.id:>6}  {label:<12}{record.display_name}")
    return 1 if failed else 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="prdkit", description="PRD/PRS game asset extractor"
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=sorted(REPORTERS),
        default="plain",
        help="Reporter backend (json emits one event per line)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    e = sub.add_parser("extract", help="Extract every asset under a data folder")
    e.add_argument("data_dir", type=Path)
    e.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("extracted"),
        help="Output folder (default: ./extracted)",
    )
    e.add_argument("--config", type=Path, help="YAML or JSON settings file")
    e.add_argument(
        "--emit-manifest",
        dest="emit_manifest",
        type=Path,
        help="Optional path to write manifest JSON (opt-in)",
    )
    e.add_argument(
        "--palette-layout",
        choices=[layout.value for layout in ClutLayout],
        help="CLU block layout (default: auto)",
    )
    e.add_argument(
        "--rle-scheme",
        choices=[scheme.value for scheme in RleScheme],
        help="Generic sprite RLE scheme (default: packbits)",
    )
    e.add_argument(
        "--no-frames",
        action="store_true",
        help="Write only sprite sheets, not per-frame crops",
    )
    e.add_argument(
        "--log-file",
        dest="log_file",
        type=Path,
        help="Also write every diagnostic to this file (truncated first)",
    )
    e.set_defaults(func=_extract_cmd)

    ls = sub.add_parser("list", help="List the records of a directory file")
    ls.add_argument("directory", type=Path)
    ls.add_argument("--json", action="store_true", help="Emit JSON")
    ls.set_defaults(func=_list_cmd)

    c = sub.add_parser(
        "classify", help="Show the sprite format of every PAK record"
    )
    c.add_argument("directory", type=Path)
    c.set_defaults(func=_classify_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.reporter == "rich" and not sys.stderr.isatty():
        # no live display without a terminal
        set_reporter(PlainReporter())
    else:
        set_reporter(make_reporter(args.reporter))
    set_verbosity(args.verbose)
    configure_logging(args.verbose, getattr(args, "log_file", None))
    try:
        return args.func(args)
    except (PrdError, OSError, ValueError) as exc:
        get_logger().error("%s", exc)
        return 2
    finally:
        get_reporter().flush()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
