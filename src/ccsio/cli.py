from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from . import __version__

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _write_json_file(path: str | Path, payload: Any) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, sort_keys=True)
        handle.write("\n")


def _emit_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _configure_logging(level: str | None) -> None:
    name = (level or os.environ.get("CCSIO_LOG_LEVEL") or "WARNING").upper()
    if name not in LOG_LEVELS:
        raise ValueError(f"Unsupported log level: {name}")
    logging.basicConfig(
        level=getattr(logging, name),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ccsio",
        description="ccsio: input resolution and matrix diagnostics for consensus calling.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", choices=LOG_LEVELS, default=None)
    subparsers = parser.add_subparsers(dest="command", required=True)

    # flatten
    flatten = subparsers.add_parser("flatten", help="Resolve .bam/.fofn references to .bam files.")
    flatten.add_argument("references", nargs="+", metavar="BAM|FOFN")
    flatten.add_argument("--require-exists", action="store_true")
    flatten.add_argument("--json", action="store_true")
    flatten.add_argument("--output", default=None, metavar="FILE")
    flatten.add_argument("--manifest", default=None, metavar="JSON")

    # dump-matrix
    dump = subparsers.add_parser("dump-matrix", help="Write a log-domain matrix transcript.")
    dump.add_argument("--matrix", required=True, metavar="JSON")
    dump.add_argument("--offset", type=int, default=None)
    dump.add_argument("--reverse", action="store_true")
    dump.add_argument("--output", default=None, metavar="FILE")

    # check-chemistry
    chem = subparsers.add_parser("check-chemistry", help="Check per-base covariates by chemistry.")
    chem.add_argument("--dataset", required=True, metavar="JSON")
    chem.add_argument("--json", action="store_true")
    return parser


def _cmd_flatten(args: argparse.Namespace) -> int:
    from .fofn import resolve_references
    from .manifest import build_manifest, sha256_json
    from .paths import absolute_path, file_exists

    resolved = resolve_references(args.references)
    if args.require_exists:
        missing = [path for path in resolved if not file_exists(path)]
        if missing:
            raise FileNotFoundError(f"BAM file(s) not found: {', '.join(missing)}")

    if args.output:
        p = Path(args.output)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text("".join(f"{path}\n" for path in resolved), encoding="utf-8")
    if args.json:
        _emit_json(resolved)
    elif not args.output:
        for path in resolved:
            print(path)

    if args.manifest:
        manifest = build_manifest(
            "flatten",
            args._argv,
            references=list(args.references),
            resolved=resolved,
            resolved_absolute=[absolute_path(path) for path in resolved],
            resolved_hash=sha256_json(resolved),
            n_resolved=len(resolved),
        )
        _write_json_file(args.manifest, manifest)
    return 0


def _cmd_dump_matrix(args: argparse.Namespace) -> int:
    from .matrix import (
        ScaledMatrix,
        counter_weight_undo,
        load_matrix_payload,
        no_scale_undo,
        write_matrix,
    )
    from .schemas import validate_matrix_payload

    payload = load_matrix_payload(args.matrix)
    if args.offset is not None:
        payload["offset"] = args.offset
        validate_matrix_payload(payload)
    matrix = ScaledMatrix.from_dict(payload)
    scale_undo = payload.get("scale_undo")
    undo = no_scale_undo if scale_undo is None else counter_weight_undo(scale_undo)
    offset = int(payload.get("offset", 0))

    if args.output:
        p = Path(args.output)
        p.parent.mkdir(parents=True, exist_ok=True)
        with p.open("w", encoding="utf-8") as handle:
            write_matrix(matrix, undo, offset=offset, reverse=args.reverse, out=handle)
    else:
        write_matrix(matrix, undo, offset=offset, reverse=args.reverse, out=sys.stdout)
    return 0


def _cmd_check_chemistry(args: argparse.Namespace) -> int:
    from .chemistry import load_dataset, missing_base_features, valid_base_features

    dataset = load_dataset(args.dataset)
    ok = valid_base_features(dataset)
    failures = missing_base_features(dataset)
    if args.json:
        _emit_json(
            {
                "valid": ok,
                "failures": [
                    {"bam": bam, "read_group": rg, "missing": list(missing)}
                    for bam, rg, missing in failures
                ],
            }
        )
    else:
        for bam, rg, missing in failures:
            print(f"[FAIL] {bam} read group {rg}: missing {', '.join(missing)}")
        print(f"Chemistry check: {'PASS' if ok else 'FAIL'}")
    return 0 if ok else 1


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    args._argv = list(argv if argv is not None else sys.argv[1:])
    try:
        _configure_logging(args.log_level)
        if args.command == "flatten":
            return _cmd_flatten(args)
        if args.command == "dump-matrix":
            return _cmd_dump_matrix(args)
        if args.command == "check-chemistry":
            return _cmd_check_chemistry(args)
    except Exception as exc:
        parser.exit(status=2, message=f"error: {exc}\n")
    parser.exit(status=2, message="error: unknown command\n")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
