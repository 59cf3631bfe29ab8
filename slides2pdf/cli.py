from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

import slides2pdf
from slides2pdf.converters.options import ConversionOptions
from slides2pdf.converters.serialization import serialize_result


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slides2pdf",
        description="Convert a presentation (.pptx) into a PDF with one page per slide.",
    )
    parser.add_argument(
        "path",
        type=Path,
        help="Path to the presentation to convert.",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Path of the PDF to write (default: input path with a .pdf suffix).",
    )
    parser.add_argument(
        "--dpi",
        type=float,
        default=96.0,
        help="Rendering resolution; also decides the page size (default: 96).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit a JSON report of the conversion to stdout (omits the PDF payload).",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    try:
        args, unknown = parser.parse_known_args(argv)
    except SystemExit as exc:
        code = exc.code if isinstance(exc.code, int) else 1
        return code

    if unknown:
        unknown_str = " ".join(unknown)
        print(
            f"slides2pdf: warning: unsupported arguments: {unknown_str}",
            file=sys.stderr,
        )
        return 1

    try:
        options = ConversionOptions(dpi=args.dpi)
        output = args.output or args.path.with_suffix(".pdf")
        result = slides2pdf.convert_file(args.path, output, options=options)
        if args.json:
            payload = serialize_result(result)
            payload["output"] = str(output)
            json.dump(payload, sys.stdout)
            sys.stdout.write("\n")
        else:
            sys.stdout.write(f"{output}\n")
        for outcome in result.failed_slides:
            print(
                f"slides2pdf: slide {outcome.slide_number} failed: {outcome.error}",
                file=sys.stderr,
            )
        return 0
    except Exception as exc:
        print(f"slides2pdf: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
