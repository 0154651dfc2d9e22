"""``toon-optimizer`` command line.

    toon-optimizer encode data.json -d standard
    toon-optimizer decode payload.toon
    toon-optimizer validate payload.toon
    toon-optimizer compare data.yaml --method tiktoken
"""

import argparse
import logging
import sys
from typing import Any

from toon_optimizer.config import Dialect, ToonOptions
from toon_optimizer.decoder import decode, is_valid, try_decode
from toon_optimizer.encoder import encode
from toon_optimizer.errors import ToonError
from toon_optimizer.parsers import parse_input, parser_names
from toon_optimizer.stats import TOKEN_COUNTERS, compare_formats, to_json, token_reduction

logger = logging.getLogger("toon_optimizer")


def _read(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


def _write(text: str, path: str | None, quiet: bool) -> None:
    if path:
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        if not quiet:
            print(f"→ {path}", file=sys.stderr)
    else:
        print(text)


def _options(args: argparse.Namespace) -> ToonOptions:
    if args.config:
        return ToonOptions.from_file(args.config)
    return ToonOptions.load()


# ── subcommands ─────────────────────────────────────────────────────────────

def _cmd_encode(args: argparse.Namespace, options: ToonOptions) -> int:
    data, fmt = parse_input(_read(args.input), format_hint=args.format)
    result = encode(data, args.dialect, options)
    logger.info("action=encode input_format=%s dialect=%s chars=%d", fmt, args.dialect, len(result))

    if not args.quiet:
        s = token_reduction(data, options, args.dialect, args.method)
        print(f"=== Token Stats ({s.method}) ===", file=sys.stderr)
        print(f"JSON:    {len(s.json_output):>8,} chars  ({s.json_tokens:,} tokens)", file=sys.stderr)
        print(f"TOON:    {len(s.toon_output):>8,} chars  ({s.toon_tokens:,} tokens)", file=sys.stderr)
        print(f"Saved:   {s.tokens_saved:,} tokens ({s.reduction_percent:.1f}%)", file=sys.stderr)
        print(f"{'=' * 36}", file=sys.stderr)

    _write(result, args.output, args.quiet)
    return 0


def _cmd_decode(args: argparse.Namespace, options: ToonOptions) -> int:
    value = decode(_read(args.input), Any, options, args.dialect)
    _write(to_json(value, indent=args.indent), args.output, args.quiet)
    return 0


def _cmd_validate(args: argparse.Namespace, options: ToonOptions) -> int:
    text = _read(args.input)
    if args.dialect == Dialect.COMPACT.value:
        ok = is_valid(text, options)
    else:
        ok, _ = try_decode(text, Any, options, args.dialect)
    if not args.quiet:
        print("valid" if ok else "invalid")
    return 0 if ok else 1


def _cmd_compare(args: argparse.Namespace, options: ToonOptions) -> int:
    data, _ = parse_input(_read(args.input), format_hint=args.format)
    s = compare_formats(data, options, args.method)
    print(f"=== Format Comparison ({s.method}) ===")
    print(f"JSON:          {s.json_tokens:>8,} tokens")
    print(f"Standard TOON: {s.standard_tokens:>8,} tokens  ({s.standard_reduction_percent:.1f}% saved)")
    print(f"Compact TOON:  {s.compact_tokens:>8,} tokens  ({s.compact_reduction_percent:.1f}% saved)")
    print(f"Compact vs Standard: {s.compact_vs_standard_saved:,} tokens")
    return 0


# ── argument parsing ────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="toon-optimizer",
        description="Convert structured data to and from token-efficient TOON text.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "-c", "--config", default=None,
        help="JSON or YAML options file (default: TOON_CONFIG, then TOON_* env vars)",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    dialects = [d.value for d in Dialect]

    def add_io(p: argparse.ArgumentParser, default_dialect: str = Dialect.COMPACT.value) -> None:
        p.add_argument("input", nargs="?", default="-", help="Input file (default: stdin)")
        p.add_argument(
            "-d", "--dialect", choices=dialects, default=default_dialect,
            help=f"TOON dialect (default: {default_dialect})",
        )
        p.add_argument("-q", "--quiet", action="store_true", help="Suppress stats and notices on stderr")

    p = sub.add_parser("encode", help="Convert JSON, YAML or CSV to TOON")
    add_io(p)
    p.add_argument("-f", "--format", choices=parser_names(), default=None, help="Input format (default: detect)")
    p.add_argument("-o", "--output", default=None, help="Output file (default: stdout)")
    p.add_argument("--method", choices=sorted(TOKEN_COUNTERS), default="estimate", help="Token counting method")
    p.set_defaults(handler=_cmd_encode)

    p = sub.add_parser("decode", help="Convert TOON to JSON")
    add_io(p)
    p.add_argument("-o", "--output", default=None, help="Output file (default: stdout)")
    p.add_argument("--indent", type=int, default=None, help="Indent the JSON output")
    p.set_defaults(handler=_cmd_decode)

    p = sub.add_parser("validate", help="Check whether input is TOON text (exit status 1 if not)")
    add_io(p)
    p.set_defaults(handler=_cmd_validate)

    p = sub.add_parser("compare", help="Token counts for JSON, Standard and Compact renderings")
    p.add_argument("input", nargs="?", default="-", help="Input file (default: stdin)")
    p.add_argument("-f", "--format", choices=parser_names(), default=None, help="Input format (default: detect)")
    p.add_argument("--method", choices=sorted(TOKEN_COUNTERS), default="estimate", help="Token counting method")
    p.set_defaults(handler=_cmd_compare)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        level=logging.DEBUG if args.verbose else logging.INFO,
        stream=sys.stderr,
    )

    try:
        options = _options(args)
        return args.handler(args, options)
    except (ToonError, ValueError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
