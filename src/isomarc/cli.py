import argparse
import logging
import sys

from isomarc.converter import Utf8Converter
from isomarc.handler import FATAL, ERROR, LoggingErrorHandler
from isomarc.reader import MarcReader
from isomarc.writer import MarcJsonWriter, MarcStreamWriter, MarcWriter, MarcYamlWriter, TaggedWriter

logger = logging.getLogger(__name__)

FORMATS = ("tagged", "json", "yaml", "marc")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="isomarc",
        description="Decode a file of ISO 2709 MARC records and write it out again",
    )
    parser.add_argument("input", help="a file of MARC records")
    parser.add_argument("-f", "--format", choices=FORMATS, default="tagged",
                        help="output format (default: tagged)")
    parser.add_argument("-o", "--output", help="output file (default: stdout)")
    parser.add_argument("--utf8", action="store_true",
                        help="read payloads as UTF-8 whatever the leader says")
    parser.add_argument("--encoding",
                        help="payload encoding for marc output; directory lengths count its bytes")
    parser.add_argument("--indent", type=int, help="indentation for json and yaml output")
    parser.add_argument("--strict", action="store_true",
                        help="exit with status 1 when an error was reported")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug messages")
    return parser


def _handler_for(args, out):
    if args.format == "tagged":
        return TaggedWriter(out, Utf8Converter(errors="replace") if args.utf8 else None)
    if args.format == "json":
        return MarcWriter(MarcJsonWriter(out, indent=args.indent), force_utf8_encoding=args.utf8)
    if args.format == "yaml":
        return MarcWriter(MarcYamlWriter(out, indent=args.indent), force_utf8_encoding=args.utf8)
    return MarcWriter(MarcStreamWriter(out, encoding=args.encoding or ("utf-8" if args.utf8 else None)), force_utf8_encoding=args.utf8)


def _open_output(args):
    binary = args.format == "marc"
    if args.output is None:
        return sys.stdout.buffer if binary else sys.stdout, False
    if binary:
        return open(args.output, "wb"), True
    return open(args.output, "w", encoding="utf-8"), True


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    errors = LoggingErrorHandler()
    out, owned = _open_output(args)
    try:
        MarcReader(_handler_for(args, out), errors).parse(args.input)
    finally:
        if owned:
            out.close()

    logger.info("%d warnings, %d errors, %d fatal errors",
                len(errors.warnings), len(errors.errors), len(errors.fatal_errors))

    if args.strict and (errors.of_severity(ERROR) or errors.of_severity(FATAL)):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
