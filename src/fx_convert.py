import argparse
import cProfile
import gzip
import logging
import pstats
import sys
import time
from io import StringIO

from data_structures import (SOURCE_CHOICES, TARGET_CHOICES, ConvertOptions,
                             parse_source_encoding, parse_target_encoding)
from errors import FxConvertError
from fastx_writer import FastxWriter
from record_rewriter import run_conversion

logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

VERBOSITY_LEVELS = {0: logging.WARNING, 1: logging.INFO, 2: logging.DEBUG}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fx-convert",
        description="Convert FASTA/FASTQ files between quality scales.\n"
                    "The input quality scale is guessed from the data unless given with --source.",
        epilog="QUALITY REMARKS:\n"
               "  sanger    Phred+33 (Illumina 1.8+ is folded in)\n"
               "  solexa    Solexa+64\n"
               "  illumina  Phred+64 (Illumina 1.3+ and 1.5+)\n"
               "If the input is FASTA the output is FASTA as well and --source/--target are ignored.\n\n"
               "EXAMPLES:\n"
               "  fx-convert --guess 1 < IN.fq\n"
               "  fx-convert -i IN.fq -o OUT.fa\n"
               "  fx-convert -i IN.fq --source solexa --target sanger -o OUT.fq",
        formatter_class=argparse.RawTextHelpFormatter
    )

    # I/O Group
    io_group = parser.add_argument_group("I/O")
    io_group.add_argument("-i", "--in_file", type=str, default=None, metavar="FILE",
                          help="Input FASTA/FASTQ file [stdin]")
    io_group.add_argument("-o", "--out_file", type=str, default=None, metavar="FILE",
                          help="Output file [stdout]")
    io_group.add_argument("--gzip", type=int, default=0, metavar="INT", choices=[0, 1],
                          help="Compress output with gzip (0/1) [0]")

    # Filter Group
    filter_group = parser.add_argument_group("FILTERING")
    filter_group.add_argument("--rename_num", type=int, default=0, metavar="INT", choices=[0, 1],
                              help="Rename sequence identifiers to numbers (0/1) [0]")
    filter_group.add_argument("--keep_ns", type=int, default=0, metavar="INT", choices=[0, 1],
                              help="Keep sequences with unknown (N) bases (0/1) [0]\n"
                                   "Accepted for compatibility, sequences are never filtered")

    # Quality Group
    quality_group = parser.add_argument_group("QUALITY SCALES")
    quality_group.add_argument("--guess", type=int, default=0, metavar="INT", choices=[0, 1],
                               help="Guess format and quality scale, print it and exit (0/1) [0]")
    quality_group.add_argument("--source", type=str, default='auto', metavar="STR",
                               choices=SOURCE_CHOICES,
                               help="Source quality scale. Available options: "
                                    "{'auto', 'fasta', 'sanger', 'solexa', 'illumina'} [auto]")
    quality_group.add_argument("--target", type=str, default='fasta', metavar="STR",
                               choices=TARGET_CHOICES,
                               help="Target quality scale, 'fasta' drops qualities. Available options: "
                                    "{'fasta', 'sanger', 'solexa', 'illumina'} [fasta]")
    quality_group.add_argument("--legacy_illumina", type=int, default=0, metavar="INT", choices=[0, 1],
                               help="Reproduce the historical Illumina target conversion, which maps\n"
                                    "every non-zero quality to 62 (0/1) [0]")

    # Performance Group
    perf_group = parser.add_argument_group("LOGGING & PROFILING")
    perf_group.add_argument("--verbose", type=int, default=0, metavar="INT", choices=[0, 1, 2],
                            help="0: errors and warnings, 1: report record counts, 2: debug logging [0]")
    perf_group.add_argument("--profile", type=int, default=0, metavar="INT", choices=[0, 1],
                            help="Enable cProfile profiling (0/1) [0]")
    return parser


def options_from_args(args: argparse.Namespace) -> ConvertOptions:
    return ConvertOptions(
        source_encoding=parse_source_encoding(args.source),
        target_encoding=parse_target_encoding(args.target),
        renumber_identifiers=(args.rename_num == 1),
        guess_only=(args.guess == 1),
        keep_with_ns=(args.keep_ns == 1),
        gzip=(args.gzip == 1),
        legacy_illumina_target=(args.legacy_illumina == 1),
    )


def open_output(out_path, use_gzip: bool):
    if out_path is None:
        if use_gzip:
            return gzip.GzipFile(fileobj=sys.stdout.buffer, mode='wb')
        return sys.stdout.buffer
    if use_gzip:
        return gzip.open(out_path, 'wb')
    return open(out_path, 'wb')


def convert_files(in_path, out_path, options: ConvertOptions) -> int:
    """Open input and output streams and run the conversion on them"""
    infile = sys.stdin.buffer if in_path is None else open(in_path, 'rb')
    try:
        outfile = open_output(out_path, options.gzip)
        try:
            writer = FastxWriter(outfile)
            count = run_conversion(infile, writer, options)
            writer.flush()
        finally:
            if outfile is not sys.stdout.buffer:
                outfile.close()
    finally:
        if infile is not sys.stdin.buffer:
            infile.close()
    return count


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.getLogger().setLevel(VERBOSITY_LEVELS[args.verbose])
    options = options_from_args(args)

    start_time = time.perf_counter()

    profiler = None
    if args.profile == 1:
        profiler = cProfile.Profile()
        profiler.enable()
        logger.info("Profiling enabled...")

    try:
        count = convert_files(args.in_file, args.out_file, options)
    except FxConvertError as e:
        logger.error(str(e))
        return 1
    except OSError as e:
        logger.error(f"Could not open {e.filename}: {e.strerror}")
        return 1
    finally:
        if profiler is not None:
            profiler.disable()
            s = StringIO()
            ps = pstats.Stats(profiler, stream=s).sort_stats("cumulative")
            ps.print_stats(20)
            print("=" * 80, file=sys.stderr)
            print("Profiling Results:", file=sys.stderr)
            print("=" * 80, file=sys.stderr)
            print(s.getvalue(), file=sys.stderr)

    end_time = time.perf_counter()
    if not options.guess_only:
        logger.info(f"Wrote {count:,} records in {end_time - start_time:.4f} seconds")
    return 0


if __name__ == "__main__":
    sys.exit(main())
