import logging
from typing import BinaryIO, Iterable, Optional

import numpy as np

from data_structures import (ConvertOptions, Encoding, FastxRecord, NoQuality,
                             RecordFormat, TargetEncoding)
from errors import UnsupportedConversionError
from fastx_parser import FastxReader, open_rewindable
from fastx_writer import FastxWriter
from format_classifier import detect_record_format
from quality_conversion import build_conversion_table, convert_qualities
from quality_guess import scan_source_encoding

logger = logging.getLogger(__name__)


def content_type_line(encoding) -> str:
    """Report line written in guess-only mode"""
    if encoding is NoQuality.FASTA:
        return "content-type: text/x-fasta\n"
    return f"content-type: text/x-fastq-{encoding.value}\n"


class RecordRewriter:
    """
    Second pass of a conversion: renumbers identifiers and rewrites qualities.
    A table of None means qualities pass through unchanged.
    """

    def __init__(self, target: TargetEncoding, table: Optional[np.ndarray] = None,
                 renumber: bool = False):
        self.target = target
        self.table = table
        self.renumber = renumber
        self.next_number = 1

    def rewrite_record(self, record: FastxRecord) -> FastxRecord:
        if self.renumber:
            record.identifier = str(self.next_number).encode('ascii')
            self.next_number += 1

        if self.target is NoQuality.FASTA:
            record.quality = None
        elif record.has_quality and self.table is not None:
            convert_qualities(record.quality, self.table)
        return record

    def rewrite(self, records: Iterable[FastxRecord], writer: FastxWriter) -> int:
        count = 0
        for record in records:
            writer.write(self.rewrite_record(record))
            count += 1
            if count % 1000000 == 0:
                logger.debug(f"Rewrote {count:,} records...")
        return count


def run_conversion(handle: BinaryIO, writer: FastxWriter, options: ConvertOptions) -> int:
    """
    Classify the input, infer or take the source scale, then rewrite every record.
    Auto-detection costs a full scan pass before the rewrite pass.

    Returns the number of records written (0 in guess-only mode).
    """
    handle = open_rewindable(handle)
    record_format = detect_record_format(handle)
    reader = FastxReader(handle, record_format)

    if options.keep_with_ns:
        logger.warning("--keep_ns has no effect: sequences containing N are never filtered")

    if record_format == RecordFormat.FASTA:
        if options.guess_only:
            writer.write_line(content_type_line(NoQuality.FASTA))
            return 0
        if options.target_encoding is not NoQuality.FASTA:
            logger.warning("Input is FASTA, ignoring quality scales and writing FASTA")
        rewriter = RecordRewriter(NoQuality.FASTA, renumber=options.renumber_identifiers)
        count = rewriter.rewrite(reader.records(), writer)
        logger.info(f"Converted {count:,} FASTA records")
        return count

    source = options.source_encoding
    if source is NoQuality.FASTA:
        raise UnsupportedConversionError("Input is FASTQ but the source scale was given as 'fasta'.")

    if source is None:
        source = scan_source_encoding(reader)
        logger.debug(f"Guessed input quality scale to be text/x-fastq-{source.value}")
    elif not isinstance(source, Encoding):
        raise UnsupportedConversionError(f"Unknown source scale {source!r}.")

    if options.guess_only:
        writer.write_line(content_type_line(source))
        return 0

    target = options.target_encoding
    table = None
    if target is not NoQuality.FASTA and target != source:
        table = build_conversion_table(source, target, options.legacy_illumina_target)

    reader.rewind()
    rewriter = RecordRewriter(target, table, renumber=options.renumber_identifiers)
    count = rewriter.rewrite(reader.records(), writer)
    logger.info(f"Converted {count:,} FASTQ records ({source.value} -> {target.value})")
    return count
