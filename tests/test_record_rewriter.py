"""
Tests for record rewriting and the conversion driver.
"""

import io

import numpy as np
import pytest

from data_structures import ConvertOptions, Encoding, FastxRecord, NoQuality
from errors import (AmbiguousEncodingError, InvalidQualityByteError,
                    UnknownFormatError, UnsupportedConversionError)
from fastx_writer import FastxWriter
from quality_conversion import build_conversion_table
from record_rewriter import RecordRewriter, content_type_line, run_conversion


def make_record(identifier, sequence, quality=None):
    if quality is not None:
        quality = np.frombuffer(bytearray(quality), dtype=np.uint8)
    return FastxRecord(identifier, sequence, quality)


def convert(data, **kwargs):
    out = io.BytesIO()
    count = run_conversion(io.BytesIO(data), FastxWriter(out), ConvertOptions(**kwargs))
    return count, out.getvalue()


class TestRecordRewriter:

    def test_renumbering(self):
        rewriter = RecordRewriter(Encoding.SANGER, renumber=True)
        records = [make_record(b"a", b"AC", b"II"), make_record(b"b", b"GT", b"II")]

        rewritten = [rewriter.rewrite_record(r) for r in records]

        assert [r.identifier for r in rewritten] == [b"1", b"2"]

    def test_fasta_target_drops_quality(self):
        rewriter = RecordRewriter(NoQuality.FASTA)

        record = rewriter.rewrite_record(make_record(b"a", b"AC", b"II"))

        assert record.quality is None

    def test_passthrough_without_table(self):
        rewriter = RecordRewriter(Encoding.SANGER)

        record = rewriter.rewrite_record(make_record(b"a", b"ACG", b"#5I"))

        assert record.quality.tobytes() == b"#5I"

    def test_table_is_applied(self):
        table = build_conversion_table(Encoding.SANGER, Encoding.SOLEXA)
        rewriter = RecordRewriter(Encoding.SOLEXA, table)

        record = rewriter.rewrite_record(make_record(b"a", b"ACG", b"II+"))

        assert record.quality.tobytes() == b"hhJ"
        assert record.sequence == b"ACG"

    def test_rewrite_forwards_in_order(self):
        out = io.BytesIO()
        rewriter = RecordRewriter(NoQuality.FASTA)
        records = [make_record(b"x", b"A", b"I"), make_record(b"y", b"C", b"I")]

        count = rewriter.rewrite(records, FastxWriter(out))

        assert count == 2
        assert out.getvalue() == b">x\nA\n>y\nC\n"


class TestContentType:

    @pytest.mark.parametrize("encoding,expected", [
        (Encoding.SANGER, "content-type: text/x-fastq-sanger\n"),
        (Encoding.SOLEXA, "content-type: text/x-fastq-solexa\n"),
        (Encoding.ILLUMINA, "content-type: text/x-fastq-illumina\n"),
        (NoQuality.FASTA, "content-type: text/x-fasta\n"),
    ])
    def test_lines(self, encoding, expected):
        assert content_type_line(encoding) == expected


class TestRunConversion:

    def test_guess_only_sanger(self, sanger_fastq):
        count, output = convert(sanger_fastq, guess_only=True)

        assert count == 0
        assert output == b"content-type: text/x-fastq-sanger\n"

    def test_guess_only_solexa(self, solexa_fastq):
        _, output = convert(solexa_fastq, guess_only=True)

        assert output == b"content-type: text/x-fastq-solexa\n"

    def test_guess_only_with_explicit_source(self, ambiguous_fastq):
        _, output = convert(ambiguous_fastq, source_encoding=Encoding.ILLUMINA, guess_only=True)

        assert output == b"content-type: text/x-fastq-illumina\n"

    def test_guess_only_fasta(self, simple_fasta):
        _, output = convert(simple_fasta, guess_only=True)

        assert output == b"content-type: text/x-fasta\n"

    def test_fastq_to_fasta_default(self, sanger_fastq):
        count, output = convert(sanger_fastq)

        assert count == 2
        assert output == b">read1 lane=1\nACGTACGTAC\n>read2\nGGGCCCAAAT\n"

    def test_auto_detected_sanger_to_solexa(self, sanger_fastq):
        count, output = convert(sanger_fastq, target_encoding=Encoding.SOLEXA)

        assert count == 2
        lines = output.split(b"\n")
        assert lines[3] == b">>>>>hhhhh"
        assert lines[7] == b"hhhhhTTTT>"

    def test_auto_detected_solexa_to_sanger(self, solexa_fastq):
        _, output = convert(solexa_fastq, target_encoding=Encoding.SANGER)

        lines = output.split(b"\n")
        assert lines[3] == b'"$+II'
        assert lines[7] == b"IIIII"

    def test_same_scale_passes_through(self, sanger_fastq):
        _, output = convert(sanger_fastq, target_encoding=Encoding.SANGER)

        assert output == (b"@read1 lane=1\nACGTACGTAC\n+\n#####IIIII\n"
                          b"@read2\nGGGCCCAAAT\n+\nIIIII5555#\n")

    def test_explicit_source_skips_inference(self, ambiguous_fastq):
        _, output = convert(ambiguous_fastq, source_encoding=Encoding.ILLUMINA,
                            target_encoding=Encoding.SANGER)

        assert output == b"@amb1\nACGT\n+\n''''\n"

    def test_renumbering(self, sanger_fastq):
        _, output = convert(sanger_fastq, target_encoding=Encoding.SANGER,
                            renumber_identifiers=True)

        assert output.startswith(b"@1\n")
        assert b"\n@2\n" in output

    def test_non_seekable_input_gets_two_passes(self, non_seekable, sanger_fastq):
        out = io.BytesIO()
        options = ConvertOptions(target_encoding=Encoding.SANGER)

        count = run_conversion(non_seekable(sanger_fastq), FastxWriter(out), options)

        assert count == 2
        assert out.getvalue().startswith(b"@read1 lane=1\n")

    def test_fasta_input_stays_fasta(self, simple_fasta):
        count, output = convert(simple_fasta, target_encoding=Encoding.SANGER,
                                renumber_identifiers=True)

        assert count == 2
        assert output == b">1\nACGTACGTACGT\n>2\nNNNNAC\n"

    def test_keep_with_ns_changes_nothing(self, simple_fasta):
        _, with_flag = convert(simple_fasta, keep_with_ns=True)
        _, without_flag = convert(simple_fasta)

        assert with_flag == without_flag

    def test_keep_with_ns_warning_names_cli_flag(self, simple_fasta, caplog):
        convert(simple_fasta, keep_with_ns=True)

        assert "--keep_ns has no effect" in caplog.text


class TestRunConversionErrors:

    def test_ambiguous_input(self, ambiguous_fastq):
        with pytest.raises(AmbiguousEncodingError):
            convert(ambiguous_fastq, target_encoding=Encoding.SANGER)

    def test_invalid_quality_aborts_before_output(self):
        data = b"@r1\nACGT\n+\nIIII\n@r2\nACGT\n+\nII\x05I\n"
        out = io.BytesIO()

        with pytest.raises(InvalidQualityByteError) as excinfo:
            run_conversion(io.BytesIO(data), FastxWriter(out),
                           ConvertOptions(target_encoding=Encoding.SANGER))
        assert excinfo.value.value == 5
        assert out.getvalue() == b""

    def test_byte_above_band_aborts_before_output(self):
        data = b"@r1\nACGT\n+\nIIiI\n"
        out = io.BytesIO()

        with pytest.raises(InvalidQualityByteError) as excinfo:
            run_conversion(io.BytesIO(data), FastxWriter(out),
                           ConvertOptions(target_encoding=Encoding.SOLEXA))
        assert excinfo.value.value == 105
        assert out.getvalue() == b""

    def test_fasta_source_for_fastq_input(self, sanger_fastq):
        with pytest.raises(UnsupportedConversionError):
            convert(sanger_fastq, source_encoding=NoQuality.FASTA)

    def test_unknown_format(self):
        with pytest.raises(UnknownFormatError):
            convert(b"ACGT\n")
