"""Tests for aligned regions and the reference sequence."""

import pytest

from patchwork.exceptions import MalformedRegion, PatchworkError
from patchwork.region import (
    AlignedRegion,
    ReferenceSequence,
    parse_cigar,
    ungapped_length,
)


class TestReferenceSequence:
    def test_length(self, reference):
        assert len(reference) == 500

    def test_residues_one_based_inclusive(self):
        ref = ReferenceSequence("r", "MKVLAT")
        assert ref.residues(1, 3) == "MKV"
        assert ref.residues(6, 6) == "T"

    def test_residues_out_of_range(self):
        ref = ReferenceSequence("r", "MKVLAT")
        with pytest.raises(IndexError):
            ref.residues(0, 2)
        with pytest.raises(IndexError):
            ref.residues(5, 7)

    def test_needs_identifier(self):
        with pytest.raises(ValueError):
            ReferenceSequence("", "MKV")


class TestAlignedRegionConstruction:
    def test_valid_region(self, make_region):
        region = make_region(10, 50)
        assert region.length == 41
        assert region.reference_span == (10, 50)
        assert region.query_span == (1, 123)
        assert region.query_length == 123

    def test_reference_end_before_start(self, make_region):
        with pytest.raises(MalformedRegion):
            make_region(50, 10, sseq="A" * 41)

    def test_query_end_before_start(self, make_region):
        region = make_region(10, 20)
        with pytest.raises(MalformedRegion, match="query end"):
            AlignedRegion(
                query_id="q", reference_id="ref",
                query_start=30, query_end=1,
                reference_start=10, reference_end=20, frame=1,
                aligned_query_seq=region.aligned_query_seq,
                aligned_reference_seq=region.aligned_reference_seq,
                identity=90.0, score=50.0,
            )

    def test_aligned_lengths_must_match(self, make_region):
        with pytest.raises(MalformedRegion, match="lengths differ"):
            make_region(1, 5, qseq="MKV", sseq="MKVLA")

    def test_reference_residues_must_fill_span(self, make_region):
        with pytest.raises(MalformedRegion, match="residue span"):
            make_region(1, 5, sseq="MKVL", qseq="MKVL")

    def test_invalid_frame(self, make_region):
        with pytest.raises(MalformedRegion, match="frame"):
            make_region(1, 5, frame=0)
        with pytest.raises(MalformedRegion, match="frame"):
            make_region(1, 5, frame=4)

    def test_identity_range(self, make_region):
        with pytest.raises(MalformedRegion, match="identity"):
            make_region(1, 5, identity=101.0)

    def test_coordinates_are_one_based(self, make_region):
        with pytest.raises(MalformedRegion, match="1-based"):
            make_region(0, 4, sseq="MKVLA")

    def test_invalid_cigar(self, make_region):
        with pytest.raises(MalformedRegion, match="CIGAR"):
            make_region(1, 5, cigar="5Q")

    def test_cigar_must_cover_span(self, make_region):
        with pytest.raises(MalformedRegion, match="consumes 3 reference positions"):
            make_region(1, 10, cigar="3M")
        assert make_region(1, 10, cigar="10M").reference_consumed == 10

    def test_malformed_region_is_value_error(self, make_region):
        with pytest.raises(ValueError):
            make_region(1, 5, frame=7)
        with pytest.raises(PatchworkError):
            make_region(1, 5, frame=7)

    def test_structural_equality(self, make_region):
        assert make_region(10, 20) == make_region(10, 20)
        assert make_region(10, 20) != make_region(10, 20, score=51.0)
        assert len({make_region(10, 20), make_region(10, 20)}) == 1

    def test_immutable(self, make_region):
        region = make_region(10, 20)
        with pytest.raises(AttributeError):
            region.score = 100.0


class TestFromHit:
    def test_forward_hit(self, make_hit):
        region = AlignedRegion.from_hit(make_hit(10, 20, qstart=4))
        assert region.reference_span == (10, 20)
        assert region.query_span == (4, 36)
        assert region.frame == 1
        assert not region.is_reverse
        assert region.cigar == "11M"

    def test_reverse_frame_is_normalised(self, make_hit):
        region = AlignedRegion.from_hit(make_hit(200, 260, qstart=400, qend=218, qframe=-2))
        assert region.query_span == (218, 400)
        assert region.frame == -2
        assert region.is_reverse

    def test_fields_copied(self, make_hit):
        hit = make_hit(10, 20, bitscore=123.5, pident=87.5, qseqid="c7")
        region = AlignedRegion.from_hit(hit)
        assert region.query_id == "c7"
        assert region.reference_id == "ref"
        assert region.score == 123.5
        assert region.identity == 87.5
        assert region.aligned_query_seq == hit.qseq


class TestColumns:
    def test_plain_columns(self, make_region):
        region = make_region(3, 5, sseq="KVL", qseq="KIL")
        assert list(region.columns()) == [(3, "K"), (4, "I"), (5, "L")]

    def test_insertion_has_no_position(self, make_region):
        region = make_region(10, 12, sseq="AB-C", qseq="ABXC")
        assert list(region.columns()) == [(10, "A"), (11, "B"), (None, "X"), (12, "C")]
        assert region.insertion_count == 1

    def test_query_deletion_keeps_position(self, make_region):
        region = make_region(10, 13, sseq="ABCD", qseq="A--D")
        assert [pos for pos, _ in region.columns()] == [10, 11, 12, 13]

    def test_frameshift_marker(self, make_region):
        region = make_region(10, 12, sseq="AB-C", qseq="AB/C")
        assert region.has_frameshift
        assert list(region.columns())[2] == (None, "/")


class TestOverlap:
    def test_overlapping(self, make_region):
        assert make_region(10, 50).overlaps(make_region(50, 80))
        assert make_region(10, 50).overlaps(make_region(20, 30))

    def test_abutting_do_not_overlap(self, make_region):
        assert not make_region(1, 100).overlaps(make_region(101, 200))

    def test_symmetric(self, make_region):
        a, b = make_region(10, 50), make_region(40, 90)
        assert a.overlaps(b) and b.overlaps(a)


class TestCigar:
    def test_parse(self):
        assert parse_cigar("10M2I5D") == [(10, "M"), (2, "I"), (5, "D")]

    def test_parse_empty(self):
        assert parse_cigar("") == []

    def test_parse_invalid(self):
        with pytest.raises(MalformedRegion):
            parse_cigar("10M2")

    def test_consumed_lengths(self, make_region):
        region = make_region(1, 5, sseq="MK-VLA", qseq="MKGVLA", cigar="2M1I3M")
        assert region.reference_consumed == 5
        assert region.query_consumed == 6
        assert region.cigar_operations == [(2, "M"), (1, "I"), (3, "M")]


def test_ungapped_length():
    assert ungapped_length("AB-C/D\\E") == 5
    assert ungapped_length("---") == 0
