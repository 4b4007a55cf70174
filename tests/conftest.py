"""Shared test fixtures for Patchwork tests."""

import logging
import random

import pytest

from patchwork.region import AlignedRegion, ReferenceSequence, ungapped_length
from patchwork.hits import DiamondHit


AMINO_ACIDS = "ACDEFGHIKLMNPQRSTVWY"


def random_protein(length, seed=42):
    rng = random.Random(seed)
    return "".join(rng.choice(AMINO_ACIDS) for _ in range(length))


REFERENCE_500 = ReferenceSequence("ref", random_protein(500))


def _make_region(
    start,
    end,
    score=50.0,
    identity=90.0,
    query_id="contig1",
    reference=REFERENCE_500,
    qseq=None,
    sseq=None,
    frame=1,
    cigar="",
):
    """Region over reference positions start..end; residues copied from *reference*."""
    if sseq is None:
        sseq = reference.sequence[start - 1:end]
    if qseq is None:
        qseq = sseq
    n = max(ungapped_length(qseq), 1)
    return AlignedRegion(
        query_id=query_id,
        reference_id=reference.id,
        query_start=1,
        query_end=3 * n,
        reference_start=start,
        reference_end=end,
        frame=frame,
        aligned_query_seq=qseq,
        aligned_reference_seq=sseq,
        identity=identity,
        score=score,
        cigar=cigar,
    )


def _make_hit(
    sstart,
    send,
    bitscore=50.0,
    pident=90.0,
    qseqid="contig1",
    sseqid="ref",
    reference=REFERENCE_500,
    qstart=1,
    qend=None,
    qframe=1,
):
    sseq = reference.sequence[sstart - 1:send]
    if qend is None:
        qend = qstart + 3 * len(sseq) - 1
    return DiamondHit(
        qseqid=qseqid,
        qseq=sseq,
        full_qseq="ATG" * len(sseq),
        qstart=qstart,
        qend=qend,
        qframe=qframe,
        sseqid=sseqid,
        sseq=sseq,
        sstart=sstart,
        send=send,
        cigar=f"{len(sseq)}M",
        pident=pident,
        bitscore=bitscore,
    )


@pytest.fixture(autouse=True)
def reset_patchwork_logger():
    """Undo handler/propagation changes made by setup_logging."""
    yield
    logger = logging.getLogger("patchwork")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def reference():
    """500-residue reference protein."""
    return REFERENCE_500


@pytest.fixture
def short_reference():
    """50-residue reference protein."""
    return ReferenceSequence("ref", random_protein(50, seed=7))


@pytest.fixture
def reference_fasta(tmp_path, reference):
    p = tmp_path / "reference.fa"
    p.write_text(f">{reference.id} test protein\n{reference.sequence}\n")
    return p


@pytest.fixture
def hits():
    """Three hits: two overlapping (the second better), one separate."""
    return [
        _make_hit(10, 60, bitscore=80.0, qseqid="contig1"),
        _make_hit(40, 120, bitscore=150.0, qseqid="contig2"),
        _make_hit(200, 260, bitscore=90.0, qseqid="contig1", qstart=400, qend=218, qframe=-2),
    ]


@pytest.fixture
def hits_file(tmp_path, hits):
    from patchwork.hits import write_hits

    p = tmp_path / "hits.tsv"
    write_hits(p, hits, header=False)
    return p


@pytest.fixture
def make_region():
    """Factory for valid regions over the 500-residue reference."""
    return _make_region


@pytest.fixture
def make_hit():
    """Factory for valid DIAMOND hits against the 500-residue reference."""
    return _make_hit
