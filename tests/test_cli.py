"""Tests for the command line interface."""

import json

import pytest
import yaml

from patchwork.cli import _build_parser, build_config, main
from patchwork.collection import TIE_BREAKS


@pytest.fixture
def contigs(tmp_path):
    p = tmp_path / "contigs.fa"
    p.write_text(">contig1\nATGAAAGTG\n>contig2\nATGCCC\n")
    return p


def base_args(contigs, reference_fasta, hits_file, outdir):
    return [
        "--contigs", str(contigs),
        "--reference", str(reference_fasta),
        "--hits", str(hits_file),
        "--output-dir", str(outdir),
    ]


class TestBuildConfig:
    def test_defaults(self):
        args = _build_parser().parse_args(["--contigs", "c.fa", "--reference", "r.fa"])
        cfg = build_config(args)
        assert cfg.tie_break == "score"
        assert cfg.diamond.frameshift == 15

    def test_overrides(self):
        args = _build_parser().parse_args([
            "--contigs", "c.fa", "--reference", "r.fa",
            "--diamond-flags=--evalue 1e-5 --max-hsps 1",
            "--matrix", "BLOSUM45", "--frameshift", "20", "--threads", "4",
            "--tie-break", "span", "--per-contig", "--trim-ends", "--wrap-column", "60",
        ])
        cfg = build_config(args)
        assert cfg.diamond.blastx_flags == ["--evalue", "1e-5", "--max-hsps", "1"]
        assert cfg.diamond.matrix == "BLOSUM45"
        assert cfg.diamond.frameshift == 20
        assert cfg.diamond.threads == 4
        assert cfg.tie_break == "span"
        assert cfg.per_contig
        assert cfg.masking.trim_ends
        assert cfg.output.wrap_column == 60

    def test_command_line_beats_yaml(self, tmp_path):
        p = tmp_path / "cfg.yaml"
        p.write_text(yaml.safe_dump({"diamond": {"matrix": "PAM30", "threads": 2}}))
        args = _build_parser().parse_args([
            "--contigs", "c.fa", "--reference", "r.fa", "--config", str(p), "--threads", "8",
        ])
        cfg = build_config(args)
        assert cfg.diamond.matrix == "PAM30"
        assert cfg.diamond.threads == 8

    def test_tie_break_choices_follow_registry(self):
        parser = _build_parser()
        action = next(a for a in parser._actions if a.dest == "tie_break")
        assert action.choices == sorted(TIE_BREAKS)

    def test_query_label(self):
        args = _build_parser().parse_args([
            "--contigs", "c.fa", "--reference", "r.fa", "--query-label", "sample",
        ])
        assert build_config(args).query_label == "sample"

    def test_missing_required(self):
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["--contigs", "c.fa"])


class TestMain:
    def test_run_with_hits(self, tmp_path, capsys, contigs, reference_fasta, hits_file):
        outdir = tmp_path / "out"
        assert main(base_args(contigs, reference_fasta, hits_file, outdir)) == 0
        out = capsys.readouterr().out
        assert "P A T C H W O R K" in out
        assert "insertion columns excluded" in out
        assert (outdir / "alignments.txt").exists()
        assert (outdir / "queries_out.fa").exists()
        assert (outdir / "diamond_results.tsv").exists()

    def test_json(self, tmp_path, capsys, contigs, reference_fasta, hits_file):
        args = base_args(contigs, reference_fasta, hits_file, tmp_path / "out") + ["--json"]
        assert main(args) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["merged_regions"] == 2
        assert data["occupancy"] == pytest.approx(0.284)

    def test_malformed_hits(self, tmp_path, contigs, reference_fasta):
        bad = tmp_path / "bad.tsv"
        bad.write_text("contig1\tMKV\n")
        assert main(base_args(contigs, reference_fasta, bad, tmp_path / "out")) == 1

    def test_invalid_config(self, tmp_path, contigs, reference_fasta, hits_file):
        args = base_args(contigs, reference_fasta, hits_file, tmp_path / "out")
        assert main(args + ["--frameshift", "0"]) == 1

    def test_missing_reference(self, tmp_path, contigs, hits_file):
        args = base_args(contigs, tmp_path / "nope.fa", hits_file, tmp_path / "out")
        assert main(args) == 1

    def test_log_file(self, tmp_path, contigs, reference_fasta, hits_file):
        log = tmp_path / "logs" / "patchwork.log"
        args = base_args(contigs, reference_fasta, hits_file, tmp_path / "out")
        assert main(args + ["-q", "--log-file", str(log)]) == 0
        assert "Loaded 3 hits" in log.read_text()

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            main(["--version"])
        assert "0.1.0" in capsys.readouterr().out
