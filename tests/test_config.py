"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest
import yaml

from patchwork.config import DiamondConfig, MaskingPolicy, OutputConfig, PatchworkConfig
from patchwork.exceptions import ConfigurationError


class TestDefaults:
    def test_diamond_defaults(self):
        cfg = DiamondConfig()
        assert cfg.executable == "diamond"
        assert cfg.min_version == "2.0.3"
        assert cfg.matrix == "BLOSUM62"
        assert cfg.frameshift == 15
        assert cfg.sensitivity == "--ultra-sensitive"

    def test_masking_defaults_leave_alignment_alone(self):
        policy = MaskingPolicy()
        assert not (policy.trim_ends or policy.drop_insertions or policy.count_insertions)

    def test_output_defaults(self):
        out = OutputConfig()
        assert out.hits_file == "diamond_results.tsv"
        assert out.alignment_file == "alignments.txt"
        assert out.fasta_file == "queries_out.fa"

    def test_default_validates(self):
        PatchworkConfig().validate()


class TestValidate:
    @pytest.mark.parametrize(
        "change",
        [
            {"gap_char": "--"},
            {"gap_char": ""},
            {"tie_break": "coin-flip"},
            {"output": {"wrap_column": -1}},
            {"diamond": {"frameshift": 0}},
            {"diamond": {"threads": 0}},
            {"diamond": {"gapopen": -2}},
            {"per_contig": "no"},
            {"skip_malformed": 1},
            {"masking": {"trim_ends": "no"}},
            {"masking": {"count_insertions": "yes"}},
            {"query_label": 7},
        ],
    )
    def test_invalid_values(self, change):
        with pytest.raises(ConfigurationError):
            PatchworkConfig.from_dict(change)

    def test_unknown_top_level_key(self):
        with pytest.raises(ConfigurationError, match="Unsupported"):
            PatchworkConfig.from_dict({"colour": "blue"})

    def test_unknown_section_key(self):
        with pytest.raises(ConfigurationError, match="diamond.speed"):
            PatchworkConfig.from_dict({"diamond": {"speed": 3}})

    def test_section_must_be_mapping(self):
        with pytest.raises(ConfigurationError, match="mapping"):
            PatchworkConfig.from_dict({"masking": ["trim_ends"]})


class TestFromDict:
    def test_nested_values(self):
        cfg = PatchworkConfig.from_dict({
            "tie_break": "identity",
            "per_contig": True,
            "diamond": {"threads": 4, "custom_matrix": "matrices/pam30.txt"},
            "masking": {"trim_ends": True},
            "output": {"output_dir": "results", "wrap_column": 60},
        })
        assert cfg.tie_break == "identity"
        assert cfg.per_contig
        assert cfg.diamond.threads == 4
        assert cfg.diamond.custom_matrix == Path("matrices/pam30.txt")
        assert cfg.masking.trim_ends
        assert cfg.output.output_dir == Path("results")
        assert cfg.output.wrap_column == 60

    def test_empty_section_ignored(self):
        cfg = PatchworkConfig.from_dict({"diamond": None})
        assert cfg.diamond == DiamondConfig()

    def test_to_dict_uses_strings_for_paths(self):
        data = PatchworkConfig().to_dict()
        assert data["output"]["output_dir"] == "patchwork_output"
        assert data["diamond"]["blastx_flags"] == []

    def test_dict_round_trip(self):
        cfg = PatchworkConfig.from_dict({"gap_char": ".", "masking": {"drop_insertions": True}})
        assert PatchworkConfig.from_dict(cfg.to_dict()) == cfg


class TestYaml:
    def test_load(self, tmp_path):
        p = tmp_path / "patchwork.yaml"
        p.write_text(yaml.safe_dump({"diamond": {"matrix": "BLOSUM45"}, "skip_malformed": True}))
        cfg = PatchworkConfig.from_yaml(p)
        assert cfg.diamond.matrix == "BLOSUM45"
        assert cfg.skip_malformed

    def test_empty_file(self, tmp_path):
        p = tmp_path / "empty.yaml"
        p.write_text("")
        assert PatchworkConfig.from_yaml(p) == PatchworkConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            PatchworkConfig.from_yaml(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        p = tmp_path / "bad.yaml"
        p.write_text("diamond: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            PatchworkConfig.from_yaml(p)

    def test_quoted_boolean_rejected(self, tmp_path):
        p = tmp_path / "quoted.yaml"
        p.write_text('masking:\n  trim_ends: "no"\n')
        with pytest.raises(ConfigurationError, match="masking.trim_ends must be true or false"):
            PatchworkConfig.from_yaml(p)

    def test_plain_boolean_accepted(self, tmp_path):
        p = tmp_path / "plain.yaml"
        p.write_text("masking:\n  trim_ends: no\nper_contig: yes\n")
        cfg = PatchworkConfig.from_yaml(p)
        assert cfg.masking.trim_ends is False
        assert cfg.per_contig is True

    def test_top_level_list(self, tmp_path):
        p = tmp_path / "list.yaml"
        p.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            PatchworkConfig.from_yaml(p)

    def test_save_and_load(self, tmp_path):
        cfg = PatchworkConfig.from_dict({"tie_break": "span", "diamond": {"threads": 2}})
        p = tmp_path / "saved.yaml"
        cfg.to_yaml(p)
        assert PatchworkConfig.from_yaml(p) == cfg
