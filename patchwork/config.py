"""Configuration management for Patchwork.

All tunables live in these dataclasses and are passed explicitly to the
pipeline; nothing in the core reads module-level settings.
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from patchwork.exceptions import ConfigurationError


@dataclass
class DiamondConfig:
    """Settings for the DIAMOND makedb/blastx calls."""

    executable: str = "diamond"
    min_version: str = "2.0.3"
    matrix: str = "BLOSUM62"
    custom_matrix: Optional[Path] = None
    gapopen: Optional[int] = None
    gapextend: Optional[int] = None
    frameshift: int = 15
    sensitivity: str = "--ultra-sensitive"
    threads: Optional[int] = None
    blastx_flags: List[str] = field(default_factory=list)
    makedb_flags: List[str] = field(default_factory=list)


@dataclass
class MaskingPolicy:
    """What ``mask_gaps`` does besides computing statistics."""

    # Drop leading/trailing columns without any query residue
    trim_ends: bool = False
    # Drop columns with no reference residue so rows have reference length
    drop_insertions: bool = False
    # Count insertion columns towards occupancy
    count_insertions: bool = False


@dataclass
class OutputConfig:
    """Where and how results are written."""

    output_dir: Path = Path("patchwork_output")
    wrap_column: int = 0  # 0 = no wrap
    hits_file: str = "diamond_results.tsv"
    alignment_file: str = "alignments.txt"
    fasta_file: str = "queries_out.fa"


@dataclass
class PatchworkConfig:
    """Top-level configuration."""

    diamond: DiamondConfig = field(default_factory=DiamondConfig)
    masking: MaskingPolicy = field(default_factory=MaskingPolicy)
    output: OutputConfig = field(default_factory=OutputConfig)
    gap_char: str = "-"
    tie_break: str = "score"
    per_contig: bool = False
    query_label: Optional[str] = None
    skip_malformed: bool = False

    def validate(self) -> None:
        """Raise ``ConfigurationError`` on out-of-range settings."""
        # Imported here, the registry lives next to the merge algorithm
        from patchwork.collection import TIE_BREAKS

        flags = {
            "per_contig": self.per_contig,
            "skip_malformed": self.skip_malformed,
            "masking.trim_ends": self.masking.trim_ends,
            "masking.drop_insertions": self.masking.drop_insertions,
            "masking.count_insertions": self.masking.count_insertions,
        }
        for name, value in flags.items():
            if not isinstance(value, bool):
                raise ConfigurationError(f"{name} must be true or false, got {value!r}")
        if self.query_label is not None and not isinstance(self.query_label, str):
            raise ConfigurationError(f"query_label must be a string, got {self.query_label!r}")
        if not isinstance(self.gap_char, str) or len(self.gap_char) != 1:
            raise ConfigurationError(
                f"gap_char must be a single character, got {self.gap_char!r}"
            )
        if self.tie_break not in TIE_BREAKS:
            raise ConfigurationError(
                f"Unknown tie_break '{self.tie_break}'. "
                f"Choose from: {', '.join(sorted(TIE_BREAKS))}"
            )
        if self.output.wrap_column < 0:
            raise ConfigurationError("wrap_column must be >= 0")
        if self.diamond.frameshift < 1:
            raise ConfigurationError("frameshift penalty must be >= 1")
        if self.diamond.threads is not None and self.diamond.threads < 1:
            raise ConfigurationError("threads must be >= 1")
        for name in ("gapopen", "gapextend"):
            value = getattr(self.diamond, name)
            if value is not None and value < 0:
                raise ConfigurationError(f"{name} must be a positive integer")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary (paths as strings)."""

        def path_to_str(obj):
            if isinstance(obj, Path):
                return str(obj)
            elif isinstance(obj, dict):
                return {k: path_to_str(v) for k, v in obj.items()}
            elif isinstance(obj, (list, tuple)):
                return [path_to_str(item) for item in obj]
            return obj

        return path_to_str(asdict(self))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatchworkConfig":
        """Build a config from nested dictionaries, rejecting unknown keys."""
        cfg = cls()
        sections = {
            "diamond": cfg.diamond,
            "masking": cfg.masking,
            "output": cfg.output,
        }
        for key, value in data.items():
            if key in sections:
                if value is None:
                    continue
                if not isinstance(value, dict):
                    raise ConfigurationError(f"Section '{key}' must be a mapping")
                _apply_section(key, sections[key], value)
            elif key in cls.__dataclass_fields__:
                setattr(cfg, key, value)
            else:
                raise ConfigurationError(f"Unsupported config option: {key}")
        cfg.validate()
        return cfg

    @classmethod
    def from_yaml(cls, path) -> "PatchworkConfig":
        """Load configuration overrides from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")
        with open(path, "r", encoding="utf-8") as fh:
            try:
                data = yaml.safe_load(fh) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Top level of {path} must be a mapping")
        return cls.from_dict(data)

    def to_yaml(self, path) -> None:
        """Save configuration to a YAML file."""
        with open(path, "w", encoding="utf-8") as fh:
            yaml.dump(self.to_dict(), fh, default_flow_style=False, sort_keys=False)


_PATH_FIELDS = {"custom_matrix", "output_dir"}


def _apply_section(name: str, section, values: Dict[str, Any]) -> None:
    for key, value in values.items():
        if key not in section.__dataclass_fields__:
            raise ConfigurationError(f"Unsupported config option: {name}.{key}")
        if key in _PATH_FIELDS and value is not None:
            value = Path(value)
        setattr(section, key, value)
