"""TOML configuration loader: dataclass schema, layered files, flattened dump."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
import typing as t

try:
    import tomllib  # py>=3.11
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore

from crystalflow.domain.geometry.normalize import AlignmentStrategy, PaddingConvention

CONFIG_FILENAME = "crystalflow.toml"

# -----------------
# Dataclass schema
# -----------------

@dataclass
class BoxSection:
    padding: float = 10.0  # Angstrom
    convention: PaddingConvention = PaddingConvention.PER_SIDE

@dataclass
class AlignmentSection:
    strategy: AlignmentStrategy = AlignmentStrategy.REFERENCE

@dataclass
class BandsSection:
    polarity_threshold: float = 0.015  # eV
    fallback_gap: float = 0.0

@dataclass
class RetrySection:
    max_tries: int = 3

@dataclass
class PathsSection:
    documents_dir: str = "CalculateStructureTable_Files/Documents"

@dataclass
class Config:
    project_root: Path
    box: BoxSection = field(default_factory=BoxSection)
    alignment: AlignmentSection = field(default_factory=AlignmentSection)
    bands: BandsSection = field(default_factory=BandsSection)
    retry: RetrySection = field(default_factory=RetrySection)
    paths: PathsSection = field(default_factory=PathsSection)

    @property
    def documents_path(self) -> Path:
        p = Path(self.paths.documents_dir)
        return p if p.is_absolute() else self.project_root / p


# -----------------
# Helpers
# -----------------

def _load_toml(path: Path) -> dict:
    with path.open("rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict, override: dict) -> dict:
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _merge_into_dataclass(section, payload: dict):
    """Recursively merge a dict into a (possibly nested) dataclass instance."""
    for k, v in payload.items():
        if not hasattr(section, k):
            continue
        current = getattr(section, k)
        if is_dataclass(current) and isinstance(v, dict):
            _merge_into_dataclass(current, v)
        else:
            if v is not None:
                setattr(section, k, v)


def _flatten_dataclass(obj, prefix: str = ""):
    """Yield (key_path, value) for leaf attributes of nested dataclasses."""
    for f in fields(obj):
        val = getattr(obj, f.name)
        key = f"{prefix}.{f.name}" if prefix else f.name
        if is_dataclass(val):
            yield from _flatten_dataclass(val, key)
        else:
            yield key, getattr(val, "value", val)


def dump_config(cfg: "Config", log_fn=print, header: bool = True):
    """Log all config settings (flattened) as ``[config] section.key = value``."""
    if header:
        log_fn("[config] -- begin full config dump --")
    for key, val in _flatten_dataclass(cfg):
        log_fn(f"[config] {key} = {val}")
    if header:
        log_fn("[config] -- end full config dump --")


def _coerce(cfg: Config) -> None:
    """Turn raw TOML values into enums / numbers; bad values raise ValueError."""
    try:
        cfg.box.convention = PaddingConvention(cfg.box.convention)
    except ValueError:
        raise ValueError(
            f"Invalid box.convention '{cfg.box.convention}'. Expected one of: "
            + ", ".join(c.value for c in PaddingConvention)
        ) from None
    try:
        cfg.alignment.strategy = AlignmentStrategy(cfg.alignment.strategy)
    except ValueError:
        raise ValueError(
            f"Invalid alignment.strategy '{cfg.alignment.strategy}'. Expected one of: "
            + ", ".join(s.value for s in AlignmentStrategy)
        ) from None
    cfg.box.padding = float(cfg.box.padding)
    if cfg.box.padding < 0:
        raise ValueError(f"box.padding must be non-negative, got {cfg.box.padding}")
    cfg.bands.polarity_threshold = float(cfg.bands.polarity_threshold)
    cfg.bands.fallback_gap = float(cfg.bands.fallback_gap)
    cfg.retry.max_tries = int(cfg.retry.max_tries)
    if cfg.retry.max_tries < 1:
        raise ValueError(f"retry.max_tries must be >= 1, got {cfg.retry.max_tries}")


# -----------------
# Loader
# -----------------

def load_config(
    project_root: t.Union[str, Path],
    config_path: t.Union[str, Path, None] = None,
) -> Config:
    """Defaults, then ``<project>/crystalflow.toml``, then ``config_path`` (highest)."""
    root = Path(project_root).resolve()
    project_toml = root / CONFIG_FILENAME
    provided = Path(config_path).resolve() if config_path else None

    tomls: list[Path] = []
    if project_toml.is_file():
        tomls.append(project_toml)
    if provided is not None:
        if not provided.is_file():
            raise FileNotFoundError(f"Config file not found: {provided}")
        if provided not in tomls:
            tomls.append(provided)

    logger = logging.getLogger(__name__)
    data: dict = {}
    for p in tomls:
        logger.debug("[config] loading %s", p)
        data = _deep_merge(data, _load_toml(p))

    cfg = Config(project_root=root)
    for section_name in ("box", "alignment", "bands", "retry", "paths"):
        payload = data.get(section_name, {})
        if isinstance(payload, dict):
            _merge_into_dataclass(getattr(cfg, section_name), payload)
    _coerce(cfg)
    return cfg


__all__ = [
    "CONFIG_FILENAME",
    "Config",
    "BoxSection",
    "AlignmentSection",
    "BandsSection",
    "RetrySection",
    "PathsSection",
    "load_config",
    "dump_config",
]
