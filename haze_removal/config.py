"""Run configuration: defaults, YAML files and command-line overrides."""

import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_RADIUS = 9
DEFAULT_BETA = 1.0
DEFAULT_EPS = 1e-5


@dataclass(frozen=True)
class DehazeConfig:
    radius: int = DEFAULT_RADIUS
    beta: float = DEFAULT_BETA
    eps: float = DEFAULT_EPS
    save_intermediates: bool = True
    linear: bool = False
    out_dir: Optional[Path] = None

    def __post_init__(self) -> None:
        if isinstance(self.radius, bool) or not isinstance(self.radius, int) or self.radius <= 0:
            raise ValueError(f"radius must be a positive integer, got {self.radius!r}")
        if isinstance(self.beta, bool) or not isinstance(self.beta, (int, float)) or self.beta < 0:
            raise ValueError(f"beta must be a non-negative number, got {self.beta!r}")
        if isinstance(self.eps, bool) or not isinstance(self.eps, (int, float)) or self.eps <= 0:
            raise ValueError(f"eps must be a positive number, got {self.eps!r}")
        if self.out_dir is not None and not isinstance(self.out_dir, Path):
            object.__setattr__(self, "out_dir", Path(self.out_dir))

    def merged(self, overrides: Dict[str, Any]) -> "DehazeConfig":
        """Copy with every non-None value of ``overrides`` applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path) -> DehazeConfig:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Config not found: {path}")
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config {path} must contain a mapping, got {type(data).__name__}")

    known = {f.name for f in fields(DehazeConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys in {path}: {', '.join(unknown)}")

    # PyYAML reads exponent literals without a dot (1e-5) as strings.
    for key in ("beta", "eps"):
        if isinstance(data.get(key), str):
            try:
                data[key] = float(data[key])
            except ValueError:
                raise ValueError(f"{key} must be a number, got {data[key]!r}") from None
    return DehazeConfig(**data)
