from __future__ import annotations

from dataclasses import dataclass

from .nodes import GraftError


class ConfigError(GraftError):
    pass


@dataclass(frozen=True)
class RepairConfig:
    """Search limits for one repair run."""
    max_donors: int = 10
    min_similarity: float = 0.0
    max_patches: int = 20

    def __post_init__(self) -> None:
        if self.max_donors < 1:
            raise ConfigError("max_donors must be at least 1")
        if not 0.0 <= self.min_similarity <= 1.0:
            raise ConfigError("min_similarity must lie in [0, 1]")
        if self.max_patches < 1:
            raise ConfigError("max_patches must be at least 1")
