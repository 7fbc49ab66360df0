"""Global runtime configuration for sproutmesh.

Growth is stochastic, so every random draw goes through one package-wide
generator. This module owns that generator (seeding, temporary swaps via
:func:`use`), reads numeric and boolean settings from the environment, and
sets the level of the ``sproutmesh`` logger. The `rng` proxy always forwards
to whichever generator is active.
"""

from __future__ import annotations

import contextlib
import logging
import os
from typing import Any, ContextManager, Iterator, Optional

import numpy as np


# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
_LOGGER = logging.getLogger("sproutmesh")


def _parse_log_level(val: str | int | None, default: int = logging.WARNING) -> int:
    """Turn a level name or number into a `logging` constant.

    Args:
        val: Level such as "info" or 20; None selects `default`.
        default: Level used when `val` is missing or unrecognized.

    Returns:
        The numeric logging level.
    """
    if val is None:
        return default
    if isinstance(val, int):
        return val
    level = logging.getLevelName(str(val).upper())
    return level if isinstance(level, int) else default


def set_log_level(level: str | int = "WARNING") -> None:
    """Change the level of the ``sproutmesh`` logger and its children."""
    _LOGGER.setLevel(_parse_log_level(level))


# SPROUTMESH_LOGLEVEL picks the level at import time.
set_log_level(os.getenv("SPROUTMESH_LOGLEVEL", "WARNING"))


# -----------------------------------------------------------------------------
# Environment
# -----------------------------------------------------------------------------
_TRUTHY = frozenset({"1", "on", "t", "true", "y", "yes"})
_FALSY = frozenset({"0", "off", "f", "false", "n", "no"})


def bool_env(varname: str, default: bool) -> bool:
    """Read a yes/no environment variable.

    Accepts the usual spellings (``1/0``, ``true/false``, ``yes/no``,
    ``on/off``), case-insensitively.

    Raises:
        ValueError: If the variable is set to anything else.
    """
    raw = os.getenv(varname)
    if raw is None:
        return default
    val = raw.strip().lower()
    if val in _TRUTHY:
        return True
    if val in _FALSY:
        return False
    raise ValueError(f"{varname}={raw!r} is not a recognized boolean")


def int_env(varname: str, default: int) -> int:
    """Read an integer environment variable, or `default` if unset."""
    raw = os.getenv(varname)
    return default if raw is None else int(raw)


def float_env(varname: str, default: float) -> float:
    """Read a float environment variable, or `default` if unset."""
    raw = os.getenv(varname)
    return default if raw is None else float(raw)


def _make_rng(seed: int) -> np.random.Generator:
    gen = np.random.Generator(np.random.PCG64(seed))
    _LOGGER.debug("Created NumPy PCG64 generator with seed=%d", seed)
    return gen


# -----------------------------------------------------------------------------
# Config singleton + dynamic proxies
# -----------------------------------------------------------------------------
class Config:
    """Global configuration for the sproutmesh random source.

    Provides deterministic seeding and a generator that growth code reads
    through the module-level `rng` proxy.
    """

    def __init__(self) -> None:
        """Seed from SPROUTMESH_SEED (1234 when unset)."""
        self._seed_default = int_env("SPROUTMESH_SEED", 1234)
        self._seed = self._seed_default
        self._rng: np.random.Generator = _make_rng(self._seed)
        _LOGGER.info("Config initialized: seed=%d", self._seed)

    def configure(self, *, seed: Optional[int] = None) -> Config:
        """Swap in a new generator and return self.

        Args:
            seed: Seed of the new generator; None reuses the startup seed.
        """
        self.seed(self._seed_default if seed is None else seed)
        return self

    @contextlib.contextmanager
    def use(self, *, seed: Optional[int] = None) -> Iterator[np.random.Generator]:
        """Temporarily switch to a freshly seeded generator.

        Args:
            seed: Optional seed for the temporary generator.

        Yields:
            The temporary generator. Restores the previous one on exit.
        """
        prev_rng, prev_seed = self._rng, self._seed
        try:
            self.configure(seed=seed)
            yield self._rng
        finally:
            self._rng, self._seed = prev_rng, prev_seed
            _LOGGER.info("Restored previous generator (seed=%d)", self._seed)

    def seed(self, s: int = 1234) -> None:
        """Replace the active generator with one seeded by `s`."""
        _LOGGER.info("Reseeding RNG to %d", s)
        self._seed = int(s)
        self._rng = _make_rng(self._seed)

    @property
    def current_seed(self) -> int:
        """Return the seed the active generator was created with."""
        return self._seed

    @property
    def rng(self) -> np.random.Generator:
        """The generator growth code draws from."""
        return self._rng


class _RNGProxy:
    """Proxy for `rng` that forwards attribute access to the current generator."""

    def __init__(self, _cfg: Config) -> None:
        self._cfg = _cfg

    def __getattr__(self, name: str) -> Any:
        return getattr(self._cfg.rng, name)


# Singleton & forwards
config = Config()
rng = _RNGProxy(config)


def get_rng() -> np.random.Generator:
    """Return the active generator itself rather than the proxy."""
    return config.rng


def configure(*, seed: Optional[int] = None) -> Config:
    """Replace the active generator (module-level)."""
    return config.configure(seed=seed)


def use(*, seed: Optional[int] = None) -> ContextManager[np.random.Generator]:
    """Temporarily switch generator within a context manager (module-level)."""
    return config.use(seed=seed)


def seed(s: int = 1234) -> None:
    """Reseed the current generator deterministically (module-level)."""
    config.seed(s)
