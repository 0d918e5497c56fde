"""
Short-code generators for url_shortener.

Provided generators:
- RandomCodeGenerator: random Base62 of length L (default 8) from the OS CSPRNG
- SequentialCodeGenerator: monotonically increasing integer -> Base62, with optional
  left-pad and prefix

Generators never check uniqueness. The shortener engine owns that through its
bounded retry loop and the store's unique constraint, which is why a generator
that repeats itself (two processes sharing a sequential start, a tiny code
space) degrades into retries or CodeExhaustionError instead of duplicates.

Collision math for the default: 62^8 ≈ 2.2e14 codes, so with a million stored
records a random candidate hits a used code with probability ~5e-9.

Configuration (via url_shortener.config.settings):
- CODE_GENERATOR: "random" (default) or "sequential"
- CODE_LENGTH: length for RandomCodeGenerator (default 8; clamped 4..32)
- SEQ_START, CODE_MIN_LENGTH, SHARD_PREFIX: SequentialCodeGenerator knobs
"""

import itertools
import logging
import random
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional, Type

from url_shortener.config import settings

log = logging.getLogger(__name__)

BASE62_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
_BASE62_BASE = len(BASE62_ALPHABET)


def base62_encode(num: int) -> str:
    """
    Convert a non-negative integer to a Base62 string.
    0 -> "0", 61 -> "Z", 62 -> "10"
    """
    if num < 0:
        raise ValueError("num must be non-negative")
    if num == 0:
        return "0"
    out = []
    while num > 0:
        num, rem = divmod(num, _BASE62_BASE)
        out.append(BASE62_ALPHABET[rem])
    return "".join(reversed(out))


def _safe_len(length: Optional[int]) -> int:
    """Resolve desired code length from arg or config, clamped to [4, 32]."""
    L = int(length) if length is not None else int(settings.CODE_LENGTH)
    return max(4, min(32, L))


class BaseCodeGenerator(ABC):
    """Abstract base for short-code generators."""

    @abstractmethod
    def generate(self) -> str:  # pragma: no cover
        """Return a candidate short code (URL-safe, not necessarily unused)."""
        raise NotImplementedError


class RandomCodeGenerator(BaseCodeGenerator):
    """Random Base62 codes; rely on storage-level uniqueness (unique index + retry)."""

    def __init__(self, length: Optional[int] = None):
        self.length = _safe_len(length)
        self._rng = random.SystemRandom()

    def generate(self) -> str:
        return "".join(self._rng.choice(BASE62_ALPHABET) for _ in range(self.length))


@dataclass
class SequentialCodeGenerator(BaseCodeGenerator):
    """
    Counter-based generator:
    - Maintains a process-local monotonically increasing counter
    - Encodes the next integer to Base62
    - Enforces minimum visible length via left-padding (e.g., "000abc")
    - Optionally prepends a shard/region prefix (e.g., "ap000abc")

    Unique within one process only. Separate processes starting at the same
    value collide, and the engine's retry loop then walks past used values.
    """
    start: int = 3_500_000
    min_length: int = 6
    prefix: str = ""
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _counter: Optional[itertools.count] = field(default=None, repr=False)

    def __post_init__(self):
        self._counter = itertools.count(self.start)

    def generate(self) -> str:
        with self._lock:
            n = next(self._counter)
        code = base62_encode(n).rjust(self.min_length, "0")
        return f"{self.prefix}{code}" if self.prefix else code


GENERATOR_REGISTRY: Dict[str, Type[BaseCodeGenerator]] = {
    "random": RandomCodeGenerator,
    "rand": RandomCodeGenerator,
    "sequential": SequentialCodeGenerator,
    "seq": SequentialCodeGenerator,
}


def get_generator_from_config(name: Optional[str] = None) -> BaseCodeGenerator:
    """
    Resolve the active generator from parameter or settings.CODE_GENERATOR.
    Unknown names fall back to the random generator.
    """
    key = (name or settings.CODE_GENERATOR or "random").strip().lower()
    cls = GENERATOR_REGISTRY.get(key)
    if cls is None:
        log.warning("Unknown code generator %r; falling back to 'random'", key)
        cls = RandomCodeGenerator
    log.debug("Using code generator: %s -> %s", key, cls.__name__)

    if cls is SequentialCodeGenerator:
        return SequentialCodeGenerator(
            start=int(settings.SEQ_START),
            min_length=int(settings.CODE_MIN_LENGTH),
            prefix=str(settings.SHARD_PREFIX),
        )
    return RandomCodeGenerator(length=settings.CODE_LENGTH)
