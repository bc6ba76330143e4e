"""
Lock-guarded random generator shared by the status and auth handlers.

Weighted status selection and digest nonce/opaque generation are the only
places the service needs randomness. Both run on worker threads, so they
share one RandomSource instead of touching the module-level `random`
state. Tests construct it with a seed to get repeatable draws:

    rng = RandomSource(seed=42)
    resolver = StatusResolver(rng)
"""

import random
import threading
from typing import Optional


class RandomSource:
    """
    A random.Random instance behind a lock.

    Args:
        seed: Optional seed. None seeds from the OS.
    """

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)
        self._lock = threading.Lock()

    def random(self) -> float:
        """Uniform float in [0.0, 1.0)."""
        with self._lock:
            return self._random.random()

    def uniform(self, upper: float) -> float:
        """Uniform float in [0.0, upper)."""
        return self.random() * upper

    def token_bytes(self, length: int) -> bytes:
        with self._lock:
            return self._random.randbytes(length)

    def token_hex(self, length: int) -> str:
        """`length` random bytes as 2 * length hex characters."""
        return self.token_bytes(length).hex()
