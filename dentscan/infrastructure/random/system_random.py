import random
from typing import Optional

from ...application.ports.random_source import RandomSource


class SystemRandomSource(RandomSource):
    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = random.Random(seed)

    def draw(self) -> float:
        return self._rng.random()
