from typing import Protocol


class RandomSource(Protocol):
    def draw(self) -> float:
        """Return a float in [0, 1)."""
        ...
