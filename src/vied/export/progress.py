"""Weighted progress aggregation for multi-step exports."""

from collections.abc import Callable, Sequence

# (fraction 0..1, message)
ProgressCallback = Callable[[float, str], None]


class ExportProgress:
    """Folds per-operation percentages into one monotonic fraction.

    Each trim contributes in proportion to its weight (its duration). When
    a concatenation step follows, ``concat_share`` of the bar is reserved
    for it. The reported fraction never decreases.
    """

    def __init__(
        self,
        weights: Sequence[float],
        concat_share: float = 0.05,
        callback: ProgressCallback | None = None,
    ) -> None:
        self._weights = list(weights)
        self._total = sum(self._weights)
        self._concat_share = min(max(concat_share, 0.0), 1.0) if len(self._weights) > 1 else 0.0
        self._done = [0.0] * len(self._weights)
        self._concat_done = 0.0
        self._fraction = 0.0
        self._callback = callback

    @property
    def fraction(self) -> float:
        return self._fraction

    def update_trim(self, index: int, percent: float, message: str = "") -> float:
        """Record trim ``index`` at ``percent`` (0..100)."""
        self._done[index] = max(self._done[index], _unit(percent / 100.0))
        return self._emit(message or f"Trimming clip {index + 1}/{len(self._weights)}")

    def complete_trim(self, index: int) -> float:
        return self.update_trim(index, 100.0)

    def update_concat(self, percent: float, message: str = "Concatenating") -> float:
        self._concat_done = max(self._concat_done, _unit(percent / 100.0))
        return self._emit(message)

    def complete(self, message: str = "Complete") -> float:
        self._done = [1.0] * len(self._weights)
        self._concat_done = 1.0
        self._fraction = 1.0
        return self._emit(message)

    def _emit(self, message: str) -> float:
        if self._total > 0:
            trims = sum(w * d for w, d in zip(self._weights, self._done)) / self._total
        else:
            trims = 1.0 if all(self._done) else 0.0
        value = (1.0 - self._concat_share) * trims + self._concat_share * self._concat_done
        self._fraction = max(self._fraction, _unit(value))
        if self._callback is not None:
            self._callback(self._fraction, message)
        return self._fraction


def _unit(value: float) -> float:
    return min(max(value, 0.0), 1.0)
