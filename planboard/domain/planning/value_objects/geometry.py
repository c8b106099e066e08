"""Screen geometry captured from the rendered timeline."""

from ...shared.base import ValueObject


class LaneRect(ValueObject):
    """Bounding box of one day lane, in client coordinates."""

    left: float
    top: float = 0
    width: float
    height: float = 0

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def contains_y(self, client_y: float) -> bool:
        """Check if a vertical pointer position falls inside this lane."""
        return self.top <= client_y <= self.bottom
