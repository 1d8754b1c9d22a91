"""Rating aggregate shared by venues, musicians and teams."""

import enum

from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column


class EntityKind(str, enum.Enum):
    """Kinds of profile that accumulate reviews (values double as URL segments)."""

    venues = "venues"
    musicians = "musicians"
    teams = "teams"


def average_rating(total_rating: int, rating_count: int) -> float:
    if not rating_count:
        return 0.0
    return total_rating / rating_count


class Rateable:
    """
    Mixin holding the denormalised ``(total_rating, rating_count)`` pair.

    Both columns only ever move together, by the review transaction in
    ``jazzlink.services.ratings``.
    """

    total_rating: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    rating_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)

    @property
    def average_rating(self) -> float:
        return average_rating(self.total_rating or 0, self.rating_count or 0)
