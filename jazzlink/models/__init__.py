"""
Jazzlink – SQLAlchemy ORM models package.

Imports all model classes so the app can discover them through a single
``import jazzlink.models`` before ``create_all``.
"""

from jazzlink.models.user import User                 # noqa: F401
from jazzlink.models.venue import Venue               # noqa: F401
from jazzlink.models.team import Team                 # noqa: F401
from jazzlink.models.musician import Musician         # noqa: F401
from jazzlink.models.review import Review             # noqa: F401
from jazzlink.models.performance import Performance   # noqa: F401
from jazzlink.models.feed import FeedComment, FeedLike, FeedPost, FeedView  # noqa: F401
