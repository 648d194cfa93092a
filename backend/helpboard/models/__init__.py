"""ORM Models — SQLAlchemy declarative models.

Invariants:
    - All models inherit from Base (db/base.py)
    - HelpPostRow is the only table; offers are embedded in it

Design Decisions:
    - All models imported here so Base.metadata is populated before create_all / autogenerate
"""

from helpboard.models.help_post import HelpPostRow  # noqa: F401
