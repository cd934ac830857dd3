"""Player models.

A Player is anyone eligible for a match: an attending team member with their
stored tier, or a guest added to a single game.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

Tier = Literal["A", "B", "C"]

# Partition order: strongest tier first.
TIERS: tuple[Tier, ...] = ("A", "B", "C")

DEFAULT_TIER: Tier = "C"

MemberRole = Literal["MANAGER", "MEMBER"]

AttendanceStatus = Literal["attend", "absent", "pending"]


class Player(BaseModel):
    """A participant in a generated match.

    ``tier`` is kept as a plain string because stored data may carry values
    outside ``A``/``B``/``C``; the partitioner treats those as ``C``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    tier: str = DEFAULT_TIER
    is_guest: bool = False


class Member(BaseModel):
    """A team member as the statistics rollups see them."""

    user_id: str
    name: str = ""
    role: MemberRole = "MEMBER"
    tier: str = DEFAULT_TIER

