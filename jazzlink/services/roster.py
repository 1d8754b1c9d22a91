"""
Team roster list operations.

A roster is an ordered list of plain dicts stored whole on ``Team.members``.
Every helper returns a new list; the caller writes it back as one value.
"""

from typing import Any, Dict, List, Optional

from jazzlink.errors import ValidationError

Member = Dict[str, Any]


def make_member(
    name: str,
    instrument: str = "",
    is_leader: bool = False,
    musician_id: Optional[int] = None,
    owner_uid: Optional[str] = None,
) -> Member:
    """Build a roster entry; link fields are only present for profile-backed members."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Member name is required")
    member: Member = {
        "name": name,
        "instrument": (instrument or "").strip(),
        "is_leader": bool(is_leader),
    }
    if musician_id is not None:
        member["musician_id"] = musician_id
        member["owner_uid"] = owner_uid
    return member


def is_linked(member: Member) -> bool:
    return member.get("musician_id") is not None


def has_musician(members: List[Member], musician_id: int) -> bool:
    return any(m.get("musician_id") == musician_id for m in members)


def without_musician(members: List[Member], musician_id: int) -> List[Member]:
    """Drop the entries linked to *musician_id*; manual members are kept as-is."""
    return [dict(m) for m in members if m.get("musician_id") != musician_id]


def _check_index(members: List[Member], index: int) -> None:
    if not 0 <= index < len(members):
        raise ValidationError(f"No member at position {index}")


def add_member(members: List[Member], member: Member) -> List[Member]:
    if is_linked(member) and has_musician(members, member["musician_id"]):
        raise ValidationError("This musician is already on the team")
    return [dict(m) for m in members] + [dict(member)]


def remove_member(members: List[Member], index: int) -> List[Member]:
    _check_index(members, index)
    return [dict(m) for i, m in enumerate(members) if i != index]


def set_leader(members: List[Member], index: int) -> List[Member]:
    """Make the member at *index* the only leader."""
    _check_index(members, index)
    return [{**m, "is_leader": i == index} for i, m in enumerate(members)]


def leader_of(members: List[Member]) -> Optional[Member]:
    for m in members:
        if m.get("is_leader"):
            return m
    return None
