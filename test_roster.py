import pytest

from jazzlink.errors import ValidationError
from jazzlink.services import roster


def _members():
    return [
        roster.make_member("Bill", "piano"),
        roster.make_member("Scott", "bass", is_leader=True),
        roster.make_member("Chet", "trumpet", musician_id=7, owner_uid="u-7"),
    ]


def test_manual_member_has_no_link_fields():
    member = roster.make_member("  Bill ", " piano ")
    assert member == {"name": "Bill", "instrument": "piano", "is_leader": False}
    assert not roster.is_linked(member)


def test_linked_member_carries_profile_reference():
    member = roster.make_member("Chet", "trumpet", musician_id=7, owner_uid="u-7")
    assert member["musician_id"] == 7
    assert member["owner_uid"] == "u-7"
    assert roster.is_linked(member)


def test_member_needs_a_name():
    with pytest.raises(ValidationError):
        roster.make_member("   ", "drums")


def test_set_leader_is_exclusive():
    members = [
        {"name": "A", "instrument": "", "is_leader": False},
        {"name": "B", "instrument": "", "is_leader": True},
        {"name": "C", "instrument": "", "is_leader": False},
    ]
    updated = roster.set_leader(members, 2)
    assert [m["is_leader"] for m in updated] == [False, False, True]
    assert roster.leader_of(updated)["name"] == "C"
    # input untouched
    assert [m["is_leader"] for m in members] == [False, True, False]


def test_set_leader_out_of_range():
    with pytest.raises(ValidationError):
        roster.set_leader(_members(), 3)
    with pytest.raises(ValidationError):
        roster.set_leader([], 0)


def test_remove_member_by_position():
    updated = roster.remove_member(_members(), 1)
    assert [m["name"] for m in updated] == ["Bill", "Chet"]
    with pytest.raises(ValidationError):
        roster.remove_member(_members(), -1)


def test_add_member_rejects_duplicate_profile():
    members = _members()
    with pytest.raises(ValidationError):
        roster.add_member(members, roster.make_member("Chet again", musician_id=7))

    # manual members with the same name are allowed
    updated = roster.add_member(members, roster.make_member("Bill", "organ"))
    assert [m["name"] for m in updated].count("Bill") == 2


def test_without_musician_keeps_manual_entries():
    updated = roster.without_musician(_members(), 7)
    assert [m["name"] for m in updated] == ["Bill", "Scott"]
    assert not roster.has_musician(updated, 7)
    assert roster.without_musician(updated, 99) == updated


def test_leader_of_empty_roster():
    assert roster.leader_of([]) is None
    assert roster.leader_of([roster.make_member("Solo")]) is None
