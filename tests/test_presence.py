from cerisonet.realtime.events import AuthenticateEvent
from cerisonet.realtime.presence import PresenceRegistry


def _user(account_id, first="Jean", last="Dupont"):
    return AuthenticateEvent(id=account_id, firstName=first, lastName=last)


def test_add_and_find_by_sid():
    registry = PresenceRegistry()
    entry = registry.add("sid-a", _user(1))

    assert entry.account_id == 1
    assert entry.name == "Jean Dupont"
    assert registry.get(1) == entry
    assert registry.find_by_sid("sid-a") == entry
    assert 1 in registry
    assert len(registry) == 1


def test_reauthenticate_overwrites_previous_socket():
    registry = PresenceRegistry()
    registry.add("sid-a", _user(1))
    registry.add("sid-b", _user(1))

    assert len(registry) == 1
    assert registry.get(1).sid == "sid-b"
    assert registry.remove_by_sid("sid-a") is None
    assert 1 in registry


def test_remove_by_sid():
    registry = PresenceRegistry()
    registry.add("sid-a", _user(1))
    registry.add("sid-b", _user(2, "Marie", "Curie"))

    removed = registry.remove_by_sid("sid-b")
    assert removed.account_id == 2
    assert [e.account_id for e in registry] == [1]
    assert registry.remove_by_sid("unknown") is None
