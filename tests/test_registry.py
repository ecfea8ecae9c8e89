from registry import ClientRegistry


def test_add_and_contains(make_connection):
    registry = ClientRegistry()
    a = make_connection()
    assert a not in registry
    registry.add(a)
    assert a in registry
    assert len(registry) == 1


def test_membership_is_by_identity_not_name(make_connection):
    registry = ClientRegistry()
    a, b = make_connection(), make_connection()
    a.display_name = b.display_name = "Sam"
    registry.add(a)
    assert b not in registry
    registry.add(b)
    assert len(registry) == 2


def test_remove_only_once(make_connection):
    registry = ClientRegistry()
    a = make_connection()
    registry.add(a)
    assert registry.remove(a) is True
    assert registry.remove(a) is False
    assert len(registry) == 0


def test_remove_non_member(make_connection):
    registry = ClientRegistry()
    assert registry.remove(make_connection()) is False


def test_iteration_tolerates_removal(make_connection):
    registry = ClientRegistry()
    conns = [make_connection() for _ in range(4)]
    for c in conns:
        registry.add(c)

    seen = []
    for c in registry:
        seen.append(c)
        registry.remove(c)

    assert seen == conns
    assert len(registry) == 0
