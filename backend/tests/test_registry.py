import threading

from xo_rooms.services.games import RoomRegistry, normalize_room_id


def test_normalize_room_id():
    assert normalize_room_id('  Game   Night ') == 'game-night'
    assert normalize_room_id('R1') == 'r1'
    assert normalize_room_id('a\tb\nc') == 'a-b-c'
    assert normalize_room_id(42) == '42'
    assert normalize_room_id('   ') == ''
    assert normalize_room_id(None) == ''


def test_resolve_or_create_is_lazy_and_shared():
    registry = RoomRegistry()
    assert registry.get('Lobby') is None
    assert len(registry) == 0

    first = registry.resolve_or_create('Lobby')
    again = registry.resolve_or_create('  lobby ')
    assert first is again
    assert first.room_id == 'lobby'
    assert registry.get('LOBBY') is first
    assert 'lobby' in registry
    assert len(registry) == 1


def test_fresh_session_is_empty():
    session = RoomRegistry().resolve_or_create('r1')
    assert session.board == [None] * 9
    assert session.turn == 'X'
    assert session.winner is None
    assert session.winning_line is None
    assert session.last_move is None
    assert session.players == {'X': None, 'O': None}
    assert session.started is False
    assert session.status == 'empty'


def test_remove_and_listing():
    registry = RoomRegistry()
    registry.resolve_or_create('b')
    registry.resolve_or_create('a')
    assert registry.room_ids() == ['a', 'b']
    registry.remove('B')
    assert registry.room_ids() == ['a']
    # removing an unknown room is harmless
    registry.remove('missing')
    assert len(registry) == 1


def test_concurrent_resolve_creates_one_session():
    registry = RoomRegistry()
    seen = []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        seen.append(registry.resolve_or_create('race'))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len({id(s) for s in seen}) == 1
    assert len(registry) == 1
