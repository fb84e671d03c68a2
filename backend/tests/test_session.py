import pytest

from connect4.constants import CHALLENGED, CHALLENGING, IDLE, PLAYER_ONE, PLAYER_TWO, PLAYING, UNNAMED
from connect4.pairing import PairingError
from connect4.protocol import Command
from connect4.session import WELCOME_MESSAGE


def test_connect_sends_welcome(lobby):
    outbox = []
    session = lobby.connect(outbox.append)
    assert session.state == UNNAMED
    assert outbox == [{"message": WELCOME_MESSAGE, "state": UNNAMED}]


def test_nick(connect, lobby):
    session, outbox = connect()
    session.nick("  Bob ")
    assert session.state == IDLE
    assert session.nickname == "Bob"
    assert outbox.last() == {"message": "You are now known as Bob", "nickname": "Bob", "state": IDLE}
    assert lobby.directory.lookup("BOB") == session.id


@pytest.mark.parametrize("name", ["", "   ", "a" * 21, "bad name", "semi;colon", "ünï"])
def test_nick_rejects_bad_format(connect, name):
    session, outbox = connect()
    session.nick(name)
    assert session.state == UNNAMED
    assert outbox.last()["state"] == UNNAMED
    assert "must be 1 to 20 characters long" in outbox.last()["message"]


def test_nick_is_case_insensitive(connect):
    first, _ = connect("Bob")
    second, outbox = connect()
    second.nick("bob")
    assert first.state == IDLE
    assert second.state == UNNAMED
    assert outbox.last() == {"message": "The nickname bob is already taken", "state": UNNAMED}


def test_nick_ignored_once_named(connect):
    session, outbox = connect("bob")
    session.nick("robert")
    assert session.nickname == "bob"
    assert outbox == []


def test_challenge_unknown_opponent(connect):
    session, outbox = connect("bob")
    session.challenge("zed")
    assert session.state == IDLE
    assert session.opponent is None
    assert outbox.last() == {"message": "No such opponent zed", "state": IDLE}


def test_challenge_self(connect):
    session, outbox = connect("bob")
    session.challenge("BOB")
    assert session.state == IDLE
    assert outbox.last()["message"] == "You cannot challenge yourself"


def test_challenge_occupied_opponent(connect):
    bob, _ = connect("bob")
    alice, _ = connect("alice")
    carol, carol_out = connect("carol")
    bob.challenge("alice")
    carol.challenge("alice")
    assert carol.state == IDLE
    assert carol_out.last()["message"] == "alice is already occupied"
    assert alice.opponent is bob


def test_challenge_pairs_symmetrically(connect):
    bob, bob_out = connect("bob")
    alice, alice_out = connect("alice")
    bob.challenge("Alice")
    assert bob.state == CHALLENGING
    assert alice.state == CHALLENGED
    assert bob.opponent is alice
    assert alice.opponent is bob
    assert bob_out.last() == {"message": "You have issued a challenge to alice", "state": CHALLENGING}
    assert alice_out.last() == {"message": "You are being challenged by bob", "state": CHALLENGED}


def test_unnamed_sessions_cannot_be_challenged(connect):
    bob, bob_out = connect("bob")
    connect()
    bob.challenge("[unnamed]")
    assert bob_out.last()["message"] == "No such opponent [unnamed]"


def test_accept_starts_shared_game(connect):
    bob, bob_out = connect("bob")
    alice, alice_out = connect("alice")
    bob.challenge("alice")
    alice.accept()
    assert alice.state == bob.state == PLAYING
    assert alice.game is bob.game
    assert alice.player == PLAYER_ONE
    assert bob.player == PLAYER_TWO
    assert alice_out.last() == {"opponent": "bob", "player": PLAYER_ONE, "state": PLAYING}
    assert bob_out.last() == {"opponent": "alice", "player": PLAYER_TWO, "state": PLAYING}


def test_decline(connect):
    bob, bob_out = connect("bob")
    alice, alice_out = connect("alice")
    bob.challenge("alice")
    alice.decline()
    assert alice.state == bob.state == IDLE
    assert alice.opponent is None and bob.opponent is None
    assert alice_out.last() == {"message": "You have declined bob's challenge", "state": IDLE}
    assert bob_out.last() == {"message": "alice has declined your challenge", "state": IDLE}


def test_cancel(connect):
    bob, bob_out = connect("bob")
    alice, alice_out = connect("alice")
    bob.challenge("alice")
    bob.cancel()
    assert alice.state == bob.state == IDLE
    assert alice.opponent is None and bob.opponent is None
    assert bob_out.last()["message"] == "You have canceled your challenge to alice"
    assert alice_out.last()["message"] == "bob has canceled their challenge"


def test_commands_out_of_state_are_ignored(connect):
    bob, bob_out = connect("bob")
    alice, alice_out = connect("alice")
    bob.accept()
    bob.decline()
    bob.cancel()
    bob.leave()
    bob.drop(3)
    bob.challenge("alice")
    alice.cancel()
    alice.challenge("bob")
    assert alice_out.last()["state"] == CHALLENGED
    assert bob.state == CHALLENGING
    assert alice.state == CHALLENGED
    assert bob_out.last()["message"] == "You have issued a challenge to alice"


def test_drop_notifies_opponent_only(pair):
    (alice, alice_out), (bob, bob_out) = pair()
    alice.drop(3)
    assert alice_out == []
    assert bob_out.take() == [{"drop": True, "column": 3, "state": PLAYING}]
    assert alice.game.next_player == PLAYER_TWO


@pytest.mark.parametrize("column", [-1, 7, 2.5, "3", None])
def test_illegal_drop_is_ignored(pair, column):
    (alice, alice_out), (bob, bob_out) = pair()
    alice.drop(column)
    assert bob_out == []
    assert alice.game.next_player == PLAYER_ONE


def test_out_of_turn_drop_is_ignored(pair):
    (alice, _), (bob, bob_out) = pair()
    alice.drop(3)
    alice.drop(3)
    bob_out.clear()
    bob.drop(4)
    assert alice.game.next_player == PLAYER_ONE
    assert [c.column for c in alice.game.cells() if c.player] == [3, 4]


def test_win_starts_rematch_with_swapped_seats(pair, lobby):
    (alice, alice_out), (bob, bob_out) = pair()
    first_game = alice.game
    for column in [0, 1, 0, 1, 0, 1]:
        (alice if first_game.next_player == PLAYER_ONE else bob).drop(column)
    alice.drop(0)

    assert first_game.winner == PLAYER_ONE
    assert bob_out.last() == {"drop": True, "column": 0, "state": PLAYING}
    assert alice.state == bob.state == PLAYING
    assert alice.game is bob.game
    assert alice.game is not first_game
    assert alice.player == PLAYER_TWO
    assert bob.player == PLAYER_ONE
    assert lobby.match_for(alice.id).wins == {alice.id: 1}

    # в новой партии первым ходит bob
    bob.drop(5)
    assert alice_out.last() == {"drop": True, "column": 5, "state": PLAYING}


def test_leave(pair):
    (alice, alice_out), (bob, bob_out) = pair()
    bob.leave()
    for s in (alice, bob):
        assert s.state == IDLE
        assert s.opponent is None
        assert s.game is None and s.player is None
    assert bob_out.last() == {"message": "You have left the lobby", "state": IDLE}
    assert alice_out.last() == {"message": "bob has left the lobby", "state": IDLE}


def test_idle_players_can_challenge_again_after_leave(pair):
    (alice, _), (bob, _) = pair()
    alice.leave()
    alice.challenge("bob")
    assert alice.state == CHALLENGING
    assert bob.opponent is alice


def test_quit_releases_nickname(connect, lobby):
    bob, _ = connect("bob")
    bob.quit()
    assert "bob" not in lobby.directory
    assert lobby.get(bob.id) is None
    again, outbox = connect()
    again.nick("Bob")
    assert again.state == IDLE


def test_quit_unnamed(connect, lobby):
    session, _ = connect()
    session.quit()
    assert len(lobby) == 0


@pytest.mark.parametrize("quitter", ["challenger", "challenged", "player"])
def test_quit_notifies_opponent(connect, lobby, quitter):
    bob, bob_out = connect("bob")
    alice, alice_out = connect("alice")
    bob.challenge("alice")
    if quitter == "player":
        alice.accept()
    leaving, staying, staying_out = (bob, alice, alice_out) if quitter == "challenger" else (alice, bob, bob_out)
    leaving.quit()
    assert staying.state == IDLE
    assert staying.opponent is None
    assert staying_out.last()["state"] == IDLE
    assert lobby.stats() == {"connected": 1, "named": 1, "pairs": 0}


def test_dispatch_routes_commands(connect):
    bob, _ = connect()
    alice, _ = connect("alice")
    bob.dispatch(Command.NICK, "bob")
    bob.dispatch(Command.CHALLENGE, "alice")
    alice.dispatch(Command.ACCEPT)
    alice.dispatch(Command.DROP, 2)
    assert bob.state == PLAYING
    assert [c.column for c in bob.game.cells() if c.player] == [2]
    bob.dispatch(Command.LEAVE)
    assert alice.state == IDLE


def test_missing_opponent_is_a_pairing_error(connect, lobby):
    bob, _ = connect("bob")
    alice, _ = connect("alice")
    bob.challenge("alice")
    lobby.unpair(bob.id)
    with pytest.raises(PairingError):
        alice.accept()


def test_pairing_rejects_double_pairing(connect, lobby):
    bob, _ = connect("bob")
    alice, _ = connect("alice")
    carol, _ = connect("carol")
    lobby.pair(bob.id, alice.id)
    with pytest.raises(PairingError):
        lobby.pair(carol.id, alice.id)
    with pytest.raises(PairingError):
        lobby.pair(carol.id, carol.id)


def test_draw_starts_rematch_with_swapped_seats(pair, lobby, draw_sequence):
    (alice, _), (bob, _) = pair()
    first_game = alice.game
    for column in draw_sequence:
        mover = alice if first_game.next_player == alice.player else bob
        mover.drop(column)

    assert first_game.drawn
    assert alice.state == bob.state == PLAYING
    assert alice.game is bob.game
    assert alice.game is not first_game
    assert not any(c.player for c in alice.game.cells())
    assert alice.player == PLAYER_TWO
    assert bob.player == PLAYER_ONE
    match = lobby.match_for(alice.id)
    assert match.draws == 1
    assert match.wins == {}


def test_playing_without_game_is_a_pairing_error(pair):
    (alice, _), (bob, _) = pair()
    alice.game = None
    with pytest.raises(PairingError):
        alice.drop(3)
