"""WebSocket integration tests using FastAPI TestClient."""

from starlette.testclient import TestClient

from tablut.main import app


def start_game(client, ws1, ws2):
    """Create a room on ws1, join it from ws2, and drain the setup messages."""
    ws1.send_json({"type": "create_room"})
    room_id = ws1.receive_json()["room_id"]
    ws2.send_json({"type": "join_room", "room_id": room_id})
    ws2.receive_json()  # room_created
    ws1.receive_json()  # player_joined
    ws1.receive_json()  # game_started
    ws2.receive_json()  # game_started
    return room_id


class TestWebSocketIntegration:
    def test_health_endpoint(self):
        with TestClient(app) as client:
            resp = client.get("/health")
            assert resp.status_code == 200
            assert resp.json() == {"status": "ok"}

    def test_websocket_connect(self):
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as ws:
                ws.send_json({"type": "create_room"})
                data = ws.receive_json()
                assert data["type"] == "room_created"
                assert data["color"] == "black"
                assert len(data["room_id"]) == 6

    def test_invalid_message(self):
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as ws:
                ws.send_json({"type": "unknown_type"})
                data = ws.receive_json()
                assert data["type"] == "error"

    def test_missing_field(self):
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as ws:
                ws.send_json({"type": "make_move"})
                data = ws.receive_json()
                assert data["type"] == "error"

    def test_full_game_flow(self):
        """Two players shuffle pieces until the position repeats."""
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as ws1:
                # Player 1 creates room
                ws1.send_json({"type": "create_room"})
                msg1 = ws1.receive_json()
                assert msg1["type"] == "room_created"
                room_id = msg1["room_id"]

                with client.websocket_connect("/ws") as ws2:
                    # Player 2 joins
                    ws2.send_json({"type": "join_room", "room_id": room_id})
                    msg2 = ws2.receive_json()
                    assert msg2["type"] == "room_created"
                    assert msg2["color"] == "white"

                    # Player 1 receives player_joined + game_started
                    p1_joined = ws1.receive_json()
                    assert p1_joined["type"] == "player_joined"
                    p1_started = ws1.receive_json()
                    assert p1_started["type"] == "game_started"
                    assert p1_started["your_color"] == "black"

                    # Player 2 receives game_started
                    p2_started = ws2.receive_json()
                    assert p2_started["type"] == "game_started"
                    assert p2_started["your_color"] == "white"

                    line = [(ws1, "a4-b4", "black"), (ws2, "c5-c4", "white"), (ws1, "b4-a4", "black")]
                    for mover, move, color in line:
                        mover.send_json({"type": "make_move", "move": move})
                        for ws in (ws1, ws2):
                            made = ws.receive_json()
                            assert made["type"] == "move_made"
                            assert made["move"] == move
                            assert made["color"] == color

                    # White's move restores the starting position with black to move
                    ws2.send_json({"type": "make_move", "move": "c4-c5"})
                    for ws in (ws1, ws2):
                        made = ws.receive_json()
                        assert made["type"] == "move_made"
                        assert made["next_turn"] is None
                        over = ws.receive_json()
                        assert over["type"] == "game_over"
                        assert over["winner"] == "white"
                        assert over["reason"] == "repetition"

    def test_wrong_turn_rejected(self):
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as ws1:
                with client.websocket_connect("/ws") as ws2:
                    start_game(client, ws1, ws2)

                    # White tries to move first; should fail
                    ws2.send_json({"type": "make_move", "move": "c5-c7"})
                    err = ws2.receive_json()
                    assert err["type"] == "error"
                    assert "not your turn" in err["message"].lower()

    def test_illegal_move_rejected(self):
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as ws1:
                with client.websocket_connect("/ws") as ws2:
                    start_game(client, ws1, ws2)

                    ws1.send_json({"type": "make_move", "move": "a5-c5"})
                    err = ws1.receive_json()
                    assert err["type"] == "error"
                    assert "illegal" in err["message"].lower()

    def test_reconnect(self):
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as ws1:
                ws1.send_json({"type": "create_room"})
                created = ws1.receive_json()

                with client.websocket_connect("/ws") as ws2:
                    ws2.send_json(
                        {
                            "type": "reconnect",
                            "room_id": created["room_id"],
                            "player_token": created["player_token"],
                        }
                    )
                    sync = ws2.receive_json()
                    assert sync["type"] == "state_sync"
                    assert sync["your_color"] == "black"
                    assert sync["current_turn"] == "black"
                    assert sync["move_count"] == 0

    def test_join_nonexistent_room(self):
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as ws:
                ws.send_json({"type": "join_room", "room_id": "bad123"})
                data = ws.receive_json()
                assert data["type"] == "error"
                assert "not found" in data["message"].lower()
