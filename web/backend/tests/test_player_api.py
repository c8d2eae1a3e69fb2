"""Tests for the player router."""


class TestPlayerState:
    def test_initial_state(self, client):
        response = client.get("/api/player/state")

        assert response.status_code == 200
        data = response.json()
        assert data["currentTrack"] is None
        assert data["isPlaying"] is False
        assert data["volume"] == 1.0
        assert data["displayVolume"] == 1.0
        assert data["isFadingIn"] is False


class TestPlayerActions:
    def test_play(self, client, session, track_payload):
        response = client.post("/api/player/play", json=track_payload)

        assert response.status_code == 200
        data = response.json()
        assert data["started"] is True
        assert data["state"]["isPlaying"] is True
        assert data["state"]["currentTrack"]["audioUrl"] == "file:///music/x.mp3"
        assert data["state"]["duration"] == 180.0
        assert session.current_track.id == "x"

    def test_play_accepts_snake_case(self, client, track_payload):
        payload = dict(track_payload)
        payload["audio_url"] = payload.pop("audioUrl")

        response = client.post("/api/player/play", json=payload)

        assert response.status_code == 200

    def test_play_requires_locator(self, client):
        response = client.post("/api/player/play", json={"id": "x", "title": "X"})
        assert response.status_code == 422

    def test_play_denied(self, client, source, track_payload):
        source.allow_play = False

        response = client.post("/api/player/play", json=track_payload)

        assert response.status_code == 200
        assert response.json()["started"] is False
        assert response.json()["state"]["isPlaying"] is False

    def test_pause_and_toggle(self, client, track_payload):
        client.post("/api/player/play", json=track_payload)

        paused = client.post("/api/player/pause").json()
        assert paused["isPlaying"] is False

        resumed = client.post("/api/player/toggle").json()
        assert resumed["isPlaying"] is True

    def test_seek_is_clamped(self, client, track_payload):
        client.post("/api/player/play", json=track_payload)

        response = client.post("/api/player/seek", json={"time": 999})

        assert response.json()["currentTime"] == 180.0

    def test_volume(self, client, session):
        response = client.post("/api/player/volume", json={"volume": 0.4})

        assert response.status_code == 200
        assert response.json()["volume"] == 0.4
        assert response.json()["displayVolume"] == 0.4
        assert session.volume == 0.4

    def test_volume_out_of_range_rejected(self, client, session):
        response = client.post("/api/player/volume", json={"volume": 1.5})

        assert response.status_code == 422
        assert session.volume == 1.0

    def test_stop(self, client, track_payload):
        client.post("/api/player/play", json=track_payload)

        data = client.post("/api/player/stop").json()

        assert data["currentTrack"] is None
        assert data["isPlaying"] is False
        assert data["currentTime"] == 0.0
        assert data["duration"] == 0.0


class TestStateBroadcast:
    def test_actions_broadcast_state(self, client, track_payload):
        client.post("/api/player/play", json=track_payload)

        with client.websocket_connect("/ws/sync") as ws:
            assert ws.receive_json()["type"] == "sync:full"

            client.post("/api/player/pause")
            message = ws.receive_json()

        assert message["type"] == "playback:state"
        assert message["data"]["isPlaying"] is False

    def test_play_relays_announcement(self, client, session, track_payload):
        with client.websocket_connect("/ws/sync") as ws:
            ws.receive_json()

            client.post("/api/player/play", json=track_payload)
            messages = [ws.receive_json(), ws.receive_json()]

        by_type = {m["type"]: m["data"] for m in messages}
        assert set(by_type) == {"playback:announce", "playback:state"}
        assert by_type["playback:announce"] == {"trackId": "x", "origin": session.session_id}
