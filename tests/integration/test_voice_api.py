"""Integration tests for voice capture endpoints."""

import pytest


@pytest.mark.integration
class TestVoiceApi:
    """Integration tests for /api/voice."""

    def test_command_creates_events_and_tasks(self, client, auth_headers) -> None:
        """Test that a triggered transcript is split and stored."""
        response = client.post(
            "/api/voice/commands",
            headers=auth_headers,
            json={"transcript": "remind me buy milk and dentist appointment tomorrow at 3pm"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["trigger_matched"] is True
        assert body["command"]["type"] == "mixed"
        assert [t["title"] for t in body["tasks"]] == ["buy milk"]
        assert len(body["events"]) == 1
        assert body["events"][0]["description"] == 'Created via voice command: "remind me"'

        assert len(client.get("/api/tasks", headers=auth_headers).json()["tasks"]) == 1
        assert client.get("/api/events", headers=auth_headers).json()["total"] == 1

    def test_command_without_auto_create(self, client, auth_headers) -> None:
        """Test that auto_create=false only parses."""
        body = client.post(
            "/api/voice/commands",
            headers=auth_headers,
            json={"transcript": "schedule buy eggs", "auto_create": False},
        ).json()

        assert body["command"]["tasks"] == ["buy eggs"]
        assert body["tasks"] == []
        assert client.get("/api/tasks", headers=auth_headers).json()["tasks"] == []

    def test_transcript_without_trigger(self, client, auth_headers) -> None:
        """Test that inactive or missing triggers are reported."""
        body = client.post(
            "/api/voice/commands", headers=auth_headers, json={"transcript": "hey wanda buy milk"}
        ).json()

        assert body == {"trigger_matched": False, "command": None, "events": [], "tasks": []}

    def test_trigger_management(self, client, auth_headers) -> None:
        """Test adding, rejecting a duplicate and removing a trigger."""
        trigger = {"id": "okay-note", "name": "Okay note", "command": "okay note"}

        added = client.post("/api/voice/triggers", headers=auth_headers, json=trigger)
        assert added.status_code == 201
        assert [t["id"] for t in added.json()["triggers"]][-1] == "okay-note"

        duplicate = client.post("/api/voice/triggers", headers=auth_headers, json=trigger)
        assert duplicate.status_code == 409

        body = client.post(
            "/api/voice/commands",
            headers=auth_headers,
            json={"transcript": "okay note pick up the kids", "auto_create": False},
        ).json()
        assert body["command"]["trigger"] == "okay note"

        removed = client.delete("/api/voice/triggers/okay-note", headers=auth_headers)
        assert removed.status_code == 200
        assert "okay-note" not in [t["id"] for t in removed.json()["triggers"]]
        assert client.delete("/api/voice/triggers/okay-note", headers=auth_headers).status_code == 404

    def test_profile_round_trip(self, client, auth_headers) -> None:
        """Test replacing the stored voice profile."""
        profile = client.get("/api/voice/profile", headers=auth_headers).json()
        profile["sensitivity"] = 0.5
        profile["language"] = "en-GB"

        saved = client.put("/api/voice/profile", headers=auth_headers, json=profile)

        assert saved.status_code == 200
        assert client.get("/api/voice/profile", headers=auth_headers).json()["language"] == "en-GB"

    def test_parse_endpoint(self, client, auth_headers) -> None:
        """Test parsing an utterance that has no trigger."""
        body = client.post("/api/voice/parse", headers=auth_headers, json={"text": "buy milk, get bread"}).json()

        assert body["type"] == "task"
        assert body["tasks"] == ["buy milk", "get bread"]

    def test_categorize(self, client, auth_headers) -> None:
        """Test text and context categorisation."""
        court = client.post("/api/voice/categorize", headers=auth_headers, json={"text": "Court hearing"}).json()
        work = client.post(
            "/api/voice/categorize",
            headers=auth_headers,
            json={"text": "team meeting", "hour": 10, "weekday": 2},
        ).json()

        assert court["category"] == "Court"
        assert court["emoji"]
        assert work["category"] == "Work"
        assert work["reasoning"] == "Business hours"
