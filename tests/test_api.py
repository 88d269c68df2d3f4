"""Tests for main.py: HTTP surface, error mapping and auth."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from daiary import main
from daiary.core.errors import TransportError
from daiary.journal import date_key
from daiary.llm.feedback import FeedbackService
from daiary.memory.database import get_session

DAILY_REPLY = '```json\n{"feedback": "Sounds like a lovely day.", "mood": "happy"}\n```'


def _utc_day(offset=0):
    return date_key.add_days(date_key.from_date(datetime.now(timezone.utc)), offset)


@pytest.fixture
def fake(model_factory):
    return model_factory(DAILY_REPLY)


@pytest.fixture
def client(session_factory, fake):
    def _session():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    main.app.dependency_overrides[get_session] = _session
    main.app.dependency_overrides[main.get_feedback_service] = lambda: FeedbackService(fake)
    main._submission_states.clear()
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# AI feedback endpoints
# ---------------------------------------------------------------------------

class TestFeedbackEndpoint:

    def test_ok(self, client, fake):
        resp = client.post("/feedback", json={"content": "today was good", "personality": "supportive"})
        assert resp.status_code == 200
        assert resp.json() == {"feedback": "Sounds like a lovely day.", "mood": "happy"}
        assert "supportive close friend" in fake.prompts[0]

    def test_custom_instruction_alias(self, client, fake):
        resp = client.post("/feedback", json={
            "content": "hi", "personality": "custom", "customInstruction": "Answer like a haiku master.",
        })
        assert resp.status_code == 200
        assert fake.prompts[0].startswith("Answer like a haiku master.")

    @pytest.mark.parametrize("body", [
        {"content": ""},
        {"content": "x" * 10001},
        {"content": "hi", "personality": "grumpy"},
        {"content": "hi", "personality": "custom"},
        {"content": "hi", "personality": "custom", "customInstruction": "x" * 501},
        {},
    ])
    def test_validation_errors_are_400(self, client, fake, body):
        resp = client.post("/feedback", json=body)
        assert resp.status_code == 400
        assert "error" in resp.json()
        assert fake.prompts == []

    def test_unparseable_reply_is_502_with_raw(self, client, fake):
        fake.replies = ["I refuse to answer in JSON."]
        resp = client.post("/feedback", json={"content": "hi"})
        assert resp.status_code == 502
        assert resp.json()["raw"] == "I refuse to answer in JSON."

    def test_transport_failure_is_500(self, client, fake):
        fake.replies = [TransportError("model service returned HTTP 503")]
        resp = client.post("/feedback", json={"content": "hi"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "model service returned HTTP 503"}


class TestMilestoneEndpoint:

    def test_ok(self, client, fake):
        fake.replies = ['{"feedback": "Twenty days!"}']
        resp = client.post("/milestone", json={"streak": 20, "personality": "strict"})
        assert resp.status_code == 200
        assert resp.json() == {"feedback": "Twenty days!"}

    @pytest.mark.parametrize("streak", [0, -1, "abc"])
    def test_bad_streak(self, client, streak):
        assert client.post("/milestone", json={"streak": streak}).status_code == 400


class TestPeriodicEndpoints:

    ENTRIES = [{"date": "2024-06-10", "content": "Ran 5k."}, {"date": "2024-06-11", "content": "Rested."}]

    def test_periodic_monthly(self, client, fake):
        fake.replies = ['{"feedback": "A strong month."}']
        resp = client.post("/periodic", json={"entries": self.ENTRIES, "period": "monthly"})
        assert resp.status_code == 200
        assert resp.json()["feedback"] == "A strong month."
        assert "this month" in fake.prompts[0]

    def test_weekly_alias(self, client, fake):
        fake.replies = ['{"feedback": "A strong week."}']
        resp = client.post("/weekly", json={"entries": self.ENTRIES})
        assert resp.status_code == 200
        assert "[2024-06-10]\nRan 5k." in fake.prompts[0]

    def test_monthly_alias_ignores_body_period(self, client, fake):
        fake.replies = ['{"feedback": "ok"}']
        client.post("/monthly", json={"entries": self.ENTRIES, "period": "weekly"})
        assert "this month" in fake.prompts[0]

    def test_empty_and_oversized_batches(self, client):
        assert client.post("/periodic", json={"entries": []}).status_code == 400
        too_many = [{"date": "2024-06-10", "content": "x"}] * 101
        assert client.post("/periodic", json={"entries": too_many}).status_code == 400


# ---------------------------------------------------------------------------
# Journal endpoints
# ---------------------------------------------------------------------------

class TestAuth:

    def test_missing_token(self, client):
        assert client.get("/entries").status_code in (401, 403)

    def test_bad_token(self, client):
        resp = client.get("/entries", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401


class TestEntriesEndpoints:

    def test_submit_list_delete(self, client, auth_headers):
        headers = auth_headers()
        resp = client.post("/entries", json={"content": "today was good"}, headers=headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["entry"]["feedback"] == "Sounds like a lovely day."
        assert body["entry"]["date"] == date_key.today()
        assert body["streak"] == 1
        assert body["milestone"] is None
        assert body["warnings"] == []

        listed = client.get("/entries", headers=headers).json()
        assert [e["id"] for e in listed] == [body["entry"]["id"]]

        assert client.delete(f"/entries/{body['entry']['id']}", headers=headers).status_code == 200
        assert client.get("/entries", headers=headers).json() == []
        assert client.delete("/entries/missing", headers=headers).status_code == 404

    def test_entries_scoped_to_account(self, client, auth_headers):
        client.post("/entries", json={"content": "mine"}, headers=auth_headers("alice"))
        assert client.get("/entries", headers=auth_headers("bob")).json() == []

    def test_delete_all(self, client, auth_headers):
        headers = auth_headers()
        for n in range(3):
            client.post("/entries", json={"content": f"entry {n}", "date": date_key.add_days(date_key.today(), -n)},
                        headers=headers)
        assert client.delete("/entries", headers=headers).json() == {"deleted": 3}

    def test_invalid_date(self, client, auth_headers):
        resp = client.post("/entries", json={"content": "hi", "date": "yesterday"}, headers=auth_headers())
        assert resp.status_code == 400

    def test_format_error_creates_no_entry(self, client, fake, auth_headers):
        headers = auth_headers()
        fake.replies = ["no json"]
        assert client.post("/entries", json={"content": "hi"}, headers=headers).status_code == 502
        assert client.get("/entries", headers=headers).json() == []

    def test_busy_account_gets_409(self, client, auth_headers):
        main.get_submission_state("user-1").try_begin()
        resp = client.post("/entries", json={"content": "hi"}, headers=auth_headers("user-1"))
        assert resp.status_code == 409
        assert "user-1" in main._submission_states

    def test_state_released_after_submission(self, client, fake, auth_headers):
        headers = auth_headers()
        client.post("/entries", json={"content": "hi"}, headers=headers)
        fake.replies = ["no json"]
        client.post("/entries", json={"content": "hi"}, headers=headers)
        assert main._submission_states == {}

    def test_filter_by_date(self, client, auth_headers):
        headers = auth_headers()
        yesterday = date_key.add_days(date_key.today(), -1)
        client.post("/entries", json={"content": "old", "date": yesterday}, headers=headers)
        client.post("/entries", json={"content": "new"}, headers=headers)

        listed = client.get("/entries", params={"date": yesterday}, headers=headers).json()
        assert [e["content"] for e in listed] == ["old"]
        assert client.get("/entries", params={"date": "June 1"}, headers=headers).status_code == 400

    def test_milestone_on_tenth_day(self, client, fake, auth_headers):
        headers = auth_headers()
        for n in range(9, -1, -1):
            resp = client.post("/entries", json={"content": f"day {n}", "date": date_key.add_days(date_key.today(), -n)},
                               headers=headers)
        body = resp.json()
        assert body["streak"] == 10
        assert body["milestone"] == 10
        assert body["milestone_feedback"] == "Sounds like a lovely day."

        streak = client.get("/streak", headers=headers).json()
        assert streak == {"current_streak": 10, "celebrated_milestones": [10]}


class TestOwnPeriodicFeedback:

    def test_weekly_over_own_entries(self, client, fake, auth_headers):
        headers = auth_headers()
        client.post("/entries", json={"content": "wrote today"}, headers=headers)
        fake.replies = ['{"feedback": "Nice week."}']
        resp = client.post("/entries/feedback/weekly", headers=headers)
        assert resp.status_code == 200
        assert resp.json() == {"feedback": "Nice week."}
        assert "wrote today" in fake.prompts[-1]

    def test_month_without_entries_is_400(self, client, auth_headers):
        resp = client.post("/entries/feedback/monthly?year=2001&month=1", headers=auth_headers())
        assert resp.status_code == 400

    def test_unknown_period(self, client, auth_headers):
        assert client.post("/entries/feedback/daily", headers=auth_headers()).status_code == 400


class TestProfileAndCalendar:

    def test_profile_auto_provisioned(self, client, auth_headers):
        resp = client.get("/profile", headers=auth_headers(email="carol@example.com"))
        assert resp.status_code == 200
        assert resp.json()["name"] == "carol"
        assert resp.json()["personality"] == "supportive"

    def test_update_profile(self, client, auth_headers):
        headers = auth_headers()
        resp = client.put("/profile", json={"personality": "custom", "customInstruction": "Be a poet."},
                          headers=headers)
        assert resp.status_code == 200
        assert resp.json()["custom_instruction"] == "Be a poet."

        resp = client.put("/profile", json={"personality": "custom", "customInstruction": ""}, headers=headers)
        assert resp.status_code == 400

    def test_submission_uses_profile_persona(self, client, fake, auth_headers):
        headers = auth_headers()
        client.put("/profile", json={"personality": "philosophical"}, headers=headers)
        client.post("/entries", json={"content": "hi"}, headers=headers)
        assert "quiet sage" in fake.prompts[-1]

    def test_calendar(self, client, auth_headers):
        headers = auth_headers()
        client.post("/entries", json={"content": "hi"}, headers=headers)
        today = date_key.today()
        year, month = int(today[:4]), int(today[5:7])

        resp = client.get(f"/calendar/{year}/{month}", headers=headers)
        assert resp.status_code == 200
        days = {d["date"]: d for d in resp.json()["days"]}
        assert len(days) == 42
        assert days[today]["entry_count"] == 1
        assert days[today]["is_today"] is True

    def test_calendar_bad_month(self, client, auth_headers):
        assert client.get("/calendar/2024/13", headers=auth_headers()).status_code == 400

    @pytest.mark.parametrize("year", [0, 1, 9999, 10000])
    def test_calendar_bad_year(self, client, auth_headers, year):
        assert client.get(f"/calendar/{year}/1", headers=auth_headers()).status_code == 400


# ---------------------------------------------------------------------------
# Writer's local day
# ---------------------------------------------------------------------------

class TestWriterToday:

    def test_entry_for_day_ahead_of_server(self, client, auth_headers):
        headers = auth_headers()
        ahead = _utc_day(1)
        resp = client.post("/entries", json={"content": "hi", "date": ahead, "today": ahead}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["entry"]["date"] == ahead
        assert resp.json()["streak"] == 1

        streak = client.get("/streak", params={"today": ahead}, headers=headers).json()
        assert streak["current_streak"] == 1

    def test_calendar_marks_writers_today(self, client, auth_headers):
        ahead = _utc_day(1)
        year, month = int(ahead[:4]), int(ahead[5:7])
        resp = client.get(f"/calendar/{year}/{month}", params={"today": ahead}, headers=auth_headers())
        today_cells = [d["date"] for d in resp.json()["days"] if d["is_today"]]
        assert today_cells == [ahead]

    def test_implausible_today_rejected(self, client, auth_headers):
        headers = auth_headers()
        far = _utc_day(5)
        resp = client.post("/entries", json={"content": "hi", "date": far, "today": far}, headers=headers)
        assert resp.status_code == 400
        assert client.get("/streak", params={"today": far}, headers=headers).status_code == 400
        assert client.get("/entries", headers=headers).json() == []


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"
