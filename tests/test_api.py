from fastapi.testclient import TestClient

from mentara.api.services.ai_services import get_response_generator
from mentara.main import app
from conftest import FailingGenerator


def _chat(client, message, user_id="u1", conversation_id="c1"):
    return client.post("/chat", json={"message": message, "userId": user_id, "conversationId": conversation_id})


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/").json()["status"] == "healthy"


def test_chat_turn_returns_ai_message_and_context(client):
    response = _chat(client, "I am stressed about exams")

    assert response.status_code == 200
    body = response.json()
    assert body["message"]["sender"] == "ai"
    assert body["message"]["emotionalTone"] == "anxiety"
    assert body["context"]["sessionCount"] == 1

    history = client.get("/chat/history/u1/c1").json()["messages"]
    assert [m["sender"] for m in history] == ["user", "ai"]

    conversations = client.get("/chat/conversations/u1").json()["conversations"]
    assert conversations[0]["messageCount"] == 2
    assert conversations[0]["title"] == "I am stressed about exams"

    assert client.get("/chat/context/u1").json()["context"]["sessionCount"] == 1


def test_chat_validation_errors(client):
    missing = client.post("/chat", json={"userId": "u1", "conversationId": "c1"})
    assert missing.status_code == 400
    assert "error" in missing.json()

    blank = _chat(client, "   ")
    assert blank.status_code == 400
    assert blank.json() == {"error": "Message cannot be empty"}

    too_long = _chat(client, "a" * 5000)
    assert too_long.status_code == 400


def test_chat_generator_failure_is_generic_500(store):
    from mentara.core.db import get_store

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_response_generator] = lambda: FailingGenerator()
    try:
        with TestClient(app) as client:
            response = _chat(client, "hello")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to process chat message"}
    assert store.keys() == []


def test_conversation_lifecycle(client):
    created = client.post("/chat/conversations/u1", json={"title": "Sleep"}).json()["conversation"]
    assert created["id"].startswith("conv_")
    assert created["title"] == "Sleep"

    same = client.post("/chat/conversations/u1", json={"id": created["id"], "title": "Other"}).json()
    assert same["conversation"]["title"] == "Sleep"

    client.put(f"/chat/conversations/u1/{created['id']}", json={"title": "Sleep issues"})
    titles = [c["title"] for c in client.get("/chat/conversations/u1").json()["conversations"]]
    assert titles == ["Sleep issues"]

    assert client.delete(f"/chat/conversations/u1/{created['id']}").json() == {"success": True}
    assert client.get("/chat/conversations/u1").json()["conversations"] == []


def test_generate_summary_endpoint(client):
    assert client.post("/chat/generate-summary", json={"userId": "u1", "conversationId": "c1"}).json() == {
        "title": "New conversation"
    }
    _chat(client, "I keep worrying before every exam")
    response = client.post("/chat/generate-summary", json={"userId": "u1", "conversationId": "c1"})
    assert response.json() == {"title": "Exam stress support"}


def test_catalog_routes(client):
    assert len(client.get("/counselors").json()) == 3
    assert client.get("/products").json() == []
    assert client.get("/admin/counselors").json() == []

    added = client.post("/admin/counselors", json={"name": "Dr. Kavya Rao"}).json()
    assert added["message"] == "Counselor added successfully"
    counselor_id = added["counselor"]["id"]
    assert [c["name"] for c in client.get("/counselors").json()] == ["Dr. Kavya Rao"]

    assert client.put(f"/admin/counselors/{counselor_id}", json={"price": 900}).status_code == 200
    assert client.put("/admin/counselors/missing", json={"price": 900}).status_code == 404
    assert client.delete(f"/admin/counselors/{counselor_id}").status_code == 200

    section = client.post("/admin/sections", json={"title": "Grounding"}).json()["section"]
    assert [r["title"] for r in client.get("/resources").json()] == ["Grounding"]
    assert section["author"] == "Mentara Team"


def test_init_data_seeds_catalogs(client):
    body = client.post("/admin/init-data").json()
    assert body["success"] is True
    assert body["updated"] == {"products": True, "counselors": True, "resources": True}
    assert len(client.get("/admin/counselors").json()) == 3
    assert len(client.get("/products").json()) == 2

    assert client.post("/admin/init-data").json()["updated"]["counselors"] is False


def test_session_routes(client):
    booked = client.post("/sessions/book", json={
        "userId": "u1", "counselorId": "c1", "counselorName": "Dr. Meera Patel",
        "date": "2025-02-01", "time": "09:00",
    }).json()
    assert booked["success"] is True
    session_id = booked["sessionId"]

    assert client.put(f"/sessions/{session_id}/status", json={"status": "confirmed"}).json() == {"success": True}
    assert client.put(f"/sessions/{session_id}/feedback", json={"rating": 4, "comment": "Good"}).json() == {"success": True}

    sessions = client.get("/sessions").json()["sessions"]
    assert sessions[0]["status"] == "confirmed"
    assert sessions[0]["feedback"] == {"rating": 4, "comment": "Good"}

    missing = client.put("/sessions/session_missing/status", json={"status": "confirmed"})
    assert missing.status_code == 404
    assert missing.json() == {"success": False, "error": "Session not found"}


def test_notification_routes(client):
    sent = client.post("/notifications/send", json={
        "userId": "u1", "type": "general", "title": "Welcome", "message": "Hello",
    }).json()
    assert sent["success"] is True

    notifications = client.get("/notifications/u1").json()["notifications"]
    assert len(notifications) == 1 and notifications[0]["read"] is False

    assert client.put(f"/notifications/{sent['notificationId']}/read").json() == {"success": True}
    assert client.put("/notifications/notif_missing/read").status_code == 404
    assert client.put("/notifications/u1/read-all").json() == {"success": True, "updated": 0}
    assert client.delete(f"/notifications/{sent['notificationId']}").json() == {"success": True}
    assert client.get("/notifications/u1").json()["notifications"] == []


def test_portal_login(client):
    ok = client.post("/admin/login", json={"email": "admin@mentara.com", "password": "admin123"})
    assert ok.status_code == 200
    assert ok.json()["access_token"]

    bad = client.post("/counselor/login", json={"email": "counselor@mentara.com", "password": "nope"})
    assert bad.status_code == 401
    assert bad.json() == {"success": False, "error": "Invalid credentials"}


def test_signup_profile_and_moderation(client, store):
    signup = client.post("/auth/signup", json={"email": "asha@example.com", "password": "Secret123!", "name": "Asha"})
    assert signup.status_code == 200
    user = signup.json()["user"]
    assert "passwordHash" not in user

    duplicate = client.post("/auth/signup", json={"email": "asha@example.com", "password": "x"})
    assert duplicate.status_code == 400
    assert duplicate.json() == {"error": "User already exists"}

    profile = client.put(f"/profile/{user['id']}", json={"university": "IIT Bombay"}).json()["profile"]
    assert profile["university"] == "IIT Bombay"
    assert client.get(f"/profile/{user['id']}").json()["profile"]["name"] == "Asha"
    assert client.get("/profile/ghost").json() == {"success": False, "error": "User not found"}

    no_reason = client.request("DELETE", f"/admin/users/{user['id']}", json={"action": "ban"})
    assert no_reason.status_code == 400

    client.request("DELETE", f"/admin/users/{user['id']}", json={"action": "ban", "reason": "abuse", "banUntil": "forever"})
    banned = client.post("/auth/signup", json={"email": "asha@example.com", "password": "Secret123!"})
    assert banned.status_code == 403

    assert client.post(f"/admin/users/{user['id']}/unban").json() == {"success": True}
    assert client.post(f"/admin/users/{user['id']}/unban").status_code == 400

    client.request("DELETE", f"/admin/users/{user['id']}", json={"action": "delete", "reason": "requested"})
    revived = client.post("/auth/signup", json={"email": "asha@example.com", "password": "Secret123!"})
    assert revived.json()["message"] == "Account recreated successfully"

    users = client.get("/admin/users").json()["users"]
    assert [u["email"] for u in users] == ["asha@example.com"]
    assert users[0]["isDeleted"] is False


def test_password_management_routes_use_token_subject_as_admin(client, store):
    client.post("/auth/signup", json={"email": "ravi@example.com", "password": "Secret123!"})
    user_id = client.get("/admin/users").json()["users"][0]["id"]

    token = client.post("/admin/login", json={"email": "admin@mentara.com", "password": "admin123"}).json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    link = client.post(f"/admin/users/{user_id}/password/set-link", json={"reason": "invite"}, headers=headers).json()
    assert link["success"] is True
    reset_token = link["setPasswordUrl"].split("token=")[1]

    logs = client.get(f"/admin/users/{user_id}/password/audit-logs").json()["logs"]
    assert logs[0]["action"] == "SEND_SET_PASSWORD_LINK"
    assert logs[0]["adminId"] == "admin_admin"

    assert client.post("/auth/verify-password-token", json={"token": reset_token}).json()["valid"] is True
    short = client.post("/auth/set-password-with-token", json={"token": reset_token, "newPassword": "short"})
    assert short.status_code == 400
    assert short.json()["success"] is False
    assert short.json()["error"].startswith("newPassword")

    done = client.post("/auth/set-password-with-token", json={"token": reset_token, "newPassword": "LongEnough1!"})
    assert done.json() == {"success": True, "message": "Password set successfully"}
    reused = client.post("/auth/set-password-with-token", json={"token": reset_token, "newPassword": "LongEnough1!"})
    assert reused.json() == {"success": False, "error": "Token already used"}

    status = client.get(f"/admin/users/{user_id}/password/status").json()
    assert status["status"]["status"] == "set"
    assert client.get("/admin/users/ghost/password/status").status_code == 404
    assert len(client.get("/admin/audit-logs").json()["logs"]) == 1


def test_status_routes(client):
    status = client.get("/status/api-status").json()
    assert status["success"] is True
    assert status["status"]["api_key_configured"] is False

    assert client.post("/status/reset-rate-limits").status_code == 401


def test_ids_containing_separator_are_rejected_as_bad_requests(client, store):
    response = _chat(client, "hello", conversation_id="conv:1")
    assert response.status_code == 400
    assert "must not contain ':'" in response.json()["error"]
    assert store.keys() == []

    assert client.get("/chat/history/u1/conv:1").status_code == 400
    assert client.get("/chat/context/u:1").status_code == 400
    assert client.delete("/chat/conversations/u1/conv:1").status_code == 400

    profile = client.get("/profile/u:1")
    assert profile.status_code == 400
    assert profile.json()["success"] is False

    assert client.put("/notifications/notif:1/read").status_code == 400
    assert client.put("/sessions/session:1/status", json={"status": "confirmed"}).status_code == 400


def test_body_validation_errors_follow_route_envelope(client):
    booking = client.post("/sessions/book", json={"userId": "u1"})
    assert booking.status_code == 400
    assert booking.json()["success"] is False

    summary = client.post("/chat/generate-summary", json={"userId": "u1"})
    assert summary.status_code == 400
    assert "success" not in summary.json()
    assert summary.json()["error"].startswith("conversationId")


def test_temporary_password_can_be_redeemed_once(client):
    client.post("/auth/signup", json={"email": "meera@example.com", "password": "Secret123!"})
    user_id = client.get("/admin/users").json()["users"][0]["id"]

    temp = client.post(f"/admin/users/{user_id}/password/temp", json={"reason": "locked out"}).json()["tempPassword"]

    wrong = client.post("/auth/change-temp-password", json={
        "userId": user_id, "tempPassword": "not-it", "newPassword": "BrandNew1!",
    })
    assert wrong.status_code == 401
    assert wrong.json() == {"success": False, "error": "Invalid temporary password"}

    done = client.post("/auth/change-temp-password", json={
        "userId": user_id, "tempPassword": temp, "newPassword": "BrandNew1!",
    })
    assert done.json() == {"success": True, "message": "Password changed successfully"}

    again = client.post("/auth/change-temp-password", json={
        "userId": user_id, "tempPassword": temp, "newPassword": "BrandNew1!",
    })
    assert again.status_code == 401
