"""
Integration tests for account management API
"""

from unittest.mock import patch

from fanchat.models.auth import User
from fanchat.models.chat_history import Chat

ONE_MB = 1024 * 1024


class TestAvatarUpload:

    def test_upload_and_serve(self, client, fan_headers, db_session, fan_user):
        response = client.post(
            "/api/account/avatar",
            headers=fan_headers,
            files={"file": ("me.png", b"\x89PNG fake image", "image/png")}
        )

        assert response.status_code == 200
        url = response.json()["profile_picture"]
        assert url.startswith("/media/profile-pictures/")

        me = client.get("/api/auth/me", headers=fan_headers).json()
        assert me["profile_picture"] == url

        served = client.get(url)
        assert served.status_code == 200
        assert served.headers["content-type"].startswith("image/png")
        assert served.content == b"\x89PNG fake image"

    def test_oversized_upload_rejected(self, client, fan_headers, object_store):
        with patch.object(object_store, "put") as mock_put:
            response = client.post(
                "/api/account/avatar",
                headers=fan_headers,
                files={"file": ("big.png", b"x" * (6 * ONE_MB), "image/png")}
            )

        assert response.status_code == 413
        assert response.json()["error_code"] == "FILE_TOO_LARGE"
        mock_put.assert_not_called()

    def test_non_image_rejected(self, client, fan_headers, object_store):
        with patch.object(object_store, "put") as mock_put:
            response = client.post(
                "/api/account/avatar",
                headers=fan_headers,
                files={"file": ("notes.txt", b"hello", "text/plain")}
            )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_FILE"
        mock_put.assert_not_called()

    def test_requires_authentication(self, client):
        response = client.post(
            "/api/account/avatar",
            files={"file": ("me.png", b"png", "image/png")}
        )
        assert response.status_code == 401


class TestChangePassword:

    def test_change_then_login(self, client, fan_headers, fan_user):
        response = client.post("/api/account/password", headers=fan_headers, json={
            "current_password": "Secret#123",
            "new_password": "Better#456",
            "confirm_new_password": "Better#456"
        })

        assert response.status_code == 200
        login = client.post("/api/auth/login", json={"email": fan_user.email, "password": "Better#456"})
        assert login.json()["success"] is True

    def test_wrong_current_password(self, client, fan_headers):
        response = client.post("/api/account/password", headers=fan_headers, json={
            "current_password": "Wrong#123",
            "new_password": "Better#456",
            "confirm_new_password": "Better#456"
        })

        assert response.status_code == 401
        assert response.json()["error_code"] == "REAUTH_REQUIRED"

    def test_weak_new_password(self, client, fan_headers):
        response = client.post("/api/account/password", headers=fan_headers, json={
            "current_password": "Secret#123",
            "new_password": "weakpass",
            "confirm_new_password": "weakpass"
        })

        assert response.status_code == 400
        assert response.json()["details"]["errors"]


class TestDeleteAccount:

    def test_delete_keeps_chat(self, client, fan_headers, fan_user, db_session):
        client.post("/api/chat/messages", headers=fan_headers, json={"text": "bye"})

        response = client.post("/api/account/delete", headers=fan_headers, json={"password": "Secret#123"})

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.query(User).filter(User.id == fan_user.id).first() is None
        assert db_session.query(Chat).filter(Chat.user_id == fan_user.id).count() == 1
        assert client.get("/api/auth/me", headers=fan_headers).status_code == 401

    def test_delete_requires_password(self, client, fan_headers):
        response = client.post("/api/account/delete", headers=fan_headers, json={"password": "nope"})
        assert response.status_code == 401
