import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

db_dir = Path(tempfile.mkdtemp(prefix="member-portal-test-api-db-"))
os.environ.setdefault("LOG_FILE", str(db_dir / "member-portal-test.log"))

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from member_portal.db import Store
from member_portal.main import create_app
from member_portal.repository import Identity, upsert_member
from member_portal.services import init_db, seed_defaults
from member_portal.settings import settings

ADMIN = {"X-User-Id": "admin-1"}
MEMBER = {"X-User-Id": "member-1"}


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        settings.admin_enforced = True
        self.store = Store(f"sqlite:///{db_dir / (self.id() + '.db')}")
        init_db(self.store)
        seed_defaults(self.store)
        with self.store.session() as session:
            upsert_member(session, Identity(id="admin-1", email="admin@example.ch"), is_admin=True)
            upsert_member(session, Identity(id="member-1", email="member@example.ch"))
        self.client = TestClient(create_app(self.store))

    def tearDown(self) -> None:
        self.store.dispose()


class AuthAndProfileApiTests(ApiTestCase):
    def test_health(self) -> None:
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_missing_identity_rejected(self) -> None:
        response = self.client.get("/api/auth/user")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"message": "Unauthorized"})

    def test_first_seen_identity_is_registered(self) -> None:
        response = self.client.get(
            "/api/auth/user",
            headers={"X-User-Id": "newcomer", "X-User-First-Name": "Nova"},
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["id"], "newcomer")
        self.assertEqual(payload["firstName"], "Nova")
        self.assertEqual(payload["membershipTier"], "TAGESMITGLIED")
        self.assertFalse(payload["isAdmin"])

    def test_bearer_token_accepted_as_identity(self) -> None:
        response = self.client.get(
            "/api/auth/user", headers={"Authorization": "Bearer member-1"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["email"], "member@example.ch")

    def test_login_refreshes_claims(self) -> None:
        response = self.client.post(
            "/api/auth/login",
            headers={**MEMBER, "X-User-Last-Name": "Muster"},
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["lastName"], "Muster")
        self.assertEqual(payload["email"], "member@example.ch")

    def test_profile_update_cannot_change_tier(self) -> None:
        response = self.client.put(
            "/api/user/profile",
            json={"city": "Basel", "soundcloudUrl": "https://soundcloud.com/m1", "membershipTier": "SPONSOR"},
            headers=MEMBER,
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["city"], "Basel")
        self.assertEqual(payload["soundcloudUrl"], "https://soundcloud.com/m1")
        self.assertEqual(payload["membershipTier"], "TAGESMITGLIED")

    def test_profile_update_for_unknown_member_fails(self) -> None:
        response = self.client.put(
            "/api/user/profile", json={"city": "Bern"}, headers={"X-User-Id": "ghost"}
        )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"message": "Failed to update profile"})

    def test_profile_update_rejects_null_dj_flag(self) -> None:
        response = self.client.put(
            "/api/user/profile", json={"isDjActive": None}, headers=MEMBER
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("message", response.json())

        member = self.client.get("/api/auth/user", headers=MEMBER).json()
        self.assertFalse(member["isDjActive"])


class MembershipApiTests(ApiTestCase):
    def test_tiers_listed_in_default_order(self) -> None:
        response = self.client.get("/api/membership/tiers")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            [tier["name"] for tier in response.json()],
            ["TAGESMITGLIED", "PASSIV", "AKTIV", "VIP", "SPONSOR"],
        )

    def test_admin_updates_tier(self) -> None:
        response = self.client.put(
            "/api/membership/tiers/AKTIV", json={"amount": 60}, headers=ADMIN
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["amount"], 60)
        self.assertEqual(payload["interval"], "Jahr")
        self.assertTrue(payload["isActive"])

    def test_tier_update_errors(self) -> None:
        unknown = self.client.put("/api/membership/tiers/GOLD", json={"amount": 1}, headers=ADMIN)
        self.assertEqual(unknown.status_code, 500)
        self.assertEqual(unknown.json(), {"message": "Failed to update membership tier"})

        negative = self.client.put("/api/membership/tiers/AKTIV", json={"amount": -1}, headers=ADMIN)
        self.assertEqual(negative.status_code, 400)
        self.assertIn("message", negative.json())

    def test_member_cannot_update_tier(self) -> None:
        response = self.client.put(
            "/api/membership/tiers/AKTIV", json={"amount": 0}, headers=MEMBER
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"message": "Forbidden"})

    def test_admin_gate_can_be_disabled(self) -> None:
        self.addCleanup(setattr, settings, "admin_enforced", True)
        settings.admin_enforced = False
        response = self.client.put(
            "/api/membership/tiers/AKTIV", json={"amount": 55}, headers=MEMBER
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["amount"], 55)

    def test_create_tier(self) -> None:
        created = self.client.post(
            "/api/membership/tiers",
            json={"name": "EHREN", "amount": 0, "currency": "CHF", "interval": "Jahr"},
            headers=ADMIN,
        )
        self.assertEqual(created.status_code, 200)
        self.assertTrue(created.json()["isActive"])

        duplicate = self.client.post(
            "/api/membership/tiers", json={"name": "EHREN"}, headers=ADMIN
        )
        self.assertEqual(duplicate.status_code, 500)
        self.assertEqual(duplicate.json(), {"message": "Failed to create membership tier"})

    def test_replace_benefits(self) -> None:
        response = self.client.put(
            "/api/membership/benefits/VIP",
            json={"benefits": ["VIP-Eventzugang", "Backstage"]},
            headers=ADMIN,
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True})

        listing = self.client.get("/api/membership/benefits/VIP")
        self.assertEqual(
            [(row["tierName"], row["benefit"]) for row in listing.json()],
            [("VIP", "VIP-Eventzugang"), ("VIP", "Backstage")],
        )

        everything = self.client.get("/api/membership/benefits")
        self.assertEqual(everything.status_code, 200)
        self.assertEqual(len(everything.json()), 8)

    def test_invalid_benefits_rejected_without_changes(self) -> None:
        before = self.client.get("/api/membership/benefits/TAGESMITGLIED").json()

        not_array = self.client.put(
            "/api/membership/benefits/TAGESMITGLIED", json={"benefits": "nope"}, headers=ADMIN
        )
        self.assertEqual(not_array.status_code, 400)
        self.assertEqual(not_array.json(), {"message": "Benefits must be an array"})

        too_long = self.client.put(
            "/api/membership/benefits/TAGESMITGLIED",
            json={"benefits": ["ok", "x" * 201]},
            headers=ADMIN,
        )
        self.assertEqual(too_long.status_code, 400)
        self.assertEqual(
            too_long.json(),
            {"message": "Each benefit must be a non-empty string with max 200 characters"},
        )

        after = self.client.get("/api/membership/benefits/TAGESMITGLIED").json()
        self.assertEqual(after, before)

    def test_admin_user_management(self) -> None:
        forbidden = self.client.get("/api/admin/users", headers=MEMBER)
        self.assertEqual(forbidden.status_code, 403)

        listing = self.client.get("/api/admin/users", headers=ADMIN)
        self.assertEqual(listing.status_code, 200)
        self.assertEqual({user["id"] for user in listing.json()}, {"admin-1", "member-1"})

        moved = self.client.put(
            "/api/admin/users/member-1/membership",
            json={"membershipTier": "SPONSOR"},
            headers=ADMIN,
        )
        self.assertEqual(moved.status_code, 200)
        self.assertEqual(moved.json()["membershipTier"], "SPONSOR")

        unknown_tier = self.client.put(
            "/api/admin/users/member-1/membership",
            json={"membershipTier": "GOLD"},
            headers=ADMIN,
        )
        self.assertEqual(unknown_tier.status_code, 500)
        self.assertEqual(unknown_tier.json(), {"message": "Failed to update user membership"})


class SiteApiTests(ApiTestCase):
    def test_cookie_consent(self) -> None:
        anonymous = self.client.post("/api/cookie-consent", json={"accepted": False})
        self.assertEqual(anonymous.status_code, 200)
        self.assertIsNone(anonymous.json()["userId"])

        recorded = self.client.post(
            "/api/cookie-consent", json={"accepted": True, "userId": "member-1"}
        )
        self.assertEqual(recorded.status_code, 200)

        mine = self.client.get("/api/cookie-consent", headers=MEMBER)
        self.assertEqual(mine.status_code, 200)
        self.assertEqual(mine.json()["id"], recorded.json()["id"])
        self.assertTrue(mine.json()["accepted"])

    def test_radio_settings_and_dj_users(self) -> None:
        self.assertIsNone(self.client.get("/api/radio/settings").json())

        denied = self.client.put("/api/radio/settings", json={"djMode": True}, headers=MEMBER)
        self.assertEqual(denied.status_code, 403)

        first = self.client.put(
            "/api/radio/settings", json={"radioUrl": "https://stream.example/live"}, headers=ADMIN
        )
        self.assertEqual(first.status_code, 200)
        second = self.client.put("/api/radio/settings", json={"djMode": True}, headers=ADMIN)
        self.assertEqual(
            second.json()["radioUrl"], "https://stream.example/live"
        )
        self.assertTrue(second.json()["djMode"])
        self.assertTrue(second.json()["isActive"])

        self.client.put("/api/user/profile", json={"isDjActive": True}, headers=MEMBER)
        djs = self.client.get("/api/radio/dj-users")
        self.assertEqual([user["id"] for user in djs.json()], ["member-1"])

    def test_radio_settings_reject_null_flags(self) -> None:
        for field in ("isActive", "djMode"):
            response = self.client.put("/api/radio/settings", json={field: None}, headers=ADMIN)
            self.assertEqual(response.status_code, 400, field)
            self.assertIn("message", response.json())
        self.assertIsNone(self.client.get("/api/radio/settings").json())

        cleared = self.client.put("/api/radio/settings", json={"radioUrl": None}, headers=ADMIN)
        self.assertEqual(cleared.status_code, 200)
        self.assertIsNone(cleared.json()["radioUrl"])

    def test_failed_commit_is_reported(self) -> None:
        failure = OperationalError("COMMIT", {}, Exception("disk I/O error"))
        with patch("sqlalchemy.orm.Session.commit", side_effect=failure):
            response = self.client.put(
                "/api/radio/settings", json={"radioUrl": "https://stream.example/live"}, headers=ADMIN
            )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"message": "Failed to update radio settings"})
        self.assertIsNone(self.client.get("/api/radio/settings").json())

    def test_gallery_soft_delete(self) -> None:
        created = self.client.post(
            "/api/gallery",
            json={"imageUrl": "https://img.example/1.jpg", "title": "DJ Night"},
            headers=ADMIN,
        )
        self.assertEqual(created.status_code, 200)
        image_id = created.json()["id"]

        denied = self.client.delete(f"/api/gallery/{image_id}", headers=MEMBER)
        self.assertEqual(denied.status_code, 403)

        edited = self.client.put(
            f"/api/gallery/{image_id}", json={"description": "Neon"}, headers=ADMIN
        )
        self.assertEqual(edited.json()["description"], "Neon")

        removed = self.client.delete(f"/api/gallery/{image_id}", headers=ADMIN)
        self.assertEqual(removed.json(), {"success": True})

        self.assertEqual(self.client.get("/api/gallery").json(), [])
        direct = self.client.get(f"/api/gallery/{image_id}")
        self.assertEqual(direct.status_code, 200)
        self.assertFalse(direct.json()["isActive"])

        missing = self.client.get("/api/gallery/999")
        self.assertEqual(missing.status_code, 404)

    def test_gallery_update_rejects_null_image_url(self) -> None:
        created = self.client.post(
            "/api/gallery", json={"imageUrl": "https://img.example/2.jpg"}, headers=ADMIN
        )
        image_id = created.json()["id"]

        response = self.client.put(f"/api/gallery/{image_id}", json={"imageUrl": None}, headers=ADMIN)
        self.assertEqual(response.status_code, 400)
        self.assertIn("message", response.json())
        self.assertEqual(
            self.client.get(f"/api/gallery/{image_id}").json()["imageUrl"],
            "https://img.example/2.jpg",
        )

    def test_news_and_comments(self) -> None:
        post = self.client.post(
            "/api/news", json={"title": "Hallo", "content": "Erster Post"}, headers=ADMIN
        )
        self.assertEqual(post.status_code, 200)
        post_id = post.json()["id"]
        self.assertEqual(post.json()["authorId"], "admin-1")

        denied = self.client.post(
            "/api/news", json={"title": "Nope", "content": "Nope"}, headers=MEMBER
        )
        self.assertEqual(denied.status_code, 403)

        anonymous_comment = self.client.post(
            f"/api/news/{post_id}/comments", json={"content": "Hi"}
        )
        self.assertEqual(anonymous_comment.status_code, 401)

        empty_comment = self.client.post(
            f"/api/news/{post_id}/comments", json={"content": ""}, headers=MEMBER
        )
        self.assertEqual(empty_comment.status_code, 400)

        comment = self.client.post(
            f"/api/news/{post_id}/comments", json={"content": "Cool!"}, headers=MEMBER
        )
        self.assertEqual(comment.status_code, 200)
        comment_id = comment.json()["id"]
        self.assertEqual(comment.json()["userId"], "member-1")

        stranger = self.client.delete(
            f"/api/news/comments/{comment_id}", headers={"X-User-Id": "stranger"}
        )
        self.assertEqual(stranger.status_code, 403)

        removed = self.client.delete(
            f"/api/news/{post_id}/comments/{comment_id}", headers=MEMBER
        )
        self.assertEqual(removed.json(), {"success": True})
        self.assertEqual(self.client.get(f"/api/news/{post_id}/comments").json(), [])

        self.client.delete(f"/api/news/{post_id}", headers=ADMIN)
        self.assertEqual(self.client.get("/api/news").json(), [])
        self.assertFalse(self.client.get(f"/api/news/{post_id}").json()["isActive"])



class StartupTests(ApiTestCase):
    def test_seeding_failure_does_not_block_startup(self) -> None:
        with patch("member_portal.main.seed_defaults", side_effect=RuntimeError("seed failed")):
            with self.assertLogs("member_portal.main", level="ERROR") as logs:
                with TestClient(create_app(self.store)) as client:
                    response = client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(any("Failed to seed default data" in line for line in logs.output))


if __name__ == "__main__":
    unittest.main()
