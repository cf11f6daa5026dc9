"""Tests for admin creation, the admin count endpoint and admin seeding."""
import pytest

from acda_site.models import Admin
from acda_site.seed import (
    AdminExists,
    create_admin,
    credential_errors,
    hash_password,
    main,
    seed_from_env,
    verify_password,
)


def test_create_second_admin(admin_client, db):
    r = admin_client.post("/api/admin/create", json={"username": "Secretary", "password": "long-enough-pw"})
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["admin"]["username"] == "secretary"
    assert "password" not in str(body["admin"]).lower()
    assert db.query(Admin).count() == 2


def test_create_duplicate_admin_conflicts(admin_client, db):
    r = admin_client.post("/api/admin/create", json={"username": "ADMIN", "password": "another-password"})
    assert r.status_code == 409
    assert r.json() == {"success": False, "error": "Admin user already exists", "code": "CONFLICT"}
    assert db.query(Admin).count() == 1


@pytest.mark.parametrize(
    "payload,message",
    [
        ({"username": "ab", "password": "password123"}, "Username must be at least 3 characters"),
        ({"username": "x" * 51, "password": "password123"}, "Username cannot exceed 50 characters"),
        ({"username": "bad name!", "password": "password123"}, None),
        ({"username": "newadmin", "password": "short"}, "Password must be at least 8 characters"),
        ({"username": "newadmin"}, None),
    ],
)
def test_create_admin_validation(admin_client, db, payload, message):
    r = admin_client.post("/api/admin/create", json=payload)
    assert r.status_code == 400
    if message:
        assert r.json()["error"] == message
    assert db.query(Admin).count() == 1


def test_admin_count_reports_setup_needed(client, db):
    assert client.get("/api/admin/create").json() == {"success": True, "count": 0, "setupNeeded": True}
    create_admin(db, "founder", "founder-password")
    assert client.get("/api/admin/create").json() == {"success": True, "count": 1, "setupNeeded": False}


def test_email_username_is_allowed():
    assert credential_errors("office@acda.example.org", "password123") is None


def test_password_hash_round_trip():
    hashed = hash_password("s3cret-password")
    assert hashed != "s3cret-password"
    assert verify_password("s3cret-password", hashed)
    assert not verify_password("other-password", hashed)


def test_password_longer_than_72_bytes_is_truncated():
    long_pw = "p" * 80
    assert verify_password("p" * 72, hash_password(long_pw))


def test_create_admin_normalizes_and_rejects_duplicates(db):
    admin = create_admin(db, "  Treasurer ", "password123")
    assert admin.username == "treasurer"
    with pytest.raises(AdminExists):
        create_admin(db, "TREASURER", "password456")


def test_seed_from_env(db, monkeypatch):
    monkeypatch.setenv("ACDA_SEED_ADMIN_USER", "seeded")
    monkeypatch.setenv("ACDA_SEED_ADMIN_PASSWORD", "seeded-password")
    seed_from_env(db)
    seed_from_env(db)  # second call is a no-op
    assert [a.username for a in db.query(Admin).all()] == ["seeded"]


def test_seed_from_env_tolerates_concurrent_insert(db, monkeypatch, caplog):
    import acda_site.seed as seed_mod

    monkeypatch.setenv("ACDA_SEED_ADMIN_USER", "seeded")
    monkeypatch.setenv("ACDA_SEED_ADMIN_PASSWORD", "seeded-password")
    create_admin(db, "seeded", "seeded-password")

    def insert_without_lookup(session, username, password):
        # Lookup already passed in another worker; the unique index rejects the insert
        session.add(Admin(username=username, password_hash=hash_password(password)))
        session.commit()

    monkeypatch.setattr(seed_mod, "create_admin", insert_without_lookup)
    with caplog.at_level("DEBUG", logger="acda_site.seed"):
        seed_from_env(db)
    assert "Admin already exists: seeded" in caplog.text
    # Session is usable again after the rollback
    assert [a.username for a in db.query(Admin).all()] == ["seeded"]


def test_seed_from_env_skips_invalid_credentials(db, monkeypatch):
    monkeypatch.setenv("ACDA_SEED_ADMIN_USER", "seeded")
    monkeypatch.setenv("ACDA_SEED_ADMIN_PASSWORD", "short")
    seed_from_env(db)
    assert db.query(Admin).count() == 0


def test_seed_from_env_without_vars_does_nothing(db):
    seed_from_env(db)
    assert db.query(Admin).count() == 0


def test_seed_cli(db, capsys):
    assert main(["cli-admin", "cli-password"]) == 0
    assert "Admin user created: cli-admin" in capsys.readouterr().out
    assert main(["cli-admin", "cli-password"]) == 1
    assert "already exists" in capsys.readouterr().out
    assert main(["cli-admin"]) == 1
    assert main(["x", "cli-password"]) == 1
    assert db.query(Admin).count() == 1
