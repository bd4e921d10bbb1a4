import hashlib

from app.models.user import User
from app.services.account_recovery import hash_secret

BOB = {"X-Caller-Id": "bob"}


def _setup(client):
    r = client.post("/account/security-question", json={"question": "First pet?", "answer": "  Rex "}, headers=BOB)
    assert r.status_code == 200


def test_answer_is_stored_salted_not_plain(client, db):
    _setup(client)
    user = db.get(User, "bob")
    assert user.security_answer_hash
    assert "rex" not in user.security_answer_hash
    assert len(user.security_answer_salt) == 32


def test_question_lookup(client):
    _setup(client)
    r = client.get("/account/security-question/bob")
    assert r.json()["question"] == "First pet?"
    assert client.get("/account/security-question/nobody").status_code == 404


def test_reset_with_normalized_answer(client, db):
    _setup(client)
    r = client.post("/account/reset-password", json={"userId": "bob", "answer": "REX", "newPassword": "hunter22"})
    assert r.status_code == 200

    user = db.get(User, "bob", populate_existing=True)
    assert user.password_hash
    assert user.password_salt


def test_wrong_answer_denied(client):
    _setup(client)
    r = client.post("/account/reset-password", json={"userId": "bob", "answer": "Fido", "newPassword": "hunter22"})
    assert r.status_code == 403
    assert r.json()["error"]["status"] == "permission-denied"


def test_length_rules(client):
    _setup(client)
    short_pw = client.post("/account/reset-password", json={"userId": "bob", "answer": "rex", "newPassword": "123"})
    assert short_pw.status_code == 400

    short_answer = client.post("/account/security-question", json={"question": "Q?", "answer": "x"}, headers=BOB)
    assert short_answer.status_code == 400


def test_setting_question_requires_identity(client):
    r = client.post("/account/security-question", json={"question": "Q?", "answer": "answer"})
    assert r.status_code == 401


def test_secrets_use_slow_salted_hash(client, db):
    _setup(client)
    client.post("/account/reset-password", json={"userId": "bob", "answer": "rex", "newPassword": "hunter22"})
    user = db.get(User, "bob", populate_existing=True)

    salt = user.security_answer_salt
    assert user.security_answer_hash == hash_secret("rex", salt)
    assert user.security_answer_hash != hashlib.sha256((salt + "rex").encode("utf-8")).hexdigest()
    assert user.password_hash != hashlib.sha256((user.password_salt + "hunter22").encode("utf-8")).hexdigest()
    assert hash_secret("rex", salt) != hash_secret("rex", salt + "0")
