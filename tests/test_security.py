from mentara.core.security import hash_password, verify_password, pwd_context


def test_hash_uses_password_hashing_scheme():
    hashed = hash_password("Secret123!")

    assert hashed.startswith("$pbkdf2-sha256$")
    assert "Secret123!" not in hashed
    assert pwd_context.identify(hashed) == "pbkdf2_sha256"
    assert hash_password("Secret123!") != hashed


def test_verify_password():
    hashed = hash_password("Secret123!")

    assert verify_password("Secret123!", hashed)
    assert not verify_password("secret123!", hashed)


def test_verify_rejects_missing_or_unknown_hashes():
    assert not verify_password("Secret123!", None)
    assert not verify_password("Secret123!", "")
    assert not verify_password("Secret123!", "abc$def")
