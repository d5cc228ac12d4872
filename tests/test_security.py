"""Unit tests for password hashing."""
from app.utils.security import get_password_hash, verify_password


class TestPasswordHashing:
    def test_hash_is_not_plaintext(self):
        hashed = get_password_hash("hunter22")
        assert "hunter22" not in hashed
        assert hashed.startswith("scrypt$")

    def test_verify_roundtrip(self):
        hashed = get_password_hash("hunter22")
        assert verify_password("hunter22", hashed) is True
        assert verify_password("hunter23", hashed) is False

    def test_salted(self):
        """Two hashes of the same password differ."""
        assert get_password_hash("hunter22") != get_password_hash("hunter22")

    def test_malformed_hash(self):
        assert verify_password("hunter22", "hunter22") is False
        assert verify_password("hunter22", "bcrypt$abc$def") is False
        assert verify_password("hunter22", "scrypt$!!!$???") is False
