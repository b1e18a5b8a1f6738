"""
Tests for core.security
"""
from core.config import get_settings
from core.security import generate_access_code, hash_password, verify_password


class TestPasswords:
    """Tests for password hashing"""

    def test_hash_is_not_plain_text(self):
        hashed = hash_password("secret")
        assert hashed != "secret"
        assert hashed.startswith("$2")

    def test_verify(self):
        hashed = hash_password("secret")
        assert verify_password("secret", hashed) is True
        assert verify_password("wrong", hashed) is False

    def test_verify_malformed_hash(self):
        assert verify_password("secret", "not-a-bcrypt-hash") is False
        assert verify_password("secret", None) is False


class TestAccessCodes:
    """Tests for access code generation"""

    def test_defaults(self):
        settings = get_settings()
        code = generate_access_code()
        assert len(code) == 8
        assert set(code) <= set(settings.ACCESS_CODE_ALPHABET)

    def test_alphabet_is_upper_alphanumeric(self):
        alphabet = get_settings().ACCESS_CODE_ALPHABET
        assert len(alphabet) == 36
        assert alphabet == alphabet.upper()

    def test_custom_length_and_alphabet(self):
        code = generate_access_code(length=12, alphabet="AB")
        assert len(code) == 12
        assert set(code) <= {"A", "B"}

    def test_codes_vary(self):
        assert len({generate_access_code() for _ in range(50)}) > 1
