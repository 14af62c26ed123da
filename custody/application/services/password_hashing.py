"""Password hashing strategies."""

from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash

from custody.domain.users.repositories import PasswordHasher


class WerkzeugPasswordHasher(PasswordHasher):
    """Salted scrypt hashes; verification compares digests in constant time."""

    def __init__(self, method: str = "scrypt") -> None:
        self._method = method

    def hash(self, password: str) -> str:
        return str(generate_password_hash(password, method=self._method))

    def verify(self, password: str, hashed: str) -> bool:
        try:
            return bool(check_password_hash(hashed, password))
        except ValueError:
            # unparseable stored hash
            return False
