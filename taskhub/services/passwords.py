"""Password hashing with self-describing hash strings.

Every stored hash starts with ``$<scheme>$`` so that verification can be
dispatched to the scheme that produced it, even after the default scheme
for new hashes changes.
"""

import base64
import hashlib
import hmac
import secrets
from enum import Enum

from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError

from taskhub.config import settings


class UnsupportedHashError(ValueError):
    pass


class HashScheme(str, Enum):
    ARGON2 = "argon2id"
    SCRYPT = "scrypt"


def _b64encode(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii").rstrip("=")


def _b64decode(value: str) -> bytes:
    return base64.b64decode(value + "=" * (-len(value) % 4))


class ScryptHasher:
    n = 32768
    r = 8
    p = 1
    maxmem = 64 * 1024 * 1024
    salt_length = 32
    key_length = 64

    def hash(self, password: str) -> str:
        salt = secrets.token_bytes(self.salt_length)
        digest = hashlib.scrypt(
            password.encode("utf-8"),
            salt=salt,
            n=self.n,
            r=self.r,
            p=self.p,
            maxmem=self.maxmem,
            dklen=self.key_length,
        )
        options = f"N={self.n},r={self.r},p={self.p},maxmem={self.maxmem}"
        return f"${HashScheme.SCRYPT.value}${options}${_b64encode(salt)}${_b64encode(digest)}"

    def verify(self, password: str, encoded: str) -> bool:
        params, salt, expected = self._parse(encoded)
        digest = hashlib.scrypt(
            password.encode("utf-8"),
            salt=salt,
            n=params["N"],
            r=params["r"],
            p=params["p"],
            maxmem=params.get("maxmem", self.maxmem),
            dklen=len(expected),
        )
        return hmac.compare_digest(digest, expected)

    @staticmethod
    def _parse(encoded: str) -> tuple[dict[str, int], bytes, bytes]:
        parts = encoded.split("$")
        if len(parts) != 5 or parts[1] != HashScheme.SCRYPT.value:
            raise ValueError("Malformed scrypt hash")
        _, _, options, salt64, digest64 = parts
        try:
            params = {
                key: int(value)
                for key, value in (item.split("=", 1) for item in options.split(","))
            }
            salt = _b64decode(salt64)
            digest = _b64decode(digest64)
        except ValueError as exc:
            raise ValueError("Malformed scrypt hash") from exc
        if not {"N", "r", "p"} <= params.keys() or not digest:
            raise ValueError("Malformed scrypt hash")
        return params, salt, digest


class Argon2Hasher:
    def __init__(self) -> None:
        self._hasher = PasswordHasher()

    def hash(self, password: str) -> str:
        return self._hasher.hash(password)

    def verify(self, password: str, encoded: str) -> bool:
        try:
            return self._hasher.verify(encoded, password)
        except VerifyMismatchError:
            return False


def hash_scheme_of(encoded: str) -> HashScheme:
    parts = encoded.split("$") if encoded else []
    tag = parts[1] if len(parts) > 2 and parts[0] == "" else ""
    try:
        return HashScheme(tag)
    except ValueError:
        raise UnsupportedHashError(
            f"Unsupported password hash scheme: {tag or '<missing>'}"
        ) from None


class PasswordContext:
    def __init__(self, default_scheme: HashScheme = HashScheme.SCRYPT) -> None:
        self.default_scheme = default_scheme
        self._argon2 = Argon2Hasher()
        self._scrypt = ScryptHasher()

    def hash(self, password: str, scheme: HashScheme | None = None) -> str:
        scheme = scheme or self.default_scheme
        if scheme is HashScheme.ARGON2:
            return self._argon2.hash(password)
        if scheme is HashScheme.SCRYPT:
            return self._scrypt.hash(password)
        raise UnsupportedHashError(f"Unsupported password hash scheme: {scheme}")

    def verify(self, password: str, encoded: str) -> bool:
        scheme = hash_scheme_of(encoded)
        if scheme is HashScheme.ARGON2:
            return self._argon2.verify(password, encoded)
        if scheme is HashScheme.SCRYPT:
            return self._scrypt.verify(password, encoded)
        raise UnsupportedHashError(f"Unsupported password hash scheme: {scheme}")


password_context = PasswordContext(HashScheme(settings.password_hash_scheme))
