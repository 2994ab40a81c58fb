"""
Module d'authentification et de gestion des tokens.

Ce module fournit le hachage des mots de passe (passlib) et l'émission/validation des tokens JWT
(PyJWT), exposés derrière deux interfaces étroites (`PasswordHasher`, `TokenIssuer`) afin que les
services ne dépendent d'aucun algorithme particulier.
"""

from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

import jwt
from jwt import InvalidTokenError
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError

from clocwise.domain.entities import Identity

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class TokenData(BaseModel):
    """Données contenues dans un token JWT."""

    sub: str
    email: str


def hash_password(p: str) -> str:
    """Hache un mot de passe en utilisant PBKDF2."""
    return pwd_context.hash(p)


def verify_password(p: str, h: str) -> bool:
    """Vérifie un mot de passe contre son hash (faux si le hash est illisible)."""
    try:
        return pwd_context.verify(p, h)
    except ValueError:
        return False


def create_access_token(
    secret: str, alg: str, expires_in: timedelta, payload: dict[str, Any]
) -> str:
    """Crée un token JWT d'accès avec expiration."""
    to_encode = payload.copy()
    now = datetime.now(UTC)
    to_encode.update({"iat": now, "exp": now + expires_in})
    return jwt.encode(to_encode, secret, algorithm=alg)


def decode_token(token: str, secret: str, alg: str) -> TokenData | None:
    """Décode et valide un token JWT (signature et expiration)."""
    try:
        data = jwt.decode(token, secret, algorithms=[alg])
        return TokenData(**data)
    except (InvalidTokenError, ValidationError, TypeError):
        return None


class PasswordHasher(Protocol):
    """Primitive de hachage opaque."""

    def hash(self, password: str) -> str: ...

    def verify(self, password: str, hashed: str) -> bool: ...


class TokenIssuer(Protocol):
    """Primitive d'émission/validation de jetons opaques."""

    def issue(self, user_id: int, email: str, ttl: timedelta) -> str: ...

    def verify(self, token: str) -> Identity | None: ...


class PasslibPasswordHasher:
    """`PasswordHasher` adossé au contexte passlib du module."""

    def hash(self, password: str) -> str:
        return hash_password(password)

    def verify(self, password: str, hashed: str) -> bool:
        return verify_password(password, hashed)


class JwtTokenIssuer:
    """`TokenIssuer` JWT signé par secret partagé."""

    def __init__(self, secret: str, alg: str = "HS256") -> None:
        self.secret = secret
        self.alg = alg

    def issue(self, user_id: int, email: str, ttl: timedelta) -> str:
        return create_access_token(
            secret=self.secret,
            alg=self.alg,
            expires_in=ttl,
            payload={"sub": str(user_id), "email": email},
        )

    def verify(self, token: str) -> Identity | None:
        data = decode_token(token, self.secret, self.alg)
        if data is None or not data.sub.isdigit():
            return None
        return Identity(user_id=int(data.sub), email=data.email)
