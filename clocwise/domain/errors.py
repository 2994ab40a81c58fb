"""Taxonomie des erreurs métier.

Chaque erreur porte un `code` stable, un `message` présentable à l'utilisateur et le statut HTTP
équivalent. `BackendUnavailable` est interne: il est intercepté à la frontière du dépôt pour basculer
sur le stockage de secours et ne remonte jamais jusqu'à l'appelant.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Erreur de base du domaine."""

    code = "INTERNAL_ERROR"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        """Initialise l'erreur avec un message (ou le message par défaut)."""
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailure(LedgerError):
    """Entrée manquante ou mal formée."""

    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Invalid input"


class ConflictFailure(LedgerError):
    """Doublon (ex: email déjà utilisé)."""

    code = "CONFLICT"
    status_code = 400
    default_message = "User already exists"


class AuthFailure(LedgerError):
    """Identifiants invalides ou jeton manquant.

    Le message ne distingue jamais « utilisateur inconnu » de « mauvais mot de passe ».
    """

    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Invalid credentials"


class InvalidTokenFailure(AuthFailure):
    """Jeton présent mais invalide ou expiré."""

    code = "FORBIDDEN"
    status_code = 403
    default_message = "Invalid token"


class NotFoundFailure(LedgerError):
    """Enregistrement absent ou non possédé par l'appelant (indiscernables)."""

    code = "NOT_FOUND"
    status_code = 404
    default_message = "Not found"


class BackendUnavailable(LedgerError):
    """Stockage primaire injoignable (connexion, timeout)."""

    code = "SERVICE_UNAVAILABLE"
    status_code = 503
    default_message = "Storage backend unavailable"


class InternalFailure(LedgerError):
    """Erreur inattendue; message générique côté client."""
