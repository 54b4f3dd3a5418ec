"""Error taxonomy shared by the HTTP routes and the socket handlers.

Every error carries the HTTP status it maps to and the message shown to the
client. Routes let these propagate to the exception handler registered in
``cerisonet.main``; the realtime bridge turns them into ``error`` events.
"""
from typing import Optional


class CerisonetError(Exception):
    status_code: int = 500
    default_message: str = "Erreur serveur"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(CerisonetError):
    """Missing or malformed fields in a request or event payload."""

    status_code = 400
    default_message = "Données invalides"


class AlreadyLiked(InvalidInput):
    default_message = "Vous avez déjà liké ce post"


class Unauthenticated(CerisonetError):
    status_code = 401
    default_message = "Non authentifié"


class NotFound(CerisonetError):
    status_code = 404
    default_message = "Ressource non trouvée"


class AccountNotFound(NotFound):
    """Unknown email on login. Reported as an authentication failure."""

    status_code = 401
    default_message = "Utilisateur non trouvé"


class InvalidCredential(CerisonetError):
    status_code = 401
    default_message = "Mot de passe incorrect"


class StorageUnavailable(CerisonetError):
    status_code = 500
    default_message = "Erreur de connexion à la base de données"


class PersistenceFailure(CerisonetError):
    status_code = 500
    default_message = "Erreur lors de l'enregistrement"


class Unexpected(CerisonetError):
    status_code = 500
    default_message = "Erreur serveur"
