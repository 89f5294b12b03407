# module backend.utils.errors
"""
Taxonomie des erreurs métier du tunnel de commande.

Chaque erreur porte un code HTTP et un message public (sans secret ni détail
interne). Les handlers FastAPI (backend.app_setup.exceptions) les convertissent
en JSON {"error": message}.
"""


class AppError(Exception):
    status_code = 400
    default_message = "Erreur"

    def __init__(self, message: str = "", status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    """Panier ou adresse invalide (corrigeable par le client)."""
    status_code = 400
    default_message = "Requête invalide"


class GatewayError(AppError):
    """Passerelle de paiement mal configurée ou en échec."""
    status_code = 502
    default_message = "Service de paiement indisponible, veuillez réessayer"


class SignatureMismatchError(AppError):
    """Signature de paiement invalide: rejet de sécurité, jamais réessayable."""
    status_code = 400
    default_message = "Vérification du paiement échouée. Signature invalide."


class NotFoundError(AppError):
    status_code = 404
    default_message = "Commande introuvable"


class InvalidStatusError(AppError):
    status_code = 400
    default_message = "Statut invalide"


class PersistenceError(AppError):
    """Échec de lecture ou d'écriture en base (message générique côté client)."""
    status_code = 500
    default_message = "Erreur interne, veuillez réessayer"
