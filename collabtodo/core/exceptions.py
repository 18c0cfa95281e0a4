"""
Erreurs métier des services.

Le routeur ne distingue jamais "introuvable" de "pas collaborateur" :
les deux cas lèvent NotFoundError avec le même message.
"""


class StoreError(Exception):
    """Erreur de base, porte un message lisible"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(StoreError):
    """L'entité n'existe pas OU l'utilisateur n'en est pas collaborateur"""

    def __init__(self, entity: str = "Project"):
        super().__init__(f"{entity} not found")
        self.entity = entity


class InvariantViolation(StoreError):
    pass


class StoreValidationError(StoreError):
    pass
