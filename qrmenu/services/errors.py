"""Domain errors raised by the service layer."""


class CatalogError(Exception):
    """Base class for service-level errors."""


class NotFoundError(CatalogError):
    """The requested entity does not exist (or is soft-deleted)."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class PermissionDeniedError(CatalogError):
    """The caller does not own the entity."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"Access denied to {entity} {entity_id}")


class ValidationError(CatalogError):
    """Input is well-formed but not acceptable (e.g. dish from another menu)."""
