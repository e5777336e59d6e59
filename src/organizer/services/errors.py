"""Domain errors raised by organizer services.

The API layer maps them to HTTP results; services never build responses.
"""

from __future__ import annotations

from uuid import UUID


class OrganizerError(Exception):
    """Base class for domain errors."""


class EntityNotFoundError(OrganizerError):
    def __init__(self, family: str, entity_id: UUID):
        self.family = family
        self.entity_id = entity_id
        super().__init__(f"{family.capitalize()} with id {entity_id} not found")


class DuplicateTitleError(OrganizerError):
    def __init__(self, family: str, title: str):
        self.family = family
        self.title = title
        super().__init__(f"{family.capitalize()} with title '{title}' already exists")
