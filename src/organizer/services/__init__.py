"""Organizer services: cached reads, invalidating writes."""

from organizer.services.calendars import CalendarService
from organizer.services.categories import CategoryService
from organizer.services.errors import DuplicateTitleError, EntityNotFoundError, OrganizerError
from organizer.services.records import EventService, NoteService, RecordService, TaskService

__all__ = [
    "CalendarService",
    "CategoryService",
    "RecordService",
    "EventService",
    "TaskService",
    "NoteService",
    "OrganizerError",
    "EntityNotFoundError",
    "DuplicateTitleError",
]
