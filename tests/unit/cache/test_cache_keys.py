"""Tests for cache key derivation and storage keys."""

from uuid import UUID

import pytest

from organizer.cache.keys import ALL, CacheKeys, key_for
from organizer.cache.registry import CacheName, Scope

CALENDAR_ID = UUID("2f1c6b0e-8d5a-4c3e-9b7a-1d2e3f4a5b6c")


class TestKeyFor:
    """Logical keys are pure functions of the call arguments."""

    def test_all_scope_uses_singleton_token(self) -> None:
        assert key_for(Scope.ALL) == ALL == "ALL"

    def test_all_scope_ignores_id(self) -> None:
        assert key_for(Scope.ALL, CALENDAR_ID) == "ALL"

    @pytest.mark.parametrize("scope", [Scope.BY_ID, Scope.BY_CALENDAR, Scope.BY_CATEGORY])
    def test_scoped_key_is_uuid_string(self, scope: Scope) -> None:
        assert key_for(scope, CALENDAR_ID) == "2f1c6b0e-8d5a-4c3e-9b7a-1d2e3f4a5b6c"

    def test_same_arguments_give_same_key(self) -> None:
        assert key_for(Scope.BY_ID, UUID(str(CALENDAR_ID))) == key_for(Scope.BY_ID, CALENDAR_ID)

    def test_scoped_key_requires_id(self) -> None:
        with pytest.raises(ValueError, match="requires an entity id"):
            key_for(Scope.BY_CALENDAR)


class TestCacheKeys:
    """Storage key format."""

    def test_entry_key(self) -> None:
        key = CacheKeys.entry(CacheName.CALENDAR_EVENTS, str(CALENDAR_ID))
        assert key == f"organizer:calendarEvents:{CALENDAR_ID}"

    def test_entry_key_for_all(self) -> None:
        assert CacheKeys.entry(CacheName.ALL_TASKS, ALL) == "organizer:allTasks:ALL"

    def test_pattern(self) -> None:
        assert CacheKeys.pattern(CacheName.NOTE_BY_ID) == "organizer:noteById:*"
