"""Tests for offset pagination over cached collections."""

from organizer.api.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PageParams, to_page


class TestToPage:
    def test_first_page(self) -> None:
        page = to_page(list(range(25)), PageParams(page=0, size=10))

        assert page["content"] == list(range(10))
        assert page["totalElements"] == 25
        assert page["totalPages"] == 3

    def test_last_partial_page(self) -> None:
        page = to_page(list(range(25)), PageParams(page=2, size=10))
        assert page["content"] == [20, 21, 22, 23, 24]

    def test_page_past_end_is_empty(self) -> None:
        page = to_page(list(range(5)), PageParams(page=3, size=10))

        assert page["content"] == []
        assert page["totalElements"] == 5
        assert page["totalPages"] == 1

    def test_empty_collection(self) -> None:
        page = to_page([], PageParams(page=0, size=10))
        assert page == {
            "content": [],
            "page": 0,
            "size": 10,
            "totalElements": 0,
            "totalPages": 0,
        }

    def test_defaults(self) -> None:
        assert DEFAULT_PAGE_SIZE == 10
        assert MAX_PAGE_SIZE == 100


class TestPageParamsValidation:
    def test_size_above_max_is_400(self, client) -> None:
        response = client.get("/calendars", params={"size": MAX_PAGE_SIZE + 1})
        assert response.status_code == 400

    def test_negative_page_is_400(self, client) -> None:
        response = client.get("/calendars", params={"page": -1})

        assert response.status_code == 400
        assert response.json()["messages"][0]["code"] == "ValidationFailed"
