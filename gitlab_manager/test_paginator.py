"""
Pytest tests for paginator.py (X-Next-Page following).
"""

import pytest

from gitlab_manager.conftest import json_response, paginated
from gitlab_manager.exceptions import RemoteError, TransportError
from gitlab_manager.paginator import fetch_all, next_page


def test_fetch_all_concatenates_pages_in_order(fake_api):
    pages = [
        [{"id": 3}, {"id": 1}],
        [{"id": 2}],
        [{"id": 3}, {"id": 9}],
    ]
    fake_api.route("GET", "/groups", paginated(pages))

    items = fetch_all(fake_api, "/groups", {"min_access_level": 10})

    # Server order is kept as-is: no dedup, no resort.
    assert [i["id"] for i in items] == [3, 1, 2, 3, 9]
    calls = fake_api.calls_to("GET", "/groups")
    assert len(calls) == 3
    assert [c.params["page"] for c in calls] == ["1", "2", "3"]
    assert all(c.params["min_access_level"] == 10 for c in calls)
    assert all(c.params["per_page"] == 100 for c in calls)


def test_single_page_without_next_header(fake_api):
    fake_api.route("GET", "/projects", json_response([{"id": 5}]))

    assert fetch_all(fake_api, "/projects") == [{"id": 5}]
    assert len(fake_api.calls) == 1


def test_empty_collection(fake_api):
    fake_api.route("GET", "/groups", json_response([], headers={"X-Next-Page": ""}))
    assert fetch_all(fake_api, "/groups") == []


def test_failing_page_aborts_without_partial_result(fake_api):
    def handler(params, body):
        if params["page"] == "1":
            return json_response([{"id": 1}], headers={"X-Next-Page": "2"})
        return json_response({"message": "500 Internal Server Error"}, status=500)

    fake_api.route("GET", "/projects", handler)

    with pytest.raises(RemoteError) as ei:
        fetch_all(fake_api, "/projects")

    assert ei.value.status_code == 500
    assert "Internal Server Error" in ei.value.body
    assert len(fake_api.calls) == 2


def test_transport_failure_propagates(fake_api):
    fake_api.route("GET", "/groups", TransportError(endpoint="/groups", message="timed out"))
    with pytest.raises(TransportError):
        fetch_all(fake_api, "/groups")


def test_non_list_page_is_a_remote_error(fake_api):
    fake_api.route("GET", "/groups", json_response({"message": "unexpected"}))
    with pytest.raises(RemoteError):
        fetch_all(fake_api, "/groups")


@pytest.mark.parametrize(
    "headers,expected",
    [
        ({"X-Next-Page": "4"}, "4"),
        ({"X-Next-Page": " "}, None),
        ({"X-Next-Page": ""}, None),
        ({}, None),
    ],
)
def test_next_page(headers, expected):
    assert next_page(headers) == expected
