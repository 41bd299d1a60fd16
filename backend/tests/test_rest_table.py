import json

import httpx
import pytest

from quicknotes.core.errors import RemoteServiceError
from quicknotes.models.notes import NoteCreate, NoteUpdate
from quicknotes.services.note_service import NoteService
from quicknotes.storage.rest_table import RestNotesTable, parse_content_range, search_filter

ROW = {
    "id": "5f0c6a3e-2b1d-4c1e-9a43-8f2d1f0d9b11",
    "user_id": "U",
    "title": "Groceries",
    "content": "milk, eggs",
    "color": "green",
    "created_at": "2024-05-01T10:00:00.123456+00:00",
    "updated_at": "2024-05-01T10:00:00.123456+00:00",
}


class Recorder:
    def __init__(self, *responses):
        self.requests = []
        self.responses = list(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


def make_table(recorder):
    return RestNotesTable("https://example.supabase.co/", "anon-key", transport=httpx.MockTransport(recorder))


async def test_list_sends_owner_filter_search_sort_and_range():
    rec = Recorder(httpx.Response(206, json=[ROW], headers={"Content-Range": "10-10/11"}))
    service = NoteService(make_table(rec))

    page = await service.list_notes("U", page=2, page_size=10, search="Milk", sort_by="created_at", sort_order="asc")

    req = rec.requests[0]
    assert req.method == "GET"
    assert req.url.path == "/rest/v1/notes"
    assert req.url.params["user_id"] == "eq.U"
    assert req.url.params["or"] == '(title.ilike."*Milk*",content.ilike."*Milk*")'
    assert req.url.params["order"] == "created_at.asc,id.asc"
    assert req.headers["Range"] == "10-19"
    assert req.headers["Prefer"] == "count=exact"
    assert req.headers["apikey"] == "anon-key"
    assert req.headers["Authorization"] == "Bearer anon-key"
    assert page.total == 11
    assert page.items[0].title == "Groceries"


async def test_list_without_search_has_no_or_filter():
    rec = Recorder(httpx.Response(200, json=[], headers={"Content-Range": "*/0"}))
    page = await NoteService(make_table(rec)).list_notes("U")

    assert "or" not in rec.requests[0].url.params
    assert rec.requests[0].url.params["order"] == "updated_at.desc,id.asc"
    assert page.items == [] and page.total == 0


async def test_range_past_the_end_is_an_empty_page():
    rec = Recorder(httpx.Response(416, json={"message": "Requested range not satisfiable"}, headers={"Content-Range": "*/3"}))
    page = await NoteService(make_table(rec)).list_notes("U", page=9)
    assert page.items == []
    assert page.total == 3


async def test_insert_asks_for_the_stored_row():
    rec = Recorder(httpx.Response(201, json=[ROW]))
    note = await NoteService(make_table(rec)).create(NoteCreate(title="Groceries", content="milk, eggs", color="green"), "U")

    req = rec.requests[0]
    assert req.method == "POST"
    assert req.headers["Prefer"] == "return=representation"
    assert json.loads(req.content) == {"title": "Groceries", "content": "milk, eggs", "color": "green", "user_id": "U"}
    assert note.id == ROW["id"]
    assert note.created_at == note.updated_at


async def test_update_filters_on_id_and_owner_and_stamps_updated_at():
    changed = dict(ROW, content="milk, eggs, bread", updated_at="2024-05-01T10:05:00Z")
    rec = Recorder(httpx.Response(200, json=[changed]))
    note = await NoteService(make_table(rec)).update(ROW["id"], "U", NoteUpdate(content="milk, eggs, bread"))

    req = rec.requests[0]
    assert req.method == "PATCH"
    assert req.url.params["id"] == f"eq.{ROW['id']}"
    assert req.url.params["user_id"] == "eq.U"
    body = json.loads(req.content)
    assert body["content"] == "milk, eggs, bread"
    assert "updated_at" in body and "title" not in body
    assert note.updated_at > note.created_at


async def test_mutations_matching_no_row_are_not_found():
    rec = Recorder(httpx.Response(200, json=[]), httpx.Response(200, json=[]))
    table = make_table(rec)
    assert await table.update(ROW["id"], "U", {"title": "x"}) is None
    assert await table.delete(ROW["id"], "U") is False


async def test_select_one_returns_none_for_no_rows():
    rec = Recorder(httpx.Response(200, json=[]))
    assert await NoteService(make_table(rec)).get_by_id(ROW["id"], "U2") is None
    assert rec.requests[0].url.params["user_id"] == "eq.U2"


async def test_http_errors_carry_the_service_message():
    rec = Recorder(httpx.Response(403, json={"code": "42501", "message": "permission denied for table notes"}))
    with pytest.raises(RemoteServiceError, match="Failed to delete note: permission denied for table notes"):
        await NoteService(make_table(rec)).delete(ROW["id"], "U")


async def test_transport_failures_become_remote_service_errors():
    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    table = RestNotesTable("https://example.supabase.co", "k", transport=httpx.MockTransport(boom))
    with pytest.raises(RemoteServiceError, match="connection refused"):
        await table.ping()
    await table.aclose()


def test_search_filter_quotes_reserved_characters():
    assert search_filter("a,b") == '(title.ilike."*a,b*",content.ilike."*a,b*")'
    assert search_filter('say "hi"') == '(title.ilike."*say \\"hi\\"*",content.ilike."*say \\"hi\\"*")'
    assert search_filter("100%") == '(title.ilike."*100\\\\%*",content.ilike."*100\\\\%*")'


@pytest.mark.parametrize(
    "header,expected",
    [("0-9/42", 42), ("*/0", 0), ("0-9/*", None), (None, None), ("garbage", None)],
)
def test_parse_content_range(header, expected):
    assert parse_content_range(header) == expected


def test_search_star_is_sent_as_is():
    # PostgREST has no escape for "*" in ilike values; it stays a wildcard on this backend
    assert search_filter("5*") == '(title.ilike."*5**",content.ilike."*5**")'
