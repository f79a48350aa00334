import httpx
import pytest
import respx

from catalogueur.api.fetcher import FetchResponse, PageFetcher, parse_cookie_header, parse_html


@pytest.mark.unit
def test_parse_cookie_header():
    assert parse_cookie_header("sessionid=abc123; csrftoken = xyz ; flag; =orphan") == {
        "sessionid": "abc123",
        "csrftoken": "xyz",
    }
    assert parse_cookie_header("") == {}


@pytest.mark.unit
def test_fetch_response_flags():
    assert FetchResponse("u", "u", 200, "  \n").is_blank
    assert not FetchResponse("u", "u", 200, "<html/>").is_blank
    assert FetchResponse("u", "u", 204).ok
    assert not FetchResponse("u", "u", 0).ok


@pytest.mark.unit
def test_parse_html_resolves_relative_links():
    doc = parse_html('<html><body><a href="/x">x</a></body></html>', "https://shop.test/list")
    doc.make_links_absolute()
    assert doc.xpath("//a/@href") == ["https://shop.test/x"]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_fetch_follows_redirects_and_reports_final_url():
    with respx.mock() as mock:
        mock.get("https://shop.test/old").respond(301, headers={"Location": "https://shop.test/new"})
        mock.get("https://shop.test/new").respond(200, text="<html>moved</html>")

        async with PageFetcher() as fetcher:
            response = await fetcher.fetch("https://shop.test/old")

    assert response.url == "https://shop.test/old"
    assert response.final_url == "https://shop.test/new"
    assert response.status_code == 200
    assert response.content == "<html>moved</html>"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_fetch_sends_cookies_and_user_agent():
    with respx.mock() as mock:
        route = mock.get("https://shop.test/account").respond(200, text="ok")

        async with PageFetcher(cookies={"session": "s3cret"}, user_agent="catalogueur-test") as fetcher:
            await fetcher.fetch("https://shop.test/account")

    request = route.calls.last.request
    assert request.headers["User-Agent"] == "catalogueur-test"
    assert "session=s3cret" in request.headers["Cookie"]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_transport_error_returns_blank_response():
    with respx.mock() as mock:
        mock.get("https://shop.test/down").mock(side_effect=httpx.ConnectError("refused"))

        async with PageFetcher() as fetcher:
            response = await fetcher.fetch("https://shop.test/down")

    assert response.status_code == 0
    assert response.is_blank


@pytest.mark.integration
@pytest.mark.asyncio
async def test_fetch_page_source_is_blank_for_error_status():
    with respx.mock() as mock:
        mock.get("https://shop.test/missing").respond(404, text="<html>not found</html>")
        mock.get("https://shop.test/page").respond(200, text="<html>page</html>")

        async with PageFetcher() as fetcher:
            assert await fetcher.fetch_page_source("https://shop.test/missing") == ""
            assert await fetcher.fetch_page_source("https://shop.test/page") == "<html>page</html>"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_shared_client_is_not_closed():
    async with httpx.AsyncClient() as client:
        async with PageFetcher(client=client):
            pass
        assert not client.is_closed
