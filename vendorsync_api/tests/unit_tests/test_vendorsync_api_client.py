import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp import test_utils

from shared.utils.constants import NGROK_SKIP_HEADER
from shared.utils.exceptions import ApiRequestException
from vendorsync_api.infrastructure.vendorsync_api_client import VendorSyncApiClient, static_token_provider


class TestVendorSyncApiClient:

    @pytest.fixture
    def requests_seen(self):
        return []

    @pytest_asyncio.fixture
    async def api_server(self, requests_seen):
        """Local aiohttp server standing in for the VendorSync API."""

        async def list_vendors(request):
            requests_seen.append(request)
            return web.json_response({"vendors": [{"id": 1, "name": "Acme"}]})

        async def all_invoices(request):
            requests_seen.append(request)
            return web.json_response([{"id": "i1", "vendorId": "1", "totalAmount": "99.50", "status": "PAID"}])

        async def update_invoice(request):
            requests_seen.append(request)
            body = await request.json()
            return web.json_response({"id": request.match_info["invoice_id"],
                                      "vendorId": request.match_info["vendor_id"], **body})

        async def delete_invoice(request):
            requests_seen.append(request)
            return web.Response(status=204)

        async def broken_performance(request):
            return web.Response(status=500, text="boom")

        async def html_vendor(request):
            return web.Response(status=200, text="<html>tunnel offline</html>", content_type="text/html")

        async def upload(request):
            form = await request.post()
            requests_seen.append(form["file"].filename)
            return web.json_response({"invoice_details": {"invoice_number": {"text": "INV-9"}}})

        app = web.Application()
        app.router.add_get("/vendor", list_vendors)
        app.router.add_get("/vendor/invoice/all", all_invoices)
        app.router.add_post("/vendor/invoice/upload", upload)
        app.router.add_get("/vendor/performance", broken_performance)
        app.router.add_get("/vendor/v-html", html_vendor)
        app.router.add_patch("/vendor/{vendor_id}/invoice/{invoice_id}", update_invoice)
        app.router.add_delete("/vendor/{vendor_id}/invoice/{invoice_id}", delete_invoice)

        server = test_utils.TestServer(app)
        await server.start_server()
        yield server
        await server.close()

    @pytest_asyncio.fixture
    async def api_client(self, api_server):
        client = VendorSyncApiClient(
            base_url=str(api_server.make_url("/")),
            token_provider=static_token_provider("secret-token"),
        )
        yield client
        await client.close()

    @pytest.mark.asyncio
    async def test_get_vendors_unwraps_and_sends_headers(self, api_client, requests_seen):
        vendors = await api_client.get_vendors()

        assert [(v.id, v.name) for v in vendors] == [("1", "Acme")]
        headers = requests_seen[0].headers
        assert headers[NGROK_SKIP_HEADER] == "true"
        assert headers["Authorization"] == "Bearer secret-token"

    @pytest.mark.asyncio
    async def test_get_all_invoices_accepts_bare_array(self, api_client):
        invoices = await api_client.get_all_invoices()

        assert invoices[0].total_amount == 99.5
        assert invoices[0].is_paid

    @pytest.mark.asyncio
    async def test_update_and_delete_invoice(self, api_client, requests_seen):
        updated = await api_client.update_invoice("v1", "i1", {"status": "paid", "paidAt": "2026-10-18T12:00:00Z"})
        deleted = await api_client.delete_invoice("v1", "i1")

        assert updated.id == "i1"
        assert updated.is_paid
        assert deleted is None
        assert [r.method for r in requests_seen] == ["PATCH", "DELETE"]

    @pytest.mark.asyncio
    async def test_error_status_raises_with_body(self, api_client):
        with pytest.raises(ApiRequestException) as exc_info:
            await api_client.get_performance_data()

        assert exc_info.value.status == 500
        assert exc_info.value.body == "boom"
        assert str(exc_info.value) == "Failed to fetch performance data: 500 boom"

    @pytest.mark.asyncio
    async def test_upload_invoice_sends_multipart_file(self, api_client, requests_seen):
        document = await api_client.upload_invoice("scan.pdf", b"%PDF-1.7", "application/pdf")

        assert requests_seen == ["scan.pdf"]
        assert document.invoice_number == "INV-9"

    @pytest.mark.asyncio
    async def test_no_token_means_no_authorization_header(self, api_server, requests_seen):
        client = VendorSyncApiClient(base_url=str(api_server.make_url("/")),
                                     token_provider=static_token_provider(None))
        try:
            await client.get_vendors()
        finally:
            await client.close()

        assert "Authorization" not in requests_seen[0].headers

    @pytest.mark.asyncio
    async def test_non_json_body_raises_api_error(self, api_client):
        with pytest.raises(ApiRequestException) as exc_info:
            await api_client.get_vendor("v-html")

        assert exc_info.value.status is None
        assert str(exc_info.value).startswith("Failed to fetch vendor: ")

    @pytest.mark.asyncio
    async def test_unreachable_host_raises_api_error(self):
        client = VendorSyncApiClient(base_url=f"http://127.0.0.1:{test_utils.unused_port()}",
                                     token_provider=static_token_provider(None))
        try:
            with pytest.raises(ApiRequestException) as exc_info:
                await client.get_vendors()
        finally:
            await client.close()

        assert exc_info.value.status is None
        assert str(exc_info.value).startswith("Failed to fetch vendors: ")
