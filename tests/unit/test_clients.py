"""
Tests for collaborator clients.

Tests cover:
- Thanos query building and response parsing
- OneOps scale-down submission and handle mapping
- Elasticsearch index creation, appends and flushes
- In-memory implementations
"""

import json

import httpx
import pytest

from config.settings import AuditSettings, OneOpsSettings, ThanosSettings
from scaledown.core.errors import AuditStoreError, DeploymentError, MonitoringError
from scaledown.core.models import DeploymentHandle, UtilizationSample
from scaledown.clients.base import MonitoringClient
from scaledown.clients.oneops import OneOpsClient
from scaledown.clients.search import SearchAuditStore
from scaledown.clients.thanos import ThanosClient


def vector_response(*results) -> dict:
    return {"status": "success", "data": {"resultType": "vector", "result": list(results)}}


def cloud_result(cloud: str, value: str) -> dict:
    return {"metric": {"cloud": cloud, "nsPath": "/a/manifest/p/1"}, "value": [1704067200, value]}


# =============================================================================
# Thanos Client Tests
# =============================================================================


class TestThanosClient:
    """Tests for ThanosClient."""

    def test_is_monitoring_client(self):
        assert issubclass(ThanosClient, MonitoringClient)

    def test_build_query(self):
        client = ThanosClient("http://thanos")

        assert client.build_query("/acme/shop/prod/manifest/web/1") == (
            'oneops_cloud_reclaim_vms{nsPath="/acme/shop/prod/manifest/web/1"}'
        )

    def test_build_query_escapes_quotes(self):
        client = ThanosClient("http://thanos")

        assert client.build_query('/a"b') == 'oneops_cloud_reclaim_vms{nsPath="/a\\"b"}'

    def test_from_settings(self):
        settings = ThanosSettings(url="http://thanos:9090", reclaim_metric="reclaim", cloud_label="zone")
        client = ThanosClient.from_settings(settings)

        assert client.thanos_url == "http://thanos:9090"
        assert client.reclaim_metric == "reclaim"
        assert client.cloud_label == "zone"

    @pytest.mark.asyncio
    async def test_get_stats(self):
        """Test mapping a vector response to samples, in order."""
        seen_queries = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v1/query"
            seen_queries.append(request.url.params["query"])
            return httpx.Response(
                200, json=vector_response(cloud_result("dal1", "5"), cloud_result("dfw2", "3.0"))
            )

        client = ThanosClient("http://thanos", transport=httpx.MockTransport(handler))
        stats = await client.get_stats("/acme/shop/prod/manifest/web/1")
        await client.close()

        assert stats == [
            UtilizationSample(cloud_id="dal1", reclaimable_vm_count=5),
            UtilizationSample(cloud_id="dfw2", reclaimable_vm_count=3),
        ]
        assert seen_queries == ['oneops_cloud_reclaim_vms{nsPath="/acme/shop/prod/manifest/web/1"}']

    @pytest.mark.asyncio
    async def test_empty_result(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=vector_response()))
        client = ThanosClient("http://thanos", transport=transport)

        assert await client.get_stats("/x") == []

    @pytest.mark.asyncio
    async def test_http_error_raises_monitoring_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503, text="unavailable"))
        client = ThanosClient("http://thanos", transport=transport)

        with pytest.raises(MonitoringError):
            await client.get_stats("/x")

    @pytest.mark.asyncio
    async def test_query_error_raises_monitoring_error(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"status": "error", "error": "bad query"})
        )
        client = ThanosClient("http://thanos", transport=transport)

        with pytest.raises(MonitoringError, match="bad query"):
            await client.get_stats("/x")

    @pytest.mark.asyncio
    async def test_malformed_result_raises_monitoring_error(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json=vector_response({"metric": {}, "value": [0, "1"]}))
        )
        client = ThanosClient("http://thanos", transport=transport)

        with pytest.raises(MonitoringError):
            await client.get_stats("/x")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            [vector_response(cloud_result("dal1", "1"))],
            {"status": "success", "data": None},
            {"status": "success", "data": {"resultType": "vector", "result": None}},
            vector_response(cloud_result("dal1", "+Inf")),
            vector_response(cloud_result("dal1", "-Inf")),
            vector_response(cloud_result("dal1", "NaN")),
        ],
    )
    async def test_unexpected_payload_raises_monitoring_error(self, body):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))
        client = ThanosClient("http://thanos", transport=transport)

        with pytest.raises(MonitoringError):
            await client.get_stats("/x")

    @pytest.mark.asyncio
    async def test_transport_error_raises_monitoring_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = ThanosClient("http://thanos", transport=httpx.MockTransport(handler))

        with pytest.raises(MonitoringError):
            await client.get_stats("/x")


# =============================================================================
# OneOps Client Tests
# =============================================================================


class TestOneOpsClient:
    """Tests for OneOpsClient."""

    def test_from_settings(self):
        client = OneOpsClient.from_settings(OneOpsSettings(url="http://oneops/rest", timeout=5.0))

        assert client.base_url == "http://oneops/rest"
        assert client.timeout == 5.0

    @pytest.mark.asyncio
    async def test_submit_scale_down(self):
        """Test the request sent and the handle returned."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"deploymentId": 42, "deploymentState": "active"})

        client = OneOpsClient("http://oneops/rest", transport=httpx.MockTransport(handler))
        handle = await client.submit_scale_down(101, 3, "OneOps-ScaleDown")
        await client.close()

        assert handle == DeploymentHandle(deployment_id=42)
        request = requests[0]
        assert request.method == "POST"
        assert request.url.path == "/rest/platforms/101/scaledown"
        assert request.headers["X-Cms-User"] == "OneOps-ScaleDown"
        assert json.loads(request.content) == {"scaleDownBy": 3}

    @pytest.mark.asyncio
    async def test_empty_body_means_no_deployment(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b""))
        client = OneOpsClient("http://oneops", transport=transport)

        assert await client.submit_scale_down(1, 1, "u") is None

    @pytest.mark.asyncio
    async def test_missing_deployment_id_means_no_deployment(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={}))
        client = OneOpsClient("http://oneops", transport=transport)

        assert await client.submit_scale_down(1, 1, "u") is None

    @pytest.mark.asyncio
    async def test_zero_deployment_id_returned_as_is(self):
        """Test that validation of the id is left to the coordinator."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"deploymentId": 0}))
        client = OneOpsClient("http://oneops", transport=transport)

        handle = await client.submit_scale_down(1, 1, "u")

        assert handle == DeploymentHandle(0)
        assert handle.is_valid is False

    @pytest.mark.asyncio
    async def test_rejection_raises_deployment_error(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(409, json={"message": "open release exists"})
        )
        client = OneOpsClient("http://oneops", transport=transport)

        with pytest.raises(DeploymentError, match="409"):
            await client.submit_scale_down(1, 1, "u")

    @pytest.mark.asyncio
    async def test_invalid_id_raises_deployment_error(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"deploymentId": "abc"})
        )
        client = OneOpsClient("http://oneops", transport=transport)

        with pytest.raises(DeploymentError):
            await client.submit_scale_down(1, 1, "u")


# =============================================================================
# Search Audit Store Tests
# =============================================================================


class TestSearchAuditStore:
    """Tests for SearchAuditStore."""

    def test_from_settings(self):
        store = SearchAuditStore.from_settings(AuditSettings(url="http://es:9200"))

        assert store.url == "http://es:9200"

    @pytest.mark.asyncio
    async def test_create_index(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"acknowledged": True})

        store = SearchAuditStore("http://es:9200", transport=httpx.MockTransport(handler))
        await store.create_index("ooscaledown", {"mappings": {}})
        await store.close()

        assert requests[0].method == "PUT"
        assert requests[0].url.path == "/ooscaledown"
        assert json.loads(requests[0].content) == {"mappings": {}}

    @pytest.mark.asyncio
    async def test_create_existing_index_is_success(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(
                400,
                json={"error": {"type": "resource_already_exists_exception"}, "status": 400},
            )
        )
        store = SearchAuditStore("http://es:9200", transport=transport)

        await store.create_index("ooscaledown", {})

    @pytest.mark.asyncio
    async def test_create_index_failure(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(400, json={"error": {"type": "mapper_parsing_exception"}})
        )
        store = SearchAuditStore("http://es:9200", transport=transport)

        with pytest.raises(AuditStoreError):
            await store.create_index("ooscaledown", {})

    @pytest.mark.asyncio
    async def test_append(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(201, json={"result": "created"})

        store = SearchAuditStore("http://es:9200", transport=httpx.MockTransport(handler))
        await store.append("ooscaledown", "platform", {"potential_reclaim_count": 6})

        assert requests[0].method == "POST"
        assert requests[0].url.path == "/ooscaledown/_doc"
        assert json.loads(requests[0].content) == {
            "doc_type": "platform",
            "potential_reclaim_count": 6,
        }

    @pytest.mark.asyncio
    async def test_append_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        store = SearchAuditStore("http://es:9200", transport=httpx.MockTransport(handler))

        with pytest.raises(AuditStoreError):
            await store.append("ooscaledown", "platform", {})

    @pytest.mark.asyncio
    async def test_flush(self):
        paths = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200, json={"_shards": {"failed": 0}})

        store = SearchAuditStore("http://es:9200", transport=httpx.MockTransport(handler))
        await store.flush("ooscaledown")

        assert paths == ["/ooscaledown/_flush"]

    @pytest.mark.asyncio
    async def test_flush_failure(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))
        store = SearchAuditStore("http://es:9200", transport=transport)

        with pytest.raises(AuditStoreError):
            await store.flush("ooscaledown")


# =============================================================================
# In-Memory Implementation Tests
# =============================================================================


class TestInMemoryClients:
    """Tests for the in-memory collaborators."""

    @pytest.mark.asyncio
    async def test_mock_deployment_ids_increase(self, deployment_client):
        first = await deployment_client.submit_scale_down(1, 2, "u")
        second = await deployment_client.submit_scale_down(2, 2, "u")

        assert (first.deployment_id, second.deployment_id) == (1, 2)

    @pytest.mark.asyncio
    async def test_mock_monitoring_failure(self, monitoring_client):
        monitoring_client.set_should_fail("/x")

        with pytest.raises(MonitoringError):
            await monitoring_client.get_stats("/x")

    @pytest.mark.asyncio
    async def test_in_memory_store_appends(self, audit_store):
        await audit_store.create_index("idx", {"mappings": {}})
        await audit_store.append("idx", "platform", {"a": 1})
        await audit_store.append("idx", "platform", {"a": 1})

        assert audit_store.get_documents("idx") == [
            {"doc_type": "platform", "a": 1},
            {"doc_type": "platform", "a": 1},
        ]
