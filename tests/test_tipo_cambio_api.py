import httpx
import pytest
from fastapi.testclient import TestClient

from dolarlempira.main import create_app
from dolarlempira.routers.tipo_cambio import get_indicator_client
from dolarlempira.services.rates.providers import BCHIndicatorClient

PAYLOAD = [
    {"Valor": 24.6512, "Fecha": "2024-01-02T00:00:00"},
    {"Valor": 24.6401, "Fecha": "2024-01-01T00:00:00"},
]


def _client(settings, handler) -> TestClient:
    app = create_app(settings_override=settings)
    app.dependency_overrides[get_indicator_client] = lambda: BCHIndicatorClient(
        settings, transport=httpx.MockTransport(handler)
    )
    return TestClient(app)


def _assert_proxy_headers(resp):
    assert resp.headers["access-control-allow-origin"] == "*"
    assert resp.headers["cache-control"] == "s-maxage=3600, stale-while-revalidate"


def test_get_returns_upstream_payload(settings):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        seen["key"] = request.headers.get("Ocp-Apim-Subscription-Key")
        seen["agent"] = request.headers.get("User-Agent")
        return httpx.Response(200, json=PAYLOAD)

    resp = _client(settings, handler).get("/api/tipo-cambio")

    assert resp.status_code == 200
    assert resp.json() == PAYLOAD
    _assert_proxy_headers(resp)
    assert seen["params"] == {"reciente": "1", "formato": "json", "ordenamiento": "desc"}
    assert seen["key"] == "test-key"
    assert seen["agent"] == "DolarLempira.com/1.0"


def test_options_preflight(settings):
    resp = _client(settings, lambda r: httpx.Response(500)).options("/api/tipo-cambio")
    assert resp.status_code == 200
    assert resp.content == b""
    _assert_proxy_headers(resp)
    assert resp.headers["access-control-allow-methods"] == "GET, OPTIONS"


@pytest.mark.parametrize("method", ["post", "put", "patch", "delete"])
def test_other_methods_rejected(settings, method):
    resp = getattr(_client(settings, lambda r: httpx.Response(200, json=PAYLOAD)), method)(
        "/api/tipo-cambio"
    )
    assert resp.status_code == 405
    assert resp.json() == {"error": "Method not allowed", "allowedMethods": ["GET"]}


def test_missing_api_key_is_500(settings):
    settings.bch_api_key = None
    resp = _client(settings, lambda r: httpx.Response(200, json=PAYLOAD)).get("/api/tipo-cambio")
    body = resp.json()
    assert resp.status_code == 500
    assert body["status"] == 500
    assert body["error"] == "Error al obtener tipo de cambio del BCH"
    assert "BCH_API_KEY" in body["details"]
    assert body["timestamp"]
    _assert_proxy_headers(resp)


def test_upstream_timeout_is_504(settings):
    def handler(request):
        raise httpx.ConnectTimeout("slow", request=request)

    resp = _client(settings, handler).get("/api/tipo-cambio")
    assert resp.status_code == 504
    assert resp.json()["error"] == "Timeout: BCH API no respondió a tiempo"


def test_upstream_unreachable_is_503(settings):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    resp = _client(settings, handler).get("/api/tipo-cambio")
    assert resp.status_code == 503
    assert resp.json()["error"] == "No se pudo conectar con el BCH"


@pytest.mark.parametrize(
    "upstream",
    [
        httpx.Response(401, text="Access denied"),
        httpx.Response(200, json=[]),
        httpx.Response(200, json=[{"Valor": -1, "Fecha": "2024-01-01"}]),
        httpx.Response(200, text="not json"),
    ],
)
def test_bad_upstream_is_500(settings, upstream):
    resp = _client(settings, lambda r: upstream).get("/api/tipo-cambio")
    assert resp.status_code == 500
    assert resp.json()["status"] == 500


def test_details_hidden_in_production(settings):
    settings.environment = "production"
    settings.bch_api_key = None
    resp = _client(settings, lambda r: httpx.Response(200, json=PAYLOAD)).get("/api/tipo-cambio")
    assert resp.status_code == 500
    assert "details" not in resp.json()


def test_unknown_route_uses_error_shape(settings):
    resp = _client(settings, lambda r: httpx.Response(200, json=PAYLOAD)).get("/nope")
    assert resp.status_code == 404
    assert resp.json()["status"] == 404
    assert resp.headers["x-request-id"]


def test_head_rejected_with_proxy_headers(settings):
    resp = _client(settings, lambda r: httpx.Response(200, json=PAYLOAD)).head("/api/tipo-cambio")
    assert resp.status_code == 405
    assert resp.headers["allow"] == "GET, OPTIONS"
    _assert_proxy_headers(resp)
