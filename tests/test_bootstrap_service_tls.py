from __future__ import annotations

import sys

import lai_bootstrap.service as service


def test_build_ssl_context_prefers_env_bundle(monkeypatch) -> None:
    calls: dict[str, str | None] = {}

    def fake_create_default_context(*, cafile=None):
        calls["cafile"] = cafile
        return object()

    monkeypatch.setattr(service.ssl, "create_default_context", fake_create_default_context)
    monkeypatch.setenv("LAI_BOOTSTRAP_CA_BUNDLE", "/tmp/custom-ca.pem")
    monkeypatch.delenv("LAI_BOOTSTRAP_ALLOW_INSECURE_TLS", raising=False)

    ctx = service._build_ssl_context()
    assert ctx is not None
    assert calls["cafile"] == "/tmp/custom-ca.pem"


def test_build_ssl_context_uses_unverified_flag(monkeypatch) -> None:
    sentinel = object()
    monkeypatch.setenv("LAI_BOOTSTRAP_ALLOW_INSECURE_TLS", "1")
    monkeypatch.delenv("LAI_BOOTSTRAP_CA_BUNDLE", raising=False)
    monkeypatch.setattr(service.ssl, "_create_unverified_context", lambda: sentinel)

    ctx = service._build_ssl_context()
    assert ctx is sentinel


def test_build_ssl_context_uses_certifi_bundle(monkeypatch) -> None:
    calls: dict[str, str | None] = {}

    def fake_create_default_context(*, cafile=None):
        calls["cafile"] = cafile
        return object()

    class FakeCertifi:
        @staticmethod
        def where() -> str:
            return "/tmp/certifi.pem"

    monkeypatch.setattr(service.ssl, "create_default_context", fake_create_default_context)
    monkeypatch.setitem(sys.modules, "certifi", FakeCertifi)
    monkeypatch.delenv("LAI_BOOTSTRAP_ALLOW_INSECURE_TLS", raising=False)
    monkeypatch.delenv("LAI_BOOTSTRAP_CA_BUNDLE", raising=False)

    ctx = service._build_ssl_context()
    assert ctx is not None
    assert calls["cafile"] == "/tmp/certifi.pem"


def test_api_requests_carry_token(monkeypatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_example")
    headers = service._headers(service.release_url("x/y"), "application/vnd.github+json")
    assert headers["Authorization"] == "Bearer ghp_example"
    assert headers["Accept"] == "application/vnd.github+json"


def test_downloads_do_not_carry_token(monkeypatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_example")
    headers = service._headers("https://objects.githubusercontent.com/asset.zip", "*/*")
    assert "Authorization" not in headers
    assert headers["User-Agent"].startswith("LAIBootstrap/")
