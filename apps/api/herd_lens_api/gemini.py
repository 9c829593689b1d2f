from __future__ import annotations

from typing import Any, Protocol

import httpx

from .failures import UpstreamError


class ModelBackend(Protocol):
    async def generate(self, model: str, payload: dict[str, Any]) -> Any: ...

    async def list_models(self) -> list[str]: ...


def _normalize_base_url(url: str) -> str:
    u = url.strip().rstrip("/")
    if len(u) >= 2 and ((u[0] == u[-1] == '"') or (u[0] == u[-1] == "'")):
        u = u[1:-1].strip().rstrip("/")
    if u and not (u.startswith("http://") or u.startswith("https://")):
        u = "https://" + u.lstrip("/")
    return u


def _api_root(base_url: str) -> str:
    # Accept https://host, https://host/v1beta and https://host/v1.
    b = _normalize_base_url(base_url)
    if b.endswith("/v1beta"):
        return b
    if b.endswith("/v1"):
        b = b[: -len("/v1")]
    return f"{b}/v1beta"


def _model_path(model: str) -> str:
    m = (model or "").strip()
    if m.startswith("models/"):
        m = m[len("models/") :]
    return f"models/{m}"


def _clip(s: str, max_len: int = 300) -> str:
    ss = (s or "").strip()
    if len(ss) <= max_len:
        return ss
    return ss[: max_len - 3].rstrip() + "..."


def extract_err_detail(resp: httpx.Response) -> str:
    ctype = (resp.headers.get("content-type") or "").lower()
    try:
        if "application/json" in ctype:
            data = resp.json()
            # Google style: {"error": {"code": 404, "message": "...", "status": "NOT_FOUND"}}
            if isinstance(data, dict) and isinstance(data.get("error"), dict):
                err = data["error"]
                msg = err.get("message")
                status = err.get("status")
                parts = [p for p in (status, msg) if isinstance(p, str) and p.strip()]
                if parts:
                    return _clip(": ".join(parts))
            detail = data.get("detail") if isinstance(data, dict) else None
            if isinstance(detail, str) and detail.strip():
                return _clip(detail)
    except ValueError:
        pass
    # Avoid dumping raw HTML error pages into logs/responses.
    if "text/html" in ctype:
        return "html_error_page"
    return _clip(resp.text)


class GeminiClient:
    """
    Minimal async client for the Gemini REST API (v1beta).

    One httpx.AsyncClient per call; no retries here. Failures raise
    UpstreamError with the HTTP status when there is one.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        *,
        timeout_s: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._root = _api_root(base_url)
        self._timeout_s = timeout_s
        self._transport = transport

    def __repr__(self) -> str:  # pragma: no cover
        return f"GeminiClient(root={self._root!r}, api_key='***')"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout_s,
            trust_env=False,
            transport=self._transport,
        )

    async def _send(self, client: httpx.AsyncClient, method: str, url: str, **kw: Any) -> Any:
        params = dict(kw.pop("params", None) or {})
        params["key"] = self._api_key
        try:
            r = await client.request(method, url, params=params, **kw)
        except httpx.TimeoutException as e:
            raise UpstreamError("gemini_timeout") from e
        except httpx.RequestError as e:
            raise UpstreamError(f"gemini_network_error:{type(e).__name__}") from e

        if r.status_code >= 400:
            detail = extract_err_detail(r)
            msg = f"gemini_http_{r.status_code}"
            if detail:
                msg += f":{detail}"
            raise UpstreamError(msg, status=r.status_code)

        try:
            return r.json()
        except ValueError as e:
            raise UpstreamError("gemini_bad_json", status=r.status_code) from e

    async def generate(self, model: str, payload: dict[str, Any]) -> Any:
        url = f"{self._root}/{_model_path(model)}:generateContent"
        async with self._client() as client:
            return await self._send(client, "POST", url, json=payload)

    async def list_models(self) -> list[str]:
        url = f"{self._root}/models"
        out: list[str] = []
        page_token: str | None = None
        async with self._client() as client:
            while True:
                params: dict[str, Any] = {"pageSize": 1000}
                if page_token:
                    params["pageToken"] = page_token
                data = await self._send(client, "GET", url, params=params)
                models = data.get("models") if isinstance(data, dict) else None
                for m in models or []:
                    if not isinstance(m, dict):
                        continue
                    methods = m.get("supportedGenerationMethods")
                    if isinstance(methods, list) and "generateContent" not in methods:
                        # embedding / tuning-only models can never substitute
                        continue
                    name = m.get("name") or m.get("model") or m.get("id")
                    if isinstance(name, str) and name.strip():
                        out.append(name.strip())
                page_token = data.get("nextPageToken") if isinstance(data, dict) else None
                if not page_token:
                    break
        return out
