"""
Auth provider backed by a GoTrue-compatible REST API.

Endpoints:
  POST /auth/v1/signup
  POST /auth/v1/token?grant_type=password
  GET  /auth/v1/user
  POST /auth/v1/logout
  GET  /auth/v1/admin/users   (service key required)
"""
import logging

import requests

from paytracker.infrastructure.auth.base import AuthError, AuthIdentity, AuthProvider, AuthSession

logger = logging.getLogger(__name__)


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    for key in ("error_description", "msg", "message", "error"):
        if body.get(key):
            return str(body[key])
    return f"HTTP {resp.status_code}"


class HttpAuthProvider(AuthProvider):

    def __init__(self, base_url: str, api_key: str, service_key: str = "", timeout: float = 10.0,
                 http: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.service_key = service_key
        self.timeout = timeout
        self.http = http or requests.Session()

    def _headers(self, bearer: str | None = None) -> dict:
        headers = {"apikey": self.api_key}
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        return headers

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        try:
            return self.http.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.error("Auth provider %s %s failed: %s", method, path, exc)
            raise AuthError(f"Auth provider unreachable: {exc}") from exc

    def _session_from(self, body: dict) -> AuthSession:
        user = body.get("user") or body
        if not user.get("id"):
            raise AuthError("Auth provider returned no user")
        return AuthSession(
            user_id=str(user["id"]),
            email=user.get("email") or "",
            access_token=body.get("access_token") or "",
        )

    def sign_up(self, email: str, password: str) -> AuthSession:
        resp = self._request("POST", "/auth/v1/signup", json={"email": email, "password": password},
                             headers=self._headers())
        if resp.status_code >= 400:
            raise AuthError(_error_message(resp))
        return self._session_from(resp.json())

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        resp = self._request("POST", "/auth/v1/token", params={"grant_type": "password"},
                             json={"email": email, "password": password}, headers=self._headers())
        if resp.status_code >= 400:
            raise AuthError(_error_message(resp))
        return self._session_from(resp.json())

    def get_session(self, access_token: str | None) -> AuthSession | None:
        if not access_token:
            return None
        resp = self._request("GET", "/auth/v1/user", headers=self._headers(access_token))
        if resp.status_code in (401, 403):
            return None
        if resp.status_code >= 400:
            raise AuthError(_error_message(resp))
        user = resp.json()
        return AuthSession(user_id=str(user["id"]), email=user.get("email") or "", access_token=access_token)

    def sign_out(self, access_token: str) -> None:
        resp = self._request("POST", "/auth/v1/logout", headers=self._headers(access_token))
        if resp.status_code >= 400 and resp.status_code != 401:
            raise AuthError(_error_message(resp))

    def list_users(self) -> list[AuthIdentity]:
        if not self.service_key:
            raise AuthError("Listing users requires AUTH_PROVIDER_SERVICE_KEY")
        resp = self._request("GET", "/auth/v1/admin/users", params={"per_page": 1000},
                             headers={"apikey": self.service_key, "Authorization": f"Bearer {self.service_key}"})
        if resp.status_code >= 400:
            raise AuthError(_error_message(resp))
        body = resp.json()
        users = body.get("users", []) if isinstance(body, dict) else body
        return [AuthIdentity(user_id=str(u["id"]), email=u.get("email") or "") for u in users]
