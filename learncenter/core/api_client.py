"""
REST API Client
===============

Thin wrapper around the learning-center REST API. All persistence,
validation and authorization live behind this boundary; the dashboard
only forwards forms and renders results.

Every call returns an ApiResponse instead of raising, so routes can turn
failures straight into flash messages or JSON errors.
"""

import logging
from typing import Any, Dict, Optional

import requests

from .config import get_config_value
from .logging_service import LoggingService

logger = logging.getLogger(__name__)

DEFAULT_ERROR = "An error occurred"
NETWORK_ERROR = "Network error. Please check your connection."
UNEXPECTED_ERROR = "An unexpected error occurred"


class ApiResponse:
    """Result of one API round trip: either data or an error message"""

    def __init__(self, status: int, data: Any = None, error: Optional[str] = None):
        self.status = status
        self.data = data
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def unauthorized(self) -> bool:
        return self.status == 401

    def __repr__(self):
        if self.error:
            return f"<ApiResponse {self.status} error={self.error!r}>"
        return f"<ApiResponse {self.status}>"


def extract_error_message(resp) -> str:
    """Pull the server's message out of an error body"""
    try:
        payload = resp.json()
    except ValueError:
        return DEFAULT_ERROR

    if not isinstance(payload, dict):
        return DEFAULT_ERROR

    message = payload.get('message')
    if isinstance(message, str) and message:
        return message
    if isinstance(message, dict) and message.get('message'):
        return str(message['message'])
    # Validation pipes answer with a list of messages
    if isinstance(message, list) and message:
        return ', '.join(str(m) for m in message)
    return DEFAULT_ERROR


def handle_api_error(error) -> str:
    """Turn an ApiResponse, string or anything else into a user-facing message"""
    if isinstance(error, str):
        return error
    message = getattr(error, 'error', None)
    if isinstance(message, str) and message:
        return message
    return UNEXPECTED_ERROR


def _decode_body(resp):
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text


class ApiClient:
    """HTTP client for the REST API with bearer-token handling"""

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: int = 15,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

        self.auth = AuthApi(self)
        self.admin = AdminResource(self, '/admin', multipart=True)
        self.icon = Resource(self, '/icon', multipart=True)
        self.media = Resource(self, '/media', multipart=True)
        self.message = MessageResource(self, '/message')
        self.phone = Resource(self, '/phone')
        self.social = Resource(self, '/social')
        self.student = Resource(self, '/student', multipart=True)
        self.teacher = Resource(self, '/teacher', multipart=True)
        self.web = WebResource(self, '/web', multipart=True)

    def fork(self) -> 'ApiClient':
        """Same base URL, token and timeout on a fresh connection pool"""
        return ApiClient(self.base_url, token=self.token, timeout=self.timeout)

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def _headers(self, authenticated: bool = True) -> Dict[str, str]:
        headers = {'Accept': 'application/json'}
        if authenticated and self.token:
            headers['Authorization'] = f"Bearer {self.token}"
        return headers

    def _send(self, method: str, endpoint: str, authenticated: bool = True, **kwargs) -> ApiResponse:
        try:
            resp = self.session.request(
                method,
                self._url(endpoint),
                headers=self._headers(authenticated),
                timeout=self.timeout,
                **kwargs
            )
        except requests.RequestException as e:
            logger.warning(f"{method} {endpoint} failed: {e}")
            LoggingService.log_api_call('api', endpoint, method, 0)
            return ApiResponse(0, error=NETWORK_ERROR)

        LoggingService.log_api_call('api', endpoint, method, resp.status_code)

        if resp.status_code >= 400:
            return ApiResponse(resp.status_code, error=extract_error_message(resp))
        return ApiResponse(resp.status_code, data=_decode_body(resp))

    def request(self, endpoint: str, method: str = 'GET', json: Any = None,
                params: Optional[Dict[str, Any]] = None) -> ApiResponse:
        """JSON request with the bearer token attached"""
        return self._send(method, endpoint, json=json, params=params)

    def request_form(self, endpoint: str, data=None, files=None, method: str = 'POST') -> ApiResponse:
        """
        multipart/form-data request

        Args:
            data: dict or list of (key, value) pairs; repeated keys are allowed
            files: dict of field -> (filename, stream, mimetype)
            method: POST or PATCH
        """
        if method not in ('POST', 'PATCH'):
            raise ValueError(f"Form submissions use POST or PATCH, not {method}")

        # Text fields go in as filename-less parts so the body is always
        # multipart, even when no file is attached
        pairs = data.items() if isinstance(data, dict) else (data or [])
        parts = [(key, (None, str(value))) for key, value in pairs if value is not None]
        for key, file_tuple in (files or {}).items():
            parts.append((key, file_tuple))
        return self._send(method, endpoint, files=parts)


class AuthApi:
    """Login/logout against /auth"""

    def __init__(self, client: ApiClient):
        self.client = client

    def login(self, username: str, password: str) -> ApiResponse:
        res = self.client._send('POST', '/auth/login', authenticated=False,
                                json={'username': username, 'password': password})
        if res.error:
            return res
        if res.status not in (200, 201):
            return ApiResponse(res.status, error="Login failed")

        token = (res.data or {}).get('access_token') if isinstance(res.data, dict) else None
        if not token:
            return ApiResponse(res.status, error="Login failed")
        self.client.token = token
        return res

    def logout(self) -> None:
        """Tell the API to drop the session; local credentials are cleared regardless"""
        res = self.client._send('POST', '/auth/logout')
        if res.error:
            logger.info(f"Logout error: {res.error}")
        self.client.token = None


class Resource:
    """Standard REST collection: /<path> and /<path>/<id>"""

    def __init__(self, client: ApiClient, path: str, multipart: bool = False):
        self.client = client
        self.path = path
        self.multipart = multipart

    def get_all(self, params=None) -> ApiResponse:
        return self.client.request(self.path, params=params)

    def get_by_id(self, item_id) -> ApiResponse:
        return self.client.request(f"{self.path}/{item_id}")

    def create(self, data, files=None) -> ApiResponse:
        if self.multipart:
            return self.client.request_form(self.path, data, files, 'POST')
        return self.client.request(self.path, 'POST', json=data)

    def update(self, item_id, data, files=None) -> ApiResponse:
        if self.multipart:
            return self.client.request_form(f"{self.path}/{item_id}", data, files, 'PATCH')
        return self.client.request(f"{self.path}/{item_id}", 'PATCH', json=data)

    def delete(self, item_id) -> ApiResponse:
        return self.client.request(f"{self.path}/{item_id}", 'DELETE')


class AdminResource(Resource):

    def change_password(self, admin_id: int, old_password: str, new_password: str) -> ApiResponse:
        return self.client.request(f"{self.path}/change-password", 'PATCH', json={
            'admin_id': admin_id,
            'old_password': old_password,
            'new_password': new_password,
        })


class MessageResource(Resource):

    def set_checked(self, message_id, checked: bool) -> ApiResponse:
        """Mark an inbound message as read/unread"""
        return self.update(message_id, {'is_checked': bool(checked)})


class WebResource(Resource):
    """Website versions. Updates go multipart when files or pair lists are sent"""

    def update(self, item_id, data, files=None) -> ApiResponse:
        if files or isinstance(data, (list, tuple)):
            return self.client.request_form(f"{self.path}/{item_id}", data, files, 'PATCH')
        return self.client.request(f"{self.path}/{item_id}", 'PATCH', json=data)

    def set_active(self, item_id) -> ApiResponse:
        """Activate a web version (the API deactivates all others)"""
        return self.client.request(f"{self.path}/active/{item_id}", 'POST')


def get_api() -> ApiClient:
    """Client for the current request, carrying the logged-in admin's token"""
    from flask import session

    return ApiClient(
        base_url=get_config_value('API_URL', 'http://localhost:3030'),
        token=session.get('access_token'),
        timeout=int(get_config_value('API_TIMEOUT', 15)),
    )
