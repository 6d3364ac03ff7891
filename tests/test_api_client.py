"""
Tests for the REST API client
Run with: pytest tests/test_api_client.py -v
"""

from unittest.mock import MagicMock

import pytest
import requests
from flask import session

from learncenter.core.api_client import (
    NETWORK_ERROR, UNEXPECTED_ERROR, ApiClient, ApiResponse, get_api, handle_api_error,
)


def fake_response(status, payload=None, text=None):
    resp = MagicMock()
    resp.status_code = status
    if payload is not None:
        resp.content = b'{}'
        resp.json.return_value = payload
    else:
        resp.content = (text or '').encode()
        resp.text = text or ''
        resp.json.side_effect = ValueError("no json")
    return resp


@pytest.fixture
def http():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def api(http):
    return ApiClient('http://api.test/', token='tok', timeout=5, session=http)


def sent(http):
    """(method, url, kwargs) of the last request"""
    call = http.request.call_args
    return call.args[0], call.args[1], call.kwargs


def test_get_all_sends_bearer_token(api, http):
    http.request.return_value = fake_response(200, [{'id': 1}])

    res = api.teacher.get_all()

    assert res.ok and res.data == [{'id': 1}]
    method, url, kwargs = sent(http)
    assert (method, url) == ('GET', 'http://api.test/teacher')
    assert kwargs['headers']['Authorization'] == 'Bearer tok'
    assert kwargs['timeout'] == 5


def test_login_stores_token(http):
    client = ApiClient('http://api.test', session=http)
    http.request.return_value = fake_response(201, {'access_token': 'new-token'})

    res = client.auth.login('admin', 'secret')

    assert res.ok
    assert client.token == 'new-token'
    method, url, kwargs = sent(http)
    assert url == 'http://api.test/auth/login'
    assert 'Authorization' not in kwargs['headers']
    assert kwargs['json'] == {'username': 'admin', 'password': 'secret'}


def test_login_without_token_fails(http):
    client = ApiClient('http://api.test', session=http)
    http.request.return_value = fake_response(200, {'user': 'admin'})

    res = client.auth.login('admin', 'secret')

    assert res.error == 'Login failed'
    assert client.token is None


def test_logout_clears_token_even_on_error(api, http):
    http.request.return_value = fake_response(500, {'message': 'down'})
    api.auth.logout()
    assert api.token is None


@pytest.mark.parametrize("payload, expected", [
    ({'message': 'Invalid credentials'}, 'Invalid credentials'),
    ({'message': {'message': 'Nested reason'}}, 'Nested reason'),
    ({'message': ['name should not be empty', 'url must be a URL']},
     'name should not be empty, url must be a URL'),
    ({'statusCode': 400}, 'An error occurred'),
])
def test_error_messages_come_from_the_body(api, http, payload, expected):
    http.request.return_value = fake_response(400, payload)
    res = api.phone.create({'phone': ''})
    assert res.status == 400
    assert res.error == expected


def test_non_json_error_body(api, http):
    http.request.return_value = fake_response(502, text='<html>Bad gateway</html>')
    res = api.phone.get_all()
    assert res.error == 'An error occurred'


def test_network_failure_returns_status_zero(api, http):
    http.request.side_effect = requests.ConnectionError("refused")
    res = api.phone.get_all()
    assert res.status == 0
    assert res.error == NETWORK_ERROR
    assert not res.unauthorized


def test_unauthorized_flag(api, http):
    http.request.return_value = fake_response(401, {'message': 'Unauthorized'})
    assert api.web.get_all().unauthorized


def test_json_resources_send_json(api, http):
    http.request.return_value = fake_response(200, {'id': 3})
    api.social.update(3, {'name': 'Telegram'})
    method, url, kwargs = sent(http)
    assert (method, url) == ('PATCH', 'http://api.test/social/3')
    assert kwargs['json'] == {'name': 'Telegram'}


def test_multipart_resources_send_text_parts_and_files(api, http):
    http.request.return_value = fake_response(201, {'id': 1})
    api.icon.create({'name': 'tg', 'skip': None}, {'file': ('tg.svg', b'<svg/>', 'image/svg+xml')})

    method, url, kwargs = sent(http)
    assert (method, url) == ('POST', 'http://api.test/icon')
    assert kwargs['files'] == [
        ('name', (None, 'tg')),
        ('file', ('tg.svg', b'<svg/>', 'image/svg+xml')),
    ]


def test_form_requests_only_post_or_patch(api):
    with pytest.raises(ValueError):
        api.request_form('/web', {}, method='GET')


def test_web_update_with_pairs_goes_multipart(api, http):
    http.request.return_value = fake_response(200, {'id': 4})
    pairs = [('web_phones[0][phone_id]', '5'), ('web_phones[1][phone_id]', '6')]

    api.web.update(4, pairs, {})

    method, url, kwargs = sent(http)
    assert (method, url) == ('PATCH', 'http://api.test/web/4')
    assert kwargs['files'] == [
        ('web_phones[0][phone_id]', (None, '5')),
        ('web_phones[1][phone_id]', (None, '6')),
    ]


def test_web_set_active(api, http):
    http.request.return_value = fake_response(200, {'id': 4, 'is_active': True})
    api.web.set_active(4)
    method, url, kwargs = sent(http)
    assert (method, url) == ('POST', 'http://api.test/web/active/4')


def test_message_checked_toggle(api, http):
    http.request.return_value = fake_response(200, {'id': 2})
    api.message.set_checked(2, False)
    method, url, kwargs = sent(http)
    assert (method, url) == ('PATCH', 'http://api.test/message/2')
    assert kwargs['json'] == {'is_checked': False}


def test_change_password(api, http):
    http.request.return_value = fake_response(200, {'success': True})
    api.admin.change_password(1, 'old', 'new')
    method, url, kwargs = sent(http)
    assert (method, url) == ('PATCH', 'http://api.test/admin/change-password')
    assert kwargs['json'] == {'admin_id': 1, 'old_password': 'old', 'new_password': 'new'}


def test_empty_body_gives_none(api, http):
    http.request.return_value = fake_response(200, text='')
    res = api.phone.delete(5)
    assert res.ok and res.data is None


def test_handle_api_error_fallbacks():
    assert handle_api_error('plain message') == 'plain message'
    assert handle_api_error(ApiResponse(500, error='Server says no')) == 'Server says no'
    assert handle_api_error(ApiResponse(500, error='')) == UNEXPECTED_ERROR
    assert handle_api_error(object()) == UNEXPECTED_ERROR


def test_get_api_uses_config_and_session_token(app):
    with app.test_request_context('/'):
        session['access_token'] = 'session-token'
        client = get_api()
    assert client.base_url == 'http://api.test'
    assert client.token == 'session-token'


def test_fork_keeps_credentials_on_a_new_session(api, http):
    forked = api.fork()

    assert forked is not api
    assert isinstance(forked.session, requests.Session)
    assert forked.session is not http
    assert (forked.base_url, forked.token, forked.timeout) == ('http://api.test', 'tok', 5)
    forked.session.close()
