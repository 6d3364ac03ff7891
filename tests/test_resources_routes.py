"""
Admin CRUD endpoints for the plain collections
Run with: pytest tests/test_resources_routes.py -v
"""

import io

import pytest

from learncenter.core.api_client import ApiResponse

from conftest import PHONES, login_as


def test_list_items(admin_client, fake_api):
    response = admin_client.get('/admin/phones/api/items')
    assert response.status_code == 200
    assert response.get_json() == PHONES


def test_unknown_resource_is_404(admin_client, fake_api):
    assert admin_client.get('/admin/courses/api/items').status_code == 404


def test_get_item(admin_client, fake_api):
    fake_api.teacher.get_by_id.return_value = ApiResponse(200, {'id': 1, 'name': 'Aziza'})
    response = admin_client.get('/admin/teachers/api/items/1')
    assert response.get_json()['name'] == 'Aziza'
    fake_api.teacher.get_by_id.assert_called_once_with(1)


def test_api_failure_passes_status_through(admin_client, fake_api):
    fake_api.social.get_all.return_value = ApiResponse(503, error='Maintenance')
    response = admin_client.get('/admin/socials/api/items')
    assert response.status_code == 503
    assert response.get_json() == {'error': 'Maintenance'}


def test_network_failure_is_bad_gateway(admin_client, fake_api):
    fake_api.phone.get_all.return_value = ApiResponse(0, error='Network error. Please check your connection.')
    assert admin_client.get('/admin/phones/api/items').status_code == 502


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def test_create_phone(admin_client, fake_api):
    fake_api.phone.create.return_value = ApiResponse(201, {'id': 9, 'phone': '+998 90 123 45 67'})
    response = admin_client.post('/admin/phones/api/items', json={'phone': '+998 90 123 45 67'})
    assert response.status_code == 201
    fake_api.phone.create.assert_called_once_with({'phone': '+998 90 123 45 67'}, {})


def test_empty_phone_is_rejected(admin_client, fake_api):
    response = admin_client.post('/admin/phones/api/items', json={'phone': '   '})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Phone cannot be empty'
    fake_api.phone.create.assert_not_called()


@pytest.mark.parametrize("payload", [
    {'name': 'Telegram', 'url': 'https://t.me/x'},
    {'name': '', 'url': 'https://t.me/x', 'icon_id': 1},
    {'name': 'Telegram', 'url': 'https://t.me/x', 'icon_id': 'tg'},
])
def test_social_needs_name_url_and_icon(admin_client, fake_api, payload):
    response = admin_client.post('/admin/socials/api/items', json=payload)
    assert response.status_code == 400
    fake_api.social.create.assert_not_called()


def test_create_social_coerces_icon_id(admin_client, fake_api):
    fake_api.social.create.return_value = ApiResponse(201, {'id': 3})
    admin_client.post('/admin/socials/api/items',
                      json={'name': 'Telegram', 'url': 'https://t.me/x', 'icon_id': '2'})
    data, files = fake_api.social.create.call_args.args
    assert data['icon_id'] == 2


def test_icon_upload(admin_client, fake_api):
    fake_api.icon.create.return_value = ApiResponse(201, {'id': 4})
    response = admin_client.post(
        '/admin/icons/api/items',
        data={'name': 'telegram', 'file': (io.BytesIO(b'<svg/>'), 'tg.svg', 'image/svg+xml')},
        content_type='multipart/form-data',
    )
    assert response.status_code == 201
    data, files = fake_api.icon.create.call_args.args
    assert data == {'name': 'telegram'}
    assert files['file'][0] == 'tg.svg'
    assert files['file'][2] == 'image/svg+xml'


@pytest.mark.parametrize("form", [
    {'name': 'telegram'},
    {'name': '', 'file': (io.BytesIO(b'x'), 'tg.svg', 'image/svg+xml')},
    {'name': 'telegram', 'file': (io.BytesIO(b'x'), 'tg.pdf', 'application/pdf')},
])
def test_icon_validation(admin_client, fake_api, form):
    response = admin_client.post('/admin/icons/api/items', data=form, content_type='multipart/form-data')
    assert response.status_code == 400
    fake_api.icon.create.assert_not_called()


# ---------------------------------------------------------------------------
# Permissions
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("resource", ['admins', 'teachers', 'students'])
def test_only_super_admin_changes_people(client, fake_api, resource):
    login_as(client, 2)
    assert client.post(f'/admin/{resource}/api/items', data={'name': 'x'}).status_code == 403
    assert client.put(f'/admin/{resource}/api/items/3', data={'name': 'x'}).status_code == 403
    assert client.delete(f'/admin/{resource}/api/items/3').status_code == 403
    # Reading stays open to every admin
    assert client.get(f'/admin/{resource}/api/items').status_code == 200


def test_regular_admin_manages_phones(client, fake_api):
    login_as(client, 2)
    fake_api.phone.delete.return_value = ApiResponse(200, None)
    assert client.delete('/admin/phones/api/items/5').status_code == 200
    fake_api.phone.delete.assert_called_once_with(5)


def test_super_admin_creates_teacher(admin_client, fake_api):
    fake_api.teacher.create.return_value = ApiResponse(201, {'id': 12})
    response = admin_client.post(
        '/admin/teachers/api/items',
        data={'name': 'Sardor', 'role': 'IELTS', 'image': (io.BytesIO(b'jpg'), 'sardor.jpg', 'image/jpeg')},
        content_type='multipart/form-data',
    )
    assert response.status_code == 201
    data, files = fake_api.teacher.create.call_args.args
    assert data == {'name': 'Sardor', 'role': 'IELTS'}
    assert 'image' in files


def test_update_teacher(admin_client, fake_api):
    fake_api.teacher.update.return_value = ApiResponse(200, {'id': 1})
    response = admin_client.patch('/admin/teachers/api/items/1', data={'role': 'Head teacher'})
    assert response.status_code == 200
    item_id, data, files = fake_api.teacher.update.call_args.args
    assert (item_id, data, files) == (1, {'role': 'Head teacher'}, {})


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

def test_messages_cannot_be_created(admin_client, fake_api):
    assert admin_client.post('/admin/messages/api/items', json={'text': 'hi'}).status_code == 405
    assert admin_client.put('/admin/messages/api/items/1', json={'text': 'hi'}).status_code == 405


def test_messages_can_be_deleted(admin_client, fake_api):
    fake_api.message.delete.return_value = ApiResponse(200, None)
    assert admin_client.delete('/admin/messages/api/items/1').status_code == 200


def test_mark_message_checked(admin_client, fake_api):
    fake_api.message.set_checked.return_value = ApiResponse(200, {'id': 1, 'is_checked': False})
    response = admin_client.post('/admin/messages/api/items/1/checked', json={'is_checked': False})
    assert response.get_json()['is_checked'] is False
    fake_api.message.set_checked.assert_called_once_with(1, False)
