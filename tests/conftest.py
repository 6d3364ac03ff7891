from unittest.mock import MagicMock, patch

import jwt
import pytest
from flask import Flask

from learncenter import LearnCenter
from learncenter.core.api_client import ApiResponse


def make_token(admin_id, claim='sub'):
    """Token as the API issues it, carrying the admin id in `claim`"""
    return jwt.encode({claim: str(admin_id)}, 'api-signing-key', algorithm='HS256')


TEACHERS = [
    {'id': 1, 'name': 'Aziza', 'surname': 'Karimova', 'role': 'IELTS'},
    {'id': 2, 'name': 'Bekzod', 'surname': 'Nazarov', 'role': 'Grammar'},
    {'id': 3, 'name': 'Dilnoza', 'surname': None, 'role': 'Speaking'},
]

STUDENTS = [
    {'id': 10, 'name': 'Jasur', 'surname': 'Aliyev', 'course': 'IELTS 7.5'},
    {'id': 11, 'name': 'Malika', 'surname': 'Saidova', 'cefr': 'C1'},
]

MEDIA = [
    {'id': 100, 'url': '/uploads/a.jpg', 'is_video': False},
    {'id': 101, 'url': '/uploads/b.mp4', 'is_video': True},
    {'id': 102, 'url': '/uploads/c.jpg', 'is_video': False},
]

PHONES = [{'id': 5, 'phone': '+998 90 000 00 01'}, {'id': 6, 'phone': '+998 90 000 00 02'}]

SOCIALS = [
    {'id': 7, 'name': 'Telegram', 'url': 'https://t.me/x', 'icon': {'id': 1, 'url': '/icons/tg.svg'}},
    {'id': 8, 'name': 'Instagram', 'url': 'https://instagram.com/x', 'icon_url': '/icons/ig.svg'},
]

VERSION = {
    'id': 4,
    'is_active': True,
    'header_h1_en': 'Learn English',
    'header_h1_uz': '',
    'total_students': 1200,
    'header_img': '/uploads/header.jpg',
    'main_phone': {'id': 5, 'phone': '+998 90 000 00 01'},
    'web_phones': [{'phone_id': 6}],
    'web_socials': [{'social_id': 7}],
    'web_teachers': [
        {'order': 2, 'teacher_id': 1, 'teacher': TEACHERS[0]},
    ],
    'web_students': [
        {'order': 1, 'student_id': 11, 'student': STUDENTS[1]},
    ],
    'web_media': [
        {'order': 1, 'size': '1x1', 'media_id': 100, 'media': MEDIA[0]},
        {'order': 3, 'size': '1x2', 'media_id': 100, 'media': MEDIA[0]},
    ],
}


def make_fake_api(version=None):
    """MagicMock shaped like ApiClient with every list call answering 200"""
    api = MagicMock()
    for name in ('admin', 'icon', 'media', 'student', 'teacher', 'web'):
        getattr(api, name).multipart = True
    for name in ('message', 'phone', 'social'):
        getattr(api, name).multipart = False

    api.teacher.get_all.return_value = ApiResponse(200, TEACHERS)
    api.student.get_all.return_value = ApiResponse(200, STUDENTS)
    api.media.get_all.return_value = ApiResponse(200, MEDIA)
    api.phone.get_all.return_value = ApiResponse(200, PHONES)
    api.social.get_all.return_value = ApiResponse(200, SOCIALS)
    api.message.get_all.return_value = ApiResponse(200, [])
    api.admin.get_all.return_value = ApiResponse(200, [{'id': 1, 'username': 'admin'}])
    api.icon.get_all.return_value = ApiResponse(200, [])
    api.web.get_all.return_value = ApiResponse(200, [VERSION])
    api.web.get_by_id.return_value = ApiResponse(200, version or VERSION)
    api.web.update.return_value = ApiResponse(200, {'id': 4})
    api.web.create.return_value = ApiResponse(201, {'id': 9})
    api.fork.return_value = api
    return api


@pytest.fixture
def app():
    """Flask app with every learning center module registered"""
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret"
    app.config["API_URL"] = "http://api.test"
    LearnCenter(app)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def fake_api():
    """Fake API client patched into every module that calls get_api()"""
    api = make_fake_api()
    with patch('learncenter.modules.dashboard.routes.get_api', return_value=api), \
            patch('learncenter.modules.resources.routes.get_api', return_value=api), \
            patch('learncenter.modules.versions.routes.get_api', return_value=api):
        yield api


def login_as(client, admin_id=1, username='admin'):
    with client.session_transaction() as sess:
        sess['access_token'] = make_token(admin_id)
        sess['admin_id'] = admin_id
        sess['admin_username'] = username


@pytest.fixture
def admin_client(client):
    """Client signed in as the super admin"""
    login_as(client, 1)
    return client
