import pytest
import requests

from userjs_tools.models.schemas import DownloadError, ExitStatus
from userjs_tools.services.download_service import DownloadService, userjs_file_version, userjs_version


def make_response(status_code, text='', url='https://example.invalid/user.js'):
    response = requests.Response()
    response.status_code = status_code
    response._content = text.encode('utf-8')
    response.encoding = 'utf-8'
    response.url = url
    return response


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []
        self.max_redirects = 30

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.error:
            raise self.error
        return self.response


def test_fetch_text(settings):
    session = FakeSession(make_response(200, 'user_pref("a", 1);\n'))
    service = DownloadService(settings, session=session)
    assert service.fetch_userjs() == 'user_pref("a", 1);\n'
    assert session.calls == [(settings.userjs_url, settings.request_timeout)]
    assert session.max_redirects == 3


def test_http_error_is_unavailable(settings):
    service = DownloadService(settings, session=FakeSession(make_response(404, 'Not Found')))
    with pytest.raises(DownloadError) as excinfo:
        service.fetch_userjs()
    assert excinfo.value.exit_status == ExitStatus.UNAVAILABLE


def test_redirect_status_is_rejected(settings):
    service = DownloadService(settings, session=FakeSession(make_response(304)))
    with pytest.raises(DownloadError):
        service.fetch_userjs()


def test_connection_error_is_unavailable(settings):
    session = FakeSession(error=requests.ConnectionError('no route to host'))
    with pytest.raises(DownloadError) as excinfo:
        DownloadService(settings, session=session).fetch_userjs()
    assert settings.userjs_url in excinfo.value.message


def test_download_to_temp(settings):
    service = DownloadService(settings, session=FakeSession(make_response(200, 'content\n')))
    path = service.download_to_temp(settings.userjs_url, suffix='.js')
    try:
        assert path.suffix == '.js'
        assert path.read_text() == 'content\n'
    finally:
        path.unlink()


def test_userjs_version():
    assert userjs_version('/******\n* name: arkenfox user.js\n* date: x\n* version: 128\n') == '* version: 128'
    assert userjs_version('short\n') == 'Unknown'
    assert userjs_version(None) == 'Unknown'


def test_userjs_file_version(tmp_path):
    assert userjs_file_version(tmp_path / 'user.js') == 'Unknown'
    (tmp_path / 'user.js').write_text('1\n2\n3\n* version: 115\n')
    assert userjs_file_version(tmp_path / 'user.js') == '* version: 115'
