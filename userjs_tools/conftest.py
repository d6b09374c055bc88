import io

import pytest

from userjs_tools.config import Settings
from userjs_tools.console import Console
from userjs_tools.services.profile_manager import ProfileManager

USERJS = """/******
* name: arkenfox user.js
* date: 1 January 2025
* version: 128
******/
user_pref("browser.startup.page", 0); // 0102
/* 0103: set HOME+NEWWINDOW page ***/
user_pref("browser.startup.homepage", "about:blank");
// user_pref("browser.search.suggest.enabled", false);
"""

PREFSJS = """// Mozilla User Preferences

user_pref("app.update.lastUpdateTime", 1700000000);
user_pref("browser.startup.page", 0);
user_pref("browser.startup.homepage", "about:blank");
user_pref("browser.search.suggest.enabled", false);
user_pref("browser.startup.page", 0);
"""


@pytest.fixture
def settings():
    return Settings(color=False, userjs_url='https://example.invalid/user.js')


@pytest.fixture
def stream():
    return io.StringIO()


@pytest.fixture
def console(settings, stream):
    return Console(settings, stream=stream)


@pytest.fixture
def regular_user(monkeypatch):
    """Run the CLIs as if not started with elevated privileges."""
    monkeypatch.setattr('userjs_tools.updater.check_nonroot', lambda: None)
    monkeypatch.setattr('userjs_tools.prefs_cleaner.check_nonroot', lambda: None)
    monkeypatch.setattr(ProfileManager, 'find_root_owned_files', lambda self: [])


@pytest.fixture
def fixed_timestamp(monkeypatch):
    monkeypatch.setattr('userjs_tools.services.profile_manager.timestamp', lambda: '2025-01-02_0304')
    monkeypatch.setattr('userjs_tools.updater.timestamp', lambda: '2025-01-02_0304')
    return '2025-01-02_0304'


@pytest.fixture
def replies(monkeypatch):
    """Feed answers to input(); EOFError once they run out."""
    answers = []

    def fake_input(prompt=''):
        if not answers:
            raise EOFError
        return answers.pop(0)

    monkeypatch.setattr('builtins.input', fake_input)
    return answers


@pytest.fixture
def profile_dir(tmp_path):
    (tmp_path / 'user.js').write_text(USERJS)
    (tmp_path / 'prefs.js').write_text(PREFSJS)
    return tmp_path
