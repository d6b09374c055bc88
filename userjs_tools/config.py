import os
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

USERJS_URL = 'https://raw.githubusercontent.com/arkenfox/user.js/master/user.js'


def default_profiles_ini() -> Path:
    """Location of Firefox's profiles.ini on this machine."""
    home = Path.home()
    if platform.system() == 'Darwin':
        return home / 'Library' / 'Application Support' / 'Firefox' / 'profiles.ini'
    return home / '.mozilla' / 'firefox' / 'profiles.ini'


def _env_flag(name: str) -> bool:
    value = os.getenv(name)
    if value is None:
        return False
    return value.strip().lower() not in ('', '0', 'false', 'no', 'off')


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


@dataclass(frozen=True)
class Settings:
    userjs_url: str = USERJS_URL
    request_timeout: int = 30
    max_redirects: int = 3
    profiles_ini: Optional[Path] = None
    log_level: str = 'WARNING'
    color: bool = True
    api_host: str = '127.0.0.1'
    api_port: int = 5000

    @property
    def profiles_ini_path(self) -> Path:
        return self.profiles_ini or default_profiles_ini()


def load_settings(dotenv_path: Optional[str] = None) -> Settings:
    """Build Settings from the environment (and a .env file, if any)."""
    load_dotenv(dotenv_path)

    profiles_ini = os.getenv('USERJS_PROFILES_INI')
    return Settings(
        userjs_url=os.getenv('USERJS_URL') or USERJS_URL,
        request_timeout=_env_int('USERJS_REQUEST_TIMEOUT', 30),
        max_redirects=_env_int('USERJS_MAX_REDIRECTS', 3),
        profiles_ini=Path(profiles_ini).expanduser() if profiles_ini else None,
        log_level=(os.getenv('USERJS_LOG_LEVEL') or 'WARNING').upper(),
        color=not (_env_flag('USERJS_NO_COLOR') or 'NO_COLOR' in os.environ),
        api_host=os.getenv('USERJS_API_HOST') or '127.0.0.1',
        api_port=_env_int('USERJS_API_PORT', 5000),
    )
