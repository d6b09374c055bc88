import configparser
import logging
import os
import platform
import re
import shutil
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from userjs_tools.models.schemas import ExitStatus, ProfileError

logger = logging.getLogger(__name__)

PROFILE_SECTION_RE = re.compile(r'^Profile[0-9]+$')
# Target of the lock symlink: "<ip>:<pid>" or "<ip>:+<pid>"
LOCK_SIGNATURE_RE = re.compile(r'^(.*):\+?([0-9]+)$')

# Keeps \r\n untouched and bytes that are not valid UTF-8 round-trippable
ENCODING = 'utf-8'
ERRORS = 'surrogateescape'


def read_text(path: Path) -> str:
    with open(path, 'r', encoding=ENCODING, errors=ERRORS, newline='') as f:
        return f.read()


def atomic_write(path: Path, text: str):
    """Replace ``path`` with ``text`` through a temporary file in the same directory."""
    path = Path(path)
    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f'.{path.name}.', suffix='.tmp')
    try:
        with os.fdopen(fd, 'w', encoding=ENCODING, errors=ERRORS, newline='') as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        if path.exists():
            shutil.copymode(path, temp_name)
        os.replace(temp_name, path)
    except BaseException:
        if os.path.exists(temp_name):
            os.unlink(temp_name)
        raise


def timestamp() -> str:
    return datetime.now().strftime('%Y-%m-%d_%H%M')


def check_nonroot():
    if hasattr(os, 'geteuid') and os.geteuid() == 0:
        raise ProfileError(
            "You shouldn't run this with elevated privileges (such as with doas/sudo).",
            ExitStatus.USAGE,
        )


@dataclass
class FirefoxProfile:
    section: str
    path: Path
    is_relative: bool
    entries: Dict[str, str] = field(default_factory=dict)

    @property
    def number(self) -> int:
        return int(self.section[len('Profile'):])


def read_profiles_ini(ini_path: Path) -> configparser.ConfigParser:
    if not ini_path.is_file():
        raise ProfileError(
            f"Failed to find the Firefox profiles.ini file at: {ini_path}.",
            ExitStatus.NOINPUT,
        )
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    parser.optionxform = str
    try:
        parser.read(ini_path, encoding=ENCODING)
    except configparser.Error as e:
        raise ProfileError(f"Failed to parse {ini_path}: {e}", ExitStatus.DATAERR)
    return parser


def list_profiles(ini_path: Path) -> List[FirefoxProfile]:
    """The [ProfileN] sections of profiles.ini, paths made absolute."""
    parser = read_profiles_ini(ini_path)
    profiles = []
    for section in parser.sections():
        if not PROFILE_SECTION_RE.match(section):
            continue
        entries = dict(parser.items(section))
        path = entries.get('Path')
        is_relative = entries.get('IsRelative')
        if not path or is_relative not in ('0', '1'):
            raise ProfileError(
                f"Failed to get the value of the Path or IsRelative key from [{section}].",
                ExitStatus.DATAERR,
            )
        resolved = ini_path.parent / path if is_relative == '1' else Path(path)
        profiles.append(FirefoxProfile(section, resolved, is_relative == '1', entries))

    if not profiles:
        raise ProfileError('Failed to find the profile sections in the INI file.', ExitStatus.DATAERR)
    profiles.sort(key=lambda p: p.number)
    return profiles


def install_defaults(ini_path: Path) -> List[str]:
    """``Default=`` lines of the [Install*] sections (the profiles in use per install)."""
    parser = read_profiles_ini(ini_path)
    return [
        f"Default={parser.get(section, 'Default')}"
        for section in parser.sections()
        if section.startswith('Install') and parser.has_option(section, 'Default')
    ]


class ProfileManager:
    """Paths, backups and checks of one Firefox profile directory."""

    def __init__(self, profile_path):
        self.path = Path(profile_path).expanduser().resolve()

    @property
    def userjs(self) -> Path:
        return self.path / 'user.js'

    @property
    def prefsjs(self) -> Path:
        return self.path / 'prefs.js'

    @property
    def userjs_backup_dir(self) -> Path:
        return self.path / 'userjs_backups'

    @property
    def userjs_diff_dir(self) -> Path:
        return self.path / 'userjs_diffs'

    @property
    def prefsjs_backup_dir(self) -> Path:
        return self.path / 'prefsjs_backups'

    def ensure_writable(self):
        if not (self.path.is_dir() and os.access(self.path, os.W_OK | os.X_OK)):
            raise ProfileError(
                f"The path to your Firefox profile ('{self.path}') failed to be a directory "
                "to which the user has both write and execute access.",
                ExitStatus.UNAVAILABLE,
            )

    def find_root_owned_files(self) -> List[Path]:
        """Files left behind by a previous run with elevated privileges."""
        candidates = [self.userjs]
        for directory in (self.userjs_backup_dir, self.userjs_diff_dir):
            if directory.is_dir():
                candidates.append(directory)
                candidates.extend(sorted(directory.rglob('*')))

        owned = []
        for candidate in candidates:
            try:
                if candidate.lstat().st_uid == 0:
                    owned.append(candidate)
            except FileNotFoundError:
                continue
        return owned

    def is_locked(self) -> bool:
        """Whether a running Firefox holds this profile."""
        parentlock = self.path / '.parentlock'
        if parentlock.is_file() and not parentlock.is_symlink() and _is_fcntl_locked(parentlock):
            return True
        return self._is_symlink_locked()

    def _is_symlink_locked(self) -> bool:
        if platform.system() == 'Darwin':
            symlink_lock = self.path / '.parentlock'
        else:
            symlink_lock = self.path / 'lock'
        if not symlink_lock.is_symlink():
            return False

        signature = LOCK_SIGNATURE_RE.match(os.path.basename(os.readlink(symlink_lock)))
        if not signature:
            raise ProfileError(
                f"Failed to resolve the symlink target signature of the lock file: {symlink_lock}.",
                ExitStatus.DATAERR,
            )
        ip, pid = signature.group(1), int(signature.group(2))
        if ip != '127.0.0.1':
            return True
        return _pid_alive(pid)

    def backup_userjs(self, single: bool = False) -> Path:
        """Copy user.js into userjs_backups/, one file or one per minute."""
        if single:
            backup = self.userjs_backup_dir / 'user.js.backup'
        else:
            backup = self.userjs_backup_dir / f'user.js.backup.{timestamp()}'
        try:
            self.userjs_backup_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(self.userjs, backup)
        except OSError as e:
            raise ProfileError(f"Failed to backup user.js: {backup}. {e}", ExitStatus.CANTCREAT)
        logger.info(f"Backed up {self.userjs} to {backup}")
        return backup

    def backup_prefsjs(self) -> Path:
        backup = self.prefsjs_backup_dir / f'prefs.js.backup.{timestamp()}'
        try:
            self.prefsjs_backup_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(self.prefsjs, backup)
        except OSError as e:
            raise ProfileError(f"Failed to backup prefs.js: {backup}. {e}", ExitStatus.CANTCREAT)
        logger.info(f"Backed up {self.prefsjs} to {backup}")
        return backup


def _is_fcntl_locked(path: Path) -> bool:
    import fcntl

    try:
        f = open(path, 'a')
    except OSError as e:
        logger.warning(f"Cannot open {path} to probe the profile lock: {e}")
        return False
    with f:
        try:
            fcntl.lockf(f, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            return True
        fcntl.lockf(f, fcntl.LOCK_UN)
    return False


def _pid_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True
