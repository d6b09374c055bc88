"""
user.js updater.

Downloads the latest user.js, backs up the profile's copy, replaces it and
appends the user's override files. Optionally writes a diff of the old and
new files with their comments stripped.
"""
import argparse
import logging
import re
import shutil
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

from userjs_tools.config import Settings, load_settings
from userjs_tools.console import BOLD_BLUE, YELLOW, Console, OptionParser, configure_logging
from userjs_tools.models.schemas import ExitStatus, ProfileError, UsageError, UserJSError
from userjs_tools.services.download_service import DownloadService, userjs_file_version, userjs_version
from userjs_tools.services.profile_manager import (
    ProfileManager,
    atomic_write,
    check_nonroot,
    install_defaults,
    list_profiles,
    read_text,
    timestamp,
)
from userjs_tools.services.userjs_diff import diff_userjs

logger = logging.getLogger(__name__)

PROG = 'userjs-updater'

USAGE = f"""
Usage: {PROG} [-h|-r]
       {PROG} [USERJS_OPTION]...

General options:
    -h           Show this help message and exit.
    -r           Only download user.js to a temporary file and open it.

user.js options:
    -p PROFILE   Path to your Firefox profile (if different than the current directory).
                 IMPORTANT: If the path contains spaces, wrap the entire argument in quotes.
    -l           Choose your Firefox profile from a list.
    -s           Silently update user.js.  Do not seek confirmation.
    -c           Create a diff file comparing old and new user.js within userjs_diffs.
    -b           Only keep one backup of each file.
    -e           Activate ESR related preferences.
    -n           Do not append any overrides, even if user-overrides.js exists.
    -o OVERRIDES Filename or path to overrides file (if different than user-overrides.js).
                 If used with -p, paths should be relative to PROFILE or absolute paths.
                 If given a directory, all files inside will be appended recursively.
                 You can pass multiple files or directories by passing a comma separated list.
                 Note: If a directory is given, only files inside ending in the extension .js are appended.
                 IMPORTANT: Do not add spaces between files/paths.  Ex: -o file1.js,file2.js,dir1
                 IMPORTANT: If any file/path contains spaces, wrap the entire argument in quotes.  Ex: -o "override folder"
    -v           Open the resulting user.js file.
"""

BANNER = """
##############################################################################
####                                                                      ####
####                           arkenfox user.js                           ####
####        Hardening the Privacy and Security Settings of Firefox        ####
####                                                                      ####
##############################################################################
"""

ESR_RE = re.compile(r'/\* (ESR[0-9]{2,}\.x still uses all.*)')

DEFAULT_OVERRIDES = 'user-overrides.js'


def build_parser() -> argparse.ArgumentParser:
    parser = OptionParser(prog=PROG, usage=USAGE, add_help=False)
    parser.add_argument('-h', dest='help', action='store_true')
    parser.add_argument('-r', dest='read_only', action='store_true')
    parser.add_argument('-p', dest='profile', metavar='PROFILE')
    parser.add_argument('-l', dest='list_profiles', action='store_true')
    parser.add_argument('-s', dest='silent', action='store_true')
    parser.add_argument('-c', dest='compare', action='store_true')
    parser.add_argument('-b', dest='backup_single', action='store_true')
    parser.add_argument('-e', dest='esr', action='store_true')
    parser.add_argument('-n', dest='no_overrides', action='store_true')
    parser.add_argument('-o', dest='overrides', metavar='OVERRIDES')
    parser.add_argument('-v', dest='view', action='store_true')
    return parser


def parse_options(argv: Optional[List[str]] = None) -> argparse.Namespace:
    options = build_parser().parse_args(argv)
    general = options.help or options.read_only
    others = [name for name, value in vars(options).items()
              if name not in ('help', 'read_only') and value not in (None, False)]
    if general and (others or (options.help and options.read_only)):
        raise UsageError('-h and -r cannot be combined with any other option.')
    return options


def activate_esr(text: str) -> str:
    """Uncomment the ESR-only preference blocks of a user.js."""
    return ESR_RE.sub(r'// \1', text)


def open_file(path: Path) -> int:
    opener = shutil.which('xdg-open') or shutil.which('open')
    if opener is None:
        raise UserJSError('Failed to find xdg-open or open on your system.', ExitStatus.CNF)
    return subprocess.run([opener, str(path)], check=False).returncode


class Updater:
    def __init__(self, settings: Settings, options: argparse.Namespace,
                 console: Console, downloader: Optional[DownloadService] = None):
        self.settings = settings
        self.options = options
        self.console = console
        self.downloader = downloader or DownloadService(settings)
        self.profile: Optional[ProfileManager] = None

    def run(self) -> int:
        if self.options.help:
            print(USAGE)
            return ExitStatus.OK
        if self.options.read_only:
            return self.read_only()

        self.profile = ProfileManager(self.select_profile_path())
        self.profile.ensure_writable()
        check_nonroot()
        self.check_root_owned_files()

        self.console.write(BANNER, BOLD_BLUE)
        self.update_userjs()
        return ExitStatus.OK

    def read_only(self) -> int:
        temp = self.downloader.download_to_temp(self.settings.userjs_url, suffix='.js')
        self.console.ok(f"user.js was saved to the temporary file: {temp}.")
        return open_file(temp)

    def select_profile_path(self) -> Path:
        if self.options.profile:
            return Path(self.options.profile)
        if self.options.list_profiles:
            return self.choose_profile()
        return Path.cwd()

    def choose_profile(self) -> Path:
        ini_path = self.settings.profiles_ini_path
        profiles = list_profiles(ini_path)
        if len(profiles) == 1:
            return profiles[0].path

        while True:
            self.console.info('Profiles found:')
            self.console.info('-' * 30)
            for profile in profiles:
                self.console.info(f"[{profile.section}]")
                for key, value in profile.entries.items():
                    if key not in ('IsRelative', 'Default'):
                        self.console.info(f"{key}={value}")
                self.console.info()
            for line in install_defaults(ini_path):
                self.console.info(line)
            self.console.info('-' * 30)

            reply = self.console.ask(
                'Select the profile number (0 for Profile0, 1 for Profile1, etc; q to quit): '
            )
            self.console.info()
            if reply is None or reply in ('q', 'Q'):
                raise UserJSError('No profile selected.', ExitStatus.FAIL)
            if not reply.isdigit():
                self.console.warning('Invalid input: not a whole number.')
                continue
            for profile in profiles:
                if profile.number == int(reply):
                    return profile.path
            self.console.error(f"Failed to select Profile{reply}.")

    def check_root_owned_files(self):
        owned = self.profile.find_root_owned_files()
        if owned:
            listing = '\n'.join(str(path) for path in owned)
            raise ProfileError(
                'It looks like this script was previously run with elevated privileges. '
                'Please change ownership of the following files to your user and try again:\n'
                + listing,
                ExitStatus.CONFIG,
            )

    def update_userjs(self):
        master_userjs = self.downloader.fetch_userjs()
        userjs = self.profile.userjs

        self.console.info('Please observe the following information:')
        self.console.write("    Firefox profile:  ")
        self.console.write(f"{self.profile.path}\n", YELLOW)
        self.console.write("    Available online: ")
        self.console.write(f"{userjs_version(master_userjs)}\n", YELLOW)
        self.console.write("    Currently using:  ")
        self.console.write(f"{userjs_file_version(userjs)}\n\n\n", YELLOW)

        if not self.options.silent:
            self.console.write(
                'This script will update to the latest user.js file and apply any custom '
                'configurations from the supplied user-overrides.js files. '
            )
            if not self.console.confirm('Continue?'):
                raise UserJSError('Process aborted!', ExitStatus.FAIL)

        old_text = ''
        backup = None
        if userjs.is_file():
            old_text = read_text(userjs)
            backup = self.profile.backup_userjs(single=self.options.backup_single)

        new_text = self.customize_userjs(master_userjs)
        try:
            atomic_write(userjs, new_text)
        except OSError as e:
            raise ProfileError(f"Failed to write {userjs}: {e}", ExitStatus.CANTCREAT)
        logger.info(f"Wrote {userjs} ({len(new_text)} characters)")
        self.console.ok('user.js has been backed up and replaced with the latest version!')

        if self.options.compare:
            self.compare(old_text, new_text, backup)

        if self.options.view:
            open_file(userjs)

    def customize_userjs(self, text: str) -> str:
        if self.options.esr:
            text = activate_esr(text)
            self.console.ok('ESR related preferences have been activated!')

        if not self.options.no_overrides:
            if self.options.overrides:
                names = self.options.overrides.split(',')
            else:
                names = [DEFAULT_OVERRIDES]
            for name in names:
                text = self.append_overrides(text, self.resolve_override(name))
        return text

    def resolve_override(self, name: str) -> Path:
        path = Path(name).expanduser()
        if not path.is_absolute():
            path = self.profile.path / path
        return path.resolve()

    def append_overrides(self, text: str, override: Path) -> str:
        if override.is_file():
            text = text + '\n' + read_text(override)
            self.console.ok(f"Override file appended: {override}.")
        elif override.is_dir():
            for child in sorted(override.glob('*.js')):
                text = self.append_overrides(text, child)
        else:
            self.console.warning(f"Could not find override file: {override}.")
        return text

    def compare(self, old_text: str, new_text: str, backup: Optional[Path]):
        diff = diff_userjs(old_text, new_text,
                           old_name=str(backup or 'user.js'), new_name=str(self.profile.userjs))
        if diff:
            diff_file = self.profile.userjs_diff_dir / f'diff_{timestamp()}.txt'
            try:
                self.profile.userjs_diff_dir.mkdir(parents=True, exist_ok=True)
                atomic_write(diff_file, diff + '\n')
            except OSError as e:
                raise ProfileError(f"Failed to write the diff file {diff_file}: {e}",
                                   ExitStatus.UNAVAILABLE)
            self.console.ok(f"A diff file was created: {diff_file}.")
        else:
            self.console.warning('Your new user.js file appears to be identical. '
                                 'No diff file was created.')
            if backup is not None and not self.options.backup_single:
                backup.unlink()


def main(argv: Optional[List[str]] = None) -> int:
    settings = load_settings()
    configure_logging(settings)
    console = Console(settings)
    try:
        options = parse_options(argv)
        return Updater(settings, options, console).run()
    except UserJSError as e:
        console.error(e.message)
        if isinstance(e, UsageError):
            sys.stderr.write(USAGE)
        return e.exit_status
    except KeyboardInterrupt:
        return ExitStatus.SIGINT


if __name__ == '__main__':
    sys.exit(main())
