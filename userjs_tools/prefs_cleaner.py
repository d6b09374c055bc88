"""
prefs.js cleaner.

Removes from prefs.js every preference that user.js also declares, so that
preferences dropped from (or commented out in) user.js go back to their
default values.
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from userjs_tools.config import Settings, load_settings
from userjs_tools.console import BOLD_BLUE, Console, OptionParser, configure_logging
from userjs_tools.models.schemas import ExitStatus, ProfileError, UsageError, UserJSError
from userjs_tools.services.pref_reconciler import PrefReconciler
from userjs_tools.services.profile_manager import ProfileManager, atomic_write, check_nonroot, read_text

logger = logging.getLogger(__name__)

PROG = 'prefs-cleaner'

USAGE = f"""
Usage: {PROG} [-p PROFILE] [-s]

Options:
    -p PROFILE   Path to your Firefox profile (if different than the current directory).
    -s           Start immediately.
"""

BANNER = """

                   +--------------------------+
                   |     prefs.js cleaner     |
                   +--------------------------+

This script should be run from your Firefox profile directory.

It will remove any entries from prefs.js that also exist in user.js.
This will allow inactive preferences to be reset to their default values.

This Firefox profile shouldn't be in use during the process.

"""

HELP = """
This script creates a backup of your prefs.js file before doing anything.
It should be safe, but you can follow these steps if something goes wrong:

1. Make sure Firefox is closed.
2. Delete prefs.js in your profile folder.
3. Delete Invalidprefs.js if you have one in the same folder.
4. Rename or copy your latest backup to prefs.js.
5. Run Firefox and see if you notice anything wrong with it.
6. If you do notice something wrong, especially with your extensions, and/or with the UI,
   go to about:support, and restart Firefox with add-ons disabled. Then, restart it again
   normally, and see if the problems were solved.
"""


def parse_options(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = OptionParser(prog=PROG, usage=USAGE, add_help=False)
    parser.add_argument('-p', dest='profile', metavar='PROFILE')
    parser.add_argument('-s', dest='start', action='store_true')
    return parser.parse_args(argv)


class PrefsCleaner:
    def __init__(self, settings: Settings, options: argparse.Namespace, console: Console):
        self.settings = settings
        self.options = options
        self.console = console
        self.profile = ProfileManager(options.profile or Path.cwd())

    def run(self) -> int:
        self.profile.ensure_writable()
        check_nonroot()
        self.console.write(BANNER, BOLD_BLUE)

        if self.options.start:
            return self.start()

        self.console.info('In order to proceed, select a command below '
                          'by entering its corresponding number.\n')
        while True:
            self.console.info('1) Start\n2) Help\n3) Exit')
            reply = self.console.ask('#? ')
            if reply is None or reply == '3':
                return ExitStatus.OK
            if reply == '1':
                return self.start()
            if reply == '2':
                self.console.info(USAGE)
                self.console.info(HELP)
                return ExitStatus.OK

    def wait_until_unlocked(self):
        while self.profile.is_locked():
            self.console.warning('This Firefox profile seems to be in use. Close Firefox and try again.')
            if not self.console.pause('\nPress Enter to continue. '):
                raise ProfileError('This Firefox profile is in use.', ExitStatus.TEMPFAIL)

    def start(self) -> int:
        if not (self.profile.userjs.is_file() and self.profile.prefsjs.is_file()):
            raise ProfileError(
                f"Failed to find both user.js and prefs.js in the profile path: {self.profile.path}.",
                ExitStatus.NOINPUT,
            )
        self.wait_until_unlocked()

        backup = self.profile.backup_prefsjs()
        self.console.ok(f"Your prefs.js has been backed up: {backup}.")
        self.console.info('Cleaning prefs.js...\n')

        removed = self.clean()
        self.console.ok(f"{removed} redundant entries removed from prefs.js.")
        self.console.ok('All done!')
        return ExitStatus.OK

    def clean(self) -> int:
        """Rewrite prefs.js without the entries user.js declares; returns the removed count."""
        result = PrefReconciler().reconcile_overrides(
            read_text(self.profile.userjs), read_text(self.profile.prefsjs)
        )
        for line in result.removed_lines:
            logger.info(f"Removing {line.rstrip()}")

        try:
            atomic_write(self.profile.prefsjs, result.kept_text)
        except OSError as e:
            raise ProfileError(f"Failed to write {self.profile.prefsjs}: {e}", ExitStatus.CANTCREAT)
        return result.removed_count


def main(argv: Optional[List[str]] = None) -> int:
    settings = load_settings()
    configure_logging(settings)
    console = Console(settings)
    try:
        options = parse_options(argv)
        return PrefsCleaner(settings, options, console).run()
    except UserJSError as e:
        console.error(e.message)
        if isinstance(e, UsageError):
            sys.stderr.write(USAGE)
        return e.exit_status
    except KeyboardInterrupt:
        return ExitStatus.SIGINT


if __name__ == '__main__':
    sys.exit(main())
