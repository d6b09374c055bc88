import difflib
import re
from typing import List

from userjs_tools.services.comment_stripper import iter_stripped_lines

_BLANKS = re.compile(r'[ \t\f\v]+')


def _normalize(line: str) -> str:
    # Changes in the amount of whitespace are not differences
    return _BLANKS.sub(' ', line.rstrip('\r\n')).rstrip()


def code_lines(text: str) -> List[str]:
    return [_normalize(line) for line in iter_stripped_lines(text)]


def diff_userjs(old_text: str, new_text: str,
                old_name: str = 'old/user.js', new_name: str = 'new/user.js') -> str:
    """Unified diff, without context, of the code of two user.js files.

    Returns an empty string when only comments or whitespace differ.
    """
    diff = difflib.unified_diff(
        code_lines(old_text),
        code_lines(new_text),
        fromfile=old_name,
        tofile=new_name,
        n=0,
        lineterm='',
    )
    return '\n'.join(diff)
