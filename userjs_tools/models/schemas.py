from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Tuple


class ExitStatus(IntEnum):
	"""Process exit statuses, sysexits(3) style."""

	OK = 0
	FAIL = 1
	USAGE = 2
	DATAERR = 65
	NOINPUT = 66
	UNAVAILABLE = 69
	SOFTWARE = 70
	CANTCREAT = 73
	IOERR = 74
	TEMPFAIL = 75
	NOPERM = 77
	CONFIG = 78
	CNF = 127
	SIGINT = 130


class UserJSError(Exception):
	"""An error reported to the user as ``ERROR: message`` plus an exit status."""

	def __init__(self, message: str, exit_status: int = ExitStatus.FAIL):
		super().__init__(message)
		self.message = message
		self.exit_status = int(exit_status)


class UsageError(UserJSError):
	def __init__(self, message: str):
		super().__init__(message, ExitStatus.USAGE)


class ProfileError(UserJSError):
	pass


class DownloadError(UserJSError):
	def __init__(self, message: str):
		super().__init__(message, ExitStatus.UNAVAILABLE)


@dataclass
class ReconciliationResult:
	kept_lines: List[str] = field(default_factory=list)
	removed_lines: List[str] = field(default_factory=list)

	@property
	def kept_text(self) -> str:
		return "".join(self.kept_lines)

	@property
	def removed_text(self) -> str:
		return "".join(self.removed_lines)

	@property
	def removed_count(self) -> int:
		return len(self.removed_lines)


# Text fields each API route expects in its JSON body
ROUTE_FIELDS: Dict[str, Tuple[str, ...]] = {
	"strip": ("text",),
	"reconcile": ("overrides", "prefs"),
	"diff": ("old", "new"),
}

# Browser preference files stay far below this
MAX_TEXT_LENGTH = 10 * 1024 * 1024


def validate_payload(route: str, data: Any) -> Tuple[bool, Dict[str, str], str]:
	"""Validate the JSON body of an API request.

	Returns (ok, normalized_payload, error_message). Missing fields are an
	error; ``None`` is accepted for an empty text.
	"""
	fields = ROUTE_FIELDS.get(route)
	if fields is None:
		return False, {}, f"Unknown route: {route}"
	if not isinstance(data, dict):
		return False, {}, "JSON object body is required"

	payload: Dict[str, str] = {}
	for name in fields:
		if name not in data:
			return False, payload, f"'{name}' is required"
		value = data[name]
		if value is None:
			value = ""
		if not isinstance(value, str):
			return False, payload, f"'{name}' must be a string"
		if len(value) > MAX_TEXT_LENGTH:
			return False, payload, f"'{name}' is too large"
		payload[name] = value

	return True, payload, ""
