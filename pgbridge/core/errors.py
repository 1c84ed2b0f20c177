import re
from typing import Optional

from sqlalchemy.exc import DBAPIError


# =========================
# Error taxonomy
# =========================
class DbError(Exception):
    """Base class for everything raised by the data-access layer."""


class ConfigurationError(DbError):
    """A schema descriptor cannot support the requested operation."""


class InternalConsistencyError(DbError):
    """A result did not have the shape the calling accessor promises."""


class DatabaseError(DbError):
    """Any database failure that does not follow the @CODE convention."""


class ServerError(DbError):
    """
    Domain error raised by server-side logic.

    Procedures signal these by raising a message such as
    "@OUT-OF-STOCK insufficient inventory"; the boundary layer renders
    error_code / description with http_status.
    """

    def __init__(self, error_code: str, description: str = "", http_status: int = 400):
        super().__init__(description or error_code)
        self.error_code = error_code
        self.description = description
        self.http_status = http_status


# =========================
# Translation
# =========================
# Anything up to the first "@", the code, then an optional description
_SERVER_ERROR_RE = re.compile(r"^[^@]*@([A-Z0-9-]+) *(.*)$", re.DOTALL)


def error_message(exc: BaseException) -> str:
    # SQLAlchemy wraps driver errors and appends the SQL text; the driver's own message is what we want
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


def parse_server_error(message: str) -> Optional[ServerError]:
    match = _SERVER_ERROR_RE.match(message)
    if not match:
        return None
    code, description = match.groups()
    return ServerError(code, description.strip())


def translate_error(exc: BaseException) -> DbError:
    """
    Map a failure raised during execution onto the error taxonomy.

    Returns a ServerError when the message carries an "@CODE description"
    marker, otherwise a DatabaseError holding the original message. Errors
    that already belong to the taxonomy are returned unchanged.
    """
    if isinstance(exc, DbError):
        return exc

    message = error_message(exc)
    return parse_server_error(message) or DatabaseError(message)
