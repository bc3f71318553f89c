from .auth import login
from .config import ConnectionParams
from .connection import Connection, dial
from .constants import (
    ADD,
    DEFAULT_TIMEOUT,
    DELETE,
    REPLACE,
    SCOPE_BASE_OBJECT,
    SCOPE_DEFAULT,
    SCOPE_SINGLE_LEVEL,
    SCOPE_SUBORDINATE,
    SCOPE_WHOLE_SUBTREE,
)
from .entry import Entry, EntryAttribute, SearchResult
from .errors import (
    ConnectionClosedError,
    ConnectionStateError,
    EmptyPasswordError,
    LDAPError,
    NetworkError,
    ParamError,
)
from .requests import Change, ModifyDNRequest, ModifyRequest, PartialAttribute, SearchRequest
from .session import ConnectionState

__version__ = "1.0.0"
