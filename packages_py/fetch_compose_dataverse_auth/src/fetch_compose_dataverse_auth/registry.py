"""
Process-wide pointer to the active session and its Dataverse URL marker.
"""
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .session import DataverseSession

_active_session: Optional["DataverseSession"] = None


def get_active_session() -> Optional["DataverseSession"]:
    """The session created by setup_dataverse(), or None."""
    session = _active_session
    if session is not None and session.closed:
        return None
    return session


def current_dataverse_url() -> Optional[str]:
    """Dataverse URL of the active session, or None when not set up."""
    session = get_active_session()
    return session.dataverse_url if session is not None else None


def set_active_session(session: Optional["DataverseSession"]) -> None:
    global _active_session
    _active_session = session


def clear_active_session(session: "DataverseSession") -> None:
    """Forget ``session`` if it is still the active one."""
    global _active_session
    if _active_session is session:
        _active_session = None
