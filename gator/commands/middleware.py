"""Handler wrappers."""

from functools import wraps
from typing import Callable

from ..errors import UnauthenticatedError
from ..models import User
from .state import Command, State

AuthenticatedHandler = Callable[[State, Command, User], None]


def logged_in(handler: AuthenticatedHandler) -> Callable[[State, Command], None]:
    """Resolve the current user before calling ``handler``.

    The wrapped handler receives the User as a third argument and is not
    called at all when no current user is configured or the configured
    user no longer exists.
    """

    @wraps(handler)
    def wrapper(state: State, command: Command) -> None:
        name = state.session.current_user_name
        if not name:
            raise UnauthenticatedError("not logged in, run 'gator register <name>' or 'gator login <name>'")

        user = state.queries.get_user(name)
        if user is None:
            raise UnauthenticatedError(
                f"current user {name!r} not found, register a new user or log in as an existing one"
            )

        return handler(state, command, user)

    return wrapper
