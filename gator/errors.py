"""Error types raised by gator commands, storage and the aggregator."""


class GatorError(Exception):
    """Base class for errors reported to the user."""


class ValidationError(GatorError):
    """Bad argument count or shape, or an invalid URL."""


class UnauthenticatedError(GatorError):
    """No current user could be resolved."""


class NotFoundError(GatorError):
    """A user, feed or follow row does not exist."""


class UnknownCommandError(NotFoundError):
    """No handler is registered for the command name."""


class NetworkError(GatorError):
    """Transport or connection failure while fetching a feed."""


class HTTPError(GatorError):
    """The feed response could not be read."""


class ParseError(GatorError):
    """The feed body is not a well-formed feed document."""


class PersistenceError(GatorError):
    """A storage operation failed, e.g. a unique key conflict."""


class ConfigError(GatorError):
    """The config file is malformed or cannot be written."""
