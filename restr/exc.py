"""

    restr.exc -- exceptions and status translation
    ==============================================

"""

import logging

from webob.util import status_reasons

__all__ = (
    'RestrError', 'ConfigurationError', 'RequestError',
    'DuplicateAttributeError', 'DuplicateResourceError',
    'UnknownResourceError', 'InvalidRoutePattern', 'UnknownTargetError',
    'RegistryFrozen', 'NotFoundError', 'UnauthorizedError', 'ForbiddenError',
    'ValidationError', 'ReadonlyAttributeWriteError', 'AttributeAccessError',
    'RouteNotFoundError', 'NoURLPatternMatched', 'MethodNotAllowed',
    'RouteReversalError',
    'StatusTable', 'statuses')

log = logging.getLogger(__name__)

class RestrError(Exception):
    """ Base class for all errors raised by restr"""

class ConfigurationError(RestrError):
    """ Resources or routes were configured improperly

    Errors of such type can be only raised during initial configuration and not
    during request handling.
    """

class DuplicateAttributeError(ConfigurationError):
    """ Attribute with the same external name already defined in schema"""

class DuplicateResourceError(ConfigurationError):
    """ Domain type (or resource name) is already registered"""

class UnknownResourceError(ConfigurationError, LookupError):
    """ No resource registered for domain type or name"""

class InvalidRoutePattern(ConfigurationError):
    """ Route configured with invalid route pattern"""

class UnknownTargetError(ConfigurationError):
    """ Route points to a method the store doesn't expose"""

class RegistryFrozen(ConfigurationError):
    """ Registration attempted after configuration phase is over"""

class RequestError(RestrError):
    """ Base class for errors raised while handling a request"""

class NotFoundError(RequestError, LookupError):
    """ No stored instance with requested id"""

class UnauthorizedError(RequestError):
    """ Request lacks valid credentials"""

class ForbiddenError(RequestError):
    """ Request is not allowed for the caller"""

class ValidationError(RequestError, ValueError):
    """ Payload failed validation

    :attr errors:
        mapping from external attribute name to error message
    """

    def __init__(self, message, errors=None):
        super(ValidationError, self).__init__(message)
        self.errors = dict(errors or {})

class ReadonlyAttributeWriteError(ValidationError):
    """ Payload tries to write one or more readonly attributes

    :attr names:
        list of offending attribute names
    """

    def __init__(self, names):
        self.names = list(names)
        super(ReadonlyAttributeWriteError, self).__init__(
            'readonly attributes cannot be written: %s'
                % ', '.join(self.names),
            dict((n, 'readonly') for n in self.names))

class AttributeAccessError(RequestError):
    """ Attribute accessor failed on a domain object"""

class RouteNotFoundError(RequestError):
    """ Request wasn't matched against any route"""

class NoURLPatternMatched(RouteNotFoundError):
    """ Path wasn't matched against URL pattern"""

class MethodNotAllowed(RouteNotFoundError):
    """ Path was matched but request method isn't allowed for it

    :attr allowed:
        list of verbs registered for the matched path
    """

    def __init__(self, message, allowed=()):
        super(MethodNotAllowed, self).__init__(message)
        self.allowed = list(allowed)

class RouteReversalError(RestrError):
    """ Cannot reverse route"""

class StatusTable(object):
    """ Mapping from error kinds to HTTP status codes

    Lookup walks exception's MRO so subclasses of a registered kind share
    its status unless registered on their own. Unknown kinds map to
    ``default``.

    :param default:
        status code for unclassified errors
    """

    def __init__(self, default=500):
        self.default = default
        self._statuses = {}
        self.frozen = False

    def register(self, kind, status):
        """ Declare ``status`` for error ``kind``"""
        if self.frozen:
            raise RegistryFrozen(
                "cannot register '%s', status table is frozen" % kind.__name__)
        if not (isinstance(kind, type) and issubclass(kind, BaseException)):
            raise ConfigurationError('%r is not an exception type' % (kind,))
        self._statuses[kind] = int(status)
        return kind

    def declare(self, status):
        """ Class decorator version of :meth:`register`

        Process-wide :data:`statuses` is frozen once a router is built
        against it, declare kinds before that or on a copy:

            >>> table = statuses.copy()
            >>> @table.declare(409)
            ... class Conflict(RequestError):
            ...     pass

        """
        def decorator(kind):
            return self.register(kind, status)
        return decorator

    def status_for(self, error):
        """ Return status code for exception instance or type ``error``"""
        kind = error if isinstance(error, type) else type(error)
        for cls in kind.__mro__:
            if cls in self._statuses:
                return self._statuses[cls]
        return self.default

    def is_classified(self, error):
        kind = error if isinstance(error, type) else type(error)
        return any(cls in self._statuses for cls in kind.__mro__)

    def reason(self, status):
        """ Generic reason phrase for ``status``"""
        return status_reasons.get(status, 'Unknown Error')

    def freeze(self):
        if not self.frozen:
            log.info('status table frozen with %d error kinds',
                len(self._statuses))
        self.frozen = True

    def copy(self):
        table = self.__class__(default=self.default)
        table._statuses = dict(self._statuses)
        return table

    def __contains__(self, kind):
        return kind in self._statuses

    def __len__(self):
        return len(self._statuses)

def _default_statuses():
    table = StatusTable()
    table.register(ValidationError, 400)
    table.register(UnauthorizedError, 401)
    table.register(ForbiddenError, 403)
    table.register(NotFoundError, 404)
    table.register(RouteNotFoundError, 404)
    table.register(MethodNotAllowed, 405)
    table.register(NotImplementedError, 501)
    return table

#: process-wide status table, frozen once a router is built against it
statuses = _default_statuses()
