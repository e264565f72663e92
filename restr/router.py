"""

    restr.router -- dispatching requests to store operations
    ========================================================

    Router keeps an ordered list of routes per resource. Route patterns are
    relative to resource's mount point ``/<resource name>``. Routes are tried
    in order of registration and the first one which matches both path and
    verb wins, so more specific patterns should be registered before more
    generic ones (``/schema`` before ``/{id}``).

"""

import logging
from collections import namedtuple
from collections.abc import Mapping

from restr import exc
from restr.exc import (
    RouteNotFoundError, NoURLPatternMatched, MethodNotAllowed,
    UnknownTargetError, UnknownResourceError, ValidationError,
    RegistryFrozen, RouteReversalError, ReadonlyAttributeWriteError)
from restr.registry import registry as default_registry
from restr.urlpattern import URLPattern, normalize
from restr.utils import accepted_args, filter_kwargs

__all__ = (
    'Router', 'RoutePattern', 'Response', 'HTTPMethod',
    'GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'HEAD', 'OPTIONS',
    'default_routes', 'write_operations')

log = logging.getLogger(__name__)

class HTTPMethod(str):
    """ HTTP method"""

GET     = HTTPMethod('GET')
POST    = HTTPMethod('POST')
PUT     = HTTPMethod('PUT')
PATCH   = HTTPMethod('PATCH')
DELETE  = HTTPMethod('DELETE')
HEAD    = HTTPMethod('HEAD')
OPTIONS = HTTPMethod('OPTIONS')

#: result of dispatch, ``body`` is JSON-shaped or ``None``
Response = namedtuple('Response', 'status body')

#: (verb, pattern, target, status) of routes every resource gets by default
default_routes = (
    (GET,       '/',            'all',      200),
    (POST,      '/',            'create',   201),
    (GET,       '/schema',      'schema',   200),
    (GET,       '/{id}',        'get',      200),
    (PUT,       '/{id}',        'replace',  200),
    (PATCH,     '/{id}',        'update',   200),
    (DELETE,    '/{id}',        'delete',   204),
)

#: store operations which write attributes of instances
write_operations = ('create', 'save', 'update', 'replace')

class RoutePattern(object):
    """ Binding of verb and URL pattern to an operation

    :param verb:
        HTTP method
    :param pattern:
        URL pattern, see :mod:`restr.urlpattern`
    :param target:
        name of store operation or a callable
    :param status:
        status code of successful response
    :param name:
        route name, defaults to target's name
    """

    def __init__(self, verb, pattern, target, status=200, name=None):
        self.verb = HTTPMethod(verb.upper())
        self.pattern = (pattern if isinstance(pattern, URLPattern)
            else URLPattern(pattern))
        self.target = target
        self.status = status
        if name is None:
            name = (target if isinstance(target, str)
                else getattr(target, '__name__', None))
        self.name = name

    def match(self, verb, path_info):
        """ Match request against route and return captured params

        :raises restr.exc.NoURLPatternMatched:
            if path isn't matched
        :raises restr.exc.MethodNotAllowed:
            if path is matched but verb differs
        """
        params = self.pattern.match(path_info)
        if self.verb != verb:
            raise MethodNotAllowed(
                '%s is not allowed for %s' % (verb, path_info), [self.verb])
        return params

    def __repr__(self):
        return '%s(%s, %r, %r, status=%d)' % (
            self.__class__.__name__, self.verb, self.pattern, self.target,
            self.status)

class Router(object):
    """ Dispatcher of requests to resources

    :param registry:
        :class:`restr.registry.Registry`, defaults to process-wide one, router
        freezes it
    :param prefix:
        URL prefix resources are mounted under
    :param statuses:
        :class:`restr.exc.StatusTable`, defaults to process-wide one, router
        freezes it, so error kinds should be declared on it before any
        router is built
    :param default_routes:
        if every registered resource gets :data:`default_routes`
    """

    def __init__(self, registry=None, prefix='', statuses=None,
            default_routes=True):
        self.registry = registry if registry is not None else default_registry
        self.prefix = normalize(prefix).rstrip('/')
        self.statuses = statuses if statuses is not None else exc.statuses
        self.frozen = False
        self._routes = {}
        self.registry.freeze()
        self.statuses.freeze()
        if default_routes:
            for res in self.registry:
                self.add_default_routes(res)

    def register_route(self, resource, verb, pattern, target, status=200,
            name=None):
        """ Append route to routes of ``resource``

        :raises restr.exc.UnknownTargetError:
            if ``target`` names operation resource doesn't have
        """
        if self.frozen:
            raise RegistryFrozen('cannot register routes while serving')
        res = self.registry.lookup(resource)
        if isinstance(target, str):
            if res.operation(target) is None:
                raise UnknownTargetError(
                    "resource '%s' has no operation '%s'" % (res.name, target))
        elif not callable(target):
            raise UnknownTargetError('%r is not callable' % (target,))
        route = RoutePattern(verb, pattern, target, status=status, name=name)
        self._routes.setdefault(res.name, []).append(route)
        log.debug('route %s /%s%s -> %s', route.verb, res.name,
            route.pattern.pattern, route.name)
        return route

    def add_default_routes(self, resource):
        for verb, pattern, target, status in default_routes:
            self.register_route(resource, verb, pattern, target, status)

    def routes(self, resource):
        """ Routes of ``resource`` in match order"""
        return list(self._routes.get(self.registry.lookup(resource).name, ()))

    def url_for(self, resource, name, **params):
        """ Build URL of route ``name`` of ``resource``

        :raises restr.exc.RouteReversalError:
            if there's no such route or params are missing
        """
        res = self.registry.lookup(resource)
        for route in self._routes.get(res.name, ()):
            if route.name == name:
                path = route.pattern.reverse(**params)
                return '%s/%s%s' % (
                    self.prefix, res.name, '' if path == '/' else path)
        raise RouteReversalError(
            "no route with name '%s' for '%s'" % (name, res.name))

    def match(self, resource, verb, path_info):
        """ Find first route of ``resource`` matching ``verb`` and
        ``path_info``

        Return route and captured params.
        """
        allowed = []
        for route in self._routes.get(resource.name, ()):
            try:
                return route, route.match(verb, path_info)
            except NoURLPatternMatched:
                continue
            except MethodNotAllowed as e:
                allowed.extend(v for v in e.allowed if not v in allowed)
        if allowed:
            raise MethodNotAllowed(
                '%s is not allowed for /%s%s' % (
                    verb, resource.name, normalize(path_info)), allowed)
        raise RouteNotFoundError(
            'no route for %s /%s%s' % (
                verb, resource.name, normalize(path_info)))

    def handle(self, verb, path, query_params=None, body_params=None):
        """ Dispatch request by its full ``path``

        First path segment after ``prefix`` names the resource.
        """
        path = normalize(path)
        if self.prefix and not (
                path == self.prefix or path.startswith(self.prefix + '/')):
            return self.render_error(
                RouteNotFoundError("no route for %s %s" % (verb, path)))
        name, _, subpath = path[len(self.prefix):].strip('/').partition('/')
        return self.dispatch(name, verb, subpath, query_params, body_params)

    def dispatch(self, resource, verb, path, query_params=None,
            body_params=None):
        """ Dispatch request to operation of ``resource``

        Params captured from path, query string params and body params are
        merged in this order (later ones override earlier) and passed to the
        operation as keyword arguments. Operations which don't accept
        ``**kwargs`` receive only params they name.
        Write operations reject query and body params which name readonly
        attributes, so they can't override captured ``id``.

        :param resource:
            resource, its name or domain type
        :param path:
            path relative to resource's mount point
        :rtype:
            :class:`.Response`
        """
        self.frozen = True
        verb = verb.upper()
        try:
            try:
                res = self.registry.lookup(resource)
            except UnknownResourceError:
                raise RouteNotFoundError(
                    "no resource '%s'" % (resource,))
            if body_params is not None and not isinstance(body_params, Mapping):
                raise ValidationError('request body should be an object')
            route, params = self.match(res, verb, path)
            self.check_readonly(res, route, query_params, body_params)
            params.update(query_params or {})
            params.update(body_params or {})
            log.debug('%s /%s%s -> %s', verb, res.name, normalize(path),
                route.name)
            result = self.invoke(res, route, params)
            body = self.render(res, result)
        except Exception as e:
            return self.render_error(e)
        return Response(route.status, body)

    def check_readonly(self, resource, route, query_params, body_params):
        """ Reject query or body params naming readonly attributes when
        ``route`` targets a store write operation

        Such params would otherwise override captured ``id`` and redirect the
        write to another instance.

        :raises restr.exc.ReadonlyAttributeWriteError:
            if any readonly attribute is present
        """
        if route.target not in write_operations:
            return
        names = [a.name for a in resource.schema if a.readonly
            and (a.name in (query_params or {})
                or a.name in (body_params or {}))]
        if names:
            raise ReadonlyAttributeWriteError(names)

    def invoke(self, resource, route, params):
        if isinstance(route.target, str):
            func = resource.operation(route.target)
            if func is None:
                raise NotImplementedError(
                    "'%s' operation is not available" % route.target)
            return func(**filter_kwargs(func, params))
        func = route.target
        names, _ = accepted_args(func)
        kwargs = filter_kwargs(func, params)
        injections = {'resource': resource, 'store': resource.store}
        for k, v in injections.items():
            if k in names:
                kwargs[k] = v
        return func(**kwargs)

    def render(self, resource, result):
        """ Render operation result into response body"""
        if result is None:
            return None
        if isinstance(result, resource.domain_type):
            return resource.schema.serialize(result)
        if isinstance(result, (list, tuple)):
            return [self.render(resource, r) for r in result]
        if type(result) in self.registry:
            return self.registry.lookup(type(result)).schema.serialize(result)
        return result

    def render_error(self, error):
        """ Render exception into response

        Errors which kind isn't known to status table are logged and rendered
        with generic message only.
        """
        status = self.statuses.status_for(error)
        if not self.statuses.is_classified(error):
            log.error('unhandled error while dispatching request',
                exc_info=error)
            return Response(status, {'error': {
                'status': status,
                'kind': 'InternalServerError',
                'message': self.statuses.reason(status),
            }})
        body = {
            'status': status,
            'kind': type(error).__name__,
            'message': str(error) or self.statuses.reason(status),
        }
        if isinstance(error, ValidationError):
            body['errors'] = error.errors
        if isinstance(error, MethodNotAllowed):
            body['allowed'] = error.allowed
        return Response(status, {'error': body})
