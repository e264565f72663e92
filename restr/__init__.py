"""

    restr -- REST resources made right
    ==================================

    This package provides declarative mapping of plain data objects onto a
    REST-like API: a schema describes attributes of a resource, a store
    provides CRUD operations over its instances and a router dispatches
    requests to store operations and translates results and errors into
    status codes and payloads.

"""

from restr.exc import (
    NotFoundError, UnauthorizedError, ForbiddenError, ValidationError,
    ReadonlyAttributeWriteError, RouteNotFoundError, ConfigurationError,
    StatusTable, statuses)
from restr.schema import (
    AttributeDefinition, Schema,
    string, boolean, date, datetime, number, integer)
from restr.store import Store, exposed
from restr.registry import Record, Resource, Registry, registry, resource
from restr.router import (
    Router, RoutePattern, Response,
    GET, POST, PUT, PATCH, DELETE, HEAD, OPTIONS)

__all__ = (
    'NotFoundError', 'UnauthorizedError', 'ForbiddenError', 'ValidationError',
    'ReadonlyAttributeWriteError', 'RouteNotFoundError', 'ConfigurationError',
    'StatusTable', 'statuses',
    'AttributeDefinition', 'Schema',
    'string', 'boolean', 'date', 'datetime', 'number', 'integer',
    'Store', 'exposed',
    'Record', 'Resource', 'Registry', 'registry', 'resource',
    'Router', 'RoutePattern', 'Response',
    'GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'HEAD', 'OPTIONS')
