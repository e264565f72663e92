"""

    restr.registry -- binding domain types to schemas and stores
    ============================================================

"""

import logging

from restr.exc import (
    DuplicateResourceError, UnknownResourceError, RegistryFrozen)
from restr.schema import Schema
from restr.store import Store

__all__ = ('Record', 'Resource', 'Registry', 'registry', 'resource')

log = logging.getLogger(__name__)

class Record(object):
    """ Default domain type for resources declared only by their schema"""

    def __init__(self, **attributes):
        self.__dict__.update(attributes)

    def __eq__(self, o):
        return type(o) is type(self) and o.__dict__ == self.__dict__

    def __ne__(self, o):
        return not self == o

    __hash__ = None

    def __repr__(self):
        return '%s(%s)' % (self.__class__.__name__, ', '.join(
            '%s=%r' % (k, v) for k, v in sorted(self.__dict__.items())))

class Resource(object):
    """ Domain type bound to a schema and a store

    :param name:
        resource name, used as its mount point by router
    :param domain_type:
        class of domain objects, should be constructible without arguments
    :param schema:
        :class:`restr.schema.Schema` object
    :param store:
        :class:`restr.store.Store` object
    """

    def __init__(self, name, domain_type, schema, store):
        self.name = name
        self.domain_type = domain_type
        self.schema = schema
        self.store = store
        store.bind(self)

    def operation(self, name):
        """ Return callable for operation ``name`` or ``None``

        ``schema`` operation returns schema introspection unless store exposes
        operation with the same name.
        """
        if name in self.store.methods:
            return self.store.methods[name]
        if name == 'schema':
            return self.schema.describe
        return None

    def __repr__(self):
        return '<%s %s>' % (self.__class__.__name__, self.name)

def default_name(domain_type):
    return domain_type.__name__.lower() + 's'

class Registry(object):
    """ Mapping from domain types (and names) to resources

    Filled during configuration, :meth:`freeze` ends configuration phase
    after which registry is read-only.
    """

    def __init__(self):
        self._resources = []
        self._by_type = {}
        self._by_name = {}
        self.frozen = False

    def register(self, domain_type, schema, store=None, name=None):
        """ Register ``domain_type`` as a resource

        :param store:
            store object, defaults to in-memory :class:`restr.store.Store`
        :param name:
            resource name, defaults to lower-cased plural of type name
        :raises restr.exc.DuplicateResourceError:
            if type or name is already registered
        """
        if self.frozen:
            raise RegistryFrozen(
                "cannot register '%s', registry is frozen"
                    % domain_type.__name__)
        if domain_type in self._by_type:
            raise DuplicateResourceError(
                "type '%s' is already registered" % domain_type.__name__)
        name = name or default_name(domain_type)
        if name in self._by_name:
            raise DuplicateResourceError(
                "resource '%s' is already registered" % name)
        if store is None:
            store = Store()
        schema.freeze()
        res = Resource(name, domain_type, schema, store)
        self._resources.append(res)
        self._by_type[domain_type] = res
        self._by_name[name] = res
        log.debug('registered resource %s (%s)', name, domain_type.__name__)
        return res

    def lookup(self, key):
        """ Return resource by domain type, name or resource itself

        :raises restr.exc.UnknownResourceError:
            if nothing is registered for ``key``
        """
        if isinstance(key, Resource) and key in self._resources:
            return key
        table = self._by_name if isinstance(key, str) else self._by_type
        try:
            return table[key]
        except (KeyError, TypeError):
            raise UnknownResourceError('no resource registered for %r' % (key,))

    def freeze(self):
        if not self.frozen:
            log.info('registry frozen with %d resources', len(self._resources))
        self.frozen = True

    def __contains__(self, key):
        try:
            self.lookup(key)
        except UnknownResourceError:
            return False
        return True

    def __iter__(self):
        return iter(self._resources)

    def __len__(self):
        return len(self._resources)

#: process-wide registry
registry = Registry()

def resource(name, *attributes, **kw):
    """ Declare resource by its attributes only

        >>> from restr.schema import string, boolean
        >>> chores = resource('chores', string('name'), boolean('is_complete'),
        ...     registry=Registry())
        >>> chores.domain_type.__name__
        'Chores'

    Instances of such resource are :class:`.Record` objects.

    :param store:
        store object, defaults to in-memory :class:`restr.store.Store`
    :param registry:
        registry to register resource in, defaults to process-wide one
    """
    target = kw.pop('registry', None)
    if target is None:
        target = registry
    store = kw.pop('store', None)
    if kw:
        raise TypeError(
            'unexpected keyword arguments: %s' % ', '.join(sorted(kw)))
    domain_type = type(
        ''.join(p.title() for p in name.split('_')), (Record,), {})
    return target.register(
        domain_type, Schema(*attributes), store=store, name=name)
