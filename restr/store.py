"""

    restr.store -- CRUD persistence contract
    ========================================

    :class:`.Store` defines operations the router dispatches to and provides
    default in-memory implementation of them. Subclasses may override default
    operations (raising :exc:`NotImplementedError` disables one) or expose
    additional ones with :func:`.exposed` decorator.

"""

import logging
import threading
import uuid

from restr.exc import NotFoundError, ConfigurationError

__all__ = ('Store', 'exposed')

log = logging.getLogger(__name__)

def exposed(func=None, name=None):
    """ Mark store method as a dispatch target

    Can be used as ``@exposed`` or ``@exposed(name='complete')``.
    """
    def decorator(func):
        func.exposed_as = name or func.__name__
        return func
    if func is not None:
        return decorator(func)
    return decorator

class Store(object):
    """ Store of instances of a single resource

    Canonical state of each instance is a mapping of its persisted attributes
    guarded by a lock, so mutations of the same instance never interleave and
    readers observe either pre- or post-mutation state. Every operation
    returns freshly built domain objects, changes to them take effect only
    through :meth:`save`.

    :attr methods:
        mapping from operation name to bound method, router resolves route
        targets against it
    """

    default_methods = (
        'all', 'create', 'get', 'save', 'update', 'replace', 'delete')

    def __init__(self):
        self.resource = None
        self._lock = threading.RLock()
        self._states = {}
        self.methods = {}
        for name in self.default_methods:
            self.methods[name] = getattr(self, name)
        cls = type(self)
        for attr in dir(cls):
            exposed_as = getattr(getattr(cls, attr, None), 'exposed_as', None)
            if exposed_as:
                self.methods[exposed_as] = getattr(self, attr)

    def bind(self, resource):
        if self.resource is not None and self.resource is not resource:
            raise ConfigurationError(
                "store is already bound to '%s' resource" % self.resource.name)
        self.resource = resource

    def expose(self, func, name=None):
        """ Add (or replace) dispatch target ``name`` on this store only"""
        self.methods[name or func.__name__] = func
        return func

    @property
    def schema(self):
        if self.resource is None:
            raise ConfigurationError('store is not bound to a resource')
        return self.resource.schema

    @property
    def name(self):
        return self.resource.name if self.resource is not None else None

    def create(self, **attributes):
        """ Create new instance with ``attributes``"""
        values = self.schema.deserialize(attributes, partial=False)
        instance = self.resource.domain_type()
        for attr in self.schema.persisted:
            attr.set(instance, attr.make_default())
        self.schema['id'].set(instance, uuid.uuid4().hex)
        self._apply(instance, values)
        state = self._state_of(instance)
        with self._lock:
            self._states[state['id']] = state
        log.debug('created %s %s', self.name, state['id'])
        return self._build(state)

    def get(self, id):
        """ Get instance by ``id``"""
        with self._lock:
            state = self._state(id)
        return self._build(state)

    def all(self, **filter):
        """ List instances in creation order

        Only instances whose persisted attributes are equal to every value in
        ``filter`` are returned, filter values are coerced by attribute types.
        """
        filter = self.schema.coerce_filter(filter)
        with self._lock:
            states = list(self._states.values())
        return [self._build(s) for s in states
            if all(s.get(k) == v for k, v in filter.items())]

    def save(self, instance):
        """ Persist full current state of ``instance``"""
        state = self._state_of(instance)
        with self._lock:
            self._state(state['id'])
            self._states[state['id']] = state
        log.debug('saved %s %s', self.name, state['id'])
        return self._build(state)

    def update(self, id, **attributes):
        """ Update writable ``attributes`` of instance with ``id``"""
        values = self.schema.deserialize(attributes)
        return self._modify(id, values)

    def replace(self, id, **attributes):
        """ Replace writable attributes of instance with ``id``, those missing
        from ``attributes`` are reset to their defaults
        """
        values = self.schema.deserialize(attributes, partial=False)
        return self._modify(id, values)

    def delete(self, id):
        """ Delete instance with ``id``"""
        with self._lock:
            self._state(id)
            del self._states[id]
        log.debug('deleted %s %s', self.name, id)

    def __len__(self):
        return len(self._states)

    def _modify(self, id, values):
        with self._lock:
            instance = self._build(self._state(id))
            self._apply(instance, values)
            state = self._state_of(instance)
            self._states[id] = state
        log.debug('updated %s %s', self.name, id)
        return self._build(state)

    def _state(self, id):
        try:
            return self._states[id]
        except (KeyError, TypeError):
            raise NotFoundError("no %s with id '%s'" % (self.name, id))

    def _apply(self, instance, values):
        for attr in self.schema:
            if attr.name in values:
                attr.set(instance, values[attr.name])

    def _state_of(self, instance):
        return dict(
            (a.name, a.type.coerce(a.get(instance), name=a.name))
            for a in self.schema.persisted)

    def _build(self, state):
        instance = self.resource.domain_type()
        for attr in self.schema.persisted:
            attr.set(instance, state.get(attr.name))
        return instance
