"""

    restr.schema -- attributes and schemas of resources
    ===================================================

    A schema is an ordered set of attribute definitions which describes the
    external shape of a resource. Attribute types are backed by :mod:`colander`
    types which coerce and validate inbound values.

"""

import datetime as dt

import colander

from restr.exc import (
    DuplicateAttributeError, AttributeAccessError, ReadonlyAttributeWriteError,
    ValidationError, ConfigurationError, RegistryFrozen)

__all__ = (
    'AttributeType', 'AttributeDefinition', 'Schema',
    'string', 'boolean', 'date', 'datetime', 'number', 'integer', 'types')

class String(colander.String):

    def deserialize(self, node, cstruct):
        if cstruct is None or isinstance(cstruct, str):
            return cstruct
        raise colander.Invalid(node, '"%s" is not a string' % (cstruct,))

class Boolean(colander.Boolean):

    def __init__(self):
        super(Boolean, self).__init__(
            false_choices=('false', '0'), true_choices=('true', '1'))

    def deserialize(self, node, cstruct):
        if cstruct is None or isinstance(cstruct, bool):
            return cstruct
        return super(Boolean, self).deserialize(node, cstruct)

class Date(colander.Date):

    def deserialize(self, node, cstruct):
        if cstruct is None:
            return None
        if isinstance(cstruct, dt.datetime):
            return cstruct.date()
        if isinstance(cstruct, dt.date):
            return cstruct
        if not isinstance(cstruct, str):
            raise colander.Invalid(node, '"%s" is not a date' % (cstruct,))
        return super(Date, self).deserialize(node, cstruct)

class DateTime(colander.DateTime):

    def __init__(self):
        super(DateTime, self).__init__(default_tzinfo=None)

    def deserialize(self, node, cstruct):
        if cstruct is None or isinstance(cstruct, dt.datetime):
            return cstruct
        if not isinstance(cstruct, str):
            raise colander.Invalid(node, '"%s" is not a datetime' % (cstruct,))
        return super(DateTime, self).deserialize(node, cstruct)

class Float(colander.Float):

    def deserialize(self, node, cstruct):
        if isinstance(cstruct, bool):
            raise colander.Invalid(node, '"%s" is not a number' % (cstruct,))
        if cstruct is None or isinstance(cstruct, (int, float)):
            return cstruct
        return super(Float, self).deserialize(node, cstruct)

class Int(colander.Int):

    def deserialize(self, node, cstruct):
        if isinstance(cstruct, bool):
            raise colander.Invalid(node, '"%s" is not a number' % (cstruct,))
        if cstruct is None or isinstance(cstruct, int):
            return cstruct
        return super(Int, self).deserialize(node, cstruct)

def _isoformat(value):
    return value.isoformat()

class AttributeType(object):
    """ Semantic type of an attribute

    Objects of this type are also callable -- work as a shortcut for defining
    attributes of corresponding type -- ``string('name')`` equivalent to
    ``AttributeDefinition('name', string)``.

    :param name:
        type name exposed through schema introspection
    :param colander_type:
        :class:`colander.SchemaType` subclass used to coerce inbound values
    :param dump:
        function converting value into JSON-shaped value
    """

    def __init__(self, name, colander_type, dump=None):
        self.name = name
        self.colander_type = colander_type
        self._dump = dump

    def __call__(self, external_name, **options):
        return AttributeDefinition(external_name, self, **options)

    def node(self, name, **kw):
        return colander.SchemaNode(self.colander_type(), name=name, **kw)

    def coerce(self, value, name=None):
        """ Coerce ``value`` to this type

        :raises restr.exc.ValidationError:
            if value cannot be coerced
        """
        if value is None:
            return None
        name = name or self.name
        try:
            result = self.node(name, missing=None).deserialize(value)
        except colander.Invalid as e:
            raise ValidationError(
                "invalid value for '%s'" % name, e.asdict())
        return result

    def dump(self, value):
        if value is None or self._dump is None:
            return value
        return self._dump(value)

    def __repr__(self):
        return '<%s %s>' % (self.__class__.__name__, self.name)

string      = AttributeType('string', String)
boolean     = AttributeType('boolean', Boolean)
date        = AttributeType('date', Date, _isoformat)
datetime    = AttributeType('datetime', DateTime, _isoformat)
number      = AttributeType('number', Float)
integer     = AttributeType('integer', Int)

types = dict((t.name, t) for t in (
    string, boolean, date, datetime, number, integer))

class AttributeDefinition(object):
    """ Definition of a single resource attribute

    :param external_name:
        name under which attribute is exposed
    :param type:
        :class:`.AttributeType` or its name
    :param source:
        accessor -- either a callable which receives domain object or a name of
        domain object's attribute, defaults to ``external_name``
    :param persist:
        if attribute is stored by a store, virtual attributes are only
        computed from domain objects
    :param readonly:
        if attribute is rejected on write paths
    :param default:
        value (or callable producing a value) used when attribute is missing
        from a full write
    """

    def __init__(self, external_name, type, source=None, persist=True,
            readonly=False, default=None, internal_name=None):
        if isinstance(type, str):
            if type not in types:
                raise ConfigurationError(
                    "unknown attribute type '%s' for '%s'"
                        % (type, external_name))
            type = types[type]
        self.name = external_name
        self.type = type
        self.source = source
        self.persist = persist
        self.readonly = readonly
        self.default = default
        if internal_name is None:
            internal_name = source if isinstance(source, str) else external_name
        self.internal_name = internal_name

    @property
    def writable(self):
        return not self.readonly

    def get(self, obj):
        """ Read attribute value from domain object ``obj``"""
        try:
            if callable(self.source):
                return self.source(obj)
            return getattr(obj, self.internal_name)
        except (AttributeError, KeyError) as e:
            raise AttributeAccessError(
                "cannot read '%s' from %r: %s" % (self.name, obj, e))

    def set(self, obj, value):
        """ Write attribute value to domain object ``obj``"""
        setattr(obj, self.internal_name, value)

    def make_default(self):
        return self.default() if callable(self.default) else self.default

    def describe(self):
        desc = {'type': self.type.name}
        if self.readonly:
            desc['readonly'] = True
        return desc

    def __repr__(self):
        flags = [f for f, on in (
            ('readonly', self.readonly), ('virtual', not self.persist)) if on]
        return '<%s %s:%s%s>' % (
            self.__class__.__name__, self.name, self.type.name,
            ''.join(' ' + f for f in flags))

class Schema(object):
    """ Ordered set of attribute definitions

    Every schema starts with readonly ``id`` attribute which holds identifier
    assigned by a store.

    :param attributes:
        :class:`.AttributeDefinition` objects
    """

    def __init__(self, *attributes):
        self._attributes = []
        self._by_name = {}
        self.frozen = False
        self.add(string('id', readonly=True))
        for attr in attributes:
            self.add(attr)

    def define(self, external_name, type, **options):
        """ Define attribute and append it to schema

        :raises restr.exc.DuplicateAttributeError:
            if attribute with ``external_name`` is already defined
        """
        return self.add(AttributeDefinition(external_name, type, **options))

    def add(self, attr):
        if self.frozen:
            raise RegistryFrozen(
                "cannot define '%s', schema is already registered" % attr.name)
        if attr.name in self._by_name:
            raise DuplicateAttributeError(
                "attribute '%s' is already defined" % attr.name)
        self._attributes.append(attr)
        self._by_name[attr.name] = attr
        return attr

    def freeze(self):
        self.frozen = True

    @property
    def names(self):
        return [a.name for a in self._attributes]

    @property
    def persisted(self):
        return [a for a in self._attributes if a.persist]

    @property
    def writable(self):
        return [a for a in self._attributes if not a.readonly]

    def serialize(self, instance):
        """ Produce mapping of external names to values for every attribute of
        ``instance``

        :raises restr.exc.AttributeAccessError:
            if attribute accessor fails
        """
        return dict(
            (a.name, a.type.dump(a.get(instance))) for a in self._attributes)

    def deserialize(self, payload, partial=True):
        """ Filter and coerce inbound ``payload``

        Unknown keys are dropped. Values of writable attributes are coerced
        with their types.

        :param partial:
            if ``False`` missing writable attributes are filled with their
            defaults
        :raises restr.exc.ReadonlyAttributeWriteError:
            if payload contains any readonly attribute
        :raises restr.exc.ValidationError:
            if any value cannot be coerced
        """
        payload = dict(payload or {})
        readonly = [a.name for a in self._attributes
            if a.readonly and a.name in payload]
        if readonly:
            raise ReadonlyAttributeWriteError(readonly)

        node = colander.SchemaNode(colander.Mapping(unknown='ignore'))
        nulls = {}
        cstruct = {}
        for attr in self.writable:
            if not attr.name in payload:
                continue
            if payload[attr.name] is None:
                nulls[attr.name] = None
            else:
                cstruct[attr.name] = payload[attr.name]
                node.add(attr.type.node(attr.name, missing=colander.drop))
        try:
            result = node.deserialize(cstruct)
        except colander.Invalid as e:
            raise ValidationError('invalid payload', e.asdict())
        result.update(nulls)

        if not partial:
            for attr in self.writable:
                if not attr.name in result:
                    result[attr.name] = attr.make_default()
        return result

    def coerce_filter(self, filter):
        """ Coerce filter values by attribute types

        :raises restr.exc.ValidationError:
            if filter refers to unknown or virtual attributes or its values
            cannot be coerced
        """
        unknown = [k for k in filter
            if not k in self._by_name or not self._by_name[k].persist]
        if unknown:
            raise ValidationError(
                'cannot filter by: %s' % ', '.join(sorted(unknown)),
                dict((k, 'unknown attribute') for k in unknown))
        result, errors = {}, {}
        for k, v in filter.items():
            try:
                result[k] = self._by_name[k].type.coerce(v, name=k)
            except ValidationError as e:
                errors.update(e.errors)
        if errors:
            raise ValidationError('invalid filter', errors)
        return result

    def describe(self):
        """ Schema introspection, mapping of external names to types"""
        return dict((a.name, a.describe()) for a in self._attributes)

    def __getitem__(self, name):
        return self._by_name[name]

    def __contains__(self, name):
        return name in self._by_name

    def __iter__(self):
        return iter(self._attributes)

    def __len__(self):
        return len(self._attributes)

    def __repr__(self):
        return '%s(%s)' % (
            self.__class__.__name__, ', '.join(repr(a) for a in self))
