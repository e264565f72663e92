"""

    restr.tests -- test suite
    =========================

"""

import json
import re
import threading
from datetime import date as Date
from unittest import TestCase

from webob import Request

from restr import exc
from restr.exc import (
    NotFoundError, UnauthorizedError, ValidationError, RequestError,
    ReadonlyAttributeWriteError, AttributeAccessError, DuplicateAttributeError,
    DuplicateResourceError, UnknownResourceError, UnknownTargetError,
    InvalidRoutePattern, ConfigurationError, RegistryFrozen,
    NoURLPatternMatched, RouteReversalError, StatusTable)
from restr.schema import (
    Schema, AttributeDefinition, string, boolean, date, integer, number)
from restr.store import Store, exposed
from restr.registry import Registry, Record, resource
from restr.router import Router, GET, POST
from restr.urlpattern import URLPattern
from restr.utils import accepted_args, filter_kwargs
from restr.wsgi import Application

__all__ = ()

class Chore(object):

    name = None
    last_completed = None

    @property
    def is_complete(self):
        return self.last_completed is not None

def chore_schema():
    return Schema(
        string('name'),
        date('last_completed'),
        boolean('is_complete', persist=False, readonly=True))

class ChoreStore(Store):

    @exposed
    def complete(self, id, on=None):
        return self.update(id, last_completed=on or Date.today())

    @exposed(name='pending')
    def list_pending(self):
        return [c for c in self.all() if not c.is_complete]

class UndeletableChoreStore(Store):

    def delete(self, id):
        raise NotImplementedError('chores cannot be deleted')

def make_registry(store=None):
    registry = Registry()
    res = registry.register(Chore, chore_schema(), store=store)
    return registry, res

def make_router(store=None, **kw):
    registry, _ = make_registry(store=store)
    return Router(registry, **kw)

class TestAttributeType(TestCase):

    def test_boolean(self):
        self.assertEqual(boolean.coerce('true'), True)
        self.assertEqual(boolean.coerce('false'), False)
        self.assertEqual(boolean.coerce('0'), False)
        self.assertEqual(boolean.coerce(True), True)
        self.assertRaises(ValidationError, boolean.coerce, 'yes')

    def test_integer(self):
        self.assertEqual(integer.coerce('42'), 42)
        self.assertEqual(integer.coerce(42), 42)
        self.assertRaises(ValidationError, integer.coerce, 'x')
        self.assertRaises(ValidationError, integer.coerce, True)

    def test_number(self):
        self.assertEqual(number.coerce('1.5'), 1.5)
        self.assertEqual(number.coerce(2), 2)
        self.assertRaises(ValidationError, number.coerce, 'many')

    def test_date(self):
        self.assertEqual(date.coerce('2024-01-05'), Date(2024, 1, 5))
        self.assertEqual(date.coerce(Date(2024, 1, 5)), Date(2024, 1, 5))
        self.assertRaises(ValidationError, date.coerce, 'yesterday')
        self.assertRaises(ValidationError, date.coerce, 20240105)
        self.assertEqual(date.dump(Date(2024, 1, 5)), '2024-01-05')

    def test_string(self):
        self.assertEqual(string.coerce('Laundry'), 'Laundry')
        self.assertEqual(string.coerce(''), '')
        self.assertRaises(ValidationError, string.coerce, 5)

    def test_none(self):
        for typ in (string, boolean, date, integer, number):
            self.assertEqual(typ.coerce(None), None)
            self.assertEqual(typ.dump(None), None)

    def test_error_names_attribute(self):
        try:
            integer.coerce('x', name='priority')
        except ValidationError as e:
            self.assertEqual(list(e.errors), ['priority'])
        else:
            self.fail('ValidationError not raised')

    def test_shortcut(self):
        attr = string('name', readonly=True)
        self.assertIsInstance(attr, AttributeDefinition)
        self.assertEqual(attr.name, 'name')
        self.assertEqual(attr.type, string)
        self.assertTrue(attr.readonly)
        self.assertTrue(attr.persist)

class TestSchema(TestCase):

    def make_chore(self, **kw):
        chore = Chore()
        chore.id = 'abc'
        chore.name = kw.get('name', 'Laundry')
        chore.last_completed = kw.get('last_completed')
        return chore

    def test_implicit_id(self):
        s = Schema()
        self.assertEqual(s.names, ['id'])
        self.assertTrue(s['id'].readonly)

    def test_order(self):
        self.assertEqual(
            chore_schema().names,
            ['id', 'name', 'last_completed', 'is_complete'])

    def test_define(self):
        s = Schema()
        attr = s.define('name', 'string')
        self.assertEqual(attr.type, string)
        self.assertIn('name', s)
        self.assertEqual(len(s), 2)

    def test_define_duplicate(self):
        s = chore_schema()
        self.assertRaises(DuplicateAttributeError, s.define, 'name', string)
        self.assertRaises(DuplicateAttributeError, s.define, 'id', string)
        self.assertRaises(
            DuplicateAttributeError, Schema, string('a'), integer('a'))

    def test_define_unknown_type(self):
        self.assertRaises(ConfigurationError, Schema().define, 'a', 'uuid')

    def test_frozen(self):
        s = chore_schema()
        s.freeze()
        self.assertRaises(RegistryFrozen, s.define, 'notes', string)

    def test_describe(self):
        self.assertEqual(chore_schema().describe(), {
            'id': {'type': 'string', 'readonly': True},
            'name': {'type': 'string'},
            'last_completed': {'type': 'date'},
            'is_complete': {'type': 'boolean', 'readonly': True},
        })

    def test_serialize(self):
        chore = self.make_chore(last_completed=Date(2024, 1, 5))
        self.assertEqual(chore_schema().serialize(chore), {
            'id': 'abc',
            'name': 'Laundry',
            'last_completed': '2024-01-05',
            'is_complete': True,
        })

    def test_serialize_source(self):
        s = Schema(
            string('title', source='name'),
            string('shout', source=lambda o: o.name.upper(), persist=False,
                readonly=True))
        chore = self.make_chore()
        self.assertEqual(s.serialize(chore),
            {'id': 'abc', 'title': 'Laundry', 'shout': 'LAUNDRY'})
        self.assertEqual(s['title'].internal_name, 'name')

    def test_serialize_missing_accessor(self):
        s = Schema(string('name'))
        self.assertRaises(AttributeAccessError, s.serialize, Record(id='1'))
        s = Schema(string('name', source=lambda o: o['name']))
        self.assertRaises(AttributeAccessError, s.serialize, {'id': '1'})

    def test_deserialize_drops_unknown(self):
        self.assertEqual(
            chore_schema().deserialize({'name': 'Laundry', 'color': 'red'}),
            {'name': 'Laundry'})

    def test_deserialize_coerces(self):
        self.assertEqual(
            chore_schema().deserialize({'last_completed': '2024-01-05'}),
            {'last_completed': Date(2024, 1, 5)})

    def test_deserialize_null(self):
        self.assertEqual(
            chore_schema().deserialize({'last_completed': None}),
            {'last_completed': None})

    def test_deserialize_readonly(self):
        s = chore_schema()
        for payload in (
                {'id': 'x'},
                {'name': 'Laundry', 'id': 'x'},
                {'is_complete': True, 'last_completed': '2024-01-05'}):
            self.assertRaises(ReadonlyAttributeWriteError, s.deserialize, payload)
        try:
            s.deserialize({'id': 'x', 'is_complete': False, 'name': 'a'})
        except ReadonlyAttributeWriteError as e:
            self.assertEqual(e.names, ['id', 'is_complete'])
            self.assertEqual(
                e.errors, {'id': 'readonly', 'is_complete': 'readonly'})

    def test_deserialize_readonly_is_validation_error(self):
        self.assertTrue(issubclass(ReadonlyAttributeWriteError, ValidationError))

    def test_deserialize_invalid(self):
        try:
            chore_schema().deserialize(
                {'name': 'Laundry', 'last_completed': 'yesterday'})
        except ValidationError as e:
            self.assertEqual(list(e.errors), ['last_completed'])
        else:
            self.fail('ValidationError not raised')

    def test_deserialize_full(self):
        s = Schema(string('name'), integer('priority', default=3),
            number('effort', default=lambda: 1.0))
        self.assertEqual(s.deserialize({'name': 'a'}, partial=False),
            {'name': 'a', 'priority': 3, 'effort': 1.0})
        self.assertEqual(s.deserialize({'name': 'a'}), {'name': 'a'})

    def test_deserialize_writable_virtual(self):
        s = Schema(string('name'), string('note', persist=False))
        self.assertEqual(s.deserialize({'note': 'x'}), {'note': 'x'})

    def test_round_trip(self):
        s = chore_schema()
        chore = self.make_chore(last_completed=Date(2024, 1, 5))
        data = s.serialize(chore)
        writable = [a.name for a in s.persisted if a.writable]
        payload = dict((k, v) for k, v in data.items() if k in writable)
        other = self.make_chore(name=None)
        for k, v in s.deserialize(payload).items():
            s[k].set(other, v)
        self.assertEqual(s.serialize(other), data)

    def test_coerce_filter(self):
        s = chore_schema()
        self.assertEqual(
            s.coerce_filter({'name': 'a', 'last_completed': '2024-01-05'}),
            {'name': 'a', 'last_completed': Date(2024, 1, 5)})
        self.assertEqual(s.coerce_filter({}), {})
        self.assertRaises(ValidationError, s.coerce_filter, {'color': 'red'})
        self.assertRaises(ValidationError, s.coerce_filter,
            {'is_complete': 'true'})
        self.assertRaises(ValidationError, s.coerce_filter,
            {'last_completed': 'yesterday'})

class TestRegistry(TestCase):

    def test_register(self):
        registry, res = make_registry()
        self.assertEqual(res.name, 'chores')
        self.assertIs(res.domain_type, Chore)
        self.assertIsInstance(res.store, Store)
        self.assertIs(res.store.resource, res)
        self.assertIs(registry.lookup(Chore), res)
        self.assertIs(registry.lookup('chores'), res)
        self.assertIs(registry.lookup(res), res)
        self.assertIn(Chore, registry)
        self.assertEqual(list(registry), [res])

    def test_register_freezes_schema(self):
        _, res = make_registry()
        self.assertRaises(RegistryFrozen, res.schema.define, 'notes', string)

    def test_duplicate(self):
        registry, _ = make_registry()
        self.assertRaises(DuplicateResourceError,
            registry.register, Chore, chore_schema())
        class Other(object):
            pass
        self.assertRaises(DuplicateResourceError,
            registry.register, Other, Schema(), name='chores')

    def test_unknown(self):
        registry = Registry()
        self.assertRaises(UnknownResourceError, registry.lookup, Chore)
        self.assertRaises(UnknownResourceError, registry.lookup, 'chores')
        self.assertNotIn('chores', registry)

    def test_frozen(self):
        registry = Registry()
        registry.freeze()
        self.assertRaises(RegistryFrozen,
            registry.register, Chore, chore_schema())

    def test_store_bound_once(self):
        store = Store()
        registry = Registry()
        registry.register(Chore, chore_schema(), store=store)
        class Other(object):
            pass
        self.assertRaises(ConfigurationError,
            registry.register, Other, Schema(), store=store)

    def test_resource_shortcut(self):
        registry = Registry()
        res = resource('todo_items', string('name'),
            boolean('is_complete', default=False), registry=registry)
        self.assertEqual(res.domain_type.__name__, 'TodoItems')
        self.assertTrue(issubclass(res.domain_type, Record))
        self.assertIs(registry.lookup('todo_items'), res)
        item = res.store.create(name='Laundry')
        self.assertEqual(item.is_complete, False)
        self.assertEqual(item, res.store.get(item.id))

    def test_resource_shortcut_kwargs(self):
        self.assertRaises(TypeError, resource, 'chores', registry=Registry(),
            storage=None)

class TestStore(TestCase):

    def setUp(self):
        _, self.resource = make_registry(store=ChoreStore())
        self.store = self.resource.store

    def serialize(self, instance):
        return self.resource.schema.serialize(instance)

    def test_create(self):
        chore = self.store.create(name='Laundry')
        self.assertIsInstance(chore, Chore)
        self.assertTrue(re.match('^[0-9a-f]{32}$', chore.id))
        self.assertEqual(chore.name, 'Laundry')
        self.assertEqual(chore.last_completed, None)
        self.assertEqual(len(self.store), 1)

    def test_create_then_get(self):
        chore = self.store.create(name='Laundry', last_completed='2024-01-05')
        got = self.store.get(chore.id)
        self.assertEqual(self.serialize(got), self.serialize(chore))
        self.assertEqual(got.last_completed, Date(2024, 1, 5))

    def test_create_invalid(self):
        self.assertRaises(ValidationError,
            self.store.create, name='Laundry', last_completed='soon')
        self.assertRaises(ReadonlyAttributeWriteError,
            self.store.create, name='Laundry', id='mine')
        self.assertEqual(len(self.store), 0)

    def test_unique_ids(self):
        ids = set(self.store.create(name=str(n)).id for n in range(100))
        self.assertEqual(len(ids), 100)

    def test_unique_ids_concurrent(self):
        ids = []
        lock = threading.Lock()

        def worker():
            created = [self.store.create(name='x').id for _ in range(50)]
            with lock:
                ids.extend(created)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(len(ids), 400)
        self.assertEqual(len(set(ids)), 400)
        self.assertEqual(len(self.store.all()), 400)

    def test_concurrent_updates(self):
        chore = self.store.create(name='start')
        names = ['n%d' % n for n in range(20)]

        def worker(name):
            self.store.update(chore.id, name=name)

        threads = [threading.Thread(target=worker, args=(n,)) for n in names]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertIn(self.store.get(chore.id).name, names)

    def test_get_unknown(self):
        self.assertRaises(NotFoundError, self.store.get, '99')

    def test_delete(self):
        chore = self.store.create(name='Laundry')
        self.assertEqual(self.store.delete(chore.id), None)
        self.assertRaises(NotFoundError, self.store.get, chore.id)
        self.assertRaises(NotFoundError, self.store.delete, chore.id)

    def test_all(self):
        a = self.store.create(name='Laundry')
        b = self.store.create(name='Dishes', last_completed='2024-01-05')
        c = self.store.create(name='Laundry', last_completed='2024-01-05')
        ids = lambda xs: [x.id for x in xs]
        self.assertEqual(ids(self.store.all()), [a.id, b.id, c.id])
        self.assertEqual(ids(self.store.all()), ids(self.store.all()))
        self.assertEqual(ids(self.store.all(name='Laundry')), [a.id, c.id])
        self.assertEqual(
            ids(self.store.all(last_completed='2024-01-05')), [b.id, c.id])
        self.assertEqual(
            ids(self.store.all(name='Laundry', last_completed='2024-01-05')),
            [c.id])
        self.assertEqual(ids(self.store.all(last_completed=None)), [a.id])
        self.assertEqual(ids(self.store.all(id=b.id)), [b.id])
        self.assertEqual(self.store.all(name='Vacuum'), [])

    def test_all_unknown_filter(self):
        self.assertRaises(ValidationError, self.store.all, color='red')
        self.assertRaises(ValidationError, self.store.all, is_complete=True)

    def test_save(self):
        chore = self.store.create(name='Laundry')
        chore.name = 'Dishes'
        self.assertEqual(self.store.get(chore.id).name, 'Laundry')
        saved = self.store.save(chore)
        self.assertEqual(saved.name, 'Dishes')
        self.assertEqual(self.store.get(chore.id).name, 'Dishes')

    def test_save_unknown(self):
        chore = Chore()
        chore.id = 'nope'
        self.assertRaises(NotFoundError, self.store.save, chore)

    def test_save_invalid(self):
        chore = self.store.create(name='Laundry')
        chore.last_completed = 'someday'
        self.assertRaises(ValidationError, self.store.save, chore)

    def test_update(self):
        chore = self.store.create(name='Laundry', last_completed='2024-01-05')
        updated = self.store.update(chore.id, name='Dishes')
        self.assertEqual(updated.name, 'Dishes')
        self.assertEqual(updated.last_completed, Date(2024, 1, 5))
        self.assertEqual(self.store.get(chore.id).name, 'Dishes')
        self.assertRaises(NotFoundError, self.store.update, 'nope', name='x')
        self.assertRaises(ReadonlyAttributeWriteError,
            self.store.update, chore.id, is_complete=False)

    def test_replace(self):
        chore = self.store.create(name='Laundry', last_completed='2024-01-05')
        replaced = self.store.replace(chore.id, name='Dishes')
        self.assertEqual(replaced.id, chore.id)
        self.assertEqual(replaced.name, 'Dishes')
        self.assertEqual(replaced.last_completed, None)
        self.assertRaises(NotFoundError, self.store.replace, 'nope')

    def test_methods(self):
        self.assertEqual(
            sorted(self.store.methods),
            ['all', 'complete', 'create', 'delete', 'get', 'pending',
             'replace', 'save', 'update'])
        chore = self.store.create(name='Laundry')
        self.store.create(name='Dishes')
        done = self.store.methods['complete'](id=chore.id, on='2024-01-05')
        self.assertTrue(done.is_complete)
        self.assertEqual(
            [c.name for c in self.store.methods['pending']()], ['Dishes'])

    def test_expose(self):
        def count():
            return len(self.store)
        self.store.expose(count)
        self.store.expose(lambda: 0, name='all')
        self.assertEqual(self.store.methods['count'](), 0)
        self.assertEqual(self.store.methods['all'](), 0)
        self.assertNotIn('count', ChoreStore().methods)

    def test_unbound(self):
        self.assertRaises(ConfigurationError, Store().create, name='x')

class TestURLPattern(TestCase):

    def test_exact(self):
        p = URLPattern('/schema')
        self.assertTrue(p.is_exact)
        self.assertEqual(p.match('/schema'), {})
        self.assertEqual(p.match('/schema/'), {})
        self.assertRaises(NoURLPatternMatched, p.match, '/schemas')
        self.assertEqual(URLPattern('').match('/'), {})

    def test_int(self):
        p = URLPattern('/a/{id:int}/b/')
        self.assertTrue(not p.is_exact)
        self.assertEqual(p.match('/a/42/b/'), {'id': 42})
        self.assertRaises(NoURLPatternMatched, p.match, '/a/x/b')

    def test_str(self):
        for pattern in ('/a/{id}/b/', '/a/{id:str}/b/', '/a/{id:string}/b/'):
            p = URLPattern(pattern)
            self.assertTrue(not p.is_exact)
            self.assertEqual(p.match('/a/42/b/'), {'id': '42'})
        self.assertRaises(NoURLPatternMatched, URLPattern('/{id}').match,
            '/42/43')

    def test_str_re(self):
        p = URLPattern('/a/{id:str(re=[0-9]+)}/b/')
        self.assertEqual(p.match('/a/42/b/'), {'id': '42'})
        self.assertRaises(NoURLPatternMatched, p.match, '/a/a/b/')

        p = URLPattern('/a/{id:str(re=[0-9a-f]{6})}/b/')
        self.assertEqual(p.match('/a/12efa3/b/'), {'id': '12efa3'})
        self.assertRaises(NoURLPatternMatched, p.match, '/a/a/b/')

    def test_path(self):
        p = URLPattern('/a/{id:path}/b/')
        self.assertEqual(p.match('/a/42/43/b/'), {'id': '42/43'})

    def test_any(self):
        p = URLPattern('/a/{id:any(aaa, bbb, ccc)}/b/')
        self.assertEqual(p.match('/a/aaa/b/'), {'id': 'aaa'})
        self.assertEqual(p.match('/a/bbb/b/'), {'id': 'bbb'})
        self.assertEqual(p.match('/a/ccc/b/'), {'id': 'ccc'})
        self.assertRaises(NoURLPatternMatched, p.match, '/a')
        self.assertRaises(NoURLPatternMatched, p.match, '/a/abc/b/')

    def test_short(self):
        p = URLPattern('/:id/complete')
        self.assertEqual(p.names, ['id'])
        self.assertEqual(p.match('/abc/complete'), {'id': 'abc'})
        self.assertRaises(NoURLPatternMatched, p.match, '/abc')

    def test_regex(self):
        p = URLPattern(re.compile(r'/(?P<year>[0-9]{4})/(?P<month>[0-9]{2})'))
        self.assertTrue(p.is_regex)
        self.assertEqual(p.names, ['year', 'month'])
        self.assertEqual(p.match('/2024/01'), {'year': '2024', 'month': '01'})
        self.assertRaises(NoURLPatternMatched, p.match, '/2024')
        self.assertRaises(RouteReversalError, p.reverse, year='2024')

    def test_invalid(self):
        self.assertRaises(InvalidRoutePattern, URLPattern('/{id:uuid}').compile)
        self.assertRaises(InvalidRoutePattern,
            URLPattern('/{id}/{id}').compile)
        self.assertRaises(InvalidRoutePattern,
            URLPattern('/{id:path(x)}').compile)

    def test_reverse(self):
        self.assertEqual(URLPattern('/schema').reverse(), '/schema')
        self.assertEqual(
            URLPattern('/{id}/complete').reverse(id='abc'), '/abc/complete')
        self.assertEqual(URLPattern('/:id').reverse(id=42), '/42')
        self.assertRaises(RouteReversalError, URLPattern('/{id}').reverse)

class TestStatusTable(TestCase):

    def test_defaults(self):
        table = exc.statuses
        self.assertEqual(table.status_for(NotFoundError('x')), 404)
        self.assertEqual(table.status_for(NotImplementedError()), 501)
        self.assertEqual(table.status_for(UnauthorizedError()), 401)
        self.assertEqual(table.status_for(ValidationError('x')), 400)
        self.assertEqual(table.status_for(ReadonlyAttributeWriteError(['id'])),
            400)
        self.assertEqual(table.status_for(RuntimeError()), 500)
        self.assertEqual(table.status_for(AttributeAccessError()), 500)
        self.assertFalse(table.is_classified(RuntimeError))

    def test_declare(self):
        table = exc.statuses.copy()
        @table.declare(409)
        class Conflict(RequestError):
            pass
        class SubConflict(Conflict):
            pass
        self.assertEqual(table.status_for(Conflict()), 409)
        self.assertEqual(table.status_for(SubConflict), 409)
        self.assertNotIn(Conflict, exc.statuses)

    def test_register_invalid(self):
        self.assertRaises(ConfigurationError, StatusTable().register, str, 400)

    def test_frozen(self):
        table = StatusTable()
        table.freeze()
        self.assertRaises(RegistryFrozen, table.register, KeyError, 404)

    def test_frozen_by_router(self):
        table = exc.statuses.copy()
        Router(Registry(), statuses=table)
        self.assertTrue(table.frozen)
        self.assertRaises(RegistryFrozen, table.declare(409), KeyError)
        fresh = table.copy()
        self.assertFalse(fresh.frozen)
        fresh.declare(409)(KeyError)
        self.assertEqual(fresh.status_for(KeyError()), 409)

    def test_reason(self):
        self.assertEqual(StatusTable().reason(500), 'Internal Server Error')

class TestRouter(TestCase):

    def setUp(self):
        self.router = make_router(store=ChoreStore())

    def create(self, **body):
        resp = self.router.handle('POST', '/chores', body_params=body)
        self.assertEqual(resp.status, 201)
        return resp.body

    def test_create(self):
        resp = self.router.handle('POST', '/chores', {}, {'name': 'Laundry'})
        self.assertEqual(resp.status, 201)
        self.assertTrue(resp.body['id'])
        self.assertEqual(resp.body, {
            'id': resp.body['id'],
            'name': 'Laundry',
            'last_completed': None,
            'is_complete': False,
        })

    def test_get(self):
        chore = self.create(name='Laundry')
        resp = self.router.handle('GET', '/chores/%s' % chore['id'])
        self.assertEqual(resp, (200, chore))

    def test_get_unknown(self):
        resp = self.router.handle('GET', '/chores/99')
        self.assertEqual(resp.status, 404)
        self.assertEqual(resp.body['error']['kind'], 'NotFoundError')
        self.assertEqual(resp.body['error']['status'], 404)

    def test_delete(self):
        chore = self.create(name='Laundry')
        resp = self.router.handle('DELETE', '/chores/%s' % chore['id'])
        self.assertEqual(resp, (204, None))
        resp = self.router.handle('GET', '/chores/%s' % chore['id'])
        self.assertEqual(resp.status, 404)

    def test_list(self):
        a = self.create(name='Laundry')
        b = self.create(name='Dishes', last_completed='2024-01-05')
        resp = self.router.handle('GET', '/chores')
        self.assertEqual(resp, (200, [a, b]))
        resp = self.router.handle('GET', '/chores/', {'name': 'Dishes'})
        self.assertEqual(resp, (200, [b]))
        resp = self.router.handle('GET', '/chores',
            {'last_completed': '2024-01-05'})
        self.assertEqual(resp, (200, [b]))

    def test_list_unknown_filter(self):
        resp = self.router.handle('GET', '/chores', {'color': 'red'})
        self.assertEqual(resp.status, 400)
        self.assertEqual(resp.body['error']['errors'],
            {'color': 'unknown attribute'})

    def test_replace(self):
        chore = self.create(name='Laundry', last_completed='2024-01-05')
        resp = self.router.handle('PUT', '/chores/%s' % chore['id'],
            body_params={'name': 'Dishes'})
        self.assertEqual(resp.status, 200)
        self.assertEqual(resp.body['name'], 'Dishes')
        self.assertEqual(resp.body['last_completed'], None)

    def test_update(self):
        chore = self.create(name='Laundry')
        resp = self.router.handle('PATCH', '/chores/%s' % chore['id'],
            body_params={'last_completed': '2024-01-05'})
        self.assertEqual(resp.status, 200)
        self.assertEqual(resp.body['name'], 'Laundry')
        self.assertEqual(resp.body['last_completed'], '2024-01-05')
        self.assertEqual(resp.body['is_complete'], True)

    def test_readonly_write(self):
        chore = self.create(name='Laundry')
        resp = self.router.handle('PATCH', '/chores/%s' % chore['id'],
            body_params={'name': 'Dishes', 'is_complete': True})
        self.assertEqual(resp.status, 400)
        self.assertEqual(resp.body['error']['kind'],
            'ReadonlyAttributeWriteError')
        resp = self.router.handle('GET', '/chores/%s' % chore['id'])
        self.assertEqual(resp.body['name'], 'Laundry')

    def test_id_in_params_does_not_redirect_write(self):
        a = self.create(name='Laundry')
        b = self.create(name='Dishes')
        path = '/chores/%s' % a['id']
        for verb in ('PATCH', 'PUT'):
            resp = self.router.handle(verb, path,
                body_params={'id': b['id'], 'name': 'Vacuum'})
            self.assertEqual(resp.status, 400)
            self.assertEqual(resp.body['error']['kind'],
                'ReadonlyAttributeWriteError')
            self.assertEqual(resp.body['error']['errors'], {'id': 'readonly'})
            resp = self.router.handle(verb, path, {'id': b['id']},
                {'name': 'Vacuum'})
            self.assertEqual(resp.status, 400)
        for chore in (a, b):
            resp = self.router.handle('GET', '/chores/%s' % chore['id'])
            self.assertEqual(resp, (200, chore))

    def test_invalid(self):
        resp = self.router.handle('POST', '/chores',
            body_params={'name': 'Laundry', 'last_completed': 'soon'})
        self.assertEqual(resp.status, 400)
        self.assertEqual(resp.body['error']['kind'], 'ValidationError')
        self.assertEqual(list(resp.body['error']['errors']),
            ['last_completed'])

    def test_invalid_body(self):
        resp = self.router.handle('POST', '/chores', body_params=['Laundry'])
        self.assertEqual(resp.status, 400)

    def test_schema(self):
        resp = self.router.handle('GET', '/chores/schema')
        self.assertEqual(resp, (200, chore_schema().describe()))

    def test_extension(self):
        self.router = make_router(store=ChoreStore(), default_routes=False)
        self.router.register_route('chores', POST, '/{id}/complete', 'complete')
        self.router.register_route(Chore, GET, '/pending', 'pending')
        self.router.add_default_routes(Chore)
        a = self.create(name='Laundry')
        b = self.create(name='Dishes')
        resp = self.router.handle('POST', '/chores/%s/complete' % a['id'],
            body_params={'on': '2024-01-05'})
        self.assertEqual(resp.status, 200)
        self.assertEqual(resp.body['last_completed'], '2024-01-05')
        self.assertEqual(resp.body['is_complete'], True)
        resp = self.router.handle('GET', '/chores/pending')
        self.assertEqual(resp, (200, [b]))

    def test_disabled_operation(self):
        self.router = make_router(store=UndeletableChoreStore())
        chore = self.create(name='Laundry')
        path = '/chores/%s' % chore['id']
        resp = self.router.handle('DELETE', path)
        self.assertEqual(resp.status, 501)
        self.assertEqual(resp.body['error']['message'],
            'chores cannot be deleted')
        self.assertEqual(self.router.handle('GET', '/chores').status, 200)
        self.assertEqual(self.router.handle('GET', path).status, 200)
        self.assertEqual(self.router.handle('PUT', path,
            body_params={'name': 'Dishes'}).status, 200)
        self.assertEqual(self.router.handle('PATCH', path,
            body_params={'name': 'Mop'}).status, 200)
        self.assertEqual(self.router.handle('POST', '/chores',
            body_params={'name': 'Vacuum'}).status, 201)

    def test_registration_order(self):
        def by_name(name):
            return 'by_name'
        def by_id(id):
            return 'by_id'
        router = make_router(default_routes=False)
        router.register_route('chores', GET, '/{name}', by_name)
        router.register_route('chores', GET, '/{id}', by_id)
        self.assertEqual(router.dispatch('chores', 'GET', '/x'),
            (200, 'by_name'))

        router = make_router(default_routes=False)
        router.register_route('chores', GET, '/{id}', by_id)
        router.register_route('chores', GET, '/{name}', by_name)
        self.assertEqual(router.dispatch('chores', 'GET', '/x'),
            (200, 'by_id'))

    def test_params_precedence(self):
        def echo(id, name=None):
            return {'id': id, 'name': name}
        router = make_router(default_routes=False)
        router.register_route('chores', GET, '/{id}/echo', echo)
        self.assertEqual(
            router.dispatch('chores', 'GET', '/p/echo').body,
            {'id': 'p', 'name': None})
        self.assertEqual(
            router.dispatch('chores', 'GET', '/p/echo',
                {'name': 'q', 'page': '2'}).body,
            {'id': 'p', 'name': 'q'})
        self.assertEqual(
            router.dispatch('chores', 'GET', '/p/echo',
                {'id': 'q', 'name': 'q'}, {'name': 'b'}).body,
            {'id': 'q', 'name': 'b'})

    def test_injection(self):
        def count(store, resource):
            return {'resource': resource.name, 'count': len(store)}
        router = make_router(default_routes=False)
        router.register_route('chores', GET, '/count', count)
        self.assertEqual(router.dispatch(Chore, 'GET', '/count'),
            (200, {'resource': 'chores', 'count': 0}))

    def test_unknown_target(self):
        router = make_router(default_routes=False)
        self.assertRaises(UnknownTargetError,
            router.register_route, 'chores', POST, '/{id}/complete', 'complete')
        self.assertRaises(UnknownTargetError,
            router.register_route, 'chores', GET, '/x', 42)
        self.assertRaises(UnknownResourceError,
            router.register_route, 'users', GET, '/', 'all')

    def test_unclassified_error(self):
        def boom():
            raise RuntimeError('secret connection string')
        router = make_router(default_routes=False)
        router.register_route('chores', GET, '/boom', boom)
        with self.assertLogs('restr.router', level='ERROR'):
            resp = router.dispatch('chores', 'GET', '/boom')
        self.assertEqual(resp.status, 500)
        self.assertEqual(resp.body, {'error': {
            'status': 500,
            'kind': 'InternalServerError',
            'message': 'Internal Server Error',
        }})

    def test_unauthorized(self):
        def secret():
            raise UnauthorizedError('login required')
        router = make_router(default_routes=False)
        router.register_route('chores', GET, '/secret', secret)
        resp = router.dispatch('chores', 'GET', '/secret')
        self.assertEqual(resp.status, 401)
        self.assertEqual(resp.body['error']['message'], 'login required')

    def test_custom_status(self):
        statuses = exc.statuses.copy()
        @statuses.declare(409)
        class Conflict(RequestError):
            pass
        def clash():
            raise Conflict('already done')
        router = make_router(statuses=statuses, default_routes=False)
        router.register_route('chores', POST, '/clash', clash)
        resp = router.dispatch('chores', 'POST', '/clash')
        self.assertEqual(resp.status, 409)
        self.assertEqual(resp.body['error']['kind'], 'Conflict')
        self.assertTrue(statuses.frozen)

    def test_method_not_allowed(self):
        chore = self.create(name='Laundry')
        resp = self.router.handle('POST', '/chores/%s' % chore['id'])
        self.assertEqual(resp.status, 405)
        self.assertEqual(resp.body['error']['allowed'],
            ['GET', 'PUT', 'PATCH', 'DELETE'])
        resp = self.router.handle('DELETE', '/chores')
        self.assertEqual(resp.status, 405)

    def test_route_not_found(self):
        for path in ('/users', '/', '/chores/a/b/c'):
            resp = self.router.handle('GET', path)
            self.assertEqual(resp.status, 404)
            self.assertEqual(resp.body['error']['kind'], 'RouteNotFoundError')

    def test_prefix(self):
        router = make_router(prefix='/api/')
        resp = router.handle('POST', '/api/chores', body_params={'name': 'a'})
        self.assertEqual(resp.status, 201)
        self.assertEqual(router.handle('GET', '/api/chores').status, 200)
        self.assertEqual(router.handle('GET', '/chores').status, 404)
        self.assertEqual(router.handle('GET', '/apichores').status, 404)
        self.assertEqual(router.url_for('chores', 'get', id='x'),
            '/api/chores/x')

    def test_url_for(self):
        self.assertEqual(self.router.url_for('chores', 'all'), '/chores')
        self.assertEqual(self.router.url_for(Chore, 'schema'),
            '/chores/schema')
        self.assertEqual(self.router.url_for('chores', 'delete', id='abc'),
            '/chores/abc')
        self.assertRaises(RouteReversalError,
            self.router.url_for, 'chores', 'complete')

    def test_routes(self):
        self.assertEqual(
            [(r.verb, r.pattern.pattern, r.target, r.status)
                for r in self.router.routes('chores')],
            [('GET', '/', 'all', 200),
             ('POST', '/', 'create', 201),
             ('GET', '/schema', 'schema', 200),
             ('GET', '/{id}', 'get', 200),
             ('PUT', '/{id}', 'replace', 200),
             ('PATCH', '/{id}', 'update', 200),
             ('DELETE', '/{id}', 'delete', 204)])

    def test_phases(self):
        registry, _ = make_registry()
        router = Router(registry)
        self.assertTrue(registry.frozen)
        router.handle('GET', '/chores')
        self.assertRaises(RegistryFrozen,
            router.register_route, 'chores', GET, '/x', 'all')

class TestApplication(TestCase):

    def setUp(self):
        self.app = Application(make_router())

    def post_json(self, path, data):
        req = Request.blank(path, method='POST',
            content_type='application/json', body=json.dumps(data).encode())
        return req.get_response(self.app)

    def test_create_json(self):
        resp = self.post_json('/chores', {'name': 'Laundry'})
        self.assertEqual(resp.status_int, 201)
        self.assertEqual(resp.content_type, 'application/json')
        self.assertEqual(resp.json_body['name'], 'Laundry')
        self.assertEqual(resp.json_body['is_complete'], False)

    def test_create_form(self):
        req = Request.blank('/chores', POST={'name': 'Laundry'})
        resp = req.get_response(self.app)
        self.assertEqual(resp.status_int, 201)
        self.assertEqual(resp.json_body['name'], 'Laundry')

    def test_malformed_json(self):
        req = Request.blank('/chores', method='POST',
            content_type='application/json', body=b'{"name": ')
        resp = req.get_response(self.app)
        self.assertEqual(resp.status_int, 400)
        self.assertEqual(resp.json_body['error']['kind'], 'ValidationError')

    def test_query(self):
        self.post_json('/chores', {'name': 'Laundry'})
        self.post_json('/chores', {'name': 'Dishes'})
        resp = Request.blank('/chores?name=Dishes').get_response(self.app)
        self.assertEqual(resp.status_int, 200)
        self.assertEqual([c['name'] for c in resp.json_body], ['Dishes'])

    def test_delete(self):
        chore = self.post_json('/chores', {'name': 'Laundry'}).json_body
        path = '/chores/%s' % chore['id']
        resp = Request.blank(path, method='DELETE').get_response(self.app)
        self.assertEqual(resp.status_int, 204)
        self.assertEqual(resp.body, b'')
        resp = Request.blank(path).get_response(self.app)
        self.assertEqual(resp.status_int, 404)

class TestUtils(TestCase):

    def test_accepted_args(self):
        def f(a, b, c=1, *args, **kw):
            pass
        self.assertEqual(accepted_args(f), (['a', 'b', 'c'], True))
        class C(object):
            def method(self, id, *, name=None):
                pass
        self.assertEqual(accepted_args(C().method), (['id', 'name'], False))
        self.assertEqual(accepted_args(lambda: None), ([], False))

    def test_filter_kwargs(self):
        def f(id, name=None):
            pass
        self.assertEqual(filter_kwargs(f, {'id': 1, 'page': 2}), {'id': 1})
        def g(**kw):
            pass
        self.assertEqual(filter_kwargs(g, {'id': 1, 'page': 2}),
            {'id': 1, 'page': 2})
