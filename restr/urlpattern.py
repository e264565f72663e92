"""

    restr.urlpattern -- matching URL against pattern
    ================================================

    Patterns consist of literal parts and named placeholders. Placeholders are
    written either as ``{label}`` or ``{label:type(args)}`` where type is one
    of ``str``, ``string``, ``int``, ``path`` or ``any``, or in a short form
    ``:label`` which is the same as ``{label}``. Each placeholder is compiled
    into a named group of regular expression, already compiled regular
    expressions are accepted as is.

"""

import re

from restr.utils import cached_property
from restr.exc import (
    InvalidRoutePattern, RouteReversalError, NoURLPatternMatched)

__all__ = ('URLPattern',)

def parse_args(line):
    args = []
    kwargs = {}
    if not line:
        return args, kwargs
    for item in (a.strip() for a in line.split(',') if a):
        if '=' in item:
            k, v = item.split('=', 1)
            kwargs[k.strip()] = v.strip()
        else:
            args.append(item)
    return args, kwargs

def handle_str(args):
    args, kwargs = parse_args(args)
    re = kwargs.pop('re', None)
    if kwargs or args:
        raise InvalidRoutePattern("invalid args for 'str' type")
    if re:
        return (re, None)
    return ('[^/]+', None)

def handle_path(args):
    if args:
        raise InvalidRoutePattern("'path' type doesn't accept args")
    return ('.*', None)

def handle_int(args):
    if args:
        raise InvalidRoutePattern("'int' type doesn't accept args")
    return ('[0-9]+', int)

def handle_any(args):
    args, kwargs = parse_args(args)
    if not args:
        raise InvalidRoutePattern("'any' type requires positional args")
    if kwargs:
        raise InvalidRoutePattern("'any' doesn't accept keyword args")

    return ('|'.join(re.escape(x) for x in args), None)

class URLPattern(object):

    _type_re = re.compile(r"""
        {
        (?P<label>[a-zA-Z_][a-zA-Z0-9_]*)   # label
        (:(?P<type>[a-zA-Z][a-zA-Z0-9]*))?  # optional type identifier
        (\(                                 # optional args
            (?P<args>[a-zA-Z= ,_\[\]\+\-0-9\{\}]*)
        \))?
        }
        |
        :(?P<short>[a-zA-Z_][a-zA-Z0-9_]*)  # short form
        """, re.VERBOSE)

    typemap = {
        None:       handle_str,
        'str':      handle_str,
        'string':   handle_str,
        'path':     handle_path,
        'int':      handle_int,
        'any':      handle_any,
    }

    def __init__(self, pattern):
        if isinstance(pattern, str):
            pattern = normalize(pattern)
        self.pattern = pattern

        self._compiled = None
        self._names = None

    @cached_property
    def is_regex(self):
        return not isinstance(self.pattern, str)

    @cached_property
    def is_exact(self):
        return not self.is_regex and self._type_re.search(self.pattern) is None

    @cached_property
    def compiled(self):
        if self._compiled is None:
            self.compile()
        return self._compiled

    @property
    def names(self):
        """ Labels of placeholders in order of their appearance"""
        if self.is_regex:
            return sorted(self.pattern.groupindex,
                key=self.pattern.groupindex.get)
        if self.is_exact:
            return []
        if self._names is None:
            self.compile()
        return [l for (l, c) in self._names]

    def compile(self):
        if self.is_regex:
            self._compiled = self.pattern
            self._names = [(n, None) for n in self.names]
            return
        if self.is_exact:
            return

        names = []
        compiled = ''
        last = 0
        for m in self._type_re.finditer(self.pattern):
            compiled += re.escape(self.pattern[last:m.start()])
            typ, label, args = (
                m.group('type'), m.group('label') or m.group('short'),
                m.group('args'))
            if not typ in self.typemap:
                raise InvalidRoutePattern(
                    "unknown type '%s' in pattern '%s'" % (typ, self.pattern))
            if label in [l for (l, c) in names]:
                raise InvalidRoutePattern(
                    "duplicate label '%s' in pattern '%s'"
                        % (label, self.pattern))
            r, c = self.typemap[typ](args)
            names.append((label, c))
            compiled += '(?P<%s>%s)' % (label, r)
            last = m.end()
        compiled += re.escape(self.pattern[last:])

        try:
            self._compiled = re.compile(compiled)
        except re.error as e:
            raise InvalidRoutePattern(
                "invalid pattern '%s': %s" % (self.pattern, e))
        self._names = names

    def reverse(self, **kwargs):
        if self.is_regex:
            raise RouteReversalError(
                "cannot reverse regular expression '%s'" % self.pattern.pattern)
        if self.is_exact:
            return self.pattern

        def replace(m):
            label = m.group('label') or m.group('short')
            if not label in kwargs:
                raise RouteReversalError(
                    "not enough params for reversal of '%s' route,"
                    " '%s' is missing" % (self.pattern, label))
            return str(kwargs[label])

        return self._type_re.sub(replace, self.pattern)

    def match(self, path_info):
        """ Match ``path_info`` against pattern

        Return mapping of captured values by labels.

        :raises restr.exc.NoURLPatternMatched:
            if pattern doesn't match the whole ``path_info``
        """
        path_info = normalize(path_info)
        if self.is_exact:
            if path_info != self.pattern:
                raise NoURLPatternMatched(path_info)
            return {}

        m = self.compiled.fullmatch(path_info)
        if not m:
            raise NoURLPatternMatched("no match for '%s' against '%s'" % (
                path_info, self.compiled.pattern))
        groups = m.groupdict()
        try:
            return dict(
                (l, c(groups[l]) if c else groups[l])
                for (l, c) in self._names)
        except ValueError:
            raise NoURLPatternMatched(path_info)

    def __repr__(self):
        return '<%s %s>' % (self.__class__.__name__,
            self.pattern.pattern if self.is_regex else self.pattern)

def normalize(path):
    """ Normalize path to have leading and no trailing slashes

        >>> normalize('news/42/')
        '/news/42'

    """
    return '/' + (path or '').strip('/')
