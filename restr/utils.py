"""

    restr.utils -- utility code
    ===========================

"""

import inspect

__all__ = ('cached_property', 'accepted_args', 'filter_kwargs')

class cached_property(object):
    """ Just like ``property`` but computed only once"""

    def __init__(self, func):
        self.func = func
        self.__name__ = func.__name__
        self.__doc__ = func.__doc__

    def __get__(self, obj, cls):
        if obj is None:
            return self
        val = self.func(obj)
        obj.__dict__[self.__name__] = val
        return val

def accepted_args(obj):
    """ Return names of keyword-passable args of ``obj`` and whether it accepts
    arbitrary keyword args

    :param obj:
        can be a plain function (or lambda) or bound method or simply callable
        object (with __call__ method defined)
    """
    sig = inspect.signature(obj)
    names = []
    var_kw = False
    for param in sig.parameters.values():
        if param.kind == param.VAR_KEYWORD:
            var_kw = True
        elif param.kind in (param.POSITIONAL_OR_KEYWORD, param.KEYWORD_ONLY):
            names.append(param.name)
    return names, var_kw

def filter_kwargs(obj, kwargs):
    """ Filter ``kwargs`` down to those ``obj`` can be called with

        >>> def f(id, name=None):
        ...     pass
        >>> sorted(filter_kwargs(f, {'id': 1, 'page': 2}))
        ['id']

    """
    names, var_kw = accepted_args(obj)
    if var_kw:
        return dict(kwargs)
    return dict((k, v) for k, v in kwargs.items() if k in names)
