""" decorators.py
"""
import functools

__all__ = ['classproperty',
           'sdmethod',
           'sdproperty']


class classproperty(object):
    """A read-only attribute computed from the class it is looked up on"""

    def __init__(self, fget):
        self.fget = fget
        self.__doc__ = fget.__doc__

    def __get__(self, obj, owner):
        return self.fget(owner)

    def __set__(self, obj, value):  # pragma: no cover
        raise AttributeError("can't set a class property")


def sdmethod(meth):
    """
    :py:func:`functools.singledispatch` for methods: the implementation is chosen by the type of the first
    argument after ``self``.
    """
    dispatcher = functools.singledispatch(meth)

    @functools.wraps(meth)
    def wrapper(obj, value, *args, **kwargs):
        return dispatcher.dispatch(type(value))(obj, value, *args, **kwargs)

    wrapper.register = dispatcher.register
    wrapper.dispatch = dispatcher.dispatch
    return wrapper


def sdproperty(fget):
    """
    A property whose setter dispatches on the type of the assigned value.

    Setters are added with ``@name.register(type)``, or with a bare ``@name.register`` on an annotated function.
    Assigning a value of a type nothing was registered for raises :py:exc:`TypeError`.
    """
    def unregistered(obj, value):
        raise TypeError(f"{fget.__name__} cannot be set from {type(value).__name__}")

    class SDProperty(property):
        def register(self, cls=None, fset=None):
            return self.fset.register(cls, fset)

    return SDProperty(fget, sdmethod(unregistered))
