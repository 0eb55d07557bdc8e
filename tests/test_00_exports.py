""" check the export list to ensure only the public API is exported by each module
"""
import pytest

import importlib
import inspect


modules = ['pgpanatomy.anatomy',
           'pgpanatomy.assembler',
           'pgpanatomy.constants',
           'pgpanatomy.decorators',
           'pgpanatomy.errors',
           'pgpanatomy.precedence',
           'pgpanatomy.types',
           'pgpanatomy.packet.fields',
           'pgpanatomy.packet.framing',
           'pgpanatomy.packet.packets',
           'pgpanatomy.packet.types',
           'pgpanatomy.packet.subpackets.signature',
           'pgpanatomy.packet.subpackets.types',
           'pgpanatomy.packet.subpackets.userattribute']


def get_module_objs(module):
    # return a set of strings that represent the names of public objects defined in that module
    return {n for n, o in inspect.getmembers(module, lambda m: inspect.getmodule(m) is module) if not n.startswith('_')}


def get_module_all(module):
    return set(getattr(module, '__all__', set()))


def test_pgpanatomy_all():
    import pgpanatomy
    # just check that everything in pgpanatomy.__all__ is actually there
    assert set(pgpanatomy.__all__) <= {n for n, _ in inspect.getmembers(pgpanatomy)}


def test_version():
    import pgpanatomy
    from pgpanatomy import _author

    assert pgpanatomy.__version__ == _author.__version__


@pytest.mark.parametrize('modname', modules)
def test_exports(modname):
    module = importlib.import_module(modname)

    assert get_module_all(module) == get_module_objs(module)
