""" pgpanatomy :: the anatomy of an OpenPGP certificate
"""
from ._author import __author__
from ._author import __copyright__
from ._author import __license__
from ._author import __version__

from . import constants
from . import errors

from .anatomy import Certificate
from .anatomy import Identity
from .anatomy import KeyMaterial
from .anatomy import PrimaryKey
from .anatomy import Problem
from .anatomy import Revocation
from .anatomy import Signature
from .anatomy import Subkey
from .anatomy import UserAttribute

from .assembler import analyze

__all__ = ['__author__',
           '__copyright__',
           '__license__',
           '__version__',
           'constants',
           'errors',
           'analyze',
           'Certificate',
           'Identity',
           'KeyMaterial',
           'PrimaryKey',
           'Problem',
           'Revocation',
           'Signature',
           'Subkey',
           'UserAttribute', ]
