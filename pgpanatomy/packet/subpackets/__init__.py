from .types import Opaque
from .types import Signature
from .types import UserAttribute

from . import signature
from . import userattribute

__all__ = ['Signature',
           'UserAttribute',
           'Opaque',
           'signature',
           'userattribute']
