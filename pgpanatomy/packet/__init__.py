from .types import Key
from .types import Opaque
from .types import Packet
from .types import Primary
from .types import Private
from .types import Public
from .types import Sub

from .framing import iter_frames

from .packets import *  # NOQA

__all__ = ['Key',
           'Opaque',
           'Packet',
           'Primary',
           'Private',
           'Public',
           'Sub',
           'iter_frames',
           'packets']
