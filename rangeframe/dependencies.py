from __future__ import annotations

from typing import TYPE_CHECKING

from rangeframe.lazy_import import LazyImport

if TYPE_CHECKING:
    import numpy as np
    import pyarrow as pa
    import pyarrow.compute as pc
else:
    np = LazyImport("numpy")
    pa = LazyImport("pyarrow")
    pc = LazyImport("pyarrow.compute")

__all__ = [
    "np",
    "pa",
    "pc",
]
