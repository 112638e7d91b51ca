"""Count CPython's specialized instructions per function, module by module."""
import sys

if sys.version_info < (3, 11) or sys.implementation.name != "cpython":
    raise RuntimeError("specializations only supports CPython 3.11+!")


from .compare import (
    compare_specializations as compare_specializations,
    new_methods as new_methods,
)
from .core import analyze_specializations as analyze_specializations
from .display import show_wide as show_wide
from .records import (
    DeltaRecord as DeltaRecord,
    MethodRecord as MethodRecord,
    Specialization as Specialization,
    Table as Table,
)
