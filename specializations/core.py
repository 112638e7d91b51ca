import importlib
import inspect
import logging
import pathlib
import runpy
import tempfile
import types
import typing

from .instructions import adaptive_instructions, family_of, is_specialization, score_instruction
from .records import MethodRecord, Specialization, Table
from .stats import Stats
from .utils import catch_exceptions, patch_sys_argv

__all__ = (
    "analyze_specializations",
    "run_code",
    "run_file",
    "run_module",
)

logger = logging.getLogger(__name__)

Scope = typing.Union[types.ModuleType, str]


def _resolve(scope: Scope) -> types.ModuleType:
    if isinstance(scope, types.ModuleType):
        return scope
    return importlib.import_module(scope)


def _is_anonymous(name: str, obj: object) -> bool:
    """Lambdas and compiler-generated names are not worth reporting."""
    if name.startswith("<"):
        return True
    return getattr(obj, "__name__", "").startswith("<")


def _functions(obj: object) -> typing.Generator[types.FunctionType, None, None]:
    """Yield the Python functions a module-level binding carries."""
    if isinstance(obj, type):
        for attribute in list(vars(obj).values()):
            if isinstance(attribute, (staticmethod, classmethod)):
                attribute = attribute.__func__
            if isinstance(attribute, property):
                for accessor in (attribute.fget, attribute.fset, attribute.fdel):
                    if isinstance(accessor, types.FunctionType):
                        yield inspect.unwrap(accessor)
            elif isinstance(attribute, types.FunctionType):
                yield inspect.unwrap(attribute)
    elif callable(obj):
        function = inspect.unwrap(obj)
        if not isinstance(function, types.FunctionType):
            raise TypeError(f"{obj!r} has no Python code")
        yield function


def _signature(function: types.FunctionType) -> str:
    try:
        return str(inspect.signature(function))
    except (TypeError, ValueError):
        return "(...)"


def _specializations(code: types.CodeType) -> tuple[tuple[Specialization, ...], Stats]:
    """Collect the specialized sites of a code object, plus its instruction stats."""
    found = []
    stats = Stats()
    previous = None
    for instruction in adaptive_instructions(code):
        stats += score_instruction(instruction, previous)
        if is_specialization(instruction.opname):
            found.append(
                Specialization(
                    opname=instruction.opname,
                    family=family_of(instruction.opname),
                    line=instruction.positions.lineno if instruction.positions else None,
                    offset=instruction.offset,
                )
            )
        previous = instruction
    return tuple(found), stats


def _record(name: str, function: types.FunctionType) -> MethodRecord:
    code = function.__code__
    spec_list, stats = _specializations(code)
    signature = _signature(function)
    return MethodRecord(
        name=name,
        n_spec=len(spec_list),
        method=f"{function.__qualname__}{signature}",
        signature=signature,
        location=f"{code.co_filename}:{code.co_firstlineno}",
        module_name=function.__module__,
        file=code.co_filename,
        line=code.co_firstlineno,
        spec_list=spec_list,
        stats=stats,
        method_object=function,
    )


def analyze_specializations(
    scope: Scope,
    *,
    sort_by_specializations: bool = True,
    include_details: bool = False,
) -> Table[MethodRecord]:
    """Count the specialized instructions of every function a module defines.

    Every module-level function and every function defined in the body of a
    module-level class is reported, as long as its ``__module__`` is the
    scope itself. Bindings that cannot be inspected are skipped.

    A high count points at hot code, and at sites the interpreter has
    committed to particular operand types. A function that has never run
    reports zero.
    """
    module = _resolve(scope)
    records = []
    for name in list(vars(module)):
        try:
            obj = getattr(module, name)
            if _is_anonymous(name, obj) or not (isinstance(obj, type) or callable(obj)):
                continue
            functions = list(_functions(obj))
        except Exception as exception:
            logger.debug("skipping %s.%s: %r", module.__name__, name, exception)
            continue
        for function in functions:
            if getattr(function, "__module__", None) != module.__name__:
                continue
            try:
                records.append(_record(name, function))
            except Exception as exception:
                logger.debug(
                    "skipping %s.%s (%s): %r",
                    module.__name__,
                    name,
                    getattr(function, "__qualname__", function),
                    exception,
                )

    columns = MethodRecord.COLUMNS
    if include_details:
        columns += MethodRecord.DETAIL_COLUMNS
    table = Table(records, columns=columns)
    if sort_by_specializations and table:
        table = table.sort("n_spec", reverse=True)
    return table


def _as_module(namespace: dict[str, typing.Any] | None) -> types.ModuleType | None:
    if namespace is None:
        return None
    module = types.ModuleType("__main__")
    module.__dict__.update(namespace)
    return module


RunResult = typing.Tuple[typing.Optional[types.ModuleType], typing.List[BaseException]]


def run_code(code: str, /, *argv: str) -> RunResult:
    """Run a code string as ``__main__``, like ``python -c``."""
    namespace = None
    with tempfile.TemporaryDirectory() as work:
        path = pathlib.Path(work) / "__main__.py"
        path.write_text(code)
        with patch_sys_argv("-c", argv), catch_exceptions() as caught:
            namespace = runpy.run_path(str(path), run_name="__main__")
    return _as_module(namespace), caught


def run_module(module: str, /, *argv: str) -> RunResult:
    """Run a module as ``__main__``, like ``python -m``."""
    namespace = None
    with patch_sys_argv(module, argv), catch_exceptions() as caught:
        namespace = runpy.run_module(module, run_name="__main__", alter_sys=True)
    return _as_module(namespace), caught


def run_file(source: str, /, *argv: str) -> RunResult:
    """Run a script as ``__main__``, like ``python <file>``."""
    namespace = None
    with patch_sys_argv(source, argv), catch_exceptions() as caught:
        namespace = runpy.run_path(source, run_name="__main__")
    return _as_module(namespace), caught

