import dis
import opcode
import types
import typing

from .stats import Stats


def _specialized_instructions() -> frozenset[str]:
    # 3.11 and 3.12 keep a flat list; every version keeps the family mapping.
    names = set(getattr(opcode, "_specialized_instructions", ()))
    for family in getattr(opcode, "_specializations", {}).values():
        names.update(family)
    return frozenset(names)


SPECIALIZED_INSTRUCTIONS = _specialized_instructions()

# Quickened forms that commit to no operand type.
UNTYPED_QUICKENINGS = frozenset(
    {
        "RESUME_QUICK",
        "RESUME_CHECK",
        "JUMP_BACKWARD_QUICK",
        "JUMP_BACKWARD_JIT",
        "JUMP_BACKWARD_NO_JIT",
        "EXTENDED_ARG_QUICK",
        "LOAD_CONST_IMMORTAL",
        "LOAD_CONST_MORTAL",
    }
)

FAMILIES: dict[str, str] = {
    name: family
    for family, members in getattr(opcode, "_specializations", {}).items()
    for name in members
}


def is_superinstruction(instruction: dis.Instruction) -> bool:
    """Check if an instruction is a superinstruction."""
    return "__" in instruction.opname


def is_specialization(opname: str) -> bool:
    """Check if an opcode is a type-specialized variant."""
    return (
        opname in SPECIALIZED_INSTRUCTIONS
        and not opname.endswith("_ADAPTIVE")
        and opname not in UNTYPED_QUICKENINGS
        and "__" not in opname
    )


def family_of(opname: str) -> str:
    """Get the generic instruction a specialized one was derived from."""
    return FAMILIES.get(opname, opname)


def score_instruction(
    instruction: dis.Instruction, previous: dis.Instruction | None
) -> "Stats":
    """Score an instruction's importance."""
    if instruction.opname in SPECIALIZED_INSTRUCTIONS:
        if instruction.opname.endswith("_ADAPTIVE"):
            return Stats(adaptive=True)
        return Stats(specialized=True)
    if (
        previous is not None
        and is_superinstruction(previous)
        and not instruction.is_jump_target
    ):
        return Stats(specialized=True)
    return Stats(unquickened=True)


def walk_code(code: types.CodeType) -> typing.Generator[types.CodeType, None, None]:
    """Walk a code object, yielding all of its sub-code objects."""
    yield code
    for constant in code.co_consts:
        if isinstance(constant, types.CodeType):
            yield from walk_code(constant)


def adaptive_instructions(
    code: types.CodeType,
) -> typing.Generator[dis.Instruction, None, None]:
    """Yield the quickened instructions of a code object and its children."""
    for child in walk_code(code):
        yield from dis.get_instructions(child, adaptive=True)
