import dataclasses
import typing


@dataclasses.dataclass(frozen=True, slots=True)
class Stats:
    """Instruction statistics for a function's quickened code."""

    specialized: int = 0
    adaptive: int = 0
    unquickened: int = 0

    def __add__(self, other: "Stats") -> "Stats":
        if not isinstance(other, Stats):
            return NotImplemented
        return Stats(
            specialized=self.specialized + other.specialized,
            adaptive=self.adaptive + other.adaptive,
            unquickened=self.unquickened + other.unquickened,
        )

    @property
    def quickened(self) -> int:
        return self.specialized + self.adaptive

    @classmethod
    def from_dict(cls, data: typing.Mapping[str, int]) -> "Stats":
        return cls(
            specialized=int(data.get("specialized", 0)),
            adaptive=int(data.get("adaptive", 0)),
            unquickened=int(data.get("unquickened", 0)),
        )
