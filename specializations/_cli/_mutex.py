import functools
from typing import Any, List, Mapping, Tuple
from click import Option, option, UsageError, Context


class MutuallyExclusiveOption(Option):
    """An option that refuses to be combined with the options it names."""

    def __init__(self, *args: Any, disallow: List[str], **kwargs: Any) -> None:
        self.disallow = disallow
        super().__init__(*args, **kwargs)

    def handle_parse_result(
        self, ctx: Context, opts: Mapping[str, Any], args: List[str]
    ) -> Tuple[Any, List[str]]:
        if self.name in opts:
            clashing = [name for name in self.disallow if name in opts]
            if clashing:
                raise UsageError(
                    f"Option -{self.name} cannot be used with "
                    f"{', '.join('-' + name for name in clashing)}. "
                    "They are mutually exclusive.",
                    ctx=ctx,
                )

        return super().handle_parse_result(ctx, opts, args)


mutex = functools.partial(option, cls=MutuallyExclusiveOption)
