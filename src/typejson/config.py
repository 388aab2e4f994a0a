"""Engine configuration."""

from __future__ import annotations

from dataclasses import dataclass

from typejson.output import OutputType


@dataclass(kw_only=True)
class JsonConfig:
    """Options consulted by `Json` while writing and reading.

    Attributes:
        output_type: Quoting dialect of the written text
        type_name: Member that carries type tags; None disables tagging
        use_prototypes: Skip members still equal to their default value
        ignore_unknown_fields: Skip input members the target type lacks
        ignore_deprecated: Skip members annotated `Deprecated`
        sort_fields: Order members alphabetically instead of by declaration
        enum_names: Write enum members by `.name` instead of `str(member)`
        include_private: Also serialize `_private` members

    `sort_fields` and `include_private` shape the cached member lists, so they
    only take effect for types not yet seen by the engine.
    """

    output_type: OutputType = OutputType.JSON
    type_name: str | None = "class"
    use_prototypes: bool = True
    ignore_unknown_fields: bool = False
    ignore_deprecated: bool = False
    sort_fields: bool = False
    enum_names: bool = True
    include_private: bool = False
