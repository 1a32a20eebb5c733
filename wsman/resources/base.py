"""
Resource class definitions.

A management class is data: a name, the schema it lives in, and the
extrinsic methods it exposes. All verbs are implemented once by
ResourceService.
"""

from dataclasses import dataclass

from wsman.message.namespaces import Schema

_PREFIXES = {
    "AMT_": Schema.AMT,
    "CIM_": Schema.CIM,
    "IPS_": Schema.IPS,
}


def schema_for(class_name: str) -> Schema:
    """
    Infer the schema of a class from its name prefix.

    Raises:
        ValueError: If the prefix is not one of AMT_, CIM_ or IPS_.
    """
    for prefix, schema in _PREFIXES.items():
        if class_name.startswith(prefix):
            return schema
    msg = f"Cannot infer schema of {class_name!r}"
    raise ValueError(msg)


@dataclass(frozen=True, kw_only=True)
class ResourceClass:
    """
    Attributes:
        name: Class name (``AMT_EthernetPortSettings``).
        schema: Schema the class belongs to.
        keyed: Whether Get must target an instance through selectors.
        methods: Extrinsic methods the class supports. Empty means unchecked.
    """

    name: str
    schema: Schema
    keyed: bool = False
    methods: frozenset[str] = frozenset()

    @classmethod
    def named(cls, name: str, **kwargs: object) -> "ResourceClass":
        """Define a class whose schema follows from its name prefix."""
        return cls(name=name, schema=schema_for(name), **kwargs)

    @property
    def uri(self) -> str:
        """Full resource URI."""
        return f"{self.schema}{self.name}"
