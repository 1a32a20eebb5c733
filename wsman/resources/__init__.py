"""
Management class definitions, as data.
"""

from wsman.resources import amt, cim, ips
from wsman.resources.base import ResourceClass, schema_for

CATALOG: dict[str, ResourceClass] = {
    resource.name: resource
    for module in (amt, cim, ips)
    for resource in vars(module).values()
    if isinstance(resource, ResourceClass)
}


def lookup(name: str) -> ResourceClass:
    """
    Return the catalogued definition of ``name``, or a plain definition
    inferred from its prefix when the class is not catalogued.

    Raises:
        ValueError: If the class is unknown and its prefix is unrecognized.
    """
    if name in CATALOG:
        return CATALOG[name]
    return ResourceClass.named(name)


__all__ = ["CATALOG", "ResourceClass", "amt", "cim", "ips", "lookup", "schema_for"]
