"""
Intel IPS classes.
"""

from dataclasses import dataclass

from wsman.message.codec import xml_field
from wsman.resources.base import ResourceClass

IPS_OptInService = ResourceClass.named(
    "IPS_OptInService",
    methods=frozenset({"StartOptIn", "CancelOptIn", "SendOptInCode"}),
)
IPS_HostBasedSetupService = ResourceClass.named("IPS_HostBasedSetupService")


@dataclass(frozen=True, kw_only=True)
class SendOptInCodeInput:
    opt_in_code: int = xml_field("OptInCode")
