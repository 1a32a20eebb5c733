"""
Intel AMT classes and their typed method inputs and instance records.
"""

from dataclasses import dataclass

from wsman.message.codec import xml_field
from wsman.resources.base import ResourceClass

AMT_AuthorizationService = ResourceClass.named(
    "AMT_AuthorizationService",
    methods=frozenset(
        {
            "EnumerateUserAclEntries",
            "GetAclEnabledState",
            "SetAclEnabledState",
            "GetAdminAclEntry",
            "GetAdminAclEntryStatus",
            "GetAdminNetAclEntryStatus",
            "GetUserAclEntryEx",
            "RemoveUserAclEntry",
            "SetAdminAclEntryEx",
        }
    ),
)
AMT_EthernetPortSettings = ResourceClass.named("AMT_EthernetPortSettings", keyed=True)
AMT_MPSUsernamePassword = ResourceClass.named("AMT_MPSUsernamePassword")
AMT_PublicKeyCertificate = ResourceClass.named("AMT_PublicKeyCertificate", keyed=True)
AMT_TimeSynchronizationService = ResourceClass.named(
    "AMT_TimeSynchronizationService",
    methods=frozenset({"GetLowAccuracyTimeSynch", "SetHighAccuracyTimeSynch"}),
)
AMT_TLSCredentialContext = ResourceClass.named("AMT_TLSCredentialContext")


@dataclass(frozen=True, kw_only=True)
class EnumerateUserAclEntriesInput:
    start_index: int = xml_field("StartIndex", default=1)


@dataclass(frozen=True, kw_only=True)
class AclHandleInput:
    """Input of the ACL methods addressing one entry by handle."""

    handle: int = xml_field("Handle")


@dataclass(frozen=True, kw_only=True)
class SetAclEnabledStateInput:
    handle: int = xml_field("Handle")
    enabled: bool = xml_field("Enabled")


@dataclass(frozen=True, kw_only=True)
class SetAdminAclEntryExInput:
    """
    Attributes:
        username: New admin user name.
        digest_password: Base64 of MD5(username:realm:password), as AMT expects.
    """

    username: str = xml_field("Username")
    digest_password: str = xml_field("DigestPassword")


@dataclass(frozen=True, kw_only=True)
class SetHighAccuracyTimeSynchInput:
    """Times are seconds since the epoch; see the AMT SDK for their meaning."""

    ta0: int = xml_field("Ta0")
    tm1: int = xml_field("Tm1")
    tm2: int = xml_field("Tm2")


@dataclass(frozen=True, kw_only=True)
class EthernetPortSettings:
    """Writable subset of AMT_EthernetPortSettings, sent with Put."""

    instance_id: str = xml_field("InstanceID")
    element_name: str | None = xml_field("ElementName", default=None)
    shared_mac: bool | None = xml_field("SharedMAC", default=None)
    shared_static_ip: bool | None = xml_field("SharedStaticIp", default=None)
    ip_sync_enabled: bool | None = xml_field("IpSyncEnabled", default=None)
    dhcp_enabled: bool | None = xml_field("DHCPEnabled", default=None)
    ip_address: str | None = xml_field("IPAddress", default=None)
    subnet_mask: str | None = xml_field("SubnetMask", default=None)
    default_gateway: str | None = xml_field("DefaultGateway", default=None)
    primary_dns: str | None = xml_field("PrimaryDNS", default=None)
    secondary_dns: str | None = xml_field("SecondaryDNS", default=None)


@dataclass(frozen=True, kw_only=True)
class MPSUsernamePassword:
    instance_id: str = xml_field("InstanceID")
    remote_id: str = xml_field("RemoteID")
    secret: str | None = xml_field("Secret", default=None)
