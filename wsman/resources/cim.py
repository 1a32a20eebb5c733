"""
DMTF CIM classes exposed by AMT devices.
"""

from wsman.resources.base import ResourceClass

CIM_MediaAccessDevice = ResourceClass.named("CIM_MediaAccessDevice")
CIM_SystemPackaging = ResourceClass.named("CIM_SystemPackaging", keyed=True)
CIM_ComputerSystemPackage = ResourceClass.named("CIM_ComputerSystemPackage")
CIM_BIOSElement = ResourceClass.named("CIM_BIOSElement")
