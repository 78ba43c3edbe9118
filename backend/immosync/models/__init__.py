from .catalog import Asset, ContactPerson, Provider, RealEstate
from .interface import Interface, InterfaceHistory, InterfaceMapping

__all__ = [
    "Provider",
    "ContactPerson",
    "RealEstate",
    "Asset",
    "Interface",
    "InterfaceMapping",
    "InterfaceHistory",
]
