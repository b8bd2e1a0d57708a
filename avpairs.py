import ipaddress
import logging
from dataclasses import dataclass
from typing import Tuple

from chap import CHAP_IDENTIFIER, build_chap_response

logger = logging.getLogger(__name__)

VENDOR_NONE = 0
VENDOR_SOFTBANK = 22197

PW_USER_NAME = 1
PW_CHAP_PASSWORD = 3
PW_CHAP_CHALLENGE = 60

SB_BB_MAC = 1
SB_BB_MANUFACTURER = 2
SB_BB_MODEL = 3
SB_BB_HW_REV = 4

MANUFACTURER = "foxconn"
MODEL = "e-wmta2.3,V5.0.0.1.rc35"
HW_REV = "hw_rev_2.00"


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str

    def __post_init__(self):
        if not self.password:
            raise ValueError("password must not be empty")
        # raises ValueError for anything that is not an IP address
        ipaddress.ip_address(self.username)

    @property
    def expanded_username(self) -> str:
        return ipaddress.ip_address(self.username).exploded


@dataclass(frozen=True)
class DeviceIdentity:
    mac_address: str
    manufacturer: str = MANUFACTURER
    model: str = MODEL
    hardware_revision: str = HW_REV


@dataclass(frozen=True)
class Attribute:
    code: int
    value: bytes
    vendor_id: int = VENDOR_NONE
    name: str = ""

    @property
    def key(self):
        """pyrad packet key: the code, or (vendor, code) for vendor attributes"""
        return (self.vendor_id, self.code) if self.vendor_id else self.code


def build_attributes(credentials: Credentials, device: DeviceIdentity, challenge: bytes,
                     identifier: int = CHAP_IDENTIFIER) -> Tuple[Attribute, ...]:
    """
    build_attributes(credentials, device, challenge)

    Returns the Access-Request attributes in submission order: User-Name,
    CHAP-Challenge, CHAP-Password, then the SoftBank device attributes.
    """
    response = build_chap_response(identifier, credentials.password, challenge)
    attributes = (
        Attribute(PW_USER_NAME, credentials.expanded_username.encode(), name="User-Name"),
        Attribute(PW_CHAP_CHALLENGE, bytes(challenge), name="CHAP-Challenge"),
        Attribute(PW_CHAP_PASSWORD, response.value, name="CHAP-Password"),
        Attribute(SB_BB_MAC, device.mac_address.encode(),
                  VENDOR_SOFTBANK, "SB-BB-MAC"),
        Attribute(SB_BB_MANUFACTURER, device.manufacturer.encode(),
                  VENDOR_SOFTBANK, "SB-BB-Manufacturer"),
        Attribute(SB_BB_MODEL, device.model.encode(),
                  VENDOR_SOFTBANK, "SB-BB-Model"),
        Attribute(SB_BB_HW_REV, device.hardware_revision.encode(),
                  VENDOR_SOFTBANK, "SB-BB-HW-Revision"),
    )
    logger.debug("Assembled %d attributes", len(attributes))
    return attributes
