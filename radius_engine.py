import logging
import struct
from typing import Any, List, Tuple

from pyrad import client, dictionary, packet

from avpairs import Attribute
from radius_errors import AttributeRejectedError, SetupError

logger = logging.getLogger(__name__)

OK_RC = 0
ERROR_RC = -1
BADRESP_RC = -2
TIMEOUT_RC = 1
REJECT_RC = 2
CHALLENGE_RC = 3

MAX_VALUE_LENGTH = 253
# Vendor-Specific header: vendor id (4) + vendor type (1) + vendor length (1)
MAX_VENDOR_VALUE_LENGTH = MAX_VALUE_LENGTH - 6

REPLY_CODES = {
    packet.AccessAccept: OK_RC,
    packet.AccessReject: REJECT_RC,
    packet.AccessChallenge: CHALLENGE_RC,
}


class RadiusEngine(client.Client):
    """
    pyrad client configured option by option.

    One engine is one handle: it is created, configured, validated, used for
    a single Access-Request and closed. Use it as a context manager so the
    socket is released on every exit path.
    """

    def __init__(self):
        super().__init__(server=None, secret=b"", dict=dictionary.Dictionary())
        self.dictionaries = []
        self.options = {}

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def close(self):
        logger.debug("Releasing RADIUS handle")
        self._CloseSocket()

    def load_dictionary(self, path: str):
        logger.debug("Reading dictionary '%s'", path)
        try:
            self.dict.ReadDictionary(path)
        except (OSError, dictionary.ParseError) as e:
            raise SetupError(f"unable to read dictionary '{path}': {e}") from e
        self.dictionaries.append(path)

    def set_option(self, key: str, value: Any):
        try:
            if key == "authserver":
                self.server = str(value)
            elif key == "authport":
                self.authport = self.__positive__(value)
            elif key == "secret":
                self.secret = value if isinstance(value, bytes) else str(value).encode()
            elif key == "radius_retries":
                self.retries = self.__positive__(value)
            elif key == "radius_timeout":
                self.timeout = self.__positive__(value)
            else:
                raise SetupError(f"unknown option '{key}'")
        except (TypeError, ValueError) as e:
            raise SetupError(f"invalid value for '{key}': {e}") from e
        self.options[key] = value
        if key != "secret":
            logger.debug("Option %s = %s", key, value)

    def validate(self):
        missing = [
            key for key in ("authserver", "secret", "radius_retries", "radius_timeout")
            if key not in self.options
        ]
        if missing:
            raise SetupError(f"config incomplete, missing {', '.join(missing)}")
        if not self.server:
            raise SetupError("config incomplete, empty authserver")
        if not self.secret:
            raise SetupError("config incomplete, empty secret")
        if not self.dictionaries:
            raise SetupError("config incomplete, no dictionary loaded")

    def new_request(self) -> packet.AuthPacket:
        return self.CreateAuthPacket(code=packet.AccessRequest)

    def add_attribute(self, request: packet.Packet, attribute: Attribute):
        value = attribute.value
        if not isinstance(value, bytes) or not value:
            raise AttributeRejectedError(f"{self.__label__(attribute)}: empty value")
        if not 1 <= attribute.code <= 255:
            raise AttributeRejectedError(f"{self.__label__(attribute)}: invalid code")
        if attribute.vendor_id:
            if not self.dict.vendors.HasBackward(attribute.vendor_id):
                raise AttributeRejectedError(
                    f"{self.__label__(attribute)}: unknown vendor {attribute.vendor_id}")
            limit = MAX_VENDOR_VALUE_LENGTH
        else:
            limit = MAX_VALUE_LENGTH
        if len(value) > limit:
            raise AttributeRejectedError(
                f"{self.__label__(attribute)}: {len(value)} bytes exceeds {limit}")

        key = attribute.key
        values = request[key] if key in request else []
        request[key] = values + [value]

    def submit(self, request: packet.Packet) -> Tuple[int, List[Tuple[str, str]]]:
        logger.info("Sending Access-Request to '%s:%d'", self.server, self.authport)
        try:
            reply = self.SendPacket(request)
        except client.Timeout:
            logger.warning("No reply from '%s' after %d tries", self.server, self.retries)
            return TIMEOUT_RC, []
        except packet.PacketError as e:
            logger.warning("Bad reply from '%s': %s", self.server, e)
            return BADRESP_RC, []
        except OSError as e:
            logger.error("Network error talking to '%s': %s", self.server, e)
            return ERROR_RC, []

        result = REPLY_CODES.get(reply.code, BADRESP_RC)
        logger.debug("Reply code %d -> result %d", reply.code, result)
        try:
            pairs = self.__reply_pairs__(reply)
        except (ValueError, struct.error, OSError) as e:
            logger.warning("Undecodable reply attribute from '%s': %s", self.server, e)
            return BADRESP_RC, []
        return result, pairs

    def __reply_pairs__(self, reply: packet.Packet) -> List[Tuple[str, str]]:
        pairs = []
        for key in reply.keys():
            if isinstance(key, str):
                name, values = key, reply[key]
            elif isinstance(key, tuple):
                name, values = f"Vendor-{key[0]}-Attr-{key[1]}", reply[key]
            else:
                name, values = f"Attr-{key}", reply[key]
            for value in values:
                pairs.append((name, self.__value_str__(value)))
        return pairs

    @staticmethod
    def __value_str__(value) -> str:
        if isinstance(value, bytes):
            return "0x" + value.hex()
        return str(value)

    @staticmethod
    def __positive__(value) -> int:
        number = int(value)
        if number <= 0:
            raise ValueError(f"{value} is not positive")
        return number

    @staticmethod
    def __label__(attribute: Attribute) -> str:
        if attribute.name:
            return attribute.name
        if attribute.vendor_id:
            return f"Vendor-{attribute.vendor_id}-Attr-{attribute.code}"
        return f"Attr-{attribute.code}"
