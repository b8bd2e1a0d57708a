#!/usr/bin/python
import configparser
import ipaddress
import logging
import logging.config
import os
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from auth_result import interpret
from avpairs import Attribute, Credentials, DeviceIdentity, build_attributes
from chap import generate_challenge
from radius_engine import ERROR_RC, OK_RC, RadiusEngine
from radius_errors import RadiusTransactionError, SetupError

logger = logging.getLogger("radius_client")

HERE = os.path.dirname(os.path.abspath(__file__))
# source checkout first, then the data-files installed with the wheel
DATA_DIRS = (HERE, os.path.join(sys.prefix, "share", "sb-radius-auth"))


def data_file(name: str, dirs: Sequence[str] = DATA_DIRS) -> str:
    for directory in dirs:
        path = os.path.join(directory, name)
        if os.path.exists(path):
            return path
    return os.path.join(dirs[0], name)


BASE_DICTIONARY = "/etc/radcli/dictionary"
VENDOR_DICTIONARY = data_file("dictionary.softbank")
LOGGING_CONF = data_file("logging.conf")

AUTH_PORT = 1812
RADIUS_RETRIES = 3
RADIUS_TIMEOUT = 5


@dataclass(frozen=True)
class ServerConfig:
    server_address: str
    shared_secret: str
    retries: int = RADIUS_RETRIES
    timeout: int = RADIUS_TIMEOUT
    dictionary_paths: Tuple[str, ...] = (BASE_DICTIONARY, VENDOR_DICTIONARY)
    auth_port: int = AUTH_PORT


@contextmanager
def configured_engine(server_config: ServerConfig, engine_factory=RadiusEngine):
    """
    Acquire an engine handle, load its dictionaries, configure and validate it.

    The handle is closed whatever happens inside the ``with`` block.
    """
    engine = engine_factory()
    if engine is None:
        raise SetupError("unable to create new handle")
    with engine:
        for path in server_config.dictionary_paths:
            engine.load_dictionary(path)
        engine.set_option("authserver", server_config.server_address)
        engine.set_option("authport", server_config.auth_port)
        engine.set_option("secret", server_config.shared_secret)
        engine.set_option("radius_retries", server_config.retries)
        engine.set_option("radius_timeout", server_config.timeout)
        engine.validate()
        yield engine


def execute(engine, attributes: Iterable[Attribute]) -> Tuple[int, List[Tuple[str, str]]]:
    request = engine.new_request()
    for attribute in attributes:
        engine.add_attribute(request, attribute)
    return engine.submit(request)


def radius_transact(auth_server_address: str, shared_secret: str, username: str,
                    password: str, mac: str,
                    dictionary_paths: Optional[Sequence[str]] = None,
                    auth_port: int = AUTH_PORT,
                    engine_factory=RadiusEngine) -> int:
    """
    radius_transact(auth_server_address, shared_secret, username, password, mac)

    Authenticate this device with one CHAP Access-Request.

    Returns:
        OK_RC on success, the server/transport result code on an
        authentication failure, ERROR_RC when the request could not be built
    """
    try:
        server_config = ServerConfig(
            str(ipaddress.ip_address(auth_server_address)),
            shared_secret,
            dictionary_paths=tuple(dictionary_paths or ServerConfig.dictionary_paths),
            auth_port=auth_port,
        )
        credentials = Credentials(username, password)
        device = DeviceIdentity(mac)
    except ValueError as e:
        logger.error("ERROR: invalid request parameters: %s", e)
        return ERROR_RC

    try:
        with configured_engine(server_config, engine_factory) as engine:
            challenge = generate_challenge()
            attributes = build_attributes(credentials, device, challenge)
            result, reply = execute(engine, attributes)
    except RadiusTransactionError as e:
        logger.error("ERROR: %s", e)
        return ERROR_RC

    outcome = interpret(result, reply)
    if outcome.success:
        logger.info("%s RADIUS Authentication OK", username)
        for line in outcome.render():
            logger.info("%s", line)
    else:
        logger.error("%s RADIUS Authentication failure (RC=%d)", username, outcome.code)
    return outcome.code


def read_config(path: str) -> Tuple[ServerConfig, Credentials, str]:
    config = configparser.ConfigParser()
    if not config.read(path):
        raise SetupError(f"unable to read config '{path}'")
    try:
        radius = config["Radius"]
        server_config = ServerConfig(
            radius["Server"],
            radius["Secret"],
            dictionary_paths=(
                radius.get("Dictionary", BASE_DICTIONARY),
                radius.get("VendorDictionary", VENDOR_DICTIONARY),
            ),
            auth_port=radius.getint("Port", AUTH_PORT),
        )
        credentials = Credentials(
            config["Credentials"]["Username"],
            config["Credentials"]["Password"],
        )
        mac = config["Device"]["Mac"]
    except KeyError as e:
        raise SetupError(f"config '{path}' is missing {e}") from e
    except ValueError as e:
        raise SetupError(f"config '{path}' is invalid: {e}") from e
    logger.debug("Radius server: '%s'", server_config.server_address)
    logger.debug("Radius dictionaries: %s", repr(server_config.dictionary_paths))
    return server_config, credentials, mac


def configure_logging(path: Optional[str] = None):
    path = path or LOGGING_CONF
    if os.path.exists(path):
        logging.config.fileConfig(path, disable_existing_loggers=False)
        return
    logging.basicConfig(level=logging.INFO, stream=sys.stderr,
                        format="%(asctime)s %(name)s %(levelname)s %(message)s")
    logger.warning("Logging config '%s' not found, logging to stderr", path)


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    configure_logging()
    config_path = argv[0] if argv else "radius_client.cfg"
    try:
        server_config, credentials, mac = read_config(config_path)
    except SetupError as e:
        logger.error("ERROR: %s", e)
        return 1

    result = radius_transact(
        server_config.server_address,
        server_config.shared_secret,
        credentials.username,
        credentials.password,
        mac,
        dictionary_paths=server_config.dictionary_paths,
        auth_port=server_config.auth_port,
    )
    return 0 if result == OK_RC else 1


if __name__ == '__main__':
    sys.exit(main())
