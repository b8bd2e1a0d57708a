import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

from radius_engine import OK_RC

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthOutcome:
    success: bool
    code: int
    attributes: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def render(self) -> List[str]:
        return [f"{name}={value}" for name, value in self.attributes]


def interpret(result_code: int, response_attributes: Iterable[Tuple[str, str]]) -> AuthOutcome:
    """Only OK_RC is a success; the reply attributes are kept for diagnostics only."""
    if result_code != OK_RC:
        logger.debug("Result %d classified as failure", result_code)
        return AuthOutcome(False, result_code)
    pairs = tuple((str(name), str(value)) for name, value in response_attributes)
    logger.debug("Result %d classified as success with %d reply attributes", result_code, len(pairs))
    return AuthOutcome(True, result_code, pairs)
