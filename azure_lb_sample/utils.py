import logging
import random
from typing import Any, Callable

from attr import define, field

log = logging.getLogger("azure_lb_sample")
narrative_log = logging.getLogger("azure_lb_sample.narrative")


def create_random_name(prefix: str) -> str:
    # no uniqueness guarantee: a name might be handed out twice
    return f"{prefix}{random.randrange(9999)}"


def create_username() -> str:
    return "tirekicker"


def create_password() -> str:
    return "azure12345QWE!"


@define
class Narrator:
    """
    Writes the narrative of a run line by line to the configured sink.
    Defaults to the azure_lb_sample.narrative logger.
    """

    sink: Callable[[str], None] = field(default=narrative_log.info)

    def log(self, message: Any = "") -> None:
        text = "(null)" if message is None else str(message)
        for line in text.splitlines() or [""]:
            self.sink(line)
