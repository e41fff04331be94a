from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

TASK_SEGMENT_PATTERN = re.compile(r"/task:([0-9]+)")
DIGITS_PATTERN = re.compile(r"[0-9]+")
GROUP_SIZE_PATTERN = re.compile(r"[+-]?[0-9]+(?:\.[0-9]+)?")


class ConversionError(ValueError):
    """Base class for inputs that cannot be turned into a pod name."""

    kind = "conversion_error"
    default_message = "Unable to convert the task ID."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return self.args[0]


class MissingInput(ConversionError):
    kind = "missing_input"
    default_message = "Please fill in both fields."


class InvalidFormat(ConversionError):
    kind = "invalid_format"
    default_message = (
        "Invalid Task ID format. It should end with 'task:<number>' or just be the number."
    )


class InvalidGroupSize(ConversionError):
    kind = "invalid_group_size"
    default_message = "Pods per slice must be a positive number."


@dataclass(frozen=True)
class ConversionResult:
    task_id: int
    group_size: int
    group_index: int
    position_index: int

    @property
    def name(self) -> str:
        return f"job-{self.group_index}-{self.position_index}"

    @property
    def breakdown(self) -> tuple[str, ...]:
        """Return the worked arithmetic behind the pod name."""

        return (
            f"slice id = floor({self.task_id} / {self.group_size}) = {self.group_index}",
            f"process id = {self.task_id} mod {self.group_size} = {self.position_index}",
            (
                f"check: {self.group_index} * {self.group_size} + {self.position_index}"
                f" = {self.task_id}"
            ),
        )


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _digits_to_int(digits: str) -> int:
    try:
        return int(digits)
    except ValueError:
        raise InvalidFormat(
            f"Task ID is too long ({len(digits)} digits)."
        ) from None


def extract_from_task_segment(identifier_text: str) -> int | None:
    """Return the number of the last ``/task:<digits>`` segment, if present."""

    matches = TASK_SEGMENT_PATTERN.findall(identifier_text)
    if not matches:
        return None
    return _digits_to_int(matches[-1])


def extract_from_last_colon(identifier_text: str) -> int | None:
    """Return the text after the last colon when it is a plain digit run."""

    candidate = identifier_text.rsplit(":", 1)[-1].strip()
    if not DIGITS_PATTERN.fullmatch(candidate):
        return None
    return _digits_to_int(candidate)


def parse_task_id(identifier_text: str) -> int:
    task_id = extract_from_task_segment(identifier_text)
    if task_id is not None:
        logger.debug("Matched task segment in %r -> %d", identifier_text, task_id)
        return task_id
    task_id = extract_from_last_colon(identifier_text)
    if task_id is not None:
        logger.debug("Used last colon segment of %r -> %d", identifier_text, task_id)
        return task_id
    raise InvalidFormat()


def parse_group_size(value) -> int:
    if isinstance(value, bool):
        raise InvalidGroupSize()
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise InvalidGroupSize()
        number = int(value)
    elif isinstance(value, str):
        text = value.strip()
        if not GROUP_SIZE_PATTERN.fullmatch(text):
            raise InvalidGroupSize()
        if "." in text:
            return parse_group_size(float(text))
        try:
            number = int(text)
        except ValueError:
            raise InvalidGroupSize() from None
    else:
        raise InvalidGroupSize()
    if number <= 0:
        raise InvalidGroupSize()
    return number


def convert(identifier_text: str | None, group_size) -> ConversionResult:
    """Map a task identifier onto its slice and process ids.

    ``identifier_text`` is either a bare number (``"2973"``) or a worker path
    such as ``"/job:jax_worker/replica:0/task:2973"``. ``group_size`` is the
    number of pods per slice and may be given as an int or as text.

    Raises ``MissingInput``, ``InvalidFormat`` or ``InvalidGroupSize``.
    """

    if _is_blank(identifier_text) or _is_blank(group_size):
        raise MissingInput()
    pods_per_slice = parse_group_size(group_size)
    task_id = parse_task_id(str(identifier_text))
    group_index, position_index = divmod(task_id, pods_per_slice)
    return ConversionResult(
        task_id=task_id,
        group_size=pods_per_slice,
        group_index=group_index,
        position_index=position_index,
    )
