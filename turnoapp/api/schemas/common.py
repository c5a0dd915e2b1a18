from datetime import time
from typing import Annotated

from pydantic import AfterValidator


def _minute_precision(value: time) -> time:
    if value.second or value.microsecond:
        raise ValueError("times must be given as HH:MM")
    if value.tzinfo is not None:
        raise ValueError("times are local wall-clock values without an offset")
    return value


# Accepts "HH:MM"
MinuteTime = Annotated[time, AfterValidator(_minute_precision)]
