"""
Gateway Flow - Endpoint label decoding

The gateway names sensors ``sensor:<base64 id>``. For display we show
``sensor:<id>``; anything that does not decode cleanly is shown as logged.
"""
import base64
import binascii
from typing import Any

SENSOR_PREFIX = "sensor:"


def decode_sensor_label(label: Any) -> Any:
    if not isinstance(label, str) or not label.startswith(SENSOR_PREFIX):
        return label
    encoded = label[len(SENSOR_PREFIX):]
    try:
        text = base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return label
    return f"{SENSOR_PREFIX}{text}"
