from typing import Mapping


def header_value(headers: Mapping[str, str], name: str, default: str = "") -> str:
    """Header lookup that treats empty values as missing."""
    return headers.get(name) or default
