"""Format checks for operator-supplied values.

Every function here returns a boolean; callers decide whether to re-prompt.
"""

import re


POSITIVE_NUMBER = re.compile(r"[0-9]+([.][0-9]+)?")
IPV4 = re.compile(r"([0-9]{1,3}\.){3}[0-9]{1,3}")
IPV4_CIDR = re.compile(r"([0-9]{1,3}\.){3}[0-9]{1,3}/([0-9]|[1-2][0-9]|3[0-2])")
MAC_ADDRESS = re.compile(r"([0-9A-Fa-f]{2}:){5}[0-9A-Fa-f]{2}")


def is_positive_number(value: str) -> bool:
    """Integer or decimal with an optional fractional part."""
    return POSITIVE_NUMBER.fullmatch(value) is not None


def is_positive_integer(value: str) -> bool:
    """Whole number greater than zero."""
    return value.isascii() and value.isdigit() and int(value) > 0


def is_dhcp_or_cidr(value: str) -> bool:
    """Literal 'dhcp' or a dotted quad with a /0-32 prefix."""
    return value == "dhcp" or IPV4_CIDR.fullmatch(value) is not None


def is_ipv4(value: str) -> bool:
    """Four dot-separated groups of one to three digits.

    Octet ranges are not enforced.
    """
    return IPV4.fullmatch(value) is not None


def is_mac_address(value: str) -> bool:
    return MAC_ADDRESS.fullmatch(value) is not None


def is_vlan_tag(value: str) -> bool:
    return is_positive_integer(value) and int(value) <= 4094
