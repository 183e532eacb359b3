"""Decode an untrusted ipapi.co JSON payload into a LookupResult.

Every optional field is decoded defensively: a missing key, a value of the
wrong type, or malformed numeric text all come out as None. The only failures
are a service-reported error flag and a payload with no usable ``ip``.
"""

from __future__ import annotations

import ipaddress
import math
import re
from collections.abc import Mapping
from typing import Any

from .errors import InvalidTargetError, MalformedResponseError
from .models import LookupResult

_VERSIONS = {"ipv4": "IPv4", "ipv6": "IPv6"}

# "+1", "1", "+1-684"
_CALLING_CODE_RE = re.compile(r"^\+?(\d+(?:-\d+)*)$")


def _text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _number(value: Any) -> float | None:
    """Coerce ints, floats and numeric text; reject bools, NaN and inf."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            # json.loads keeps huge integer literals as arbitrary-size ints
            return None
    elif isinstance(value, str):
        try:
            number = float(value.strip().replace(",", ""))
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def _non_negative(value: Any) -> float | None:
    number = _number(value)
    if number is None or number < 0:
        return None
    return number


def _population(value: Any) -> int | None:
    number = _non_negative(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def _coordinates(raw: Mapping) -> tuple[float | None, float | None]:
    lat = _number(raw.get("latitude"))
    lng = _number(raw.get("longitude"))
    if lat is None or lng is None:
        return None, None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        return None, None
    return lat, lng


def _calling_code(value: Any) -> str | None:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value) if value >= 0 else None
    text = _text(value)
    if text is None:
        return None
    match = _CALLING_CODE_RE.match(text)
    return match.group(1) if match else None


def _languages(value: Any) -> tuple[str, ...]:
    text = _text(value)
    if text is None:
        return ()
    return tuple(part.strip() for part in text.split(",") if part.strip())


def _version(value: Any, ip: str) -> str | None:
    text = _text(value)
    if text is not None:
        return _VERSIONS.get(text.lower())
    # Not reported: infer from the address itself when it parses
    try:
        return f"IPv{ipaddress.ip_address(ip).version}"
    except ValueError:
        return None


def parse(raw: Any) -> LookupResult:
    """Validate a decoded lookup response.

    Raises InvalidTargetError when the service flags the query as an error,
    and MalformedResponseError when the payload is not an object or carries
    no address. Never raises for absent or ill-typed optional fields.
    """
    if not isinstance(raw, Mapping):
        raise MalformedResponseError(
            f"expected a JSON object, got {type(raw).__name__}"
        )

    if raw.get("error"):
        raise InvalidTargetError(_text(raw.get("reason")))

    ip = _text(raw.get("ip"))
    if ip is None:
        raise MalformedResponseError("response has no ip field")

    latitude, longitude = _coordinates(raw)

    return LookupResult(
        ip=ip,
        version=_version(raw.get("version"), ip),
        city=_text(raw.get("city")),
        region=_text(raw.get("region")),
        country=_text(raw.get("country_name")),
        continent_code=_text(raw.get("continent_code")),
        postal=_text(raw.get("postal")),
        timezone=_text(raw.get("timezone")),
        org=_text(raw.get("org")),
        asn=_text(raw.get("asn")),
        currency=_text(raw.get("currency")),
        calling_code=_calling_code(raw.get("country_calling_code")),
        population=_population(raw.get("country_population")),
        languages=_languages(raw.get("languages")),
        tld=_text(raw.get("country_tld")),
        area_km2=_non_negative(raw.get("country_area")),
        latitude=latitude,
        longitude=longitude,
        in_eu=raw.get("in_eu") is True,
    )
