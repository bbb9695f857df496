"""
GeometryCodec -- the only place WKT text is parsed or produced.

Exchange format (what callers send and receive):
  POINT(lng lat)
  LINESTRING(lng1 lat1, lng2 lat2, ...)

Text is parsed with shapely (GEOS WKT reader); an EWKT `SRID=n;` prefix is
split off first. Internal format is an immutable Geometry value tagged with
an SRID. The in-memory store keeps Geometry objects as-is; the PostGIS store
ships Geometry.ewkt to ST_GeomFromEWKT and reads ST_AsEWKT back through
decode().

Normalized text (decode output):
  - upper-case keyword, no space before "("
  - coordinates printed with up to 15 significant digits (PostGIS precision)
  - linestring points separated by ", " in their original order
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from shapely import wkt
from shapely.errors import ShapelyError

WGS84_SRID = 4326

POINT = "POINT"
LINESTRING = "LINESTRING"
SUPPORTED_KINDS = (POINT, LINESTRING)

# shapely geom_type -> exchange keyword
_KINDS = {"Point": POINT, "LineString": LINESTRING}

_SRID_PREFIX_RE = re.compile(r"^\s*SRID\s*=\s*(?P<srid>[-+]?\d+)\s*;", re.IGNORECASE)


class InvalidGeometry(ValueError):
    """Raised when text is not a well-formed POINT / LINESTRING for the SRID."""

    def __init__(self, message: str, text: str | None = None) -> None:
        super().__init__(message)
        self.text = text


@dataclass(frozen=True)
class Geometry:
    """A validated point or linestring. Coordinates are (lng, lat) pairs."""

    kind: str
    coordinates: tuple[tuple[float, float], ...]
    srid: int = WGS84_SRID

    @property
    def wkt(self) -> str:
        body = ", ".join(f"{_fmt(x)} {_fmt(y)}" for x, y in self.coordinates)
        return f"{self.kind}({body})"

    @property
    def ewkt(self) -> str:
        return f"SRID={self.srid};{self.wkt}"


def _fmt(value: float) -> str:
    text = format(value, ".15g")
    return "0" if text == "-0" else text


def _split_srid(text: str) -> tuple[int | None, str]:
    match = _SRID_PREFIX_RE.match(text)
    if match is None:
        return None, text
    return int(match.group("srid")), text[match.end():]


def _check_finite(coords: tuple[tuple[float, float], ...], text: str) -> None:
    for x, y in coords:
        if not (math.isfinite(x) and math.isfinite(y)):
            raise InvalidGeometry(f"Non-finite coordinate ({x} {y})", text)


def _check_wgs84(coords: tuple[tuple[float, float], ...], text: str) -> None:
    for lng, lat in coords:
        if not -180.0 <= lng <= 180.0:
            raise InvalidGeometry(f"Longitude {lng} outside [-180, 180]", text)
        if not -90.0 <= lat <= 90.0:
            raise InvalidGeometry(f"Latitude {lat} outside [-90, 90]", text)


class GeometryCodec:
    """
    Translate between exchange text and Geometry values for a single SRID.

    One instance is shared by every store; it holds no per-call state.
    """

    def __init__(self, srid: int = WGS84_SRID) -> None:
        self.srid = srid

    def encode(
        self,
        text: str,
        srid: int | None = None,
        kind: str | None = None,
    ) -> Geometry:
        """
        Parse and validate exchange text into a Geometry tagged with `srid`.

        Raises InvalidGeometry on malformed text, an unsupported or unexpected
        geometry kind, a conflicting embedded SRID, or out-of-range
        coordinates (WGS84 only).
        """
        srid = self.srid if srid is None else srid
        if not isinstance(text, str):
            raise InvalidGeometry(f"Geometry must be text, got {type(text).__name__}")

        embedded, body = _split_srid(text)
        if embedded is not None and embedded != srid:
            raise InvalidGeometry(
                f"Geometry tagged SRID={embedded}, expected SRID={srid}", text
            )
        if not body.strip():
            raise InvalidGeometry("Empty geometry text", text)

        try:
            shape = wkt.loads(body)
        except (ShapelyError, ValueError) as exc:
            raise InvalidGeometry(f"Malformed geometry text: {text!r} ({exc})", text) from None

        found = _KINDS.get(shape.geom_type)
        if found is None:
            raise InvalidGeometry(f"Unsupported geometry type {shape.geom_type.upper()}", text)
        if kind is not None and found != kind:
            raise InvalidGeometry(f"Expected {kind}, got {found}", text)
        if shape.is_empty:
            raise InvalidGeometry(f"Empty {found} is not allowed", text)
        if shape.has_z or getattr(shape, "has_m", False):
            raise InvalidGeometry(f"{found} must be 2D (lng lat)", text)
        # GEOS reads the first geometry and may leave trailing tokens unconsumed
        if not body.rstrip().endswith(")"):
            raise InvalidGeometry(f"Malformed geometry text: {text!r}", text)

        coords = tuple((float(x), float(y)) for x, y in shape.coords)
        if found == LINESTRING and len(coords) < 2:
            raise InvalidGeometry("LINESTRING needs at least two points", text)
        _check_finite(coords, text)
        if srid == WGS84_SRID:
            _check_wgs84(coords, text)

        return Geometry(kind=found, coordinates=coords, srid=srid)

    def decode(self, stored: Geometry | str) -> str:
        """Return the normalized exchange text for a stored geometry."""
        if isinstance(stored, Geometry):
            return stored.wkt
        if isinstance(stored, str):
            embedded, _ = _split_srid(stored)
            return self.encode(stored, srid=self.srid if embedded is None else embedded).wkt
        raise InvalidGeometry(f"Cannot decode geometry of type {type(stored).__name__}")

    def point(self, lng: float, lat: float) -> Geometry:
        """Build a validated point from raw coordinates (e.g. a query location)."""
        return self.encode(f"POINT({lng!r} {lat!r})")

    def normalize(self, text: str) -> str:
        return self.decode(self.encode(text))


codec = GeometryCodec()
