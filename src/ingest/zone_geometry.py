"""Zone polygon centroids and reprojection.

Centroids are the arithmetic mean of a polygon's outer-ring vertices in
the source state-plane frame, reprojected to WGS84 longitude/latitude.
"""

from __future__ import annotations

from dataclasses import dataclass
from numbers import Real
from pathlib import Path
from typing import Any, Iterator, Sequence

from pyproj import Transformer
import shapefile

from core.constants import ZONE_SOURCE_CRS_WKT, ZONE_TARGET_CRS
from core.errors import TripscopeGeometryError, TripscopeIngestError
from core.types import ZoneCentroid
from transforms.field_parsing import parse_int

_LOCATION_ID_FIELD = "LocationID"


@dataclass(frozen=True)
class ZoneShape:
    """One polygon record read from the zone geometry source.

    Attributes:
        location_id: Zone id from the attribute table, if numeric.
        rings: Polygon rings in source coordinates; the first is the outer ring.
    """

    location_id: int | None
    rings: tuple[tuple[Sequence[Any], ...], ...]


def build_transformer() -> Transformer:
    """Create the state-plane to WGS84 transformer (x=lon, y=lat order)."""
    return Transformer.from_crs(ZONE_SOURCE_CRS_WKT, ZONE_TARGET_CRS, always_xy=True)


def ring_centroid(ring: Sequence[Sequence[Any]]) -> tuple[float, float]:
    """Return the mean of the numeric vertices of one ring.

    Args:
        ring: Sequence of ``(x, y)`` vertices.

    Returns:
        Mean ``(x, y)`` over vertices whose coordinates are both numeric.

    Raises:
        TripscopeGeometryError: If the ring has no numeric vertex.
    """
    sum_x = 0.0
    sum_y = 0.0
    count = 0
    for vertex in ring:
        if len(vertex) < 2 or not _is_number(vertex[0]) or not _is_number(vertex[1]):
            continue
        sum_x += float(vertex[0])
        sum_y += float(vertex[1])
        count += 1
    if count == 0:
        raise TripscopeGeometryError("Polygon outer ring has no numeric vertices.")
    return sum_x / count, sum_y / count


def zone_centroid(shape: ZoneShape, transformer: Transformer) -> ZoneCentroid:
    """Compute the geographic centroid for a zone polygon.

    Raises:
        TripscopeGeometryError: If the shape has no id or no usable outer ring.
    """
    if shape.location_id is None:
        raise TripscopeGeometryError("Zone polygon has no numeric LocationID attribute.")
    if not shape.rings or not shape.rings[0]:
        raise TripscopeGeometryError(f"Zone {shape.location_id} has no polygon rings.")
    x, y = ring_centroid(shape.rings[0])
    lon, lat = transformer.transform(x, y)
    return ZoneCentroid(location_id=shape.location_id, lat=float(lat), lon=float(lon))


def iter_zone_shapes(shapefile_path: Path) -> Iterator[ZoneShape]:
    """Read zone polygons and their ``LocationID`` from a shapefile pair.

    Args:
        shapefile_path: ``.shp`` path; the ``.dbf`` attribute file must sit beside it.

    Yields:
        Zone shapes in file order.

    Raises:
        TripscopeIngestError: If the geometry source cannot be opened.
    """
    try:
        with shapefile.Reader(str(shapefile_path)) as reader:
            for shape_record in reader.iterShapeRecords():
                attributes = shape_record.record.as_dict()
                yield ZoneShape(
                    location_id=parse_int(attributes.get(_LOCATION_ID_FIELD), None),
                    rings=_shape_rings(shape_record.shape),
                )
    except (OSError, shapefile.ShapefileException) as error:
        raise TripscopeIngestError(
            f"Failed to read zone geometry at {shapefile_path}: {error}. "
            "Provide the .shp file with its .dbf and .shx companions."
        ) from error


def _shape_rings(shape: Any) -> tuple[tuple[Sequence[Any], ...], ...]:
    """Return polygon rings from a pyshp shape, empty for null shapes."""
    if shape is None or shape.shapeType == shapefile.NULL or not shape.points:
        return ()
    parts = list(shape.parts) + [len(shape.points)]
    return tuple(
        tuple(shape.points[start:end]) for start, end in zip(parts[:-1], parts[1:])
    )


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)
