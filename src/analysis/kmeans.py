"""K-means clustering over trip points.

Points live in a three-dimensional space of latitude, longitude, and
duration divided by 1000, which puts seconds on a scale comparable to
degrees. The random source is injectable so runs can be reproduced.
"""

from __future__ import annotations

import math
import random
from typing import Protocol, Sequence, Union

from core.constants import (
    CLUSTER_CONVERGENCE_THRESHOLD,
    CLUSTER_DURATION_SCALE,
    DEFAULT_CLUSTER_MAX_ITERATIONS,
)
from core.types import Centroid, Cluster, ClusterPoint

_Located = Union[ClusterPoint, Centroid]


class RandomSource(Protocol):
    """Subset of ``random.Random`` used for seeding and reseeding."""

    def randrange(self, stop: int) -> int: ...

    def sample(self, population: Sequence[int], k: int) -> list[int]: ...


def kmeans(
    points: Sequence[ClusterPoint],
    k: int,
    max_iterations: int = DEFAULT_CLUSTER_MAX_ITERATIONS,
    rng: RandomSource | None = None,
) -> list[Cluster]:
    """Partition points into at most ``k`` non-empty clusters.

    Initial centroids are ``k`` distinct input points drawn at random.
    Each iteration assigns every point to its nearest centroid (the first
    centroid wins ties) and moves centroids to the member mean. A centroid
    whose cluster came out empty is replaced by a random input point.
    Iteration stops once every centroid moves less than 0.001 or after
    ``max_iterations`` rounds; with ``max_iterations <= 0`` the initial
    assignment is returned.

    Args:
        points: Points to cluster.
        k: Requested number of clusters.
        max_iterations: Upper bound on refinement rounds.
        rng: Random source; a fresh unseeded ``random.Random`` when omitted.

    Returns:
        Non-empty clusters in centroid order. Empty input yields ``[]``;
        ``k <= 0`` or ``k >= len(points)`` yields one cluster holding
        every point.
    """
    if not points:
        return []
    if k <= 0 or k >= len(points):
        return [_build_cluster(list(points))]
    randomizer = rng if rng is not None else random.Random()
    centroids = [_as_centroid(points[index]) for index in randomizer.sample(range(len(points)), k)]
    groups = _assign(points, centroids) if max_iterations <= 0 else []
    for _ in range(max_iterations):
        groups = _assign(points, centroids)
        updated = _update_centroids(groups, points, randomizer)
        if _has_converged(centroids, updated):
            break
        centroids = updated
    return [_build_cluster(group) for group in groups if group]


def point_distance(first: _Located, second: _Located) -> float:
    """Euclidean distance over latitude, longitude, and scaled duration.

    Non-numeric or missing coordinates count as 0.
    """
    lat_diff = as_number(first.lat) - as_number(second.lat)
    lon_diff = as_number(first.lon) - as_number(second.lon)
    duration_diff = (
        as_number(first.duration) - as_number(second.duration)
    ) / CLUSTER_DURATION_SCALE
    return math.sqrt(lat_diff * lat_diff + lon_diff * lon_diff + duration_diff * duration_diff)


def as_number(value: object) -> float:
    """Coerce a coordinate to float, mapping unusable values to 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return number


def _assign(
    points: Sequence[ClusterPoint],
    centroids: list[Centroid],
) -> list[list[ClusterPoint]]:
    """Group points by nearest centroid, keeping input order within groups."""
    groups: list[list[ClusterPoint]] = [[] for _ in centroids]
    for point in points:
        nearest_index = 0
        nearest_distance = math.inf
        for index, centroid in enumerate(centroids):
            distance = point_distance(point, centroid)
            if distance < nearest_distance:
                nearest_index = index
                nearest_distance = distance
        groups[nearest_index].append(point)
    return groups


def _update_centroids(
    groups: list[list[ClusterPoint]],
    points: Sequence[ClusterPoint],
    randomizer: RandomSource,
) -> list[Centroid]:
    """Move centroids to member means, reseeding empty groups."""
    updated: list[Centroid] = []
    for group in groups:
        if not group:
            updated.append(_as_centroid(points[randomizer.randrange(len(points))]))
            continue
        updated.append(_mean_centroid(group))
    return updated


def _has_converged(previous: list[Centroid], updated: list[Centroid]) -> bool:
    return all(
        point_distance(old, new) < CLUSTER_CONVERGENCE_THRESHOLD
        for old, new in zip(previous, updated)
    )


def _mean_centroid(group: Sequence[ClusterPoint]) -> Centroid:
    size = len(group)
    return Centroid(
        lat=sum(as_number(point.lat) for point in group) / size,
        lon=sum(as_number(point.lon) for point in group) / size,
        duration=sum(as_number(point.duration) for point in group) / size,
    )


def _as_centroid(point: ClusterPoint) -> Centroid:
    return Centroid(
        lat=as_number(point.lat),
        lon=as_number(point.lon),
        duration=as_number(point.duration),
    )


def _build_cluster(group: list[ClusterPoint]) -> Cluster:
    return Cluster(points=tuple(group), centroid=_mean_centroid(group))
