"""Unit tests for the K-means clustering engine."""

from __future__ import annotations

import random

import pytest

from analysis.kmeans import as_number, kmeans, point_distance
from core.types import ClusterPoint


def _point(lat: object, lon: object, duration: object = 600) -> ClusterPoint:
    return ClusterPoint(lat=lat, lon=lon, duration=duration)


def _two_groups() -> list[ClusterPoint]:
    """Two tight groups far apart in latitude."""
    return [
        _point(40.70, -73.99),
        _point(40.71, -73.98),
        _point(40.72, -73.99),
        _point(40.90, -73.80),
        _point(40.91, -73.81),
        _point(40.92, -73.80),
    ]


def _membership(clusters: list) -> set[frozenset[float]]:
    return {frozenset(point.lat for point in cluster.points) for cluster in clusters}


def test_kmeans_returns_empty_for_no_points() -> None:
    """No input should produce no clusters."""
    assert kmeans([], 3) == []


def test_kmeans_single_cluster_holds_every_point() -> None:
    """With k = 1 the only cluster should contain the whole input."""
    points = _two_groups()

    clusters = kmeans(points, 1, rng=random.Random(7))

    assert len(clusters) == 1 and list(clusters[0].points) == points


@pytest.mark.parametrize("k", [6, 7, 50])
def test_kmeans_k_at_least_point_count_returns_one_cluster(k: int) -> None:
    """k >= number of points should return the whole set as one cluster."""
    points = _two_groups()

    clusters = kmeans(points, k, rng=random.Random(7))

    assert len(clusters) == 1 and len(clusters[0]) == len(points)


def test_kmeans_non_positive_k_returns_one_cluster() -> None:
    """k <= 0 should not fail and should keep every point."""
    clusters = kmeans(_two_groups(), 0)

    assert len(clusters) == 1 and len(clusters[0]) == 6


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 42])
def test_kmeans_separates_distant_groups(seed: int) -> None:
    """Well-separated groups should be recovered for any seed."""
    clusters = kmeans(_two_groups(), 2, rng=random.Random(seed))

    assert _membership(clusters) == {
        frozenset({40.70, 40.71, 40.72}),
        frozenset({40.90, 40.91, 40.92}),
    }


def test_kmeans_is_reproducible_with_same_seed() -> None:
    """The same seed should give identical memberships."""
    points = [_point(40.0 + index * 0.013, -73.9, 300 + index * 17) for index in range(40)]

    first = kmeans(points, 4, rng=random.Random(11))
    second = kmeans(points, 4, rng=random.Random(11))

    assert [cluster.points for cluster in first] == [cluster.points for cluster in second]


def test_kmeans_zero_iterations_returns_initial_assignment() -> None:
    """max_iterations = 0 should assign points to the seeded centroids once."""
    points = _two_groups()
    seeds = random.Random(5).sample(range(len(points)), 2)
    initial = [points[index] for index in seeds]

    clusters = kmeans(points, 2, max_iterations=0, rng=random.Random(5))

    expected: dict[int, list[ClusterPoint]] = {}
    for point in points:
        distances = [point_distance(point, seed) for seed in initial]
        expected.setdefault(distances.index(min(distances)), []).append(point)
    assert [list(cluster.points) for cluster in clusters] == [
        expected[index] for index in sorted(expected)
    ]


def test_kmeans_never_returns_empty_clusters() -> None:
    """Duplicate points can starve centroids; empty clusters are dropped."""
    points = [_point(40.7, -73.9)] * 5 + [_point(40.8, -73.8)]

    clusters = kmeans(points, 3, rng=random.Random(3))

    assert all(len(cluster) > 0 for cluster in clusters)
    assert sum(len(cluster) for cluster in clusters) == len(points)


def test_kmeans_ties_go_to_first_centroid() -> None:
    """A point equidistant from two centroids joins the earlier one."""
    points = [_point(0.0, 0.0, 0), _point(2.0, 0.0, 0), _point(1.0, 0.0, 0)]

    class _FixedRandom:
        def sample(self, population, k):
            return [0, 1][:k]

        def randrange(self, stop):
            return 0

    clusters = kmeans(points, 2, max_iterations=0, rng=_FixedRandom())

    assert [len(cluster) for cluster in clusters] == [2, 1]
    assert clusters[0].points[-1].lat == 1.0


def test_kmeans_reports_member_mean_centroid() -> None:
    """Each cluster centroid should be the mean of its members."""
    clusters = kmeans(_two_groups(), 1)

    assert clusters[0].centroid.lat == pytest.approx(40.81)
    assert clusters[0].centroid.duration == pytest.approx(600)


def test_point_distance_scales_duration() -> None:
    """Duration differences should be divided by 1000 before combining."""
    first = _point(0.0, 0.0, 0)
    second = _point(0.0, 0.0, 1000)

    assert point_distance(first, second) == pytest.approx(1.0)


@pytest.mark.parametrize("raw_value", [None, "abc", float("nan"), True])
def test_as_number_maps_unusable_values_to_zero(raw_value: object) -> None:
    """Non-numeric coordinates should count as zero."""
    assert as_number(raw_value) == 0.0


def test_kmeans_tolerates_non_numeric_coordinates() -> None:
    """Unusable coordinates should not fail the run."""
    points = [_point(None, "x"), _point(40.7, -73.9), _point(40.8, -73.8), _point("40.8", -73.8)]

    clusters = kmeans(points, 2, rng=random.Random(1))

    assert sum(len(cluster) for cluster in clusters) == 4
