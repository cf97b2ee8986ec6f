from __future__ import annotations

import math

from core.models import Bounds
from core.services.spatial_service import (
    AREA_SELECTION_NAME,
    FIT_PADDING_PX,
    MAX_FIT_ZOOM,
    NEIGHBORHOOD_ZOOM,
    ViewportTracker,
    fit_viewport,
    group_by_coordinate,
    photos_in_bounds,
    select_by_bounds,
)


def test_nearby_photos_share_a_group(world_photos):
    groups = group_by_coordinate(world_photos)
    assert [g.photo_ids for g in groups] == [["p1", "p2"], ["t1"], ["r1"]]
    paris = groups[0]
    assert paris.name == "Paris, France"
    assert (paris.lat, paris.lng) == (48.8581, 2.2941)
    assert paris.representative.id == "p1"
    assert not paris.is_area_selection


def test_grouping_skips_invalid_coordinates(photo_factory):
    photos = [photo_factory("a", lat=None), photo_factory("b", lng=math.inf), photo_factory("c")]
    assert [g.photo_ids for g in group_by_coordinate(photos)] == [["c"]]


def test_rectangle_query_centres_on_rectangle(world_photos):
    box = Bounds(south=48.0, west=2.0, north=50.0, east=3.0)
    assert [p.id for p in photos_in_bounds(world_photos, box)] == ["p1", "p2"]
    group = select_by_bounds(world_photos, box)
    assert group is not None
    assert group.name == AREA_SELECTION_NAME
    assert group.is_area_selection
    assert (group.lat, group.lng) == (49.0, 2.5)


def test_empty_rectangle_yields_no_group(world_photos):
    assert select_by_bounds(world_photos, Bounds(0.0, 0.0, 1.0, 1.0)) is None


def test_fit_single_point_uses_neighborhood_zoom(photo_factory):
    fit = fit_viewport([photo_factory("a"), photo_factory("b")])
    assert fit.is_point
    assert fit.center == (48.8581, 2.2941)
    assert fit.zoom == NEIGHBORHOOD_ZOOM


def test_fit_spread_uses_bounds(world_photos):
    fit = fit_viewport(world_photos)
    assert not fit.is_point
    assert fit.bounds == Bounds(south=35.6595, west=2.2941, north=48.8583, east=139.7005)
    assert fit.padding == FIT_PADDING_PX
    assert fit.max_zoom == MAX_FIT_ZOOM
    assert fit_viewport([]) is None


def test_tracker_only_moves_when_id_set_changes(world_photos):
    tracker = ViewportTracker()
    assert tracker.update(world_photos) is not None
    assert tracker.update(list(reversed(world_photos))) is None
    assert tracker.update(world_photos[:2]) is not None
    assert tracker.update([]) is None
    assert tracker.update(world_photos[:2]) is not None
    tracker.reset()
    assert tracker.update(world_photos[:2]) is not None
