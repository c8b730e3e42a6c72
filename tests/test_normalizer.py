import json

import pytest

from orsmap.normalizer import (
    MalformedResponseError,
    PoiMarker,
    UnexpectedShapeError,
    compute_bbox_from_features,
    extract_route_summary,
    geometry_bounds,
    normalize_poi_response,
    repair_non_finite_tokens,
)


def _point(lon, lat, **properties):
    return {"type": "Feature", "geometry": {"type": "Point", "coordinates": [lon, lat]}, "properties": properties}


def test_repair_replaces_bare_tokens():
    text = '{"a": NaN, "b": [1, -Infinity, Infinity], "c": 2}'
    assert json.loads(repair_non_finite_tokens(text)) == {"a": None, "b": [1, None, None], "c": 2}


def test_repair_leaves_string_literals_alone():
    text = '{"name": "NaN bar", "note": "say \\"NaN\\" twice", "v": NaN}'
    data = json.loads(repair_non_finite_tokens(text))
    assert data == {"name": "NaN bar", "note": 'say "NaN" twice', "v": None}


def test_repair_does_not_touch_words_containing_the_token():
    text = '{"NaNa": 1, "x": NaNa}'
    assert repair_non_finite_tokens(text) == text


def test_bbox_with_nan_is_recomputed_from_point_features():
    text = json.dumps({"type": "FeatureCollection", "bbox": [0, 0, 0, 0], "features": [_point(10, 50), _point(12, 48)]})
    text = text.replace("[0, 0, 0, 0]", "[NaN, NaN, NaN, NaN]")
    collection = normalize_poi_response(text)
    assert collection.bbox == [10, 48, 12, 50]
    assert collection.to_geojson()["bbox"] == [10, 48, 12, 50]


def test_features_with_bad_coordinates_are_skipped_in_bbox():
    features = [_point(None, 50), {"geometry": {"type": "LineString", "coordinates": []}}, _point(3, 4)]
    assert compute_bbox_from_features(features) == [3, 4, 3, 4]


def test_bbox_is_dropped_when_no_feature_is_valid():
    text = '{"type": "FeatureCollection", "bbox": [NaN, 1, 2, 3], "features": [{"geometry": {"type": "Point", "coordinates": [NaN, NaN]}}]}'
    collection = normalize_poi_response(text)
    assert collection.bbox is None
    assert "bbox" not in collection.to_geojson()


def test_bbox_is_dropped_when_feature_list_is_empty():
    collection = normalize_poi_response('{"bbox": [null, 1, 2, 3], "features": []}')
    assert collection.bbox is None
    assert collection.features == []


def test_valid_bbox_is_kept():
    collection = normalize_poi_response('{"bbox": [1, 2, 3, 4], "features": [], "info": {"attribution": "ors"}}')
    assert collection.bbox == [1, 2, 3, 4]
    assert collection.to_geojson()["info"] == {"attribution": "ors"}


def test_unparseable_text_is_a_hard_error():
    with pytest.raises(MalformedResponseError):
        normalize_poi_response("<html>Bad gateway</html>")


@pytest.mark.parametrize("text", ['{"bbox": [1, 2, 3, 4]}', '{"features": {}}', "[]"])
def test_missing_feature_list_is_a_hard_error(text):
    with pytest.raises(UnexpectedShapeError):
        normalize_poi_response(text)


def test_markers_use_name_fallbacks():
    features = [
        _point(10.1, 36.8, name="Cafe"),
        _point(10.2, 36.9, osm_tags={"name": "Pharmacy"}),
        _point(10.3, 37.0),
        _point(None, 37.0, name="Broken"),
    ]
    collection = normalize_poi_response(json.dumps({"features": features}))
    assert collection.markers() == [
        PoiMarker(lat=36.8, lng=10.1, label="Cafe"),
        PoiMarker(lat=36.9, lng=10.2, label="Pharmacy"),
        PoiMarker(lat=37.0, lng=10.3, label="POI"),
    ]


def test_view_bounds_are_padded():
    collection = normalize_poi_response(json.dumps({"features": [_point(10, 48), _point(12, 50)]}))
    assert collection.view_bounds() == pytest.approx([9.6, 47.6, 12.4, 50.4])
    assert normalize_poi_response('{"features": []}').view_bounds() is None


def test_route_summary_from_first_feature():
    geojson = {"features": [{"properties": {"summary": {"distance": 1520.3, "duration": 210.4}}}]}
    summary = extract_route_summary(geojson)
    assert summary.distance == 1520.3
    assert summary.duration == 210.4

    empty = extract_route_summary({"features": []})
    assert empty.distance is None and empty.duration is None


def test_geometry_bounds_covers_polygons():
    geojson = {
        "features": [
            {"geometry": {"type": "Polygon", "coordinates": [[[0, 0], [2, 0], [2, 1], [0, 1], [0, 0]]]}},
            {"geometry": {"type": "Polygon", "coordinates": [[[1, 1], [3, 1], [3, 3], [1, 3], [1, 1]]]}},
        ]
    }
    assert geometry_bounds(geojson, ratio=0) == [0, 0, 3, 3]
    assert geometry_bounds({"features": []}) is None


def test_repair_handles_negative_nan():
    assert json.loads(repair_non_finite_tokens('{"v": -NaN, "s": "-NaN"}')) == {"v": None, "s": "-NaN"}


def test_inverted_bbox_is_recomputed():
    text = json.dumps({"bbox": [12, 50, 10, 48], "features": [_point(10, 50), _point(12, 48)]})
    assert normalize_poi_response(text).bbox == [10, 48, 12, 50]
