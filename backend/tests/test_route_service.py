import asyncio

import pytest

from app.core.errors import UpstreamError
from app.schemas.route import Location
from app.services.route_service import (
    RoutingService,
    decode_route_payload,
    extract_duration,
    extract_distance,
    extract_route_info,
)

LINE = [[120.98, 14.59], [120.99, 14.60], [121.00, 14.61], [121.01, 14.62]]


def feature_collection(geometry, properties=None):
    return {
        "type": "FeatureCollection",
        "features": [{"type": "Feature", "properties": properties or {}, "geometry": geometry}],
    }


def test_line_string_coordinates_kept_in_order():
    route = extract_route_info(feature_collection({"type": "LineString", "coordinates": LINE}))

    assert route.coordinates == LINE
    assert route.shape == "feature_collection"
    assert route.found


def test_multi_line_string_is_flattened_in_order():
    parts = [LINE[:1], LINE[1:3], LINE[3:] + [[121.02, 14.63], [121.03, 14.64]]]

    route = extract_route_info(feature_collection({"type": "MultiLineString", "coordinates": parts}))

    assert len(route.coordinates) == 1 + 2 + 3
    assert route.coordinates == [pt for part in parts for pt in part]


def test_unknown_geometry_type_gives_no_coordinates():
    route = extract_route_info(feature_collection({"type": "Point", "coordinates": [1, 2]}))

    assert route.coordinates == []
    assert not route.found


def test_results_shape_with_geometry_coordinates():
    payload = {"results": [{"properties": {"distance": 1200, "time": 300}, "geometry": {"coordinates": LINE}}]}

    route = extract_route_info(payload)

    assert route.shape == "results"
    assert route.coordinates == LINE
    assert route.distance == 1200
    assert route.time == 300


def test_results_shape_with_bare_coordinate_list():
    route = extract_route_info({"results": [{"properties": {}, "geometry": LINE}]})

    assert route.coordinates == LINE


def test_features_take_precedence_over_results():
    payload = feature_collection({"type": "LineString", "coordinates": LINE[:2]})
    payload["results"] = [{"geometry": LINE}]

    assert extract_route_info(payload).coordinates == LINE[:2]


@pytest.mark.parametrize("payload", [{}, {"features": []}, {"results": []}, {"features": [], "results": []}])
def test_no_route_is_an_empty_result(payload):
    route = extract_route_info(payload)

    assert route.coordinates == []
    assert route.distance == 0
    assert route.time == 0
    assert route.shape is None
    assert decode_route_payload(payload) is None


@pytest.mark.parametrize("payload", [None, [], "route", {"features": ["oops"]}])
def test_malformed_payload_raises_upstream_error(payload):
    with pytest.raises(UpstreamError):
        extract_route_info(payload)


def test_non_numeric_coordinates_raise_upstream_error():
    with pytest.raises(UpstreamError):
        extract_route_info(feature_collection({"type": "LineString", "coordinates": [["a", "b"]]}))


@pytest.mark.parametrize(
    "props, expected",
    [
        ({"distance": 5000, "legs": [{"distance": 10}], "length": 20}, 5000),
        ({"legs": [{"distance": 4200}], "length": 20}, 4200),
        ({"distance": 0, "legs": [{"distance": 4200}]}, 4200),
        ({"legs": [{}], "length": 20}, 0),
        ({"length": 3100}, 3100),
        ({}, 0),
    ],
)
def test_distance_precedence(props, expected):
    assert extract_distance(props) == expected


@pytest.mark.parametrize(
    "props, expected",
    [
        ({"legs": [{"time": 600}], "time": 700, "duration": 800}, 600),
        ({"legs": [{"time": 0}], "time": 700}, 700),
        ({"time": 700, "duration": 800}, 700),
        ({"duration": 800}, 800),
        ({}, 0),
    ],
)
def test_duration_precedence(props, expected):
    assert extract_duration(props) == expected


def test_steps_come_from_first_leg():
    props = {
        "distance": 2000,
        "legs": [
            {"steps": [{"distance": 500, "elevation_gain": 12}, {"distance": 1500, "elevation_loss": 41}]},
            {"steps": [{"distance": 9, "elevation_gain": 99}]},
        ],
    }

    route = extract_route_info(feature_collection({"type": "LineString", "coordinates": LINE}, props))

    assert [s.elevation_gain for s in route.steps] == [12, None]
    assert [s.elevation_loss for s in route.steps] == [None, 41]


def test_fetch_route_request(geoapify, upstream):
    upstream.reply("/v1/routing", feature_collection({"type": "LineString", "coordinates": LINE}))
    service = RoutingService(geoapify, "routing-key")

    raw = asyncio.run(
        service.fetch_route(Location(lat=14.5995, lon=120.9842), Location(lat=14.6091, lon=121.0223), "mountain")
    )

    assert raw["features"][0]["geometry"]["coordinates"] == LINE
    params = upstream.last_params
    assert params["waypoints"] == "14.599500,120.984200|14.609100,121.022300"
    assert params["mode"] == "bicycle"
    assert params["apiKey"] == "routing-key"


def test_fetch_route_propagates_status(geoapify, upstream):
    upstream.reply("/v1/routing", {"message": "Invalid waypoints"}, status=400)
    service = RoutingService(geoapify, "routing-key")

    with pytest.raises(UpstreamError) as exc:
        asyncio.run(service.fetch_route(Location(lat=0, lon=0), Location(lat=1, lon=1)))

    assert exc.value.status == 400


def test_fetch_route_rejects_non_json(geoapify, upstream):
    upstream.reply("/v1/routing", "<html>gateway</html>")
    service = RoutingService(geoapify, "routing-key")

    with pytest.raises(UpstreamError):
        asyncio.run(service.fetch_route(Location(lat=0, lon=0), Location(lat=1, lon=1)))


def test_route_endpoint(client, upstream):
    props = {"distance": 2500, "legs": [{"distance": 2500, "time": 540, "steps": []}]}
    upstream.reply("/v1/routing", feature_collection({"type": "LineString", "coordinates": LINE}, props))

    resp = client.get("/route", params={"from_lat": 14.59, "from_lon": 120.98, "to_lat": 14.62, "to_lon": 121.01})

    assert resp.status_code == 200
    body = resp.json()
    assert body["found"] is True
    assert body["route"]["coordinates"] == LINE
    assert body["summary"] == {"distance_text": "2.5 km", "time_text": "9 minutes", "difficulty": "Easy"}


def test_route_endpoint_no_route(client, upstream):
    upstream.reply("/v1/routing", {"features": []})

    body = client.get("/route", params={"from_lat": 0, "from_lon": 0, "to_lat": 1, "to_lon": 1}).json()

    assert body["found"] is False
    assert body["route"]["coordinates"] == []


def test_route_endpoint_hides_upstream_failure(client, upstream):
    upstream.reply("/v1/routing", {"message": "quota exceeded"}, status=429)

    resp = client.get("/route", params={"from_lat": 0, "from_lon": 0, "to_lat": 1, "to_lon": 1})

    assert resp.status_code == 502
    assert resp.json() == {"error": "upstream_error"}


def test_route_endpoint_validates_query(client):
    resp = client.get("/route", params={"from_lat": 91, "from_lon": 0, "to_lat": 1, "to_lon": 1})

    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_query"
