import json
from dataclasses import dataclass

import pytest

from journeysapi.responses import (
    encode_json,
    exclude_fields_parameter,
    filter_body_elements,
    new_success_response,
    query_parameters,
    success_payload,
)


def test_encode_json_matches_compact_form():
    assert encode_json({"key": "value"}) == b'{"key":"value"}'


def test_encode_json_rejects_unserializable():
    with pytest.raises(TypeError):
        encode_json({1, 2})


def test_encode_json_rejects_nan():
    with pytest.raises(ValueError):
        encode_json(float("nan"))


def test_encode_json_escapes_html_characters():
    assert encode_json("<&>") == b'"\\u003c\\u0026\\u003e"'


def test_encode_json_keeps_unicode_as_utf8():
    assert json.loads(encode_json("Näyttelijänkatu").decode("utf-8")) == "Näyttelijänkatu"
    assert "ä".encode("utf-8") in encode_json("ä")


def test_new_success_response_with_body():
    body = [{"key": "value"}]
    expected = {
        "status": "success",
        "data": {"headers": {"paging": {"startIndex": 0, "pageSize": 1, "moreData": False}}},
        "body": body,
    }
    assert new_success_response(body) == expected


def test_new_success_response_nil_body_is_empty_list():
    expected = {
        "status": "success",
        "data": {"headers": {"paging": {"startIndex": 0, "pageSize": 0, "moreData": False}}},
        "body": [],
    }
    assert new_success_response(None) == expected


def test_filter_body_elements_without_exclusions_is_unchanged():
    elements = [{"name": "1", "description": "d"}]
    assert filter_body_elements(elements, "") == [{"name": "1", "description": "d"}]


def test_filter_body_elements_removes_fields():
    elements = [{"url": "/lines/1", "name": "1", "description": "d"}]
    assert filter_body_elements(elements, "name,description") == [{"url": "/lines/1"}]


@dataclass
class _Item:
    url: str
    name: str


def test_success_payload_round_trip():
    payload = success_payload([{"url": "/lines/1", "name": "1"}, _Item("/lines/2", "2")], "name")
    decoded = json.loads(payload)
    assert decoded["status"] == "success"
    assert decoded["data"]["headers"]["paging"]["pageSize"] == 2
    assert decoded["body"] == [{"url": "/lines/1"}, {"url": "/lines/2"}]


def test_success_payload_sorts_element_keys():
    payload = success_payload([{"url": "u", "name": "n", "description": "d"}], "")
    decoded = json.loads(payload)
    keys = list(decoded["body"][0].keys())
    assert keys == sorted(keys)


def test_success_payload_empty():
    decoded = json.loads(success_payload([], "name"))
    assert decoded["body"] == []
    assert decoded["data"]["headers"]["paging"]["pageSize"] == 0


def test_exclude_fields_of_missing_request_is_empty():
    assert exclude_fields_parameter(None) == ""


def test_exclude_fields_parameter_value():
    assert exclude_fields_parameter("name=1&exclude-fields=name,description") == "name,description"
    assert exclude_fields_parameter("name=1") == ""


def test_query_parameters_drop_exclude_fields_and_keep_first_value():
    params = query_parameters("name=1&exclude-fields=name&name=2&description=lento")
    assert params == {"name": "1", "description": "lento"}


def test_query_parameters_decode_and_blank_values():
    params = query_parameters("departureTime=14%3A43%3A00&flag&location=61,23:62,23.8")
    assert params == {"departureTime": "14:43:00", "flag": "", "location": "61,23:62,23.8"}


def test_query_parameters_skip_malformed_pairs():
    assert query_parameters("a=%zz&b=1;c=2&d=ok") == {"d": "ok"}
    assert query_parameters("") == {}
    assert query_parameters(None) == {}