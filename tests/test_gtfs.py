import pytest

from journeysapi.gtfs import (
    CsvRecord,
    GTFSBundle,
    load_gtfs_bundle,
    read_csv_records,
    read_municipalities,
)


def _write(directory, name, text):
    path = directory / name
    path.write_text(text, encoding="utf-8")
    return path


def test_csv_record_get():
    record = CsvRecord({"route_id": "1"}, 2)
    assert record.get("route_id") == "1"
    assert record.get("agency_id") is None


def test_read_csv_records_skips_bom_and_blank_lines(tmp_path):
    path = _write(tmp_path, "routes.txt",
                  "\ufeffroute_id,route_short_name\n\n   \n1,1A\n2,3A\n")
    records = read_csv_records(str(path))
    assert [r.get("route_id") for r in records] == ["1", "2"]
    assert [r.get("route_short_name") for r in records] == ["1A", "3A"]


def test_read_csv_records_line_numbers_follow_file(tmp_path):
    path = _write(tmp_path, "stops.txt", "stop_id\n\n4600\n8171\n")
    records = read_csv_records(str(path))
    assert [r.line_number for r in records] == [3, 4]


def test_read_csv_records_keeps_raw_values(tmp_path):
    path = _write(tmp_path, "trips.txt", "trip_id,trip_headsign\n 7020295685 , Lentoasema\n")
    (record,) = read_csv_records(str(path))
    assert record.get("trip_headsign") == " Lentoasema"


def test_read_csv_records_quoted_values(tmp_path):
    path = _write(tmp_path, "routes.txt", 'route_id,route_long_name\n1,"Vatiala, Pirkkala"\n')
    (record,) = read_csv_records(str(path))
    assert record.get("route_long_name") == "Vatiala, Pirkkala"


def test_read_csv_records_wrong_field_count_raises(tmp_path):
    path = _write(tmp_path, "routes.txt", "a,b\n1,2,3\n")
    with pytest.raises(ValueError):
        read_csv_records(str(path))


def test_read_csv_records_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_csv_records(str(tmp_path / "nothing.txt"))


def test_read_csv_records_empty_file(tmp_path):
    path = _write(tmp_path, "shapes.txt", "")
    assert read_csv_records(str(path)) == []


def test_read_municipalities_trims_values(tmp_path):
    _write(tmp_path, "municipalities.txt", "id,name\n837 , Tampere \n604,Pirkkala\n")
    records = read_municipalities(str(tmp_path))
    assert [(r.get("id"), r.get("name")) for r in records] == [
        ("837", "Tampere"), ("604", "Pirkkala")]


def test_read_municipalities_missing_file_is_empty(tmp_path):
    assert read_municipalities(str(tmp_path)) == []


def test_load_gtfs_bundle_collects_missing_files(tmp_path):
    _write(tmp_path, "routes.txt", "route_id,route_short_name\n1,1A\n")
    _write(tmp_path, "municipalities.txt", "id,name\n837,Tampere\n")
    bundle = load_gtfs_bundle(str(tmp_path))
    assert [r.get("route_short_name") for r in bundle.routes] == ["1A"]
    assert bundle.municipalities[0].get("name") == "Tampere"
    assert bundle.stops == []
    assert len(bundle.errors) == 7
    assert all(isinstance(e, FileNotFoundError) for e in bundle.errors)


def test_load_gtfs_bundle_records_malformed_file(tmp_path):
    for name in ("agency.txt", "routes.txt", "stops.txt", "trips.txt", "stop_times.txt",
                 "calendar.txt", "calendar_dates.txt", "shapes.txt"):
        _write(tmp_path, name, "x\n1\n")
    _write(tmp_path, "trips.txt", "a,b\n1\n")
    bundle = load_gtfs_bundle(str(tmp_path))
    assert len(bundle.errors) == 1
    assert isinstance(bundle.errors[0], ValueError)
    assert bundle.trips == []
    assert [r.get("x") for r in bundle.shapes] == ["1"]


def test_bundle_defaults_are_empty():
    bundle = GTFSBundle()
    bundle.errors.append(ValueError("x"))
    assert GTFSBundle().errors == []