"""Tests of the configuration and station support."""

import datetime

import pytest

from chartscompiler import ConfigError
from chartscompiler.support import (
    StationUnits,
    approximate_solar_max,
    date_is_today,
    date_to_js,
    read_ini,
)


def test_full_window(make_sup):
    """The end is the last multiple of the FTP or log interval."""

    sup = make_sup()

    start, end = sup.set_start_and_end_for_data(datetime.datetime(2024, 3, 1, 8, 9, 31))

    assert end == datetime.datetime(2024, 3, 1, 8, 0)
    assert start == end - datetime.timedelta(hours=72)


def test_incremental_window_starts_after_the_last_upload(make_sup):
    sup = make_sup(
        utils={"General": {"LastUploadTime": "01/03/24 07:40"}},
        cumulus={"FTP site": {"Sslftp": "3", "UpdateInterval": "5"}, "Station": {"DataLogInterval": "1"}},
    )

    start, end = sup.set_start_and_end_for_data(datetime.datetime(2024, 3, 1, 8, 9))

    assert start == datetime.datetime(2024, 3, 1, 7, 41)
    assert end == datetime.datetime(2024, 3, 1, 8, 5)


def test_invalid_last_upload_gives_the_full_window(make_sup):
    sup = make_sup(
        utils={"General": {"LastUploadTime": "yesterday"}},
        cumulus={"FTP site": {"Sslftp": "3"}, "Graphs": {"GraphHours": "24"}},
    )

    start, end = sup.set_start_and_end_for_data(datetime.datetime(2024, 3, 1, 8, 9))

    assert start == datetime.datetime(2024, 2, 29, 8, 0)


def test_non_incremental_gives_the_full_window(make_sup):
    sup = make_sup(
        utils={"General": {"LastUploadTime": "01/03/24 07:40"}},
        cumulus={"FTP site": {"Sslftp": "3"}},
    )

    start, end = sup.set_start_and_end_for_data(
        datetime.datetime(2024, 3, 1, 8, 9), non_incremental=True
    )

    assert start == end - datetime.timedelta(hours=72)


def test_date_to_js():
    assert date_to_js(datetime.datetime(1970, 1, 1, 0, 1)) == 60000
    assert date_to_js(datetime.datetime(2024, 1, 1)) == 1704067200000


def test_date_is_today():
    now = datetime.datetime(2024, 3, 1, 23, 59)

    assert date_is_today(datetime.datetime(2024, 3, 1, 0, 0), now)
    assert not date_is_today(datetime.datetime(2024, 2, 29, 23, 59), now)


def test_station_units():
    units = StationUnits(temp_dim=1, wind_dim=1, pressure_dim=2, rain_dim=1)

    assert units.temp == "°F"
    assert units.wind == "mph"
    assert units.distance == "mi"
    assert units.rain_rate == "in/hr"
    assert units.pressure_decimals == 2
    assert units.format_pressure(29.923) == "29.92"


def test_distance_of_a_station_in_m_per_s():
    assert StationUnits(wind_dim=0).distance == "km"


def test_units_from_cumulus_ini(make_sup):
    sup = make_sup(
        cumulus={"Station": {"TempUnit": "1", "CloudBaseInFeet": "1"}},
        utils={"Labels": {"PerHour": "/h"}},
    )

    assert sup.units.temp == "°F"
    assert sup.units.height == "ft"
    assert sup.units.rain_rate == "mm/h"


def test_labels_fall_back_to_the_key(make_sup):
    sup = make_sup(utils={"Labels": {"Temperature": "Temperatuur"}})

    assert sup.labels["Temperature"] == "Temperatuur"
    assert sup.labels["Humidity"] == "Humidity"


def test_soil_moisture_units_are_padded(make_sup):
    sup = make_sup(utils={"Compiler": {"SoilMoistureUnits": "cb, kPa"}})

    assert sup.units.soil_moisture[:3] == ["cb", "kPa", "%"]
    assert len(sup.units.soil_moisture) == 16


def test_log_interval(make_sup):
    assert make_sup(cumulus={"Station": {"DataLogInterval": "3"}}).log_interval == 15
    assert make_sup(cumulus={"Station": {"DataLogInterval": "9"}}).log_interval == 10


def test_wind_barb_spacing(make_sup):
    assert make_sup().wind_barb_spacing == 3
    assert make_sup(cumulus={"Graphs": {"GraphHours": "168"}}).wind_barb_spacing == 6


def test_pressure_records(make_sup):
    assert make_sup().pressure_records() is None

    sup = make_sup(alltime={"Pressure": {"lowpressurevalue": "960", "highpressurevalue": "1050"}})
    assert sup.pressure_records() == (960.0, 1050.0)


def test_solar_max_is_higher_in_summer():
    summer = approximate_solar_max(52.0, 172)
    winter = approximate_solar_max(52.0, 355)

    assert summer > winter > 50


def test_set_utils_ini_value_creates_the_section(make_sup):
    sup = make_sup()

    sup.set_utils_ini_value("Compiler", "DoneToday", "2024-03-01T08:00:00")

    assert sup.get_utils_ini_value("Compiler", "DoneToday", "") == "2024-03-01T08:00:00"


def test_read_ini_missing(tmp_path):
    with pytest.raises(ConfigError):
        read_ini(str(tmp_path / "Cumulus.ini"))

    config = read_ini(str(tmp_path / "cumulusutils.ini"), required=False)
    assert len(config) == 0


def test_read_ini(tmp_path):
    path = tmp_path / "Cumulus.ini"
    path.write_text("[Station]\nTempUnit=1\nLatitude=52.1\n", encoding="utf-8")

    config = read_ini(str(path))

    assert config["Station"]["TempUnit"] == "1"
