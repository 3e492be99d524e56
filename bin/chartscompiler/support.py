"""
Configuration and station support for the charts compiler.

CuSupport wraps the three INI files the compiler reads: cumulusutils.ini
(the CumulusUtils settings, also used to persist the upload and DoneToday
markers), Cumulus.ini (the station settings of Cumulus MX) and alltime.ini
(the all time records of Cumulus MX).
"""

import calendar
import datetime
import logging
import math
import os

import configobj
import weeutil.weeutil
from weeutil.weeutil import to_bool, to_float, to_int

from chartscompiler import VERSION, ConfigError

log = logging.getLogger(__name__)


def logdbg(msg):
    log.debug(msg)


def loginf(msg):
    log.info(msg)


def logerr(msg):
    log.error(msg)


TEMP_TEXT = ["°C", "°F"]
WIND_TEXT = ["m/s", "mph", "km/h", "kts"]
DISTANCE_TEXT = ["m", "mi", "km", "nm"]
RAIN_TEXT = ["mm", "in"]
PRESSURE_TEXT = ["mb", "hPa", "inHg"]
HEIGHT_TEXT = ["m", "ft"]

# Factor to go from the station wind unit to m/s
WIND_TO_MS = [1.0, 0.44704, 1 / 3.6, 0.514444]

INCH_HG = 2

# Cumulus.ini [Station] DataLogInterval is an index in this list
POSSIBLE_INTERVALS = [1, 5, 10, 15, 20, 30]

# Cumulus.ini [FTP site] Sslftp, only PHP uploads can be incremental
PHP_UPLOAD = 3

LAST_UPLOAD_TIME_FORMAT = "%d/%m/%y %H:%M"

NR_OF_SOIL_MOISTURE_SENSORS = 16

HIGHCHARTS_VERSION = "11.2"


def read_ini(path, required=True):
    """
    Read an INI file with configobj. A missing optional file gives an
    empty ConfigObj which can still be written to that path.
    """
    if not os.path.exists(path):
        if required:
            raise ConfigError("Configuration file %s not found" % path)
        loginf("Configuration file %s not found, using defaults" % path)
    try:
        return configobj.ConfigObj(path, list_values=False, encoding="utf-8")
    except (configobj.ConfigObjError, IOError) as e:
        raise ConfigError("Unable to read %s: %s" % (path, e))


def _value_or_default(config, section, key, default):
    try:
        value = config[section][key]
    except KeyError:
        return default
    if value is None or value == "":
        return default
    return value


def _unit_text(texts, dim, what):
    try:
        return texts[dim]
    except (IndexError, TypeError):
        logerr("Invalid %s unit %s, using %s" % (what, dim, texts[0]))
        return texts[0]


class StationUnits:
    """Unit texts of the station as configured in Cumulus MX"""

    def __init__(
        self,
        temp_dim=0,
        wind_dim=2,
        pressure_dim=1,
        rain_dim=0,
        height_dim=0,
        per_hour="/hr",
        soil_moisture=None,
    ):
        self.temp_dim = temp_dim
        self.wind_dim = wind_dim
        self.pressure_dim = pressure_dim
        self.rain_dim = rain_dim

        self.temp = _unit_text(TEMP_TEXT, temp_dim, "temperature")
        self.wind = _unit_text(WIND_TEXT, wind_dim, "wind")
        self.pressure = _unit_text(PRESSURE_TEXT, pressure_dim, "pressure")
        self.rain = _unit_text(RAIN_TEXT, rain_dim, "rain")
        self.rain_rate = self.rain + per_hour
        self.height = _unit_text(HEIGHT_TEXT, height_dim, "height")

        # Cumulus MX has no distance unit, the wind unit is used for it
        self.distance = _unit_text(DISTANCE_TEXT, 2 if wind_dim == 0 else wind_dim, "distance")

        self.co2 = "ppm"
        self.pm = "μg/m3"

        soil_moisture = list(soil_moisture or [])
        soil_moisture += ["%"] * (NR_OF_SOIL_MOISTURE_SENSORS - len(soil_moisture))
        self.soil_moisture = soil_moisture[:NR_OF_SOIL_MOISTURE_SENSORS]

    @property
    def wind_to_ms(self):
        return WIND_TO_MS[self.wind_dim] if 0 <= self.wind_dim < len(WIND_TO_MS) else 1.0

    @property
    def pressure_decimals(self):
        return 2 if self.pressure_dim == INCH_HG else 0

    def format_pressure(self, value):
        return "%.*f" % (self.pressure_decimals, value)


class CuSupport:
    """Access to the configuration of CumulusUtils and Cumulus MX"""

    def __init__(self, utils_ini, cumulus_ini, alltime_ini=None):
        self.utils_ini = utils_ini
        self.cumulus_ini = cumulus_ini
        self.alltime_ini = alltime_ini if alltime_ini is not None else configobj.ConfigObj()

        try:
            labels = self.utils_ini["Labels"]
        except KeyError:
            labels = {}
        self.labels = weeutil.weeutil.KeyDict(labels)

        soil_moisture = self.get_utils_ini_value("Compiler", "SoilMoistureUnits", "")
        self.units = StationUnits(
            temp_dim=to_int(self.get_cumulus_ini_value("Station", "TempUnit", 0)),
            wind_dim=to_int(self.get_cumulus_ini_value("Station", "WindUnit", 2)),
            pressure_dim=to_int(self.get_cumulus_ini_value("Station", "PressureUnit", 1)),
            rain_dim=to_int(self.get_cumulus_ini_value("Station", "RainUnit", 0)),
            height_dim=to_int(self.get_cumulus_ini_value("Station", "CloudBaseInFeet", 0)),
            per_hour=self.labels.get("PerHour", "/hr"),
            soil_moisture=[u.strip() for u in soil_moisture.split(",") if u.strip()],
        )

    @classmethod
    def from_files(cls, utils_path, cumulus_path, alltime_path=None):
        utils_ini = read_ini(utils_path, required=False)
        cumulus_ini = read_ini(cumulus_path, required=True)
        if alltime_path is None:
            alltime_path = os.path.join(os.path.dirname(cumulus_path), "data", "alltime.ini")
        alltime_ini = read_ini(alltime_path, required=False)
        return cls(utils_ini, cumulus_ini, alltime_ini)

    def get_utils_ini_value(self, section, key, default):
        return _value_or_default(self.utils_ini, section, key, default)

    def set_utils_ini_value(self, section, key, value):
        if section not in self.utils_ini:
            self.utils_ini[section] = {}
        self.utils_ini[section][key] = value

    def save_utils_ini(self):
        if self.utils_ini.filename:
            self.utils_ini.write()
            logdbg("Saved %s" % self.utils_ini.filename)

    def get_cumulus_ini_value(self, section, key, default):
        return _value_or_default(self.cumulus_ini, section, key, default)

    def get_alltime_record_value(self, section, key, default):
        return _value_or_default(self.alltime_ini, section, key, default)

    def get_utils_ini_bool(self, section, key, default):
        return to_bool(self.get_utils_ini_value(section, key, default))

    @property
    def graph_hours(self):
        return to_int(self.get_cumulus_ini_value("Graphs", "GraphHours", 72))

    @property
    def ftp_interval(self):
        return to_int(self.get_cumulus_ini_value("FTP site", "UpdateInterval", 10))

    @property
    def log_interval(self):
        index = to_int(self.get_cumulus_ini_value("Station", "DataLogInterval", 2))
        if index < 0 or index >= len(POSSIBLE_INTERVALS):
            logerr("Invalid DataLogInterval %s, using 10 minutes" % index)
            return 10
        return POSSIBLE_INTERVALS[index]

    @property
    def incremental_allowed(self):
        return to_int(self.get_cumulus_ini_value("FTP site", "Sslftp", 0)) == PHP_UPLOAD

    @property
    def latitude(self):
        return to_float(self.get_cumulus_ini_value("Station", "Latitude", 0.0))

    @property
    def wind_barb_spacing(self):
        # Highcharts only groups on 1, 2, 3, 4, 6, 8 and 12 hours
        spacing = self.graph_hours // 24
        return spacing if spacing <= 4 else 6

    def pressure_records(self):
        """All time low and high pressure, None when not known"""
        try:
            low = to_float(self.get_alltime_record_value("Pressure", "lowpressurevalue", None))
            high = to_float(self.get_alltime_record_value("Pressure", "highpressurevalue", None))
        except ValueError as e:
            logerr("Unable to convert the pressure records: %s" % e)
            return None
        if low is None or high is None:
            return None
        return low, high

    def set_start_and_end_for_data(self, now=None, non_incremental=False):
        """
        The end of the data window is the last multiple of the largest of
        the FTP interval and the log interval, so the window starts at the
        same time as the JSON files of Cumulus MX. The window starts one
        minute after the last upload when incremental uploads are allowed,
        otherwise GraphHours before the end.
        """
        if now is None:
            now = datetime.datetime.now()
        now = now.replace(second=0, microsecond=0)

        interval = max(self.ftp_interval, self.log_interval)
        end = now - datetime.timedelta(minutes=now.minute % interval)
        full_window_start = end - datetime.timedelta(hours=self.graph_hours)

        if non_incremental or not self.incremental_allowed:
            return full_window_start, end

        last_upload = self.get_utils_ini_value("General", "LastUploadTime", "")
        try:
            start = datetime.datetime.strptime(last_upload, LAST_UPLOAD_TIME_FORMAT)
        except ValueError:
            loginf("No valid LastUploadTime '%s', using the full window" % last_upload)
            return full_window_start, end

        return start + datetime.timedelta(minutes=1), end


def date_is_today(this_date, now=None):
    if now is None:
        now = datetime.datetime.now()
    return this_date.date() == now.date()


def date_to_js(timestamp):
    """Milliseconds since the epoch of a wall clock time taken as UTC"""
    return calendar.timegm(timestamp.timetuple()) * 1000


def approximate_solar_max(latitude, day_of_year):
    """
    Clear sky maximum of the solar radiation at noon, plus 50 to leave
    some room at the top of the axis.
    https://www.sciencedirect.com/science/article/pii/S221260901400051X
    """
    deg2rad = math.pi / 180
    solar_constant = 1375

    gamma = 0.796 - 0.01 * math.sin(0.986 * (day_of_year + 284) * deg2rad)
    earth_sun_distance = 1 + 0.034 * math.cos((day_of_year - 2) * deg2rad)
    delta = 23.45 * math.sin(0.986 * (day_of_year + 284) * deg2rad)
    height_of_sun = math.asin(
        math.sin(latitude * deg2rad) * math.sin(delta * deg2rad)
        + math.cos(latitude * deg2rad) * math.cos(delta * deg2rad)
    )
    exponential = math.exp(-0.13 / math.sin(height_of_sun)) * math.sin(height_of_sun)

    return int(solar_constant * gamma * earth_sun_distance * exponential) + 50


def copyright_for_generated_files():
    return "\n".join(
        [
            "<!--",
            " This file is generated as part of CumulusUtils - ChartsCompiler %s" % VERSION,
            " This header must not be removed and the user must comply to the Creative Commons 4.0 license",
            " The license conditions imply the non-commercial use of HighCharts for which the user is held responsible",
            " See also License conditions of CumulusUtils: https://meteo-wagenborgen.nl/",
            "-->",
        ]
    )


def jquery_include():
    return '<script src="https://ajax.googleapis.com/ajax/libs/jquery/3.6.0/jquery.min.js" type="text/javascript"></script>'


def highcharts_includes(version=HIGHCHARTS_VERSION, boost=True):
    base = "https://code.highcharts.com/stock/%s" % version
    lines = [
        "<script src='%s/highstock.js'></script>" % base,
        "<script src='%s/highcharts-more.js'></script>" % base,
        "<script src='%s/indicators/indicators.js'></script>" % base,
        "<script src='%s/modules/exporting.js'></script>" % base,
        "<script src='%s/modules/heatmap.js'></script>" % base,
        "<script src='%s/modules/windbarb.js'></script>" % base,
        "<script defer src='https://code.highcharts.com/%s/modules/accessibility.js'></script>" % version,
    ]
    if boost:
        lines.append("<script src='%s/modules/boost.js'></script>" % base)
    lines.append("<script src='lib/HighchartsLanguage.js'></script>")
    lines.append("<script src='lib/HighchartsDefaults.js'></script>")
    return "\n".join(lines)
