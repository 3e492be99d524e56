"""
Declarations shared by all parts of the charts compiler: the axis flags,
the data ranges, the records the parser produces and the keyword tables
which translate a CDL keyword into a JSON field, a data file, an axis and
a unit.
"""

import enum
import logging
from collections import namedtuple

log = logging.getLogger(__name__)


def logdbg(msg):
    log.debug(msg)


class AxisType(enum.IntFlag):
    NoAxis = 0
    Temp = 1
    Pressure = 2
    Rain = 4
    Rrate = 8
    Wind = 16
    Direction = 32
    Humidity = 64
    Solar = 128
    UV = 256
    Hours = 512
    Distance = 1024
    Height = 2048
    DegreeDays = 4096
    EVT = 8192
    Free = 16384
    AQ = 32768
    ppm = 65536
    SoilMoisture = 131072


def count_axis_flags(axis):
    """Number of distinct axis categories in a union of flags"""
    return bin(int(axis)).count("1")


def axis_from_keyword(keyword):
    """Case insensitive lookup of an AXIS keyword, None when unknown"""
    for name in AXIS_KEYWORDS:
        if name.lower() == keyword.lower():
            return name, AxisType[name]
    return None


class PlotvarRangeType(enum.IntEnum):
    Recent = 0
    Extra = 1
    Daily = 2
    All = 3


# Each entry is what the CDL keyword resolves to
PlotvarInfo = namedtuple(
    "PlotvarInfo", ["keyword", "type_name", "datafile", "axis", "unit"]
)

# A resolved runtime variable: the JS array name, the JSON field and the
# file the field is read from
AllVarInfo = namedtuple("AllVarInfo", ["keyword_name", "type_name", "datafile"])


class Plotvar:
    """One series within a chart"""

    def __init__(self, plotvar_range=PlotvarRangeType.Recent):
        self.keyword = ""
        self.plotvar = ""
        self.datafile = ""
        self.graph_type = "spline"
        self.axis = AxisType.NoAxis
        self.axis_id = ""
        self.color = ""
        self.unit = ""
        self.line_width = 2
        self.opacity = 1.0
        self.zindex = 5
        self.visible = True
        self.period = 0
        self.equation = None
        self.eq_all_var_list = []
        self.is_stats = False
        self.plotvar_range = plotvar_range

    def __repr__(self):
        return "Plotvar(%s, %s, %s)" % (self.keyword, self.plotvar, self.datafile)


class ChartDef:
    """One chart of an output file"""

    def __init__(self, chart_id, title=""):
        self.id = chart_id
        self.title = title
        self.range = PlotvarRangeType.Recent
        self.zoom = -1
        self.axis = AxisType.NoAxis
        self.has_wind_barbs = False
        self.wind_barbs_below = True
        self.wind_barb_color = "black"
        self.has_scatter = False
        self.has_info = False
        self.info_text = ""
        self.connects_to_dashboard_panel = []
        self.plotvars = []

    def __repr__(self):
        return "ChartDef(%s)" % self.id


class OutputDef:
    """An output file and the charts written into it"""

    def __init__(self, filename="cumuluscharts.txt"):
        self.filename = filename
        self.charts = []


class CompilationContext:
    """
    State of the generation of one output file. The sum helper is written
    at most once per file and a chart may only get a second soil moisture
    axis for a second unit, so both latches live here and not on the
    compiler.
    """

    def __init__(self, filename, unique_output_id=0):
        self.filename = filename
        self.unique_output_id = unique_output_id
        self.sum_function_generated = False
        self.last_soil_moisture_unit_used = None

    def start_chart(self):
        self.last_soil_moisture_unit_used = None


LINETYPE_KEYWORDS = ["Line", "SpLine", "Area", "Column", "Scatter", "ColumnRange"]

AXIS_KEYWORDS = [
    "Temp", "Wind", "Distance", "Height", "Hours", "Solar", "UV", "Rain", "Rrate",
    "Pressure", "Humidity", "DegreeDays", "EVT", "Free", "AQ", "ppm", "SoilMoisture",
]

STATS_TYPE_KEYWORDS = ["SMA"]

VALID_COLUMNRANGE_VARS = [
    "MinTemp", "MaxTemp", "AverageTemp", "MaxDewpoint", "MinDewpoint",
    "MaxFeelsLike", "MinFeelsLike", "MinBarometer", "MaxBarometer",
    "MinHumidity", "MaxHumidity",
]

# Datafile prefixes of the files CumulusUtils writes itself
CUTILS_DATAFILE_PREFIXES = ("CUserdata", "extrasensors", "customlogs")

NR_OF_CLICK_EVENTS = 24

EXTRA_SENSORS_DATAFILE = "extrasensorsdata.json"


def _recent_table(units):
    t = units.temp
    return [
        PlotvarInfo("InsideTemp", "intemp", "tempdata.json", AxisType.Temp, t),
        PlotvarInfo("Dewpoint", "dew", "tempdata.json", AxisType.Temp, t),
        PlotvarInfo("ApparentTemp", "apptemp", "tempdata.json", AxisType.Temp, t),
        PlotvarInfo("FeelsLike", "feelslike", "tempdata.json", AxisType.Temp, t),
        PlotvarInfo("WindChill", "wchill", "tempdata.json", AxisType.Temp, t),
        PlotvarInfo("HeatIndex", "heatindex", "tempdata.json", AxisType.Temp, t),
        PlotvarInfo("Temperature", "temp", "tempdata.json", AxisType.Temp, t),
        PlotvarInfo("Humidex", "humidex", "tempdata.json", AxisType.Temp, t),
        PlotvarInfo("WindGust", "wgust", "winddata.json", AxisType.Wind, units.wind),
        PlotvarInfo("WindSpeed", "wspeed", "winddata.json", AxisType.Wind, units.wind),
        PlotvarInfo("Bearing", "bearing", "wdirdata.json", AxisType.Direction, ""),
        PlotvarInfo(
            "AverageBearing", "avgbearing", "wdirdata.json", AxisType.Direction, ""
        ),
        PlotvarInfo("UV", "UV", "solardata.json", AxisType.UV, ""),
        PlotvarInfo(
            "CurrentSolarRad", "SolarRad", "solardata.json", AxisType.Solar, "W/m²"
        ),
        PlotvarInfo(
            "TheoreticalSolarMax",
            "CurrentSolarMax",
            "solardata.json",
            AxisType.Solar,
            "W/m²",
        ),
        PlotvarInfo("RainFall", "rfall", "raindata.json", AxisType.Rain, units.rain),
        PlotvarInfo(
            "RainRate", "rrate", "raindata.json", AxisType.Rrate, units.rain_rate
        ),
        PlotvarInfo(
            "Pressure", "press", "pressdata.json", AxisType.Pressure, units.pressure
        ),
        PlotvarInfo("Humidity", "hum", "humdata.json", AxisType.Humidity, "%"),
        PlotvarInfo("InsideHumidity", "inhum", "humdata.json", AxisType.Humidity, "%"),
        PlotvarInfo(
            "EvapoTranspiration",
            "evapotranspiration",
            "CUserdataRECENT.json",
            AxisType.EVT,
            units.rain,
        ),
    ]


def _all_table(units):
    t = units.temp
    temps = [
        ("MinTemp", "minTemp"),
        ("MaxTemp", "maxTemp"),
        ("AverageTemp", "avgTemp"),
        ("AvgWindChill", "windChill"),
        ("MaxDewpoint", "maxDew"),
        ("MinDewpoint", "minDew"),
        ("MaxFeelsLike", "maxFeels"),
        ("MinFeelsLike", "minFeels"),
    ]
    table = [
        PlotvarInfo(k, n, "alldailytempdata.json", AxisType.Temp, t) for k, n in temps
    ]
    table += [
        PlotvarInfo(
            "MaxGust", "maxGust", "alldailywinddata.json", AxisType.Wind, units.wind
        ),
        PlotvarInfo(
            "WindRun",
            "windRun",
            "alldailywinddata.json",
            AxisType.Distance,
            units.distance,
        ),
        PlotvarInfo(
            "HighAvgWindSpeed",
            "maxWind",
            "alldailywinddata.json",
            AxisType.Wind,
            units.wind,
        ),
        PlotvarInfo(
            "SunHours", "sunHours", "alldailysolardata.json", AxisType.Hours, "Hours"
        ),
        PlotvarInfo(
            "SolarRadiation",
            "solarRad",
            "alldailysolardata.json",
            AxisType.Solar,
            "W/m²",
        ),
        PlotvarInfo("UVIndex", "uvi", "alldailysolardata.json", AxisType.UV, ""),
        PlotvarInfo("DayRain", "rain", "alldailyraindata.json", AxisType.Rain, units.rain),
        PlotvarInfo(
            "MaxRainRate",
            "maxRainRate",
            "alldailyraindata.json",
            AxisType.Rrate,
            units.rain_rate,
        ),
        PlotvarInfo(
            "MinBarometer",
            "minBaro",
            "alldailypressdata.json",
            AxisType.Pressure,
            units.pressure,
        ),
        PlotvarInfo(
            "MaxBarometer",
            "maxBaro",
            "alldailypressdata.json",
            AxisType.Pressure,
            units.pressure,
        ),
        PlotvarInfo("MinHumidity", "minHum", "alldailyhumdata.json", AxisType.Humidity, "%"),
        PlotvarInfo("MaxHumidity", "maxHum", "alldailyhumdata.json", AxisType.Humidity, "%"),
        PlotvarInfo(
            "HeatingDegreeDays",
            "heatingdegreedays",
            "CUserdataALL.json",
            AxisType.DegreeDays,
            "degree days",
        ),
        PlotvarInfo(
            "CoolingDegreeDays",
            "coolingdegreedays",
            "CUserdataALL.json",
            AxisType.DegreeDays,
            "degree days",
        ),
        PlotvarInfo(
            "DayEVT", "evapotranspiration", "CUserdataALL.json", AxisType.EVT, units.rain
        ),
    ]
    return table


def _extra_table(units, external_extra_sensors):
    t = units.temp

    def series(prefix, count, axis, unit):
        return [
            PlotvarInfo(
                "%s%d" % (prefix, i), "%s%d" % (prefix, i), EXTRA_SENSORS_DATAFILE, axis, unit
            )
            for i in range(1, count + 1)
        ]

    def single(name, axis, unit):
        return PlotvarInfo(name, name, EXTRA_SENSORS_DATAFILE, axis, unit)

    table = series("Temp", 10, AxisType.Temp, t)
    table += series("Humidity", 10, AxisType.Humidity, "%")
    table += series("Dewpoint", 10, AxisType.Temp, t)
    table += series("SoilTemp", 16, AxisType.Temp, t)
    table += [
        single("SoilMoisture%d" % (i + 1), AxisType.SoilMoisture, unit)
        for i, unit in enumerate(units.soil_moisture)
    ]
    table += series("AirQuality", 4, AxisType.AQ, units.pm)
    table += series("AirQualityAvg", 4, AxisType.AQ, units.pm)
    table += series("UserTemp", 8, AxisType.Temp, t)
    table += series("LeafTemp", 4, AxisType.Temp, t)
    table += series("LeafWetness", 8, AxisType.Free, "")
    table += [
        single("CO2", AxisType.ppm, units.co2),
        single("CO2_24h", AxisType.ppm, units.co2),
        single("CO2_pm2p5", AxisType.AQ, units.pm),
        single("CO2_pm2p5_24h", AxisType.AQ, units.pm),
        single("CO2_pm10", AxisType.AQ, units.pm),
        single("CO2_pm10_24h", AxisType.AQ, units.pm),
        single("CO2_temp", AxisType.Temp, t),
        single("CO2_hum", AxisType.Humidity, "%"),
        single("Lightning", AxisType.Free, ""),
    ]

    for sensor in external_extra_sensors or []:
        sensor = sensor.strip()
        if sensor:
            logdbg("Adding external extra sensor %s" % sensor)
            table.append(single(sensor, AxisType.Free, ""))

    return table


class KeywordTables:
    """
    The keyword tables of the three data ranges. Daily and All share
    one table. The units depend on the station so the tables are built
    per station from a StationUnits instance.
    """

    def __init__(self, units, external_extra_sensors=None):
        self.recent = _recent_table(units)
        self.all = _all_table(units)
        self.extra = _extra_table(units, external_extra_sensors)

    def for_range(self, plotvar_range):
        if plotvar_range == PlotvarRangeType.Recent:
            return self.recent
        elif plotvar_range in (PlotvarRangeType.Daily, PlotvarRangeType.All):
            return self.all
        elif plotvar_range == PlotvarRangeType.Extra:
            return self.extra
        return None

    def lookup(self, plotvar_range, keyword):
        """Case insensitive lookup of a keyword in the table of a range"""
        table = self.for_range(plotvar_range) or []
        for entry in table:
            if entry.keyword.lower() == keyword.lower():
                return entry
        return None

    def is_keyword(self, plotvar_range, keyword):
        return self.lookup(plotvar_range, keyword) is not None
