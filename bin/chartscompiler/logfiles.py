"""Readers of the Cumulus MX day file and monthly logs"""

import datetime
import logging
import os
from collections import namedtuple

log = logging.getLogger(__name__)


def logdbg(msg):
    log.debug(msg)


def logerr(msg):
    log.error(msg)


DAYFILE_FIELDS = [
    "thisDate", "highWindGust", "bearingHighWindGust", "timeHighWindGust", "minTemp",
    "timeMinTemp", "maxTemp", "timeMaxTemp", "minBarometer", "timeMinBarometer",
    "maxBarometer", "timeMaxBarometer", "maxRainRate", "timeMaxRainRate", "totalRainThisDay",
    "averageTempThisDay", "totalWindRunThisDay", "highAverageWindSpeed",
    "timeHighAverageWindSpeed", "lowHumidity", "timeLowHumidity", "highHumidity",
    "timeHighHumidity", "evapotranspiration", "hrsofsunshine", "highheatindex",
    "timeofhighheatindex", "highapparenttemp", "timeofhighapptemp", "lowapparenttemp",
    "timeoflowapptemp", "highHourlyRain", "timeHighHourlyRain", "lowwindchill",
    "timeoflowwindchill", "highdewpoint", "timeofhighdewpoint", "lowdewpoint",
    "timeoflowdewpoint", "dominantWindbearing", "heatingdegreedays", "coolingdegreedays",
    "highsolarRadiation", "timeofHighsolarRadiation", "highUVindex", "timeofHighUVIndex",
    "highFeelsLike", "timeofhighFeelsLike", "lowFeelsLike", "timeoflowFeelsLike",
    "highHumidex", "timeofhighHumidex",
]

MONTHFILE_FIELDS = [
    "thisDate", "thisTime", "CurrTemp", "CurrRH", "CurrDewpoint", "CMXAverageWind",
    "CMXGustSpeed", "AvWindBearing", "CurrRainRate", "TotalRainToday", "CurrPressure",
    "TotalRainfallCounter", "InsideTemp", "InsideRH", "CMXLatestGust", "WindChill",
    "HeatIndex", "UVindex", "SolarRad", "EVT", "AnnualEVT", "ApparentTemp",
    "SolarTheoreticalMax", "HrsOfSunshineSoFar", "CurrWindBearing", "RG11RainToday",
    "TotalRainSinceMidnight",
]

# Lines shorter than this miss the fields the compiler reads
DAYFILE_MIN_FIELDS = DAYFILE_FIELDS.index("highHumidity") + 1
MONTHFILE_MIN_FIELDS = MONTHFILE_FIELDS.index("CMXLatestGust") + 1

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

DayfileValue = namedtuple("DayfileValue", ["date", "values"])
MonthfileValue = namedtuple("MonthfileValue", ["timestamp", "values"])


def split_log_line(line):
    """
    The fields of a log line. Cumulus MX writes either ',' between the
    fields with a decimal point, or ';' with a decimal comma.
    """
    line = line.strip()
    if ";" in line:
        return [f.strip().replace(",", ".") for f in line.split(";")]
    return [f.strip() for f in line.split(",")]


def parse_log_date(text):
    """Day, month and year in the dd/mm/yy format, with - or . accepted as separator"""
    text = text.replace("-", "/").replace(".", "/")
    return datetime.datetime.strptime(text, "%d/%m/%y")


def _numeric_values(names, fields, skip):
    values = {}
    for name, field in zip(names, fields):
        if name in skip or name.startswith("time"):
            continue
        if field == "":
            values[name] = None
            continue
        try:
            values[name] = float(field)
        except ValueError:
            values[name] = None
    return values


def parse_dayfile_line(line):
    fields = split_log_line(line)
    if len(fields) < DAYFILE_MIN_FIELDS:
        raise ValueError("line too short, %d fields" % len(fields))
    date = parse_log_date(fields[0])
    return DayfileValue(date, _numeric_values(DAYFILE_FIELDS, fields, ("thisDate",)))


def parse_monthfile_line(line):
    fields = split_log_line(line)
    if len(fields) < MONTHFILE_MIN_FIELDS:
        raise ValueError("line too short, %d fields" % len(fields))
    date = parse_log_date(fields[0])
    hour, minute = fields[1].split(":")[:2]
    timestamp = date.replace(hour=int(hour), minute=int(minute))
    return MonthfileValue(
        timestamp, _numeric_values(MONTHFILE_FIELDS, fields, ("thisDate", "thisTime"))
    )


def _read_lines(path, parse):
    entries = []
    with open(path, encoding="utf-8", errors="replace") as f:
        for number, line in enumerate(f, 1):
            if not line.strip():
                continue
            try:
                entries.append(parse(line))
            except ValueError as e:
                logerr("%s line %d skipped: %s" % (path, number, e))
    return entries


def read_dayfile(data_dir):
    """All days of data/dayfile.txt, an empty list when there is none"""
    path = os.path.join(data_dir, "dayfile.txt")
    if not os.path.exists(path):
        logerr("No day file at %s" % path)
        return []
    entries = _read_lines(path, parse_dayfile_line)
    logdbg("Read %d days from %s" % (len(entries), path))
    return entries


def monthly_log_names(start, end, month_names=None):
    """The monthly log files covering start up to and including end"""
    month_names = month_names or MONTH_NAMES
    names = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        names.append("%s%02dlog.txt" % (month_names[month - 1], year % 100))
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return names


def read_monthly_logs(data_dir, start, end, month_names=None):
    """The monthly log entries from start up to and including end"""
    entries = []
    for name in monthly_log_names(start, end, month_names):
        path = os.path.join(data_dir, name)
        if not os.path.exists(path):
            logerr("Monthly log %s not found" % path)
            continue
        entries.extend(_read_lines(path, parse_monthfile_line))

    return [e for e in entries if start <= e.timestamp <= end]
