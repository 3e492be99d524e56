"""
The data files only CumulusUtils can produce. Plot variables with a
CUserdata datafile are not in the JSON files of Cumulus MX, their values
are taken from the monthly logs (Recent and Extra) or the day file (Daily
and All) and written as Highcharts series.
"""

import datetime
import decimal
import json
import logging
import os

from chartscompiler.declarations import PlotvarRangeType
from chartscompiler.logfiles import read_dayfile, read_monthly_logs
from chartscompiler.support import date_is_today, date_to_js

log = logging.getLogger(__name__)


def logdbg(msg):
    log.debug(msg)


def loginf(msg):
    log.info(msg)


def logerr(msg):
    log.error(msg)


DONE_TODAY_FORMAT = "%Y-%m-%dT%H:%M:%S"

USERDATA_PREFIX = "CUserdata"

# JSON name of the series and the log field it comes from, other names are
# taken from the field of the same name
MONTHFILE_ACCESSORS = {
    "evapotranspiration": "EVT",
}

DAYFILE_ACCESSORS = {
    "heatingdegreedays": "heatingdegreedays",
    "coolingdegreedays": "coolingdegreedays",
    "evapotranspiration": "evapotranspiration",
}


def one_decimal(value):
    """Rounded half up like the CumulusUtils data files, 0.25 gives 0.3"""
    return float(decimal.Decimal(str(value)).quantize(decimal.Decimal("0.1"), decimal.ROUND_HALF_UP))


def series(entries, field, when):
    """[[ms, value], ...] of the entries with a value for the field"""
    data = []
    for entry in entries:
        value = entry.values.get(field)
        if value is None:
            continue
        data.append([date_to_js(when(entry)), one_decimal(value)])
    return data


def daily_and_all_due(sup, now):
    """Whether the day file series were not yet made today"""
    done_today = sup.get_utils_ini_value("Compiler", "DoneToday", "")
    try:
        done_today = datetime.datetime.strptime(done_today, DONE_TODAY_FORMAT)
    except ValueError:
        done_today = now - datetime.timedelta(days=1)
    logdbg("DoneToday = %s" % done_today)
    return not date_is_today(done_today, now)


def generate_user_asked_data(sup, charts, data_dir, output_dir, now=None, non_incremental=False):
    """
    Write the CUserdata files the charts need and return the end of the
    data window, which the caller keeps as the last upload time.

    The monthly log series are written on every run for the current
    window. The day file series change once a day, so they are only
    written when [Compiler] DoneToday is not today, or when
    non_incremental is set.
    """
    if now is None:
        now = datetime.datetime.now()

    if not charts:
        loginf("No user asked data to generate")
        return now

    start, end = sup.set_start_and_end_for_data(now, non_incremental)
    logdbg("User asked data from %s to %s" % (start, end))

    due = non_incremental or daily_and_all_due(sup, now)
    if due:
        loginf("Generating the Daily and All user asked data")
        sup.set_utils_ini_value("Compiler", "DoneToday", now.strftime(DONE_TODAY_FORMAT))

    monthly = None
    daily = None
    files = {}

    for chart in charts:
        for pv in chart.plotvars:
            if not pv.datafile.startswith(USERDATA_PREFIX):
                continue

            if pv.plotvar_range in (PlotvarRangeType.Recent, PlotvarRangeType.Extra):
                if monthly is None:
                    monthly = read_monthly_logs(data_dir, start, end)
                field = MONTHFILE_ACCESSORS.get(pv.plotvar, pv.plotvar)
                data = series(monthly, field, lambda e: e.timestamp)
            elif pv.plotvar_range in (PlotvarRangeType.Daily, PlotvarRangeType.All):
                if not due:
                    continue
                if daily is None:
                    daily = read_dayfile(data_dir)
                field = DAYFILE_ACCESSORS.get(pv.plotvar, pv.plotvar)
                data = series(daily, field, lambda e: e.date)
            else:
                logerr("Internal error: unknown range %s of %s" % (pv.plotvar_range, pv.keyword))
                continue

            logdbg("Generating %s into %s" % (pv.plotvar, pv.datafile))
            files.setdefault(pv.datafile, {})[pv.plotvar] = data

    for datafile, content in files.items():
        path = os.path.join(output_dir, datafile)
        with open(path, "w", encoding="utf-8") as f:
            f.write(json.dumps(content, separators=(",", ":")))
        loginf("Written %s" % path)

    return end
