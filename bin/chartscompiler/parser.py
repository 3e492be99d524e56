"""
Parser of the chart definition language of CUserCharts.def.

    Equations
      Dewpoint_depression Eval [ Temperature - Dewpoint ]

    Chart TempDew Title Temperature and dewpoint
      Plot Temperature Colour red
      Plot Dewpoint As Area Opacity 0.3
      Plot Depression Eval [ Dewpoint_depression ] Axis Temp
      Stats Temperature SMA Period 12
    EndChart
    Info " The temperature with its moving average "
    Output tempcharts.txt

Keywords are case insensitive and a line starting with ';' is a comment.
Any error is logged and makes the whole parse fail.
"""

import logging
import os
import re

from weeutil.weeutil import to_int

from chartscompiler import ParseError
from chartscompiler.declarations import (
    LINETYPE_KEYWORDS,
    NR_OF_CLICK_EVENTS,
    STATS_TYPE_KEYWORDS,
    VALID_COLUMNRANGE_VARS,
    AxisType,
    ChartDef,
    OutputDef,
    Plotvar,
    PlotvarRangeType,
    axis_from_keyword,
)
from chartscompiler.equations import check_expression

log = logging.getLogger(__name__)


def logdbg(msg):
    log.debug(msg)


def loginf(msg):
    log.info(msg)


def logwarn(msg):
    log.warning(msg)


def logerr(msg):
    log.error(msg)


ATTRIBUTE_KEYWORDS = ["InVisible", "As", "Opacity", "Colour", "zIndex", "LineWidth", "Axis"]

RANGE_KEYWORDS = {
    "recent": PlotvarRangeType.Recent,
    "extra": PlotvarRangeType.Extra,
    "daily": PlotvarRangeType.Daily,
    "all": PlotvarRangeType.All,
}


def tokenize_definitions(text):
    """
    The words of the definitions. Comment lines are dropped and the
    brackets of an Eval and the quotes of an Info are words of their own.
    """
    words = []
    for line in text.splitlines():
        if not line.strip() or line.lstrip().startswith(";"):
            continue
        line = re.sub(r'([\[\]"])', r" \1 ", line)
        words.extend(line.split())
    return words


def int_value(text):
    """to_int of a definition word, where 'None' is no number either"""
    value = to_int(text)
    if value is None:
        raise ValueError("no number: %s" % text)
    return value


def soil_moisture_axis_id(unit):
    """Each soil moisture unit needs an axis of its own"""
    if unit in ("", "%"):
        return AxisType.SoilMoisture.name
    return AxisType.SoilMoisture.name + unit


class ChartsParser:
    """
    Parses chart definitions into a list of OutputDef. The parser keeps
    the equations of the Equations block and the charts connected to the
    dashboard panels.
    """

    def __init__(self, sup, tables):
        self.sup = sup
        self.tables = tables
        self.equations = {}
        self.click_events = [""] * NR_OF_CLICK_EVENTS
        self.words = []
        self.pos = 0

    def parse_file(self, path):
        """Parse a definitions file, None when it does not exist or is in error"""
        if not os.path.exists(path):
            loginf("No chart definitions found at %s" % path)
            return None
        with open(path, encoding="utf-8") as f:
            return self.parse(f.read())

    def parse(self, text):
        self.words = tokenize_definitions(text)
        self.pos = 0
        self.equations = {}
        self.click_events = [""] * NR_OF_CLICK_EVENTS

        logdbg("Parsing the chart definitions: %d words" % len(self.words))

        try:
            outputs = self._definitions()
        except ParseError as e:
            logerr("Parsing the chart definitions: %s" % e)
            return None

        logdbg(
            "Parsed %d charts into %d outputs"
            % (sum(len(o.charts) for o in outputs), len(outputs))
        )
        return outputs

    def _peek(self, offset=0):
        i = self.pos + offset
        return self.words[i] if i < len(self.words) else ""

    def _at(self, *keywords):
        word = self._peek().lower()
        return any(word == k.lower() for k in keywords)

    def _next(self):
        if self.pos >= len(self.words):
            raise ParseError("Unexpected end of the chart definitions")
        word = self.words[self.pos]
        self.pos += 1
        return word

    def _definitions(self):
        if not self.words:
            raise ParseError("No chart definitions")

        if self._at("Equations"):
            self.pos += 1
            self._equation_block()

        outputs = []
        output = OutputDef()
        charts = []

        while self.pos < len(self.words):
            chart = self._chart(charts, outputs)

            output_done = False
            while self._at("Info", "Output"):
                if self._at("Info"):
                    self._info(chart)
                    continue

                if output_done:
                    raise ParseError("Double Output specified on '%s'" % chart.id)
                output_done = True
                self.pos += 1
                filename = self._next()

                if not outputs and not charts:
                    logwarn(
                        "Output %s given for the first chart '%s', the first chart always goes to %s"
                        % (filename, chart.id, output.filename)
                    )
                else:
                    output.charts = charts
                    outputs.append(output)
                    charts = []
                    output = OutputDef(filename)

            charts.append(chart)

        self._check_column_ranges(outputs + [output], charts)
        self._check_stats(outputs + [output], charts)

        output.charts = charts
        outputs.append(output)
        return outputs

    def _equation_block(self):
        while True:
            name = self._next()
            equation = self._eval(name, PlotvarRangeType.Recent, equation_block=True)
            if equation is None:
                raise ParseError("Error in equation %s" % name)
            self.equations[name] = equation
            logdbg("Equation %s: %s" % (name, equation))
            if self._at("Chart") or self.pos >= len(self.words):
                break

    def _chart(self, charts, outputs):
        if not self._at("Chart"):
            raise ParseError("Unrecognised keyword '%s' where Chart should be" % self._peek())
        self.pos += 1

        chart = ChartDef(self._next())
        for other in [c for o in outputs for c in o.charts] + charts:
            if other.id.lower() == chart.id.lower():
                raise ParseError("Duplicate chart id '%s'" % chart.id)

        loginf("Parsing chart %s" % chart.id)

        if not self._at("Title"):
            raise ParseError("Missing keyword Title in chart '%s'" % chart.id)
        self.pos += 1
        title = [self._next()]
        while self.pos < len(self.words) and not self._at("Plot", "Stats", "ConnectsTo", "Zoom", "Has"):
            title.append(self._next())
        chart.title = " ".join(title)

        while self._at("ConnectsTo", "Zoom", "Has"):
            if self._at("ConnectsTo"):
                self.pos += 1
                self._connects_to(chart, first_output=not outputs)
            elif self._at("Zoom"):
                self.pos += 1
                zoom = self._next()
                try:
                    chart.zoom = int_value(zoom)
                except ValueError:
                    logerr("Invalid Zoom value '%s' in chart '%s'" % (zoom, chart.id))
            else:
                self.pos += 1
                self._wind_barbs(chart)

        if not self._at("Plot", "Stats"):
            raise ParseError("Plot or Stats missing in chart '%s'" % chart.id)

        while self._at("Plot", "Stats"):
            if self._at("Stats"):
                self.pos += 1
                pv = self._stats(chart)
            else:
                self.pos += 1
                pv = self._plot(chart)

            # The user is not supposed to mix the ranges within a chart
            chart.range = pv.plotvar_range
            self._attributes(chart, pv)

            if pv.graph_type == "scatter":
                chart.has_scatter = True

            if pv.equation is not None and pv.axis == AxisType.NoAxis:
                logwarn(
                    "No axis specified for %s in chart '%s', using the Free axis"
                    % (pv.keyword, chart.id)
                )
                pv.axis = AxisType.Free
                pv.axis_id = AxisType.Free.name

            chart.axis |= pv.axis
            chart.plotvars.append(pv)

        if not self._at("EndChart"):
            raise ParseError(
                "Error at EndChart of chart '%s' after '%s'" % (chart.id, self._peek(-1))
            )
        self.pos += 1

        return chart

    def _connects_to(self, chart, first_output):
        while self._peek().isdigit():
            panel = int(self._next())
            if not first_output:
                logwarn(
                    "Skipping ConnectsTo %d of '%s', only charts of the first output connect to the dashboard"
                    % (panel, chart.id)
                )
                continue
            if panel < 1 or panel > NR_OF_CLICK_EVENTS:
                logwarn("Skipping ConnectsTo %d of '%s', no such panel" % (panel, chart.id))
                continue
            chart.connects_to_dashboard_panel.append(panel)
            self.click_events[panel - 1] = chart.id

    def _wind_barbs(self, chart):
        if not self._at("WindBarbs"):
            raise ParseError("Missing WindBarbs after Has in chart '%s'" % chart.id)
        self.pos += 1
        chart.has_wind_barbs = True

        if self._at("Above"):
            chart.wind_barbs_below = False
        elif self._at("Below"):
            chart.wind_barbs_below = True
        else:
            raise ParseError("Missing Below or Above after WindBarbs in chart '%s'" % chart.id)
        self.pos += 1

        if self._at("Colour"):
            self.pos += 1
            chart.wind_barb_color = self._next()

    def _range(self, stats=False):
        word = self._peek().lower()
        if word not in RANGE_KEYWORDS:
            return PlotvarRangeType.Recent
        self.pos += 1
        plotvar_range = RANGE_KEYWORDS[word]
        if stats and plotvar_range == PlotvarRangeType.Daily:
            return PlotvarRangeType.All
        return plotvar_range

    def _set_from_table(self, pv, info):
        pv.keyword = info.keyword
        pv.plotvar = info.type_name
        pv.unit = info.unit
        pv.datafile = info.datafile
        pv.axis = info.axis
        if info.axis == AxisType.SoilMoisture:
            pv.axis_id = soil_moisture_axis_id(info.unit)
        else:
            pv.axis_id = info.axis.name

    def _stats(self, chart):
        pv = Plotvar(self._range(stats=True))
        pv.is_stats = True

        word = self._next()
        info = self.tables.lookup(pv.plotvar_range, word)
        if info is not None:
            self._set_from_table(pv, info)
        else:
            base = None
            for other in chart.plotvars:
                if other.equation is not None and other.keyword.lower() == word.lower():
                    base = other
                    break
            if base is None:
                raise ParseError(
                    "Invalid variable %s for statistic in chart '%s'" % (word, chart.id)
                )
            pv.keyword = base.keyword
            pv.plotvar = base.plotvar
            pv.unit = base.unit
            pv.datafile = base.datafile
            pv.axis = base.axis
            pv.axis_id = base.axis_id

        stats_type = self._peek()
        if stats_type.upper() not in STATS_TYPE_KEYWORDS:
            raise ParseError("No statistics definition found in Stats line of '%s'" % chart.id)
        self.pos += 1
        pv.graph_type = stats_type.lower()

        if self._at("Period"):
            self.pos += 1
            period = self._next()
            try:
                pv.period = int_value(period)
            except ValueError:
                raise ParseError("Invalid Period '%s' in chart '%s'" % (period, chart.id))
        else:
            pv.period = to_int(self.sup.get_utils_ini_value("Compiler", "SmaPeriod", 5)) or 5

        return pv

    def _plot(self, chart):
        pv = Plotvar(self._range())
        pv.graph_type = "spline"

        word = self._next()
        info = self.tables.lookup(pv.plotvar_range, word)
        if info is not None:
            self._set_from_table(pv, info)
        else:
            pv.keyword = word

        if self._at("Eval"):
            pv.equation = self._eval(pv.keyword, pv.plotvar_range)
            if pv.equation is None:
                raise ParseError("No valid equation for %s in chart '%s'" % (pv.keyword, chart.id))
            pv.eq_all_var_list = []
        elif info is None:
            raise ParseError(
                "%s is no plot variable and needs an Eval in chart '%s'" % (word, chart.id)
            )

        return pv

    def _eval(self, name, plotvar_range, equation_block=False):
        """The checked equation of an Eval [ ... ] clause, None when in error"""
        if not self._at("Eval"):
            logerr("No Eval found for %s" % name)
            return None
        self.pos += 1

        if not equation_block and self.tables.is_keyword(plotvar_range, name):
            logerr("The name of an equation may not be a plot variable keyword: %s" % name)
            return None

        if self._next() != "[":
            logerr("No opening [ found in the Eval of %s" % name)
            return None

        raw = []
        while self._peek() != "]":
            raw.append(self._next())
        self.pos += 1

        def keyword_lookup(word):
            info = self.tables.lookup(plotvar_range, word)
            return info.keyword if info is not None else None

        return check_expression(" ".join(raw), keyword_lookup, self.equations, equation_block)

    def _attributes(self, chart, pv):
        while self._at(*ATTRIBUTE_KEYWORDS):
            keyword = self._next().lower()

            if keyword == "invisible":
                pv.visible = False

            elif keyword == "as":
                graph_type = self._next()
                if pv.is_stats:
                    logwarn(
                        "Cannot set the plot type %s of the statistic %s in chart '%s'"
                        % (graph_type, pv.keyword, chart.id)
                    )
                    continue
                if graph_type.lower() not in [t.lower() for t in LINETYPE_KEYWORDS]:
                    raise ParseError(
                        "Invalid As type '%s' in chart '%s'" % (graph_type, chart.id)
                    )
                pv.graph_type = graph_type.lower()
                if pv.graph_type == "columnrange" and pv.keyword.lower() not in [
                    v.lower() for v in VALID_COLUMNRANGE_VARS
                ]:
                    raise ParseError(
                        "%s cannot be plotted As ColumnRange in chart '%s'"
                        % (pv.keyword, chart.id)
                    )

            elif keyword == "opacity":
                value = self._next()
                try:
                    pv.opacity = float(value)
                except ValueError:
                    raise ParseError(
                        "Invalid Opacity '%s' of %s in chart '%s'" % (value, pv.keyword, chart.id)
                    )
                if pv.opacity < 0 or pv.opacity > 1:
                    pv.opacity = 1.0

            elif keyword == "colour":
                pv.color = self._next()

            elif keyword in ("zindex", "linewidth"):
                value = self._next()
                try:
                    number = int_value(value)
                except ValueError:
                    raise ParseError(
                        "Invalid %s '%s' of %s in chart '%s'"
                        % (keyword, value, pv.keyword, chart.id)
                    )
                if keyword == "zindex":
                    pv.zindex = number
                else:
                    pv.line_width = number

            elif keyword == "axis":
                name = self._next()
                if pv.equation is None:
                    logwarn(
                        "Axis %s of %s in chart '%s' ignored, an axis is only specified for an equation"
                        % (name, pv.keyword, chart.id)
                    )
                    continue
                axis = axis_from_keyword(name)
                if axis is None:
                    raise ParseError("Invalid Axis type '%s' in chart '%s'" % (name, chart.id))
                pv.axis_id, pv.axis = axis

    def _info(self, chart):
        self.pos += 1
        if chart.has_info:
            raise ParseError("Double Info specified on '%s'" % chart.id)
        chart.has_info = True

        if self._next() != '"':
            raise ParseError("Info specified on '%s' but no opening quote found" % chart.id)

        words = []
        while self.pos < len(self.words) and self._peek() != '"':
            words.append(self._next())
        if self.pos >= len(self.words):
            raise ParseError("Info specified on '%s' but no closing quote found" % chart.id)
        self.pos += 1

        chart.info_text = " ".join(words)

    def _check_column_ranges(self, outputs, charts):
        for chart in [c for o in outputs for c in o.charts] + charts:
            for pv in chart.plotvars:
                if pv.graph_type == "columnrange" and pv.plotvar_range not in (
                    PlotvarRangeType.Daily,
                    PlotvarRangeType.All,
                ):
                    raise ParseError(
                        "ColumnRange of %s in chart '%s' is only possible for Daily or All"
                        % (pv.keyword, chart.id)
                    )

    def _check_stats(self, outputs, charts):
        for chart in [c for o in outputs for c in o.charts] + charts:
            for pv in chart.plotvars:
                if not pv.is_stats:
                    continue
                if not any(
                    not other.is_stats and other.keyword.lower() == pv.keyword.lower()
                    for other in chart.plotvars
                ):
                    raise ParseError(
                        "Statistic of %s in chart '%s' needs %s plotted itself"
                        % (pv.keyword, chart.id, pv.keyword)
                    )
