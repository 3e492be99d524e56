"""Tests of the chart definition parser."""

import pytest

from chartscompiler.declarations import AxisType, KeywordTables, PlotvarRangeType
from chartscompiler.parser import ChartsParser, tokenize_definitions

TEMP_DEW = """
; Temperature and dewpoint with their difference
Equations
  Dewpoint_depression Eval [ Temperature - Dewpoint ]

Chart TempDew Title Temperature and dewpoint
  Plot Temperature Colour red
  Plot Dewpoint As Area Opacity 0.3
  Plot Depression Eval [ Dewpoint_depression ] Axis Temp
  Stats Temperature SMA Period 12
EndChart
Info " The temperature with its moving average "
"""


def test_tokenize_definitions_drops_comments():
    words = tokenize_definitions("; a comment\nPlot Depression Eval [Temperature]\n\n")

    assert words == ["Plot", "Depression", "Eval", "[", "Temperature", "]"]


def test_parse_chart(parse):
    """A complete chart with an equation, a statistic and an info text."""

    outputs = parse(TEMP_DEW)

    assert len(outputs) == 1
    assert outputs[0].filename == "cumuluscharts.txt"

    chart = outputs[0].charts[0]
    assert chart.id == "TempDew"
    assert chart.title == "Temperature and dewpoint"
    assert chart.range == PlotvarRangeType.Recent
    assert chart.axis == AxisType.Temp
    assert chart.has_info
    assert chart.info_text == "The temperature with its moving average"

    temperature, dewpoint, depression, sma = chart.plotvars

    assert temperature.keyword == "Temperature"
    assert temperature.plotvar == "temp"
    assert temperature.datafile == "tempdata.json"
    assert temperature.color == "red"
    assert temperature.graph_type == "spline"

    assert dewpoint.graph_type == "area"
    assert dewpoint.opacity == 0.3

    assert depression.equation == "(Temperature-Dewpoint)"
    assert depression.axis == AxisType.Temp
    assert depression.axis_id == "Temp"
    assert depression.datafile == ""

    assert sma.is_stats
    assert sma.graph_type == "sma"
    assert sma.period == 12
    assert sma.keyword == "Temperature"


def test_keywords_are_case_insensitive(parse):
    outputs = parse("chart T title t plot DAILY mintemp as columnrange endchart")

    pv = outputs[0].charts[0].plotvars[0]
    assert pv.keyword == "MinTemp"
    assert pv.graph_type == "columnrange"
    assert pv.plotvar_range == PlotvarRangeType.Daily


def test_output_starts_a_new_output(parse):
    """Output after a chart moves that chart and the ones following to the new file."""

    outputs = parse(
        """
        Chart First Title First Plot Temperature EndChart
        Chart Second Title Second Plot Humidity EndChart
        Output humcharts.txt
        Chart Third Title Third Plot Pressure EndChart
        """
    )

    assert [o.filename for o in outputs] == ["cumuluscharts.txt", "humcharts.txt"]
    assert [c.id for c in outputs[0].charts] == ["First"]
    assert [c.id for c in outputs[1].charts] == ["Second", "Third"]


def test_output_on_the_first_chart_is_ignored(parse):
    outputs = parse("Chart First Title First Plot Temperature EndChart Output other.txt")

    assert len(outputs) == 1
    assert outputs[0].filename == "cumuluscharts.txt"


def test_connects_to_fills_the_click_events(sup, tables):
    parser = ChartsParser(sup, tables)

    parser.parse("Chart Temp Title T ConnectsTo 1 3 Zoom 2 Plot Temperature EndChart")

    assert parser.click_events[0] == "Temp"
    assert parser.click_events[2] == "Temp"
    assert parser.click_events[1] == ""
    assert len(parser.click_events) == 24


def test_wind_barbs(parse):
    outputs = parse("Chart W Title Wind Has WindBarbs Above Colour blue Plot WindSpeed EndChart")

    chart = outputs[0].charts[0]
    assert chart.has_wind_barbs
    assert not chart.wind_barbs_below
    assert chart.wind_barb_color == "blue"


def test_equation_without_axis_gets_the_free_axis(parse):
    outputs = parse("Chart E Title E Plot Spread Eval [ Temperature * 2 ] EndChart")

    pv = outputs[0].charts[0].plotvars[0]
    assert pv.axis == AxisType.Free
    assert pv.axis_id == "Free"


def test_axis_is_ignored_without_equation(parse):
    outputs = parse("Chart T Title T Plot Temperature Axis Rain LineWidth 3 EndChart")

    pv = outputs[0].charts[0].plotvars[0]
    assert pv.axis == AxisType.Temp
    assert pv.line_width == 3


def test_opacity_out_of_range_is_reset(parse):
    outputs = parse("Chart T Title T Plot Temperature As Area Opacity 1.5 EndChart")

    assert outputs[0].charts[0].plotvars[0].opacity == 1.0


def test_sma_period_from_configuration(make_sup):
    sup = make_sup(utils={"Compiler": {"SmaPeriod": "7"}})
    parser = ChartsParser(sup, KeywordTables(sup.units))

    outputs = parser.parse("Chart T Title T Plot Temperature Stats Temperature SMA EndChart")

    assert outputs[0].charts[0].plotvars[1].period == 7


def test_stats_on_an_equation(parse):
    outputs = parse(
        "Chart E Title E Plot Spread Eval [ Temperature - Dewpoint ] Axis Temp "
        "Stats Spread SMA EndChart"
    )

    sma = outputs[0].charts[0].plotvars[1]
    assert sma.keyword == "Spread"
    assert sma.axis == AxisType.Temp
    assert sma.equation is None
    assert sma.period == 5


def test_extra_soil_moisture_axis_ids(make_sup):
    sup = make_sup(utils={"Compiler": {"SoilMoistureUnits": "%, cb"}})
    parser = ChartsParser(sup, KeywordTables(sup.units))

    outputs = parser.parse(
        "Chart S Title Soil Plot Extra SoilMoisture1 Plot Extra SoilMoisture2 EndChart"
    )

    first, second = outputs[0].charts[0].plotvars
    assert first.axis_id == "SoilMoisture"
    assert second.axis_id == "SoilMoisturecb"
    assert second.unit == "cb"


@pytest.mark.parametrize(
    "text",
    [
        # duplicate chart id
        "Chart A Title A Plot Temperature EndChart Chart a Title B Plot Humidity EndChart",
        # unknown keyword without Eval
        "Chart A Title A Plot Unknown EndChart",
        # Eval on a reserved keyword
        "Chart A Title A Plot Temperature Eval [ Dewpoint ] EndChart",
        # ColumnRange on a variable which has no min and max
        "Chart A Title A Plot Daily DayRain As ColumnRange EndChart",
        # ColumnRange on a recent equation named like a daily variable
        "Chart A Title A Plot MinTemp Eval [ Temperature ] As ColumnRange EndChart",
        # statistic of a variable that is not plotted
        "Chart A Title A Plot Humidity Stats Temperature SMA EndChart",
        # missing EndChart
        "Chart A Title A Plot Temperature",
        # missing Title
        "Chart A Plot Temperature EndChart",
        # no Plot
        "Chart A Title A EndChart",
        # double Info
        'Chart A Title A Plot Temperature EndChart Info " one " Info " two "',
        # Info without closing quote
        'Chart A Title A Plot Temperature EndChart Info " one',
        # invalid plot type
        "Chart A Title A Plot Temperature As Pie EndChart",
        # invalid axis of an equation
        "Chart A Title A Plot X Eval [ Temperature ] Axis Sideways EndChart",
        # Period which is no number
        "Chart A Title A Plot Temperature Stats Temperature SMA Period None EndChart",
        # invalid zIndex
        "Chart A Title A Plot Temperature zIndex high EndChart",
        # WindBarbs without position
        "Chart A Title A Has WindBarbs Plot Temperature EndChart",
        # empty definitions
        "; only a comment",
    ],
)
def test_parse_errors_give_none(parse, text):
    assert parse(text) is None


def test_parse_file_missing(sup, tables, tmp_path):
    assert ChartsParser(sup, tables).parse_file(str(tmp_path / "CUserCharts.def")) is None


def test_parse_file(sup, tables, tmp_path):
    path = tmp_path / "CUserCharts.def"
    path.write_text(TEMP_DEW, encoding="utf-8")

    outputs = ChartsParser(sup, tables).parse_file(str(path))

    assert outputs[0].charts[0].id == "TempDew"


@pytest.mark.parametrize(
    "equations",
    [
        "Equations A Eval [ A + 1 ]",
        "Equations A Eval [ B * 2 ] B Eval [ A - 1 ]",
    ],
)
def test_recursive_equations_are_an_error(parse, equations):
    """An equation referring to itself, directly or through another, is rejected."""

    assert parse(equations + " Chart E Title E Plot Y Eval [ A ] Axis Temp EndChart") is None


def test_zoom_none_keeps_the_default(parse):
    outputs = parse("Chart T Title T Zoom None Plot Temperature EndChart")

    assert outputs[0].charts[0].zoom == -1
