"""Tests of the axis creation of the charts."""

from chartscompiler.axis import AxisUnifier, soil_moisture_unit
from chartscompiler.declarations import CompilationContext, KeywordTables
from chartscompiler.parser import ChartsParser


def create_axes(sup, chart):
    buf = []
    count = AxisUnifier(sup, 172).create_axis(chart, buf, CompilationContext("test.txt"))
    return count, buf


def test_single_category_gets_a_mirrored_axis(sup, parse):
    chart = parse("Chart A Title A Plot Temperature Plot Dewpoint EndChart")[0].charts[0]

    count, buf = create_axes(sup, chart)

    assert count == 2
    assert buf[0].startswith("  chart.addAxis({id: 'Temp',")
    assert "title:{text:'Temperature (°C)'}" in buf[0]
    assert "softMin: freezing" in buf[0]
    assert buf[1].startswith("  chart.addAxis({linkedTo: 1,")


def test_axes_alternate_sides(sup, parse):
    chart = parse(
        "Chart A Title A Plot Temperature Plot Humidity Plot Pressure EndChart"
    )[0].charts[0]

    count, buf = create_axes(sup, chart)

    assert count == 3
    assert "opposite: false," in buf[0]
    assert "opposite: true," in buf[1]
    assert "opposite: false," in buf[2]
    assert "id: 'Humidity'" in buf[1]
    assert "min: 0, max: 100," in buf[1]


def test_pressure_axis_uses_the_records(make_sup, parse):
    sup = make_sup(alltime={"Pressure": {"lowpressurevalue": "960.2", "highpressurevalue": "1045.7"}})
    chart = parse("Chart A Title A Plot Pressure Plot Humidity EndChart")[0].charts[0]

    count, buf = create_axes(sup, chart)

    assert count == 2
    assert "softMin: 960, softMax: 1046," in buf[0]


def test_free_axis_takes_the_chart_label(make_sup, parse):
    sup = make_sup(utils={"Labels": {"Dimensionless": "Value", "ADimensionless": "Index"}})
    chart = parse("Chart A Title A Plot X Eval [ Temperature * 2 ] EndChart")[0].charts[0]

    count, buf = create_axes(sup, chart)

    assert "title:{text:'Index'}" in buf[0]


def test_soil_moisture_units_get_separate_axes(make_sup):
    sup = make_sup(utils={"Compiler": {"SoilMoistureUnits": "%,cb"}})
    parser = ChartsParser(sup, KeywordTables(sup.units))
    chart = parser.parse(
        "Chart S Title Soil Plot Extra SoilMoisture1 Plot Extra SoilMoisture2 EndChart"
    )[0].charts[0]

    count, buf = create_axes(sup, chart)

    assert count == 3
    assert buf[0].startswith("  chart.addAxis({id: 'SoilMoisture',")
    assert buf[1].startswith("  chart.addAxis({id: 'SoilMoisturecb',")
    assert "Soil Moisture (cb)" in buf[1]


def test_same_soil_moisture_unit_shares_the_axis(make_sup):
    sup = make_sup()
    parser = ChartsParser(sup, KeywordTables(sup.units))
    chart = parser.parse(
        "Chart S Title Soil Plot Extra SoilMoisture1 Plot Extra SoilMoisture2 "
        "Plot Extra Temp1 EndChart"
    )[0].charts[0]

    count, buf = create_axes(sup, chart)

    assert count == 2
    assert [b.split("'")[1] for b in buf] == ["SoilMoisture", "Temp"]


def test_soil_moisture_unit():
    assert soil_moisture_unit("") == "%"
    assert soil_moisture_unit("cb") == "cb"
