"""
Creation of the Highcharts axes of a chart. Every axis category used in
a chart gets one axis, placed alternately left and right. A chart with a
single category gets a linked copy of that axis on the right.
"""

import logging

from chartscompiler.declarations import AxisType, count_axis_flags
from chartscompiler.support import approximate_solar_max

log = logging.getLogger(__name__)


def logdbg(msg):
    log.debug(msg)


def logerr(msg):
    log.error(msg)


TEMP_LABEL_FORMATTER = (
    "formatter: function() {return '<span style=\"fill: ' + "
    "(this.value <= freezing ? 'blue' : 'red') + '; \">' + this.value + '</span>';}"
)
FREEZING_PLOT_LINE = "plotLines:[{value: freezing,color: 'rgb(0, 0, 180)',width: 1,zIndex: 2}],"

LABELS_LEFT = "align: 'left',x: 5,y: -2"
LABELS_RIGHT = "align: 'right',x: -5, y: -2"

AXIS_END = "alignTicks: false, gridLineWidth: 0, minorGridLineWidth:0 }, false, false );\n"


def soil_moisture_unit(unit):
    """Soil moisture in percent may come without a unit"""
    return unit if unit else "%"


class AxisUnifier:
    """
    Writes the chart.addAxis calls for the charts of one output file.
    Labels come from the label dictionary, which falls back to the key.
    """

    def __init__(self, sup, day_of_year):
        self.sup = sup
        self.labels = sup.labels
        self.units = sup.units
        self.solar_max = None
        self.day_of_year = day_of_year

    def create_axis(self, chart, buf, context):
        """
        Append the axes of the chart to buf and return the number of
        chart.addAxis calls made.
        """
        context.start_chart()
        axis_set = AxisType.NoAxis
        opposite = True
        count = 0
        created = set()

        for pv in chart.plotvars:
            if pv.axis in axis_set:
                if pv.axis != AxisType.SoilMoisture:
                    continue
                # Only a second soil moisture unit gives a second axis
                if soil_moisture_unit(pv.unit) == context.last_soil_moisture_unit_used:
                    continue
                # A switch back to an earlier unit uses the axis made for it
                if pv.axis_id in created:
                    continue

            body = self._axis_body(chart, pv, not opposite)
            if body is None:
                logerr(
                    "No axis definition for %s of %s in chart %s"
                    % (pv.axis, pv.keyword, chart.id)
                )
                continue

            logdbg("Creating axis %s on %s on %s" % (pv.axis.name, pv.plotvar, chart.id))

            opposite = not opposite
            buf.append("  chart.addAxis({id: '%s'," % pv.axis_id + body + AXIS_END)
            axis_set |= pv.axis
            created.add(pv.axis_id)
            count += 1

            if pv.axis == AxisType.SoilMoisture:
                context.last_soil_moisture_unit_used = soil_moisture_unit(pv.unit)

        if count_axis_flags(chart.axis) == 1:
            logdbg("Single axis on %s, creating opposite axis" % chart.id)
            buf.append(self._mirrored_axis(chart))
            count += 1

        return count

    def _axis_body(self, chart, pv, opposite):
        labels = self.labels
        side = LABELS_LEFT if opposite else LABELS_RIGHT
        plain_labels = "labels:{%s}," % side
        head = "opposite: %s," % ("true" if opposite else "false")

        def title(text):
            return "title:{text:'%s'}," % text

        axis = pv.axis

        if axis == AxisType.Temp:
            return (
                title("%s (%s)" % (labels["Temperature"], self.units.temp))
                + head
                + "allowDecimals: false,"
                + "softMin: freezing,showLastLabel: true,"
                + "labels:{%s,%s}," % (side, TEMP_LABEL_FORMATTER)
                + FREEZING_PLOT_LINE
            )
        elif axis == AxisType.Pressure:
            decimals = self.units.pressure_decimals
            body = (
                title("%s (%s)" % (labels["Pressure"], pv.unit))
                + head
                + "allowDecimals: %s," % ("true" if decimals else "false")
            )
            records = self.sup.pressure_records()
            if records is not None:
                body += "softMin: %s, softMax: %s," % (
                    self.units.format_pressure(records[0]),
                    self.units.format_pressure(records[1]),
                )
            return body + (
                "showLastLabel: true,"
                "labels: { formatter: function () {return Highcharts.numberFormat(this.value, %d, '.', '');}, %s},"
                % (decimals, side)
            )
        elif axis == AxisType.Rain:
            return (
                title("%s (%s)" % (labels["Rain"], pv.unit))
                + head
                + "endOnTick: false, softMax: 1,min: 0,showLastLabel: true,"
                + "allowDecimals: false,"
                + plain_labels
            )
        elif axis == AxisType.Rrate:
            return (
                title("%s (%s)" % (labels.get("Rainrate", "Rain Rate"), pv.unit))
                + head
                + "endOnTick: false, showLastLabel: true, softMax: 1,min: 0,"
                + "allowDecimals: false,"
                + plain_labels
            )
        elif axis == AxisType.Wind:
            return (
                title("%s (%s)" % (labels["Wind"], pv.unit))
                + head
                + "allowDecimals: false,showLastLabel: true,"
                + plain_labels
            )
        elif axis == AxisType.Direction:
            return (
                title("%s (Compass / degrees)" % labels["Direction"])
                + head
                + "min: 0, max: 360,showLastLabel: true,"
                + "tickInterval: 45,"
                + "labels: { %s, formatter: function() {return compassP(this.value);} }," % side
                + "allowDecimals: false,"
            )
        elif axis == AxisType.UV:
            return (
                title(labels.get("UVindex", "UV index"))
                + head
                + "allowDecimals: false,softMax: 10, showLastLabel: true,"
                + plain_labels
            )
        elif axis == AxisType.Solar:
            if self.solar_max is None:
                self.solar_max = approximate_solar_max(self.sup.latitude, self.day_of_year)
            return (
                title("%s (W/m²)" % labels.get("SolarRadiation", "Solar Radiation"))
                + head
                + "allowDecimals: false,showLastLabel: true,"
                + "softMax: %d,min: 0," % self.solar_max
                + plain_labels
            )
        elif axis == AxisType.Humidity:
            return (
                title("%s (%%)" % labels["Humidity"])
                + head
                + "min: 0, max: 100,"
                + "allowDecimals: false,showLastLabel: true,"
                + plain_labels
            )
        elif axis == AxisType.Hours:
            return (
                title(labels["Hours"])
                + head
                + "min: 0,"
                + "allowDecimals: false,showLastLabel: true,"
                + plain_labels
            )
        elif axis == AxisType.EVT:
            return (
                title("%s (%s)" % (labels["Evapotranspiration"], pv.unit))
                + head
                + "softMax: 1,min: 0,showLastLabel: true,"
                + "allowDecimals: false,"
                + plain_labels
            )
        elif axis == AxisType.Distance:
            return (
                title("%s (%s)" % (labels["Distance"], pv.unit or "km"))
                + head
                + "softMax: 10,softMin: 0,showLastLabel: true,"
                + "allowDecimals: false,"
                + plain_labels
            )
        elif axis == AxisType.Height:
            return (
                title("%s (%s)" % (labels["Height"], pv.unit or self.units.height))
                + head
                + "softMax: 10,softMin: 0,showLastLabel: true,"
                + "allowDecimals: false,"
                + plain_labels
            )
        elif axis == AxisType.DegreeDays:
            return (
                title(labels["DegreeDays"])
                + head
                + "softMax: 10,softMin: 0,showLastLabel: true,"
                + "allowDecimals: false,"
                + plain_labels
            )
        elif axis == AxisType.Free:
            dimensionless = labels.get(chart.id + "Dimensionless", labels["Dimensionless"])
            return (
                title(dimensionless)
                + head
                + "softMax: 10,softMin: 0,showLastLabel: true,"
                + plain_labels
            )
        elif axis == AxisType.AQ:
            return (
                title("%s (%s)" % (labels.get("ParticulateMatter", "Particulate Matter"), self.units.pm))
                + head
                + "softMax: 30,softMin: 0,showLastLabel: true,"
                + plain_labels
            )
        elif axis == AxisType.ppm:
            return (
                title("%s (%s)" % (labels.get("PartsPerMillion", "Parts Per Million"), self.units.co2))
                + head
                + "softMax: 500,softMin: 0,showLastLabel: true,"
                + plain_labels
            )
        elif axis == AxisType.SoilMoisture:
            return (
                title("%s (%s)" % (labels.get("SoilMoisture", "Soil Moisture"), soil_moisture_unit(pv.unit)))
                + head
                + "max: 100,min: 0,showLastLabel: true,"
                + plain_labels
            )

        return None

    def _mirrored_axis(self, chart):
        s = "  chart.addAxis({linkedTo: 1, gridLineWidth: 0, minorGridLineWidth:0,"
        if AxisType.Temp in chart.axis:
            s += "labels:{align: 'left',y: -2, x: 5, %s}," % TEMP_LABEL_FORMATTER
            s += FREEZING_PLOT_LINE
        else:
            s += "labels:{align: 'left',y: -2, x: 5},"
        return s + "opposite: true, showLastLabel: true, title: {text: null} }, false, false );\n"

