"""
Generation of the Highcharts page of one output file.

The page is a fragment to be loaded into the CumulusUtils website: the
chart selection menu, the chart container and one script holding the
menu dispatch, the data loading and the chart functions.
"""

import datetime
import logging
import os

from weeutil.weeutil import to_bool, to_int

from chartscompiler import VERSION
from chartscompiler.axis import AxisUnifier
from chartscompiler.declarations import (
    CUTILS_DATAFILE_PREFIXES,
    NR_OF_CLICK_EVENTS,
    CompilationContext,
    PlotvarRangeType,
)
from chartscompiler.equations import equation_js, sum_function_js
from chartscompiler.resolver import check_all_variables, equation_keywords
from chartscompiler.support import (
    copyright_for_generated_files,
    highcharts_includes,
    jquery_include,
)

log = logging.getLogger(__name__)


def logdbg(msg):
    log.debug(msg)


def loginf(msg):
    log.info(msg)


def logerr(msg):
    log.error(msg)


CUSTOM_LOGS_CHARTS = "customlogscharts.txt"

JQUERY_MODAL_INCLUDES = (
    '<script src="https://cdnjs.cloudflare.com/ajax/libs/jquery-modal/0.9.2/jquery.modal.min.js"'
    '  crossorigin="anonymous" referrerpolicy="no-referrer"></script>'
    '<link rel="stylesheet" href="https://cdnjs.cloudflare.com/ajax/libs/jquery-modal/0.9.2/jquery.modal.css"'
    ' crossorigin="anonymous" referrerpolicy="no-referrer" />'
)


def datafile_function_name(datafile):
    """tempdata.json is loaded by tempdataAjax()"""
    return datafile.split(".", 1)[0] + "Ajax"


class Lines(list):
    """A string buffer of javascript or html lines"""

    def line(self, text=""):
        self.append(text + "\n")

    def text(self):
        return "".join(self)


class ChartsCodeGenerator:
    """
    Generates the output files of the parsed chart definitions. The
    click_events name the chart each dashboard panel opens and today is
    the date the solar radiation maximum is computed for.
    """

    def __init__(self, sup, tables, click_events=None, today=None):
        self.sup = sup
        self.tables = tables
        self.labels = sup.labels
        self.units = sup.units
        self.click_events = list(click_events or [""] * NR_OF_CLICK_EVENTS)
        self.today = today if today is not None else datetime.date.today()

        self.realtime_location = sup.get_utils_ini_value("Website", "CumulusRealTimeLocation", "")
        self.module_path = sup.get_utils_ini_value("Compiler", "ModulePath", "")
        self.do_library_includes = sup.get_utils_ini_bool("Compiler", "DoLibraryIncludes", False)
        self.do_jquery_include = sup.get_utils_ini_bool("Compiler", "DojQueryInclude", False)
        self.use_boost = sup.get_utils_ini_bool("Graphs", "UseHighchartsBoostModule", True)
        self.connect_nulls = sup.get_utils_ini_bool("General", "ConnectNulls", False)
        self.container_height = to_int(
            sup.get_utils_ini_value("General", "ChartContainerHeight", 650)
        )

    def write_output(self, output_dir, charts, filename, unique_output_id):
        """Write the page of the charts, returns the path or None when nothing is written"""
        page = self.generate(charts, filename, unique_output_id)
        if page is None:
            return None

        path = os.path.join(output_dir, filename)
        with open(path, "w", encoding="utf-8") as f:
            f.write(page)
        loginf("Written %d charts to %s" % (len(charts), path))
        return path

    def generate(self, charts, filename, unique_output_id):
        """The page of the charts of one output file, None when it cannot be made"""
        if not charts:
            return None

        logdbg("Generating %s" % filename)

        all_vars = check_all_variables(charts, self.tables)
        if all_vars is None:
            logerr("Unable to resolve the variables of %s, nothing generated" % filename)
            return None

        context = CompilationContext(filename, unique_output_id)
        axes = AxisUnifier(self.sup, self.today.timetuple().tm_yday)
        n = unique_output_id

        html = Lines()
        menu = Lines()
        generic = Lines()
        ajax = Lines()
        add_series = Lines()
        the_charts = Lines()

        self._series_variables(generic, all_vars, equation_keywords(charts, all_vars))

        datafiles = []
        for avi in all_vars:
            if avi.datafile and avi.datafile not in datafiles:
                datafiles.append(avi.datafile)
        use_wind_barbs = any(c.has_wind_barbs for c in charts)
        use_info = any(c.has_info for c in charts)

        if self.do_jquery_include:
            html.line(jquery_include())
        if self.do_library_includes and use_info:
            html.line(JQUERY_MODAL_INCLUDES)
        if self.do_library_includes:
            html.line(highcharts_includes(boost=self.use_boost))

        html.line("<style>")
        html.line("#report{")
        html.line("  font-family: arial;")
        html.line("  border-radius: 15px;")
        html.line("  border-spacing: 0;")
        html.line("  border: 1px solid #b0b0b0;")
        html.line("}")
        html.line("</style>")

        html.line("<div><p style='text-align:center;'>")
        html.line("<select id='graph%d'>" % n)

        menu.line("console.log( 'Debug... %s' );" % filename)
        menu.line("$('#graph%d').change(function(){" % n)
        menu.line("handleChange%d();});" % n)
        menu.line("var prevChartRange;")
        menu.line("function handleChange%d() {" % n)
        menu.line("  var w1 = document.getElementById('graph%d').value;" % n)

        self._generic(generic, charts, datafiles, use_wind_barbs, n)
        self._ajax(ajax, all_vars, datafiles, use_wind_barbs)

        for i, chart in enumerate(charts):
            html.line(
                "  <option value='%s'%s>%s</option>"
                % (chart.id, " selected" if i == 0 else "", chart.id.replace("_", " "))
            )

            menu.line(" if (w1=='%s') { " % chart.id)
            if filename == CUSTOM_LOGS_CHARTS:
                menu.line("if (prevChartRange != %d ) {" % chart.range)
                menu.line("  $( '.slideOptions' ).slideUp('slow');")
                menu.append(
                    "  $( '#RecentCustomLogs' )"
                    if chart.range == PlotvarRangeType.Extra
                    else "  $( '#DailyCustomLogs' )"
                )
                menu.line(".slideDown('slow'); ")
                menu.line("prevChartRange = %d;" % chart.range)
                menu.line("}")
            menu.line("    do%s()}" % chart.id)
            menu.line(" else ")

            self._chart(the_charts, chart, axes, context)
            self._add_series(add_series, generic, chart, context)

        menu.line("{")
        if filename == CUSTOM_LOGS_CHARTS:
            menu.line("  $( '.slideOptions' ).slideUp('slow');")
            menu.append("  $( '#RecentCustomLogs' ).slideDown('slow'); ")
            menu.line(" prevChartRange = 1;")
        menu.line(" document.getElementById('graph%d').value = '%s';" % (n, charts[0].id))
        menu.line(" do%s();" % charts[0].id)
        menu.line("}")
        menu.line("urlParams.delete('dropdown');")
        menu.line("urlParams.set('dropdown', document.getElementById('graph%d').value);" % n)
        menu.line(
            "history.pushState(null, null, window.location.origin + window.location.pathname + '?' + urlParams);"
        )
        menu.line("}")

        html.line("</select>")
        html.line("</p>")
        html.line("</div>")
        html.line("<div id=report><br/>")
        html.line(
            "<div id='chartcontainer' style='min-height:%dpx;margin-top: 10px;margin-bottom: 5px;'> </div>"
            % self.container_height
        )
        html.line(
            " <p style='text-align:center;font-size:11px;'>Generated with the ChartsCompiler %s</p>"
            % VERSION
        )
        html.line("</div>")
        html.line("<script>")
        for buf in (menu, generic, ajax, add_series, the_charts):
            html.line(buf.text())
        html.line("</script>")

        for chart in charts:
            if chart.has_info:
                html.line(self._info_modal(chart))

        logdbg("Generated %s" % filename)

        return copyright_for_generated_files() + "\n" + html.text() + "\n"

    def _series_variables(self, buf, all_vars, extra_keywords):
        buf.line("var WindBarbData = [];")
        buf.line("var sumResult = [];")
        for avi in all_vars:
            buf.line("var %s = [];" % avi.keyword_name)
        for keyword in extra_keywords:
            buf.line("var %s = [];" % keyword)
        buf.line()

    def _generic(self, buf, charts, datafiles, use_wind_barbs, n):
        buf.line("var chart, config, freezing;")

        buf.append("$( function(){  ")
        buf.append("InitCumulusCharts = InitCumulusCharts%d;" % n)
        buf.append("InitCumulusCharts();")
        buf.line(
            "     if ( urlParams.get( 'dropdown' ) != '' ) document.getElementById('graph%d').value = urlParams.get( 'dropdown' ); "
            % n
        )
        buf.line("     else document.getElementById('graph%d').value = '%s';" % (n, charts[0].id))
        buf.line(" } );")

        buf.append("function InitCumulusCharts%d() {" % n)
        buf.append("  ChartsType = 'compiler';")
        buf.append("    ClickEventChart = [")
        buf.append(",".join("'%s'" % c for c in self.click_events))
        buf.line("];")

        buf.line("  $.when( Promise.all([GraphconfigAjax()")
        for df in datafiles:
            buf.line(", %s()" % datafile_function_name(df))
        if use_wind_barbs:
            buf.line(", WindBarbsAjax()")
        buf.line("])).then( () => $( '#graph%d' ).trigger( 'change' ) ); " % n)
        buf.line("     console.log('Cumuluscharts%d Compiler version has been initialised');" % n)
        buf.line("  }")

        if use_wind_barbs:
            buf.append(
                "function convertToMs(data) {"
                "  data.map( "
                "  s => {s[ 1 ] = s[ 1 ] * %.5f } );"
                "  return"
                "}\n" % self.units.wind_to_ms
            )

        buf.line("var compassP = function (deg) {")
        buf.line("  var a = ['N', 'NE', 'E', 'SE', 'S', 'SW', 'W', 'NW'];")
        buf.line("  return a[Math.floor((deg + 22.5) / 45) % 8];")
        buf.line("};")

        buf.line("function GraphconfigAjax(){")
        buf.line("  console.log( 'Highcharts version : ' + Highcharts.version );")
        buf.line("  return $.ajax({")
        buf.line(
            "    url: '%sgraphconfig.json', cache: true, datatype: 'json'})" % self.realtime_location
        )
        buf.line(
            "    .done( function(resp) {"
            "      config = resp;"
            "      freezing = config.temp.units === 'C' ? 0 : 32;"
            "      console.log('Succes in Ajax Graphconfig');"
            "})"
        )
        buf.line(
            "    .fail(function ( xhr, textStatus, errorThrown) {"
            "      console.log('graphconfig.json ' + textStatus + ' : ' + errorThrown);"
            "});"
        )
        buf.line("}")

    def _datafile_url(self, datafile):
        if datafile.startswith(CUTILS_DATAFILE_PREFIXES):
            return self.module_path + datafile
        return self.realtime_location + datafile

    def _ajax(self, buf, all_vars, datafiles, use_wind_barbs):
        for df in datafiles:
            these_vars = [avi for avi in all_vars if avi.datafile == df]

            buf.line("function %s(){" % datafile_function_name(df))
            for avi in these_vars:
                buf.line("  %s.length = 0;" % avi.keyword_name)
            buf.line("  return $.ajax({")
            buf.line("    url: '%s'," % self._datafile_url(df))
            buf.line("    cache: false, datatype: 'json'")
            buf.line("    })")
            buf.line(
                "    .fail( function (xhr, textStatus, errorThrown) { console.log( '%s ' + textStatus + ' : ' + errorThrown ); })"
                % df
            )
            buf.line("    .done( function(resp) {")
            for avi in these_vars:
                buf.line("      for (var i = 0; i < resp.%s.length; i++)" % avi.type_name)
                buf.line(
                    "        %s.push([resp.%s[i][0], resp.%s[i][1] ]);"
                    % (avi.keyword_name, avi.type_name, avi.type_name)
                )
            buf.line("    })")
            buf.line("  }")

        if use_wind_barbs:
            buf.line("function WindBarbsAjax() {")
            buf.line("  WindBarbData.length = 0;")
            buf.line("  return $.when( ")
            buf.line("  $.ajax({")
            buf.line("    url: '%swinddata.json'," % self.realtime_location)
            buf.line("    cache: false,")
            buf.line("    datatype: 'json' }), ")
            buf.line("  $.ajax({")
            buf.line("    url: '%swdirdata.json'," % self.realtime_location)
            buf.line("    cache: false,")
            buf.line("    datatype: 'json' })")
            buf.line("  ).then( ")
            buf.line(
                "    function( resp1, resp2 ) { "
                "  for ( var i = 0; i < resp1[0].wspeed.length; i++ ) "
                "    WindBarbData.push([ resp1[0].wspeed[ i ][ 0 ], resp1[0].wspeed[ i ][ 1 ], resp2[0].avgbearing[ i ][ 1 ] ]); "
                "  convertToMs( WindBarbData );"
                "},"
            )
            buf.line("    function(){ console.log( 'FAIL reading WindBarb Data...' )}")
            buf.line("  );")
            buf.line("}")

    def _chart(self, buf, chart, axes, context):
        barbs_above = chart.has_wind_barbs and not chart.wind_barbs_below

        buf.line("function do%s() {" % chart.id)
        buf.line("  console.log('Creating chart: %s');" % chart.title)
        buf.line("  chart = Highcharts.stockChart('chartcontainer', {title: {")
        buf.append(" text: '%s'" % chart.title)
        if barbs_above:
            buf.append(", margin: 35")
        buf.line("},")

        buf.append("      xAxis:")
        if chart.has_wind_barbs:
            buf.append("[")
        buf.line(
            "      {type: 'datetime', crosshair: true, ordinal: false,"
            "dateTimeLabelFormats:{day: '%e %b',week: '%e %b %y',month: '%b %y',year: '%Y'}},"
        )
        if chart.has_wind_barbs:
            if chart.wind_barbs_below:
                buf.line("{linkedTo:0, labels: {enabled: false}, offset: 0}")
            else:
                buf.line("{linkedTo:0, opposite: true, labels: {enabled: false} }")
            buf.line("],")
        buf.line("      yAxis:{ visible: false },")
        buf.line("      legend:{enabled: true},")

        if chart.has_scatter:
            buf.line(
                "      plotOptions: { scatter: {cursor: 'pointer',"
                "%s lineWidth:0,"
                "marker: {radius: %d }, "
                "}},"
                % ("boostThreshold: 200," if self.use_boost else "", chart.plotvars[0].line_width)
            )
            buf.line(
                "      tooltip: { xDateFormat: '%A, %b %e %H:%M ', "
                "pointFormatter() {return this.series.name + ': ' + this.y},"
                "headerFormat: '{point.key}<br>' },"
            )
        else:
            buf.line(
                "      plotOptions: { series: { clip: false, connectNulls: %s, turboThreshold: 0, "
                "states: { hover: { halo: { size: 5,opacity: 0.25} } },"
                "marker: { enabled: false, states: { hover: { enabled: true, radius: 0.1} } } }, },"
                % ("true" if self.connect_nulls else "false")
            )
            buf.line("      tooltip: {split: true, valueDecimals: 1, xDateFormat: '%A, %b %e, %H:%M'},")

        buf.line("      series:[],")
        buf.line(self._range_selector(chart, barbs_above))
        buf.line("  });")

        if chart.has_info:
            info = self.labels["Info"]
            buf.line("chart.update({")
            buf.line(
                "  chart:{events:{render() {const chart = this; if ( !chart.exporting.group ){return;}"
                "const { x, y, width } = chart.exporting.group.getBBox();"
            )
            buf.line("  if ( !this.customText ){")
            buf.line("    this.customText = this.renderer.text( '%s', x - width - 15, y + 15 )" % info)
            buf.line(
                "      .add()"
                ".css({ color: this.title && this.title.styles ? this.title.styles.color : '#333', cursor: 'pointer' })"
                ".on('click', () => $('#%s').modal( 'show') );" % chart.id
            )
            buf.line("  } else {")
            buf.line("    this.customText.attr({x: x - width - 15, y: y + 15}); } } } } });")

        buf.line("  chart.showLoading();")
        axes.create_axis(chart, buf, context)
        buf.line("  Promise.all([")
        buf.line("]).then(() => {")
        buf.line("  %sAddSeries(chart);" % chart.id)
        buf.line("  chart.hideLoading();")
        buf.line("  chart.redraw();});")
        buf.line("}")

    def _range_selector(self, chart, barbs_above):
        if chart.range in (PlotvarRangeType.Recent, PlotvarRangeType.Extra):
            hours = self.sup.graph_hours
            s = "      rangeSelector:{\n"
            if barbs_above:
                s += "    floating: true, y: -50,\n"
            s += "      buttons:[{\n"
            s += "       count: %d,type: 'hour',text: '%dh'}, {\n" % (hours // 4, hours // 4)
            s += "       count: %d,type: 'hour',text: '%dh'}, {\n" % (hours // 2, hours // 2)
            s += "        type: 'all',text: 'All'}],\n"
            s += "      inputEnabled: false,\n"
            if chart.zoom == -1:
                s += "     selected: 2 }"
            else:
                s += "     selected: %d - 1 }" % chart.zoom
            return s

        if chart.zoom != -1:
            selected = "%d - 1" % chart.zoom
        elif chart.range == PlotvarRangeType.Daily:
            selected = "0"
        else:
            selected = "4"
        return "      rangeSelector:{allButtonsEnabled: true, selected: %s }" % selected

    def _add_series(self, buf, generic, chart, context):
        buf.line("function %sAddSeries(thisChart){" % chart.id)

        for pv in chart.plotvars:
            suffix = pv.plotvar[3:] if len(pv.plotvar) > 2 else ""

            if pv.graph_type == "columnrange":
                buf.line("var %sRangeMinMax = [];" % suffix)
                buf.line(
                    "for(var i=0; i<%s.length; i++) {"
                    "%sRangeMinMax.push([%s[i][0],min%s[i][1], max%s[i][1]]) }"
                    % (pv.keyword, suffix, pv.keyword, suffix, suffix)
                )
            elif pv.equation is not None:
                code = equation_js(pv.keyword, pv.equation, pv.eq_all_var_list)
                if code is None:
                    logerr(
                        "Equation without plot variables is not supported: %s/%s"
                        % (chart.id, pv.keyword)
                    )
                    continue
                if "sum(" in pv.equation and not context.sum_function_generated:
                    generic.append(sum_function_js())
                    context.sum_function_generated = True
                buf.append(code)

            buf.line("   thisChart.addSeries({ ")

            if pv.graph_type == "columnrange":
                buf.line("    name:'%s'," % self.labels[suffix + "range"])
                buf.line("    id:'%srange'," % suffix)
                buf.line("    data: %sRangeMinMax," % suffix)
            elif pv.is_stats and pv.graph_type == "sma":
                buf.line("    name:'%s%s'," % (pv.graph_type, self.labels[pv.keyword]))
                buf.line("    id:'%s%s'," % (pv.graph_type, pv.keyword))
                buf.line("    linkedTo:'%s'," % pv.keyword)
                buf.line("    showInLegend:true,")
                buf.line("    params: {period: %d }," % pv.period)
            else:
                buf.line("    name:'%s'," % self.labels[pv.keyword])
                buf.line("    id:'%s'," % pv.keyword)
                buf.line("    data: %s," % pv.keyword)

            if pv.graph_type == "area":
                buf.line("    fillOpacity: %.1f," % pv.opacity)

            buf.line("    color: '%s'," % pv.color)
            buf.line("    yAxis: '%s'," % pv.axis_id)
            buf.line("    type: '%s'," % pv.graph_type)
            if not chart.has_scatter:
                buf.line("    lineWidth: %d," % pv.line_width)
            if not pv.visible:
                buf.line("    visible: false,")
            buf.line("    zIndex: %d," % pv.zindex)
            buf.line("    tooltip:{valueSuffix: ' %s'}" % pv.unit)
            buf.line("   }, false);")

        if chart.has_wind_barbs:
            factor = self.units.wind_to_ms
            buf.line("  thisChart.addSeries({ ")
            buf.line("    name: '%s'," % self.labels["WindBarbs"])
            buf.line("    xAxis: 1,")
            buf.line("    color: '%s'," % chart.wind_barb_color)
            buf.line("    type: 'windbarb',")
            buf.line("    visible: true,")
            buf.line(
                "    dataGrouping: {enabled: true,units: [ ['hour', [%d] ] ]}, "
                % self.sup.wind_barb_spacing
            )
            buf.line(
                "    tooltip: {pointFormatter() {return this.series.name + ': ' + "
                "(this.value/%.5f).toFixed(1) + ' %s'} },"
                % (factor, self.units.wind)
            )
            buf.line("    data: WindBarbData")
            buf.line("  }, false);")

        buf.line("  }")

    def _info_modal(self, chart):
        if self.do_library_includes:
            return (
                "<div class='modal' id='%s' style='font-family: Verdana, Geneva, Tahoma, sans-serif;font-size: 120%%;'>"
                "      <div>"
                "        <h5 class='modal-title'>%s</h5>"
                "      </div>"
                "      <div style='text-align: left;'>"
                "       %s"
                "      </div>"
                "</div>" % (chart.id, chart.title, chart.info_text)
            )

        return (
            "<div class='modal fade' id='%s' role='dialog' aria-hidden='true'>"
            "  <div class='modal-dialog modal-dialog-centered modal-dialog modal-lg' role='document'>"
            "    <div class='modal-content'>"
            "      <div class='modal-header'>"
            "        <h5 class='modal-title'>%s</h5>"
            "        <button type='button' class='close' data-bs-dismiss='modal' aria-label='Close'>"
            "<span aria-hidden='true'>&times;</span></button>"
            "      </div>"
            "      <div class='modal-body text-start'>"
            "       %s"
            "      </div>"
            "      <div class='modal-footer'>"
            "       <button type='button' class='btn btn-secondary' data-bs-dismiss='modal'>%s</button>"
            "      </div>"
            "    </div>"
            "  </div>"
            "</div>" % (chart.id, chart.title, chart.info_text, self.labels["Close"])
        )
