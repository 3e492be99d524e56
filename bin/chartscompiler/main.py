"""
Command line of the charts compiler.

    chartscompiler compile
    chartscompiler userdata --non-incremental
"""

import logging
import os
import sys

import click

from chartscompiler import VERSION, ChartsCompilerError
from chartscompiler.codegen import ChartsCodeGenerator
from chartscompiler.declarations import KeywordTables
from chartscompiler.parser import ChartsParser
from chartscompiler.support import LAST_UPLOAD_TIME_FORMAT, CuSupport
from chartscompiler.userdata import generate_user_asked_data

log = logging.getLogger(__name__)


def loginf(msg):
    log.info(msg)


def logerr(msg):
    log.error(msg)


class Compiler:
    """What the commands share: the configuration, the keyword tables and the parsed definitions"""

    def __init__(self, config, cumulus_config, defs, output_dir):
        self.cumulus_config = cumulus_config
        self.defs = defs
        self.output_dir = output_dir
        self.sup = CuSupport.from_files(config, cumulus_config)

        external = self.sup.get_utils_ini_value("ExtraSensors", "ExternalExtraSensors", "")
        self.tables = KeywordTables(self.sup.units, external.split(","))
        self.parser = ChartsParser(self.sup, self.tables)

    @property
    def data_dir(self):
        return os.path.join(os.path.dirname(os.path.abspath(self.cumulus_config)), "data")

    def parse(self):
        outputs = self.parser.parse_file(self.defs)
        if outputs is None:
            raise click.ClickException("No valid chart definitions in %s" % self.defs)
        return outputs


@click.group()
@click.option("--config", default="cumulusutils.ini", show_default=True,
              help="CumulusUtils configuration file")
@click.option("--cumulus-config", default="Cumulus.ini", show_default=True,
              help="Cumulus MX configuration file")
@click.option("--defs", default="CUserCharts.def", show_default=True,
              help="Chart definitions")
@click.option("--output-dir", default=".", show_default=True,
              help="Directory the pages and data files are written to")
@click.option("-v", "--verbose", count=True, help="More logging, repeat for debug")
@click.pass_context
def main(ctx, config, cumulus_config, defs, output_dir, verbose):
    """Compile CumulusUtils chart definitions into Highcharts pages"""
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    loginf("ChartsCompiler version %s" % VERSION)

    try:
        ctx.obj = Compiler(config, cumulus_config, defs, output_dir)
    except ChartsCompilerError as e:
        raise click.ClickException(str(e))


@main.command("compile")
@click.pass_obj
def compile_charts(compiler):
    """Write the chart pages of all outputs"""
    outputs = compiler.parse()
    generator = ChartsCodeGenerator(compiler.sup, compiler.tables, compiler.parser.click_events)

    written = 0
    for unique_output_id, output in enumerate(outputs):
        if generator.write_output(
            compiler.output_dir, output.charts, output.filename, unique_output_id
        ):
            written += 1
        else:
            logerr("Nothing written for %s" % output.filename)

    click.echo("Compiled %d of %d outputs" % (written, len(outputs)))
    if written < len(outputs):
        sys.exit(1)


@main.command()
@click.option("--non-incremental", is_flag=True,
              help="Write the full window and the day file series")
@click.pass_obj
def userdata(compiler, non_incremental):
    """Write the data files only CumulusUtils can produce"""
    outputs = compiler.parse()
    charts = [chart for output in outputs for chart in output.charts]

    end = generate_user_asked_data(
        compiler.sup,
        charts,
        compiler.data_dir,
        compiler.output_dir,
        non_incremental=non_incremental,
    )

    compiler.sup.set_utils_ini_value("General", "LastUploadTime", end.strftime(LAST_UPLOAD_TIME_FORMAT))
    compiler.sup.save_utils_ini()
    click.echo("User data written up to %s" % end.strftime(LAST_UPLOAD_TIME_FORMAT))


if __name__ == "__main__":
    main()
