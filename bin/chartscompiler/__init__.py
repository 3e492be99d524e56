"""
Charts compiler for the CumulusUtils weather website.
Turns a CUserCharts.def chart definition file into Highcharts pages
and precomputes the data files only CumulusUtils can produce.
"""

VERSION = "5.0.0"


class ChartsCompilerError(Exception):
    """Base class of the errors raised by the charts compiler"""


class ConfigError(ChartsCompilerError):
    """A required configuration file is missing or cannot be read"""


class ParseError(ChartsCompilerError):
    """The chart definitions cannot be parsed"""
