"""Fixtures shared by the charts compiler tests."""

import datetime

import configobj
import pytest

from chartscompiler.declarations import KeywordTables
from chartscompiler.parser import ChartsParser
from chartscompiler.support import CuSupport


def _ini(sections):
    return configobj.ConfigObj(sections or {})


@pytest.fixture
def make_sup():
    """Build a CuSupport from dictionaries standing in for the INI files."""

    def make(utils=None, cumulus=None, alltime=None):
        return CuSupport(_ini(utils), _ini(cumulus), _ini(alltime))

    return make


@pytest.fixture
def sup(make_sup):
    return make_sup()


@pytest.fixture
def tables(sup):
    return KeywordTables(sup.units)


@pytest.fixture
def parse(sup, tables):
    """Parse chart definitions with the default station configuration."""

    def parse_text(text):
        return ChartsParser(sup, tables).parse(text)

    return parse_text


@pytest.fixture
def today():
    return datetime.date(2024, 6, 21)
