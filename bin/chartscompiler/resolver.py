"""
Resolution of the runtime variables of the charts of one output file.
"""

import logging

from chartscompiler.declarations import AllVarInfo
from chartscompiler.equations import references_keyword

log = logging.getLogger(__name__)


def logdbg(msg):
    log.debug(msg)


def logerr(msg):
    log.error(msg)


def _find(all_vars, keyword_name, exact=False):
    for avi in all_vars:
        if exact:
            if avi.keyword_name == keyword_name:
                return avi
        elif avi.keyword_name.lower() == keyword_name.lower():
            return avi
    return None


def check_all_variables(charts, tables):
    """
    Build the list of distinct runtime variables the charts need. Every
    plot variable backed by a data file is registered once, a columnrange
    adds its min and max variables and an equation gets the variables it
    uses in its eq_all_var_list.

    Returns None when an equation variable has a range without a keyword
    table, nothing can be generated for these charts then.
    """
    all_vars = []

    for chart in charts:
        for pv in chart.plotvars:
            # Equation variables, and statistics on them, are computed at runtime
            if pv.equation is not None or not pv.datafile:
                continue
            if _find(all_vars, pv.keyword) is None:
                all_vars.append(AllVarInfo(pv.keyword, pv.plotvar, pv.datafile))
                logdbg(
                    "Keyword: %s; Plotvar: %s; Datafile: %s"
                    % (pv.keyword, pv.plotvar, pv.datafile)
                )

    for chart in charts:
        for pv in chart.plotvars:
            if pv.equation is None:
                if pv.graph_type == "columnrange":
                    suffix = pv.plotvar[3:]
                    logdbg("ColumnRange var %s" % pv.keyword)
                    for prefix in ("min", "max"):
                        name = prefix + suffix
                        # Javascript names are case sensitive: MinTemp is not minTemp
                        if _find(all_vars, name, exact=True) is None:
                            all_vars.append(AllVarInfo(name, name, pv.datafile))
                continue

            table = tables.for_range(pv.plotvar_range)
            if table is None:
                logerr(
                    "Internal error: no keywords for range %s of %s"
                    % (pv.plotvar_range, pv.keyword)
                )
                return None

            logdbg("Equation var %s" % pv.keyword)
            pv.eq_all_var_list = []
            for entry in table:
                if not references_keyword(pv.equation, entry.keyword):
                    continue
                avi = _find(all_vars, entry.keyword)
                if avi is None:
                    avi = AllVarInfo(entry.keyword, entry.type_name, entry.datafile)
                    all_vars.append(avi)
                pv.eq_all_var_list.append(avi)

    return all_vars


def equation_keywords(charts, all_vars):
    """Keywords of the equation variables which need an array of their own"""
    keywords = []
    for chart in charts:
        for pv in chart.plotvars:
            if pv.equation is None:
                continue
            if _find(all_vars, pv.keyword) is None and pv.keyword not in keywords:
                keywords.append(pv.keyword)
    return keywords
