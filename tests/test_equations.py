"""Tests of the Eval expression checker and the javascript rewriting of equations."""

import json
import os
import shutil
import subprocess

import pytest

from chartscompiler.declarations import AllVarInfo
from chartscompiler.equations import (
    ExpressionError,
    check_expression,
    equation_js,
    references_keyword,
    rewrite_equation,
    split_sum,
    sum_function_js,
    tokenize,
)

KEYWORDS = ["Temperature", "Dewpoint", "Humidity", "InsideHumidity", "RainFall"]


def lookup(word):
    for keyword in KEYWORDS:
        if keyword.lower() == word.lower():
            return keyword
    return None


def avi(keyword):
    return AllVarInfo(keyword, keyword.lower(), "tempdata.json")


def test_tokenize_splits_operators_and_brackets():
    """White space is dropped and every operator and bracket is a token."""

    assert tokenize("Temperature - Dewpoint") == ["Temperature", "-", "Dewpoint"]
    assert tokenize("pow(Temperature,2)") == ["pow", "(", "Temperature", ",", "2", ")"]


def test_check_expression_returns_canonical_keywords():
    """Keywords are case insensitive and come back as they are in the tables."""

    assert check_expression("temperature - DEWPOINT", lookup, {}) == "Temperature-Dewpoint"


def test_check_expression_substitutes_named_equations():
    """A name from the Equations block is replaced by its text in brackets."""

    equations = {"Depression": "Temperature-Dewpoint"}

    assert check_expression("Depression * 2", lookup, equations) == "(Temperature-Dewpoint)*2"


def test_check_expression_substitutes_nested_equations():
    """An equation may use another equation."""

    equations = {"Depression": "Temperature-Dewpoint", "Double": "Depression*2"}

    assert check_expression("Double", lookup, equations) == "((Temperature-Dewpoint)*2)"


def test_check_expression_rejects_recursive_equations():
    assert check_expression("A", lookup, {"A": "A+1"}) is None
    assert check_expression("A", lookup, {"A": "B*2", "B": "A-1"}) is None


def test_check_expression_in_equation_block_keeps_words():
    """Within the Equations block the words are not checked yet."""

    assert check_expression("Foo + Bar", lookup, {}, equation_block=True) == "Foo+Bar"


def test_comma_only_inside_multi_argument_functions():
    """pow, max and min take two arguments, elsewhere a comma is an error."""

    assert check_expression("max(Temperature, Dewpoint)", lookup, {}) == "max(Temperature,Dewpoint)"
    assert check_expression("Temperature, Dewpoint", lookup, {}) is None
    assert check_expression("sqrt(Temperature, Dewpoint)", lookup, {}) is None


@pytest.mark.parametrize(
    "expression",
    [
        "Temperature +",
        "(Temperature - Dewpoint",
        "Temperature - Unknown",
        "1.2.3 * Temperature",
        "sqrt Temperature",
        "",
    ],
)
def test_check_expression_rejects_invalid_expressions(expression):
    """Errors are logged and give None."""

    assert check_expression(expression, lookup, {}) is None


def test_references_keyword_respects_identifier_boundaries():
    """Humidity is not referenced by InsideHumidity."""

    assert references_keyword("InsideHumidity*2", "InsideHumidity")
    assert not references_keyword("InsideHumidity*2", "Humidity")
    assert references_keyword("(humidity+1)", "Humidity")


def test_rewrite_indexes_longest_keyword_first():
    """A keyword within a longer keyword is left alone."""

    code = rewrite_equation("InsideHumidity-Humidity", [avi("Humidity"), avi("InsideHumidity")])

    assert code.sum_expression is None
    assert code.expression == "InsideHumidity[i][1]-Humidity[i][1]"


def test_rewrite_is_a_pure_function():
    """The same equation and variables always give the same text."""

    var_list = [avi("Temperature"), avi("Dewpoint")]
    equation = "sqrt(pow(Temperature,2)+ln(Dewpoint))"

    first = rewrite_equation(equation, var_list)
    second = rewrite_equation(equation, var_list)

    assert first == second
    assert first.expression == "Math.sqrt(Math.pow(Temperature[i][1],2)+Math.log(Dewpoint[i][1]))"


def test_split_sum_uses_the_matching_bracket():
    """The inner expression of sum may have brackets of its own."""

    inner, rest = split_sum("sum((RainFall+1)*2)/10")

    assert inner == "(RainFall+1)*2"
    assert rest == "sumResult[i][1]/10"
    assert split_sum("RainFall*2") == (None, "RainFall*2")


def test_split_sum_without_closing_bracket():
    with pytest.raises(ExpressionError):
        split_sum("sum(RainFall")


def test_rewrite_sum():
    code = rewrite_equation("sum(sqrt(RainFall))+1", [avi("RainFall")])

    assert code.sum_expression == "Math.sqrt(RainFall[i][1])"
    assert code.expression == "sumResult[i][1]+1"


def test_equation_js_fills_the_series_array():
    """The series takes its timestamps from the first variable."""

    js = equation_js("Depression", "Temperature-Dewpoint", [avi("Temperature"), avi("Dewpoint")])

    assert js == (
        "Depression.length=0;\n"
        "for(var i=0; i<Temperature.length; i++) {\n"
        "  Depression.push([ Temperature[i][0], Temperature[i][1]-Dewpoint[i][1] ]);\n"
        "}\n"
    )


def test_equation_js_with_sum_fills_sum_result_first():
    js = equation_js("RainSum", "sum(RainFall)", [avi("RainFall")])

    assert js.startswith(
        "sumResult.length = 0;\n"
        "for(var i=0; i<RainFall.length; i++) {\n"
        "  sum( RainFall[i][1], sumResult, i, RainFall[i][0]);\n"
        "}\n"
    )
    assert "RainSum.push([ RainFall[i][0], sumResult[i][1] ]);" in js


def test_equation_js_without_variables():
    """Without a variable there are no timestamps, nothing is generated."""

    assert equation_js("Constant", "1+2", []) is None


def test_sum_function_restarts_on_first_of_january():
    js = sum_function_js()

    assert js.startswith("function sum( curVal, valArray, curIndex, thisEpochDate)")
    assert "( thisDate.getMonth() == 0 && thisDate.getDate() == 1) || curIndex == 0" in js
    assert "tmp = valArray[ curIndex - 1 ][ 1 ] + curVal;" in js


@pytest.mark.skipif(shutil.which("node") is None, reason="node is needed to run the javascript")
def test_sum_function_restarts_on_first_of_january_when_run():
    """A running total over the turn of the year starts again on the first of January."""

    script = sum_function_js() + "\n".join(
        [
            "var sumResult = [];",
            "var days = [Date.UTC(2023, 11, 30), Date.UTC(2023, 11, 31), Date.UTC(2024, 0, 1), Date.UTC(2024, 0, 2)];",
            "for (var i = 0; i < days.length; i++) { sum( 1.5, sumResult, i, days[i]); }",
            "console.log(JSON.stringify(sumResult));",
        ]
    )

    result = subprocess.run(
        ["node", "-e", script],
        capture_output=True,
        text=True,
        check=True,
        env=dict(os.environ, TZ="UTC"),
    )

    totals = json.loads(result.stdout)
    assert [t[1] for t in totals] == [1.5, 3.0, 1.5, 3.0]
    assert totals[2][0] == 1704067200000
