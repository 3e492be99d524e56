"""
Equations of the chart definitions.

An equation is written in the Eval [ ... ] clause of a Plot line or in the
Equations block. check_expression validates the text when the chart
definitions are parsed and substitutes the named equations. The
rewrite_* functions turn the checked text into the javascript which
computes the series at runtime, one value per timestamp of the first
variable the equation uses.
"""

import logging
import re
from collections import namedtuple

log = logging.getLogger(__name__)


def logdbg(msg):
    log.debug(msg)


def logwarn(msg):
    log.warning(msg)


def logerr(msg):
    log.error(msg)


OPERATORS = ["+", "-", "*", "/", ","]
BRACKETS = ["(", ")"]
FUNCTIONS = ["sum", "sqrt", "exp", "ln", "pow", "max", "min"]

# Functions taking more than one argument
COMMA_FUNCTIONS = ["pow", "max", "min"]

MATH_FUNCTIONS = {
    "ln": "Math.log",
    "sqrt": "Math.sqrt",
    "exp": "Math.exp",
    "pow": "Math.pow",
    "max": "Math.max",
    "min": "Math.min",
}

_math_function_re = re.compile(r"(?<![\w.])(ln|sqrt|exp|pow|max|min)\(")

EquationCode = namedtuple("EquationCode", ["sum_expression", "expression"])


class ExpressionError(Exception):
    """An Eval expression which cannot be translated"""


def tokenize(raw_expression):
    """Split an expression on the operators and brackets, dropping white space"""
    tokens = []
    word = ""
    for c in re.sub(r"\s+", "", raw_expression):
        if c in OPERATORS or c in BRACKETS:
            if word:
                tokens.append(word)
            tokens.append(c)
            word = ""
        else:
            word += c
    if word:
        tokens.append(word)
    return tokens


class ExpressionChecker:
    """
    Recursive descent over the tokens of an expression.

    keyword_lookup returns the properly cased plot variable keyword for a
    word or None. equations maps the names of the Equations block to their
    text. Within the Equations block the variables are not known yet so
    words are taken as they are.
    """

    def __init__(self, keyword_lookup, equations, equation_block=False):
        self.keyword_lookup = keyword_lookup
        self.equations = equations
        self.equation_block = equation_block
        self.substituted = False

    def expression(self, tokens, comma_permitted=False):
        i, result = self.term(tokens, 0)

        while i < len(tokens) and tokens[i] in OPERATORS:
            if tokens[i] == "," and not comma_permitted:
                raise ExpressionError("Comma is not permitted at this position")
            result += tokens[i]
            i, term = self.term(tokens, i + 1)
            if not term and i >= len(tokens):
                raise ExpressionError("Operand expected after '%s'" % result)
            result += term

        if i < len(tokens):
            raise ExpressionError("Unexpected '%s' in expression" % tokens[i])

        return result

    def term(self, tokens, i):
        result = ""

        while i < len(tokens):
            token = tokens[i]

            if token == "(":
                i, sub_tokens = self._bracketed(tokens, i)
                result += "(" + self.expression(sub_tokens) + ")"
            elif token[0].isalpha():
                function = self._function_name(token)
                if function is not None:
                    if i + 1 >= len(tokens) or tokens[i + 1] != "(":
                        raise ExpressionError("Function %s without arguments" % token)
                    i, sub_tokens = self._bracketed(tokens, i + 1)
                    result += (
                        function
                        + "("
                        + self.expression(sub_tokens, function in COMMA_FUNCTIONS)
                        + ")"
                    )
                else:
                    result += self._variable(token)
            elif token[0].isdigit():
                try:
                    float(token)
                except ValueError:
                    raise ExpressionError("Not a number: %s" % token)
                result += token
            else:
                # Must be an operator, the expression deals with it
                break
            i += 1

        return i, result

    def _bracketed(self, tokens, i):
        """Tokens between the bracket at i and its match, and the position of the match"""
        depth = 0
        sub_tokens = []
        while True:
            i += 1
            if i >= len(tokens):
                raise ExpressionError(
                    "Most likely forgot a matching bracket '(' or ')' or an operator"
                )
            if tokens[i] == "(":
                depth += 1
            elif tokens[i] == ")":
                if depth == 0:
                    return i, sub_tokens
                depth -= 1
            sub_tokens.append(tokens[i])

    def _function_name(self, word):
        for function in FUNCTIONS:
            if function.lower() == word.lower():
                return function
        return None

    def _variable(self, word):
        if self.equation_block:
            return word

        keyword = self.keyword_lookup(word)
        if keyword is not None:
            return keyword

        if word in self.equations:
            self.substituted = True
            return "(" + self.equations[word] + ")"

        raise ExpressionError(
            "%s is neither an existing Plotvariable nor a predefined equation" % word
        )


def check_expression(raw_expression, keyword_lookup, equations, equation_block=False):
    """
    Check an Eval expression and return it with the keywords properly
    cased and the named equations substituted, or None when in error.
    """
    logdbg("Evaluating expression '%s'" % raw_expression)

    checker = ExpressionChecker(keyword_lookup, equations, equation_block)
    try:
        result = checker.expression(tokenize(raw_expression))

        # Equations may use other equations so substitute until nothing is left.
        # A chain of n equations takes at most n rounds, more means a cycle.
        rounds = 0
        while checker.substituted and result:
            rounds += 1
            if rounds > len(equations):
                raise ExpressionError("Recursive equation, it keeps referring to itself")
            checker.substituted = False
            result = checker.expression(tokenize(result))
    except ExpressionError as e:
        logerr("Error in expression '%s': %s" % (raw_expression, e))
        return None

    if not result:
        logerr("Empty expression '%s'" % raw_expression)
        return None

    return result


def _keyword_re(keyword):
    return re.compile(r"(?<![\w.])%s(?![\w\[])" % re.escape(keyword), re.IGNORECASE)


def references_keyword(equation, keyword):
    """Case insensitive test whether the equation uses the keyword"""
    return _keyword_re(keyword).search(equation) is not None


def rewrite_functions(text):
    return _math_function_re.sub(lambda m: MATH_FUNCTIONS[m.group(1)] + "(", text)


def index_keywords(text, var_list):
    """Every keyword becomes the value at index i: keyword[i][1]"""
    # Longest first so a keyword is never rewritten within a longer one
    for avi in sorted(var_list, key=lambda a: len(a.keyword_name), reverse=True):
        text = _keyword_re(avi.keyword_name).sub(
            lambda m, kw=avi.keyword_name: "%s[i][1]" % kw, text
        )
    return text


def split_sum(equation):
    """
    Take out the first sum( ... ) call. Returns the inner expression of the
    sum and the equation with the call replaced by sumResult[i][1], or None
    and the unchanged equation when there is no sum.
    """
    start = equation.find("sum(")
    if start == -1:
        return None, equation

    depth = 0
    for end in range(start + 4, len(equation)):
        if equation[end] == "(":
            depth += 1
        elif equation[end] == ")":
            if depth == 0:
                inner = equation[start + 4 : end]
                return inner, equation[:start] + "sumResult[i][1]" + equation[end + 1 :]
            depth -= 1

    raise ExpressionError("No closing bracket for sum in '%s'" % equation)


def rewrite_equation(equation, var_list):
    """
    Translate a checked equation into javascript operating on the series
    arrays at index i. The same input always gives the same text.
    """
    inner, rest = split_sum(equation)
    if "sum(" in rest:
        logwarn("Only the first sum() in '%s' is accumulated" % equation)

    sum_expression = None
    if inner is not None:
        sum_expression = index_keywords(rewrite_functions(inner), var_list)

    expression = index_keywords(rewrite_functions(rest), var_list)
    return EquationCode(sum_expression, expression)


def sum_function_js():
    """
    Runtime running total of a series. The total restarts on the first of
    January and at the start of the data.
    """
    return "\n".join(
        [
            "function sum( curVal, valArray, curIndex, thisEpochDate)",
            "{",
            "  thisDate = new Date( thisEpochDate );",
            "  if (( thisDate.getMonth() == 0 && thisDate.getDate() == 1) || curIndex == 0 ) {",
            "    valArray.push( [ thisEpochDate, curVal ] );",
            "  }",
            "  else {",
            "    tmp = valArray[ curIndex - 1 ][ 1 ] + curVal;",
            "    valArray.push( [ thisEpochDate, tmp ] );",
            "  }",
            "}",
            "",
        ]
    )


def equation_js(keyword, equation, var_list):
    """
    The javascript filling the series array of an equation variable, or
    None when the equation uses no plot variable to take the timestamps from.
    """
    if not var_list:
        return None

    try:
        code = rewrite_equation(equation, var_list)
    except ExpressionError as e:
        logerr("Error in equation of %s: %s" % (keyword, e))
        return None

    first = var_list[0].keyword_name
    lines = []

    if code.sum_expression is not None:
        lines.append("sumResult.length = 0;")
        lines.append("for(var i=0; i<%s.length; i++) {" % first)
        lines.append("  sum( %s, sumResult, i, %s[i][0]);" % (code.sum_expression, first))
        lines.append("}")

    lines.append("%s.length=0;" % keyword)
    lines.append("for(var i=0; i<%s.length; i++) {" % first)
    lines.append("  %s.push([ %s[i][0], %s ]);" % (keyword, first, code.expression))
    lines.append("}")

    return "\n".join(lines) + "\n"
