"""
exprtree v0.1 - Test Suite
Tests for the Lexer, Dictionary, Parser, Tree Builder, Evaluator and Printer.
"""

import io
import math
import os
import sys
import unittest
from contextlib import redirect_stderr
from decimal import Decimal
from fractions import Fraction

# Allow running from project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from exprtree import (
    ExpressionBuilder, Expression, ExpressionDictionary, LabelKind, Node,
    Operand, Variable, Operator, Function, OperatorType, Associativity,
    GreedyOperation, LazyOperation, VARIABLE_PARAMETERS,
    IMPLICIT_MULTIPLICATION, UNARY_MINUS, UNARY_PLUS,
    TokenizationError, MismatchedParenthesisError, UnexpectedSeparatorError,
    ArgumentCountError, InvalidExpressionError, UndefinedVariableError,
    ArityError, EmptyExpressionError, DuplicateLabelError, InvalidArityError,
    ProtectedEntryError, NotFoundError, InvalidLabelError,
)
from exprtree.dictionary import ADDITION, MULTIPLICATION, SUBTRACTION
from exprtree.lexer import tokenize
from exprtree.parser import to_postfix
from exprtree.tree_builder import build_tree


# ═══════════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════════

def builder_(**kwargs) -> ExpressionBuilder:
    builder = ExpressionBuilder(Fraction, str, **kwargs)
    builder.dictionary.register(
        Function("max", VARIABLE_PARAMETERS, GreedyOperation(lambda xs: max(xs)))
    )
    builder.dictionary.register(
        Function("sum", VARIABLE_PARAMETERS, GreedyOperation(lambda xs: sum(xs, Fraction(0))))
    )
    builder.dictionary.register(
        Function("pow", 2, GreedyOperation(lambda xs: xs[0] ** xs[1]))
    )
    return builder


def eval_(source: str, **variables):
    return builder_().build(source).evaluate(variables)


def tokens_(source: str, dictionary=None):
    return tokenize(source, dictionary or builder_().dictionary, Fraction)


def postfix_(source: str):
    labels = []
    for tok in to_postfix(tokens_(source)):
        labels.append(str(tok.value) if isinstance(tok, Operand) else tok.label)
    return labels


def factorial_operator() -> Operator:
    return Operator(
        "!", OperatorType.POSTFIX, 6, Associativity.LEFT,
        GreedyOperation(lambda xs: Fraction(math.factorial(int(xs[0])))),
    )


def _boom(expression, nodes, variables):
    raise AssertionError("lazy child evaluated unexpectedly")


def _and(expression, nodes, variables):
    if not expression.evaluate_node(nodes[0], variables):
        return Fraction(0)
    return expression.evaluate_node(nodes[1], variables)


def _if(expression, nodes, variables):
    branch = nodes[1] if expression.evaluate_node(nodes[0], variables) else nodes[2]
    return expression.evaluate_node(branch, variables)


def _twice(expression, nodes, variables):
    return expression.evaluate_node(nodes[0], variables) + expression.evaluate_node(nodes[0], variables)


# ═══════════════════════════════════════════════════════════════════════════════
# Lexer Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestLexer(unittest.TestCase):

    def test_number_integer(self):
        toks = tokens_("42")
        self.assertIsInstance(toks[0], Operand)
        self.assertEqual(toks[0].value, Fraction(42))

    def test_number_decimal(self):
        toks = tokens_("3.25")
        self.assertEqual(toks[0].value, Fraction(13, 4))

    def test_number_scientific(self):
        toks = tokens_("1.5e3")
        self.assertEqual(len(toks), 1)
        self.assertEqual(toks[0].value, Fraction(1500))

    def test_identifier(self):
        toks = tokens_("myVar")
        self.assertIsInstance(toks[0], Variable)
        self.assertEqual(toks[0].label, "myVar")

    def test_binary_operator(self):
        toks = tokens_("2 + x")
        self.assertEqual(toks[1], ADDITION)
        self.assertEqual(len(toks), 3)

    def test_leading_minus_is_unary(self):
        toks = tokens_("-2")
        self.assertEqual(toks[0], UNARY_MINUS)

    def test_minus_after_operator_is_unary(self):
        toks = tokens_("2 + -3")
        self.assertEqual(toks[2], UNARY_MINUS)

    def test_minus_after_parenthesis_and_separator_is_unary(self):
        toks = tokens_("max(-1, +2)")
        self.assertEqual(toks[2], UNARY_MINUS)
        self.assertEqual(toks[5], UNARY_PLUS)

    def test_prefix_only_operator_after_operand_multiplies(self):
        builder = builder_()
        builder.dictionary.register(
            Operator("~", OperatorType.PREFIX, 4, Associativity.NO, GreedyOperation(lambda xs: -xs[0]))
        )
        toks = tokens_("3 ~4", builder.dictionary)
        self.assertEqual(toks[1], IMPLICIT_MULTIPLICATION)
        self.assertEqual(toks[2].label, "~")
        self.assertEqual(builder.build("3 ~4").evaluate(), -12)

    def test_postfix_only_operator_in_operand_position(self):
        builder = builder_()
        builder.dictionary.register(factorial_operator())
        with self.assertRaises(InvalidExpressionError):
            builder.build("! 3")

    def test_minus_after_operand_is_binary(self):
        toks = tokens_("2 -3")
        self.assertEqual(toks[1], SUBTRACTION)

    def test_implicit_multiplication_number_variable(self):
        toks = tokens_("2x")
        self.assertEqual(len(toks), 3)
        self.assertEqual(toks[1], IMPLICIT_MULTIPLICATION)

    def test_implicit_multiplication_between_groups(self):
        toks = tokens_("(1)(2)")
        self.assertEqual(toks[3], IMPLICIT_MULTIPLICATION)

    def test_implicit_multiplication_before_function(self):
        toks = tokens_("2max(1, 2)")
        self.assertEqual(toks[1], IMPLICIT_MULTIPLICATION)
        self.assertIsInstance(toks[2], Function)

    def test_implicit_multiplication_is_not_explicit(self):
        self.assertNotEqual(IMPLICIT_MULTIPLICATION, MULTIPLICATION)

    def test_longest_label_wins(self):
        dictionary = ExpressionDictionary()
        dictionary.register(Function("sin", 1, GreedyOperation(lambda xs: xs[0])))
        dictionary.register(Function("sinh", 1, GreedyOperation(lambda xs: xs[0])))
        toks = tokens_("sinh(x)", dictionary)
        self.assertEqual(toks[0].label, "sinh")

    def test_positions_recorded(self):
        toks = tokens_("12 + ab")
        self.assertEqual([t.position for t in toks], [0, 3, 5])

    def test_invalid_character(self):
        with self.assertRaises(TokenizationError) as ctx:
            tokens_("2 # 3")
        self.assertEqual(ctx.exception.position, 2)

    def test_invalid_literal_wraps_conversion_error(self):
        def whole(literal):
            if "." in literal:
                raise ValueError("whole numbers only")
            return int(literal)

        dictionary = ExpressionDictionary()
        with self.assertRaises(TokenizationError) as ctx:
            tokenize("1 + 1.5", dictionary, whole)
        self.assertIsInstance(ctx.exception.__cause__, ValueError)
        self.assertEqual(ctx.exception.position, 4)

    def test_custom_number_patterns(self):
        builder = ExpressionBuilder(
            lambda s: int(s, 16) if s.startswith("0x") else int(s),
            number_patterns=[r'0x[0-9a-fA-F]+', r'\d+'],
        )
        self.assertEqual(builder.build("0x1f + 1").evaluate(), 32)


# ═══════════════════════════════════════════════════════════════════════════════
# Dictionary Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestDictionary(unittest.TestCase):

    def setUp(self):
        self.dictionary = ExpressionDictionary()

    def test_invalid_arity(self):
        with self.assertRaises(InvalidArityError):
            self.dictionary.register(Function("f", -2, GreedyOperation(lambda xs: 0)))

    def test_variable_parameters_accepted(self):
        self.dictionary.register(Function("f", VARIABLE_PARAMETERS, GreedyOperation(len)))
        self.assertEqual(self.dictionary.lookup("f"), LabelKind.FUNCTION)

    def test_remove_predefined(self):
        with self.assertRaises(ProtectedEntryError):
            self.dictionary.unregister("+")

    def test_override_predefined(self):
        with self.assertRaises(ProtectedEntryError):
            self.dictionary.register(
                Operator("+", OperatorType.INFIX, 1, Associativity.LEFT, GreedyOperation(sum))
            )

    def test_duplicate_function(self):
        self.dictionary.register(Function("f", 1, GreedyOperation(lambda xs: xs[0])))
        with self.assertRaises(DuplicateLabelError):
            self.dictionary.register(Function("f", 2, GreedyOperation(lambda xs: xs[0])))

    def test_prefix_and_postfix_share_label(self):
        self.dictionary.register(factorial_operator())
        self.dictionary.register(
            Operator("!", OperatorType.PREFIX, 4, Associativity.NO, GreedyOperation(lambda xs: not xs[0]))
        )
        self.assertIsNotNone(self.dictionary.get_operator("!", prefix=True))
        self.assertIsNotNone(self.dictionary.get_operator("!", prefix=False))

    def test_duplicate_operator_slot(self):
        self.dictionary.register(factorial_operator())
        with self.assertRaises(DuplicateLabelError):
            self.dictionary.register(
                Operator("!", OperatorType.INFIX, 3, Associativity.LEFT, GreedyOperation(sum))
            )

    def test_function_conflicts_with_constant(self):
        self.dictionary.add_constant("k", 1)
        with self.assertRaises(DuplicateLabelError):
            self.dictionary.register(Function("k", 0, GreedyOperation(lambda xs: 1)))

    def test_constant_conflicts_with_function(self):
        self.dictionary.register(Function("k", 0, GreedyOperation(lambda xs: 1)))
        with self.assertRaises(DuplicateLabelError):
            self.dictionary.add_constant("k", 1)

    def test_constant_conflicts_with_operator(self):
        self.dictionary.register(
            Operator("mod", OperatorType.INFIX, 2, Associativity.LEFT,
                     GreedyOperation(lambda xs: xs[0] % xs[1]))
        )
        with self.assertRaises(DuplicateLabelError):
            self.dictionary.add_constant("mod", Fraction(7))
        self.assertNotIn("mod", self.dictionary.constants)
        self.assertEqual(self.dictionary.lookup("mod"), LabelKind.OPERATOR)

    def test_duplicate_constant(self):
        self.dictionary.add_constant("k", 1)
        with self.assertRaises(DuplicateLabelError):
            self.dictionary.add_constant("k", 2)

    def test_unregister_missing(self):
        with self.assertRaises(NotFoundError):
            self.dictionary.unregister("nothing")

    def test_remove_constant_missing(self):
        with self.assertRaises(NotFoundError):
            self.dictionary.remove_constant("nothing")

    def test_unregister_user_function(self):
        self.dictionary.register(Function("f", 1, GreedyOperation(lambda xs: xs[0])))
        self.dictionary.unregister("f")
        self.assertEqual(self.dictionary.lookup("f"), LabelKind.ABSENT)
        self.assertIsNone(self.dictionary.get_function("f"))

    def test_lookup_kinds(self):
        self.dictionary.register(Function("f", 1, GreedyOperation(lambda xs: xs[0])))
        self.dictionary.add_constant("c", 3)
        self.assertEqual(self.dictionary.lookup("+"), LabelKind.OPERATOR)
        self.assertEqual(self.dictionary.lookup("f"), LabelKind.FUNCTION)
        self.assertEqual(self.dictionary.lookup("c"), LabelKind.CONSTANT)
        self.assertEqual(self.dictionary.lookup("zzz"), LabelKind.ABSENT)

    def test_invalid_labels(self):
        with self.assertRaises(InvalidLabelError):
            self.dictionary.register(Function("my func", 1, GreedyOperation(len)))
        with self.assertRaises(InvalidLabelError):
            self.dictionary.register(
                Operator("(", OperatorType.PREFIX, 4, Associativity.NO, GreedyOperation(len))
            )
        with self.assertRaises(InvalidLabelError):
            self.dictionary.add_constant("2pi", 6)

    def test_labels_longest_first(self):
        self.dictionary.register(Function("ab", 1, GreedyOperation(len)))
        self.dictionary.register(Function("abc", 1, GreedyOperation(len)))
        labels = self.dictionary.labels()
        self.assertLess(labels.index("abc"), labels.index("ab"))
        self.assertIn("^", labels)

    def test_constants_view_is_read_only(self):
        self.dictionary.add_constant("c", 3)
        with self.assertRaises(TypeError):
            self.dictionary.constants["c"] = 4

    def test_user_layers_are_independent(self):
        other = ExpressionDictionary()
        self.dictionary.register(Function("f", 1, GreedyOperation(len)))
        self.assertEqual(other.lookup("f"), LabelKind.ABSENT)


# ═══════════════════════════════════════════════════════════════════════════════
# Parser Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestParser(unittest.TestCase):

    def test_precedence(self):
        self.assertEqual(postfix_("2 + 3 * 4"), ["2", "3", "4", "*", "+"])

    def test_left_associativity(self):
        self.assertEqual(postfix_("2 - 3 - 4"), ["2", "3", "-", "4", "-"])

    def test_right_associativity(self):
        self.assertEqual(postfix_("2 ^ 3 ^ 2"), ["2", "3", "2", "^", "^"])

    def test_parentheses(self):
        self.assertEqual(postfix_("(2 + 3) * 4"), ["2", "3", "+", "4", "*"])

    def test_function_call(self):
        self.assertEqual(postfix_("pow(2, 3 + 1)"), ["2", "3", "1", "+", "pow"])

    def test_variadic_argument_count_recorded(self):
        postfix = to_postfix(tokens_("max(1, 2, 3)"))
        self.assertEqual(postfix[-1].label, "max")
        self.assertEqual(postfix[-1].arguments, 3)

    def test_zero_argument_call(self):
        postfix = to_postfix(tokens_("sum()"))
        self.assertEqual(len(postfix), 1)
        self.assertEqual(postfix[0].arguments, 0)

    def test_unclosed_parenthesis(self):
        with self.assertRaises(MismatchedParenthesisError):
            postfix_("(2+3")

    def test_unopened_parenthesis(self):
        with self.assertRaises(MismatchedParenthesisError):
            postfix_("2+3)")

    def test_separator_outside_call(self):
        with self.assertRaises(UnexpectedSeparatorError):
            postfix_("1, 2")

    def test_separator_in_plain_group(self):
        with self.assertRaises(UnexpectedSeparatorError):
            postfix_("(1, 2)")

    def test_too_few_arguments(self):
        with self.assertRaises(ArgumentCountError):
            postfix_("pow(2)")

    def test_too_many_arguments(self):
        with self.assertRaises(ArgumentCountError):
            postfix_("pow(1, 2, 3)")

    def test_function_without_parentheses(self):
        with self.assertRaises(InvalidExpressionError):
            postfix_("max 2")

    def test_empty_parentheses(self):
        with self.assertRaises(InvalidExpressionError):
            postfix_("2 * ()")

    def test_empty_argument(self):
        with self.assertRaises(InvalidExpressionError):
            postfix_("pow(1,)")


# ═══════════════════════════════════════════════════════════════════════════════
# Tree Builder Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestTreeBuilder(unittest.TestCase):

    def _tree(self, source):
        return build_tree(to_postfix(tokens_(source)))

    def test_root_and_children(self):
        root = self._tree("2 + 3 * 4")
        self.assertEqual(root.token, ADDITION)
        self.assertEqual(root.children[0].token.value, 2)
        self.assertEqual(root.children[1].token, MULTIPLICATION)
        self.assertEqual([c.token.value for c in root.children[1].children], [3, 4])

    def test_function_children_in_order(self):
        root = self._tree("max(1, 2 + 3, x)")
        self.assertEqual(len(root.children), 3)
        self.assertEqual(root.children[0].token.value, 1)
        self.assertEqual(root.children[1].token, ADDITION)
        self.assertEqual(root.children[2].token.label, "x")

    def test_leaf_has_no_children(self):
        root = self._tree("x")
        self.assertIsInstance(root.token, Variable)
        self.assertEqual(root.children, [])

    def test_dangling_operator(self):
        with self.assertRaises(InvalidExpressionError):
            self._tree("2 +")

    def test_leading_binary_operator(self):
        with self.assertRaises(InvalidExpressionError):
            self._tree("* 3")

    def test_trailing_binary_operator_after_juxtaposition(self):
        with self.assertRaises(InvalidExpressionError):
            self._tree("2 3 +")

    def test_empty_input(self):
        with self.assertRaises(InvalidExpressionError):
            self._tree("   ")


# ═══════════════════════════════════════════════════════════════════════════════
# Evaluation Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestEvaluation(unittest.TestCase):

    def test_precedence(self):
        self.assertEqual(eval_("2 + 3 * 4"), 14)

    def test_parentheses(self):
        self.assertEqual(eval_("(2 + 3) * 4"), 20)

    def test_right_associative_power(self):
        self.assertEqual(eval_("2 ^ 3 ^ 2"), 512)

    def test_unary_signs(self):
        self.assertEqual(eval_("-2 + 3"), 1)
        self.assertEqual(eval_("2 + -3"), -1)
        self.assertEqual(eval_("-(2+3)"), -5)
        self.assertEqual(eval_("+4 - -1"), 5)

    def test_unary_minus_binds_looser_than_power(self):
        self.assertEqual(eval_("-2 ^ 2"), -4)
        self.assertEqual(eval_("(-2) ^ 2"), 4)
        self.assertEqual(eval_("2 ^ -1"), Fraction(1, 2))

    def test_implicit_multiplication(self):
        self.assertEqual(eval_("2(3+4)"), 14)
        self.assertEqual(eval_("2x", x=Fraction(5)), 10)
        self.assertEqual(eval_("(x+1)(x-1)", x=Fraction(3)), 8)

    def test_implicit_multiplication_binds_tighter_than_division(self):
        self.assertEqual(eval_("1/2x", x=Fraction(4)), Fraction(1, 8))

    def test_modulo_and_division(self):
        self.assertEqual(eval_("10 % 4"), 2)
        self.assertEqual(eval_("7 / 2"), Fraction(7, 2))

    def test_undefined_variable(self):
        with self.assertRaises(UndefinedVariableError) as ctx:
            builder_().build("x+1").evaluate({})
        self.assertEqual(ctx.exception.label, "x")

    def test_variadic_function(self):
        self.assertEqual(eval_("max(1, 5, 3)"), 5)
        self.assertEqual(eval_("sum()"), 0)
        self.assertEqual(eval_("2 sum(1, 2)"), 6)

    def test_constants_and_overrides(self):
        builder = builder_()
        builder.dictionary.add_constant("k", Fraction(10))
        expr = builder.build("2k")
        self.assertEqual(expr.evaluate(), 20)
        self.assertEqual(expr.evaluate({"k": Fraction(1)}), 2)

    def test_constants_are_snapshotted(self):
        builder = builder_()
        builder.dictionary.add_constant("k", Fraction(10))
        expr = builder.build("k + 1")
        builder.dictionary.remove_constant("k")
        builder.dictionary.add_constant("k", Fraction(0))
        self.assertEqual(expr.evaluate(), 11)
        self.assertEqual(dict(expr.constants), {"k": Fraction(10)})
        with self.assertRaises(TypeError):
            expr.constants["k"] = 1

    def test_reevaluation_with_new_bindings(self):
        expr = builder_().build("x ^ 2")
        self.assertEqual(expr.evaluate({"x": Fraction(3)}), 9)
        self.assertEqual(expr.evaluate({"x": Fraction(4)}), 16)

    def test_empty_expression(self):
        with self.assertRaises(EmptyExpressionError):
            Expression({}).evaluate()
        with self.assertRaises(EmptyExpressionError):
            str(Expression({}))

    def test_arity_check_on_malformed_tree(self):
        root = Node(MULTIPLICATION, [Node(Operand(1))])
        with self.assertRaises(ArityError):
            Expression({}, root=root).evaluate()

    def test_lazy_short_circuit(self):
        builder = builder_()
        builder.dictionary.register(Function("and", 2, LazyOperation(_and)))
        builder.dictionary.register(Function("boom", 0, LazyOperation(_boom)))
        self.assertEqual(builder.build("and(0, boom())").evaluate(), 0)
        self.assertEqual(builder.build("and(0, undefined)").evaluate(), 0)
        with self.assertRaises(UndefinedVariableError):
            builder.build("and(1, undefined)").evaluate()

    def test_lazy_conditional(self):
        builder = builder_()
        builder.dictionary.register(Function("if", 3, LazyOperation(_if)))
        expr = builder.build("if(x, 10 / x, 99)")
        self.assertEqual(expr.evaluate({"x": Fraction(0)}), 99)
        self.assertEqual(expr.evaluate({"x": Fraction(2)}), 5)

    def test_lazy_repeated_evaluation(self):
        calls = []

        def tick(operands):
            calls.append(1)
            return Fraction(len(calls))

        builder = builder_()
        builder.dictionary.register(Function("tick", 0, GreedyOperation(tick)))
        builder.dictionary.register(Function("twice", 1, LazyOperation(_twice)))
        self.assertEqual(builder.build("twice(tick())").evaluate(), 3)
        self.assertEqual(len(calls), 2)

    def test_postfix_operator(self):
        builder = builder_()
        builder.dictionary.register(factorial_operator())
        self.assertEqual(builder.build("3! + 1").evaluate(), 7)
        self.assertEqual(builder.build("-3!").evaluate(), -6)
        self.assertEqual(builder.build("2 3!").evaluate(), 12)
        self.assertEqual(builder.build("3!2").evaluate(), 12)

    def test_prefix_operator(self):
        builder = ExpressionBuilder(float)
        builder.dictionary.register(
            Operator("√", OperatorType.PREFIX, 4, Associativity.NO,
                     GreedyOperation(lambda xs: math.sqrt(xs[0])))
        )
        self.assertEqual(builder.build("√16 + 1").evaluate(), 5.0)
        self.assertEqual(builder.build("2√16").evaluate(), 8.0)

    def test_user_right_associative_infix(self):
        builder = builder_()
        builder.dictionary.register(
            Operator("->", OperatorType.INFIX, 0, Associativity.RIGHT,
                     GreedyOperation(lambda xs: xs[0] - xs[1]))
        )
        # 8 -> (4 -> 2) = 8 - 2
        self.assertEqual(builder.build("8 -> 4 -> 2").evaluate(), 6)

    def test_other_operand_types(self):
        self.assertEqual(ExpressionBuilder(complex).build("2 + 3x").evaluate({"x": 1j}), 2 + 3j)
        self.assertEqual(ExpressionBuilder(Decimal).build("0.1 + 0.2").evaluate(), Decimal("0.3"))
        self.assertEqual(ExpressionBuilder(int).build("2 ^ 10 % 1000").evaluate(), 24)


# ═══════════════════════════════════════════════════════════════════════════════
# Printer Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestPrinter(unittest.TestCase):

    def _str(self, source):
        return str(builder_().build(source))

    def test_binary_children_parenthesized(self):
        self.assertEqual(self._str("2 + 3 * 4"), "2 + (3 * 4)")
        self.assertEqual(self._str("2 ^ 3 ^ 2"), "2 ^ (3 ^ 2)")

    def test_signs(self):
        self.assertEqual(self._str("-2 + 3"), "-2 + 3")
        self.assertEqual(self._str("-(2+3)"), "-(2 + 3)")
        self.assertEqual(self._str("--x"), "--x")

    def test_implicit_multiplication(self):
        self.assertEqual(self._str("2x"), "2 x")
        self.assertEqual(self._str("2(3+4)"), "2 (3 + 4)")
        self.assertEqual(self._str("2 3"), "2 * 3")
        self.assertEqual(self._str("x(-3)"), "x * -3")

    def test_implicit_multiplication_under_power(self):
        self.assertEqual(self._str("(2x)^2"), "(2 x) ^ 2")

    def test_sign_under_power(self):
        self.assertEqual(self._str("(-2)^2"), "(-2) ^ 2")

    def test_function(self):
        self.assertEqual(self._str("max(1, x+1)"), "max(1, x + 1)")

    def test_user_unary_operators(self):
        builder = builder_()
        builder.dictionary.register(factorial_operator())
        builder.dictionary.register(
            Operator("~", OperatorType.PREFIX, 4, Associativity.NO, GreedyOperation(lambda xs: -xs[0]))
        )
        self.assertEqual(str(builder.build("3! + 1")), "3 ! + 1")
        self.assertEqual(str(builder.build("(x+1)!")), "(x + 1) !")
        self.assertEqual(str(builder.build("~x")), "~ x")
        self.assertEqual(str(builder.build("~(x+1)")), "~(x + 1)")

    def test_fraction_operand_parenthesized(self):
        self.assertEqual(self._str("0.5x"), "(1/2) x")
        self.assertEqual(self._str("1/0.5"), "1 / (1/2)")
        self.assertEqual(self._str("-2.5"), "-(5/2)")

    def test_operand_matching_custom_pattern_not_parenthesized(self):
        builder = ExpressionBuilder(
            Fraction, number_patterns=[r'\d+/\d+', r'\d*\.?\d+'],
        )
        self.assertEqual(str(builder.build("0.5 + x")), "1/2 + x")

    def test_operand_to_string_hook(self):
        builder = ExpressionBuilder(Fraction, lambda v: f"{v.numerator}")
        self.assertEqual(str(builder.build("3 + x")), "3 + x")


class TestRoundTrip(unittest.TestCase):

    SOURCES = [
        "2 + 3 * 4", "(2 + 3) * 4", "2 ^ 3 ^ 2", "(2 ^ 3) ^ 2",
        "-2 + 3", "2 + -3", "-(2+3)", "2(3+4)", "2x", "x(-3)",
        "(2x)^2", "(-2)^2", "-2^2", "1/2x", "1/(2 3)", "2 3 x",
        "--x", "x - -y", "max(x, 2y, -3)", "(x+1)(x-1)", "2^-1",
        "x y", "10 % 3 * x", "pow(x, 2)y", "-x y", "2 -3",
        "0.5x", "1/0.5", "2.5 ^ 2", "-0.25y",
    ]

    def test_semantic_round_trip(self):
        variables = {"x": Fraction(3), "y": Fraction(-2)}
        for source in self.SOURCES:
            with self.subTest(source=source):
                first = builder_().build(source)
                second = builder_().build(str(first))
                self.assertEqual(first.evaluate(variables), second.evaluate(variables))


# ═══════════════════════════════════════════════════════════════════════════════
# Integration / Edge Case Tests
# ═══════════════════════════════════════════════════════════════════════════════

class TestIntegration(unittest.TestCase):

    def test_failed_build_leaves_dictionary_untouched(self):
        builder = builder_()
        labels = builder.dictionary.labels()
        with self.assertRaises(MismatchedParenthesisError):
            builder.build("(2+3")
        self.assertEqual(builder.dictionary.labels(), labels)
        self.assertEqual(builder.build("2+3").evaluate(), 5)

    def test_shared_dictionary(self):
        dictionary = ExpressionDictionary()
        dictionary.add_constant("k", 2)
        floats = ExpressionBuilder(float, dictionary=dictionary)
        ints = ExpressionBuilder(int, dictionary=dictionary)
        self.assertEqual(floats.build("k * 1.5").evaluate(), 3.0)
        self.assertEqual(ints.build("k * 3").evaluate(), 6)

    def test_subclass_hooks(self):
        class DecimalBuilder(ExpressionBuilder):
            def string_to_operand(self, literal):
                return Decimal(literal)

            def operand_to_string(self, operand):
                return format(operand, "f")

        expr = DecimalBuilder().build("1.10 + 2")
        self.assertEqual(expr.evaluate(), Decimal("3.10"))
        self.assertEqual(str(expr), "1.10 + 2")

    def test_missing_conversion_hook(self):
        with self.assertRaises(TypeError):
            ExpressionBuilder()

    def test_deep_left_chain(self):
        source = "+".join(["1"] * 2000)
        expr = builder_().build(source)
        self.assertEqual(expr.evaluate(), 2000)
        text = str(expr)
        self.assertTrue(text.startswith("(" * 1998 + "1 + 1)"))
        self.assertEqual(builder_().build(text).evaluate(), 2000)

    def test_deep_right_chain(self):
        expr = builder_().build("^".join(["1"] * 2000))
        self.assertEqual(expr.evaluate(), 1)
        self.assertTrue(str(expr).endswith(")" * 1998))

    def test_debug_output(self):
        err = io.StringIO()
        with redirect_stderr(err):
            ExpressionBuilder(int, debug=True).build("1 + 2")
        self.assertIn("[exprtree] Phase 1", err.getvalue())
        self.assertIn("Build successful", err.getvalue())

    def test_quiet_by_default(self):
        err = io.StringIO()
        with redirect_stderr(err):
            ExpressionBuilder(int).build("1 + 2")
        self.assertEqual(err.getvalue(), "")

    def test_error_message_carries_position(self):
        with self.assertRaises(TokenizationError) as ctx:
            builder_().build("1 + $")
        self.assertIn("Position 4", str(ctx.exception))


if __name__ == "__main__":
    unittest.main(verbosity=2)
