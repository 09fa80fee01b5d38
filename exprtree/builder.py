"""
exprtree v0.1 - Expression Builder
Runs the lexer, the parser and the tree builder in sequence and returns the
finished Expression.
"""

import sys
from typing import Any, Callable, Optional, Pattern, Sequence, Union

from .dictionary import ExpressionDictionary
from .expression import Expression
from .lexer import DEFAULT_NUMBER_PATTERNS, Lexer
from .parser import Parser
from .tree_builder import TreeBuilder


class ExpressionBuilder:
    """
    Builds expressions over an arbitrary operand type.

    Parameters
    ----------
    string_to_operand : converts a numeric literal to an operand, e.g. float,
                        Fraction or Decimal
    operand_to_string : renders an operand when an expression is printed
    number_patterns   : ordered regular expressions recognising numeric
                        literals; the first pattern that matches wins
    dictionary        : dictionary to share between builders; a fresh one is
                        created when omitted
    debug             : print each phase summary to stderr

    The conversion hooks may also be supplied by overriding the
    string_to_operand / operand_to_string / number_patterns methods.
    Without a string_to_operand argument or override, construction fails
    with TypeError.
    """

    def __init__(
        self,
        string_to_operand: Optional[Callable[[str], Any]] = None,
        operand_to_string: Callable[[Any], str] = str,
        number_patterns: Optional[Sequence[Union[str, Pattern]]] = None,
        dictionary: Optional[ExpressionDictionary] = None,
        debug: bool = False,
    ):
        overridden = type(self).string_to_operand is not ExpressionBuilder.string_to_operand
        if string_to_operand is None and not overridden:
            raise TypeError(
                "Pass string_to_operand or override ExpressionBuilder.string_to_operand"
            )
        self._string_to_operand = string_to_operand
        self._operand_to_string = operand_to_string
        self._number_patterns = number_patterns
        self.dictionary = dictionary if dictionary is not None else ExpressionDictionary()
        self.debug = debug

    # ------------------------------------------------------------------ hooks

    def string_to_operand(self, literal: str) -> Any:
        return self._string_to_operand(literal)

    def operand_to_string(self, operand: Any) -> str:
        return self._operand_to_string(operand)

    def number_patterns(self) -> Sequence[Union[str, Pattern]]:
        if self._number_patterns is None:
            return DEFAULT_NUMBER_PATTERNS
        return self._number_patterns

    # ------------------------------------------------------------------ public

    def build(self, text: str) -> Expression:
        """
        Parse an expression string.

        Raises
        ------
        TokenizationError, ParseError subclasses on malformed input; nothing is
        returned and the dictionary is left untouched.
        """
        def log(msg):
            if self.debug:
                print(f"[exprtree] {msg}", file=sys.stderr)

        # ── Phase 1: Lexical analysis ─────────────────────────────────────────
        log(f"Phase 1: Lexical analysis of {text!r}")
        lexer = Lexer(self.dictionary, self.string_to_operand, self.number_patterns())
        tokens = lexer.tokenize(text)
        log(f"  {len(tokens)} tokens produced")

        # ── Phase 2: Shunting-yard ────────────────────────────────────────────
        log("Phase 2: Conversion to postfix")
        postfix = Parser(tokens).parse()
        log(f"  {len(postfix)} postfix tokens")

        # ── Phase 3: Tree construction ────────────────────────────────────────
        log("Phase 3: Tree construction")
        root = TreeBuilder(postfix).build()

        log("  Build successful")
        return Expression(
            self.dictionary.constants, self.operand_to_string, root, self.number_patterns()
        )
