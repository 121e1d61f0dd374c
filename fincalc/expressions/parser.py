"""
Recursive-descent parser producing an immutable expression tree.

Grammar (left-associative except power):

    expr    := term (('+'|'-') term)*
    term    := factor (('*'|'/') factor)*
    factor  := unary ('^' unary)*       right-associative
    unary   := ('-')? postfix
    postfix := primary ('!')*
    primary := number | identifier ('(' args ')')? | '(' expr ')'
    args    := expr (',' expr)*

There is no implicit multiplication: ``2x`` and ``2(3)`` are syntax errors.
"""

from dataclasses import dataclass
from typing import List, Tuple, Union

from fincalc.errors import ExpressionSyntaxError
from fincalc.expressions.lexer import Token, TokenKind, tokenize


@dataclass(frozen=True)
class Literal:
    value: float
    position: int = 0


@dataclass(frozen=True)
class VariableRef:
    name: str
    position: int = 0


@dataclass(frozen=True)
class UnaryOp:
    op: str  # '-' or '!'
    operand: "Node"
    position: int = 0


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"
    position: int = 0


@dataclass(frozen=True)
class FunctionCall:
    name: str
    args: Tuple["Node", ...]
    position: int = 0


Node = Union[Literal, VariableRef, UnaryOp, BinaryOp, FunctionCall]


class Parser:
    """Parses one token stream; create a new instance per expression."""

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.index = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def advance(self) -> Token:
        token = self.tokens[self.index]
        if token.kind is not TokenKind.END:
            self.index += 1
        return token

    def at_operator(self, *ops: str) -> bool:
        return self.current.kind is TokenKind.OPERATOR and self.current.text in ops

    def expect(self, kind: TokenKind, message: str) -> Token:
        if self.current.kind is not kind:
            raise ExpressionSyntaxError(message, self.current.position)
        return self.advance()

    def parse(self) -> Node:
        if self.current.kind is TokenKind.END:
            raise ExpressionSyntaxError("Empty expression", 0)

        node = self.parse_expr()

        token = self.current
        if token.kind is TokenKind.RPAREN:
            raise ExpressionSyntaxError("Unmatched closing parenthesis", token.position)
        if token.kind is not TokenKind.END:
            raise ExpressionSyntaxError(
                f"Unexpected '{token.text}'", token.position
            )
        return node

    def parse_expr(self) -> Node:
        node = self.parse_term()
        while self.at_operator("+", "-"):
            op = self.advance()
            node = BinaryOp(op.text, node, self.parse_term(), op.position)
        return node

    def parse_term(self) -> Node:
        node = self.parse_factor()
        while self.at_operator("*", "/"):
            op = self.advance()
            node = BinaryOp(op.text, node, self.parse_factor(), op.position)
        return node

    def parse_factor(self) -> Node:
        base = self.parse_unary()
        if self.at_operator("^"):
            op = self.advance()
            return BinaryOp("^", base, self.parse_factor(), op.position)
        return base

    def parse_unary(self) -> Node:
        if self.at_operator("-"):
            op = self.advance()
            return UnaryOp("-", self.parse_postfix(), op.position)
        return self.parse_postfix()

    def parse_postfix(self) -> Node:
        node = self.parse_primary()
        while self.at_operator("!"):
            op = self.advance()
            node = UnaryOp("!", node, op.position)
        return node

    def parse_primary(self) -> Node:
        token = self.current

        if token.kind is TokenKind.NUMBER:
            self.advance()
            return Literal(token.value, token.position)

        if token.kind is TokenKind.IDENTIFIER:
            self.advance()
            if self.current.kind is TokenKind.LPAREN:
                self.advance()
                args = self.parse_args()
                self.expect(TokenKind.RPAREN, f"Missing ')' after arguments of {token.text}")
                return FunctionCall(token.text, tuple(args), token.position)
            return VariableRef(token.text, token.position)

        if token.kind is TokenKind.LPAREN:
            self.advance()
            node = self.parse_expr()
            self.expect(TokenKind.RPAREN, "Unmatched opening parenthesis")
            return node

        if token.kind is TokenKind.END:
            raise ExpressionSyntaxError("Unexpected end of expression", token.position)
        if token.kind is TokenKind.RPAREN:
            raise ExpressionSyntaxError("Unexpected ')'", token.position)
        raise ExpressionSyntaxError(f"Unexpected '{token.text}'", token.position)

    def parse_args(self) -> List[Node]:
        if self.current.kind is TokenKind.RPAREN:
            raise ExpressionSyntaxError("Function call needs at least one argument", self.current.position)
        args = [self.parse_expr()]
        while self.current.kind is TokenKind.COMMA:
            self.advance()
            args.append(self.parse_expr())
        return args


def parse(source: str) -> Node:
    """
    Parse an expression into a tree.

    Raises:
        ExpressionSyntaxError: If the source does not match the grammar
    """
    return Parser(tokenize(source)).parse()
