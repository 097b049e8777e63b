"""Recursive-descent parser producing a small AST for the option script language."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from viz_option.sandbox.tokenizer import ScriptError, Token, tokenize


# ---------------------------------------------------------------------------
# AST nodes
# ---------------------------------------------------------------------------


@dataclass
class Literal:
    value: Any


@dataclass
class Identifier:
    name: str


@dataclass
class TemplateLiteral:
    parts: List[Any]  # str or expression node


@dataclass
class Spread:
    argument: Any


@dataclass
class ArrayLiteral:
    elements: List[Any]


@dataclass
class Property:
    key: Any  # str, or expression node when computed
    value: Any
    computed: bool = False


@dataclass
class ObjectLiteral:
    properties: List[Any]  # Property or Spread


@dataclass
class Member:
    obj: Any
    prop: Any  # str, or expression node when computed
    computed: bool = False
    optional: bool = False


@dataclass
class Call:
    callee: Any
    args: List[Any]
    optional: bool = False


@dataclass
class New:
    callee: Any
    args: List[Any]


@dataclass
class Param:
    name: str
    default: Any = None
    rest: bool = False


@dataclass
class Function:
    params: List[Param]
    body: Any  # expression node, or list of statements
    expression_body: bool
    source: str
    name: Optional[str] = None


@dataclass
class Unary:
    op: str
    operand: Any


@dataclass
class Binary:
    op: str
    left: Any
    right: Any


@dataclass
class Logical:
    op: str
    left: Any
    right: Any


@dataclass
class Conditional:
    test: Any
    consequent: Any
    alternate: Any


@dataclass
class Assign:
    op: str
    target: Any
    value: Any


@dataclass
class Update:
    op: str
    target: Any
    prefix: bool


@dataclass
class VarDecl:
    kind: str
    declarations: List[Tuple[str, Any]]


@dataclass
class ExprStmt:
    expr: Any


@dataclass
class Return:
    value: Any


@dataclass
class If:
    test: Any
    consequent: Any
    alternate: Any = None


@dataclass
class For:
    init: Any
    test: Any
    update: Any
    body: Any


@dataclass
class ForEach:
    kind: Optional[str]
    name: str
    iterable: Any
    body: Any
    over_keys: bool = False  # for...in


@dataclass
class While:
    test: Any
    body: Any


@dataclass
class Block:
    body: List[Any] = field(default_factory=list)


@dataclass
class Break:
    pass


@dataclass
class Continue:
    pass


@dataclass
class FunctionDecl:
    name: str
    function: Function


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

_ASSIGN_OPS = {"=", "+=", "-=", "*=", "/=", "%=", "**="}
_BINARY_PRECEDENCE = [
    ("??",),
    ("||",),
    ("&&",),
    ("==", "!=", "===", "!=="),
    ("<", ">", "<=", ">=", "in", "instanceof"),
    ("+", "-"),
    ("*", "/", "%"),
]
_LOGICAL_OPS = {"??", "||", "&&"}
_RESERVED = {
    "var", "let", "const", "if", "else", "for", "of", "in", "while", "return",
    "function", "new", "typeof", "break", "continue", "true", "false", "null",
}


class Parser:
    """Parse script source into statement or expression nodes."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.tokens = tokenize(source)
        self.index = 0

    # -- token helpers -----------------------------------------------------

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def _peek(self, offset: int = 1) -> Token:
        idx = min(self.index + offset, len(self.tokens) - 1)
        return self.tokens[idx]

    def _advance(self) -> Token:
        token = self.tokens[self.index]
        if token.kind != "eof":
            self.index += 1
        return token

    def _is(self, value: str, token: Optional[Token] = None) -> bool:
        tok = token or self.current
        return tok.kind in ("punct", "name") and tok.value == value

    def _accept(self, value: str) -> bool:
        if self._is(value):
            self._advance()
            return True
        return False

    def _expect(self, value: str) -> Token:
        if not self._is(value):
            raise self._error(f"expected {value!r}")
        return self._advance()

    def _expect_name(self) -> str:
        token = self.current
        if token.kind != "name" or token.value in _RESERVED:
            raise self._error("expected identifier")
        self._advance()
        return str(token.value)

    def _error(self, message: str) -> ScriptError:
        token = self.current
        found = "end of input" if token.kind == "eof" else repr(token.value)
        return ScriptError(f"{message} at {token.start}, found {found}")

    # -- entry points --------------------------------------------------------

    def parse_program(self) -> List[Any]:
        statements = []
        while self.current.kind != "eof":
            statements.append(self._statement())
        return statements

    def parse_expression_only(self) -> Any:
        """Parse the whole source as one expression (a trailing `;` is allowed)."""
        expr = self._expression()
        self._accept(";")
        if self.current.kind != "eof":
            raise self._error("unexpected trailing input")
        return expr

    # -- statements -------------------------------------------------------

    def _statement(self) -> Any:
        token = self.current
        if token.kind == "punct":
            if token.value == "{":
                return self._block()
            if token.value == ";":
                self._advance()
                return Block()
        if token.kind == "name":
            keyword = token.value
            if keyword in ("var", "let", "const"):
                decl = self._var_decl()
                self._end_statement()
                return decl
            if keyword == "return":
                self._advance()
                value = None
                if not self._is(";") and not self._is("}") and self.current.kind != "eof":
                    value = self._expression()
                self._end_statement()
                return Return(value)
            if keyword == "if":
                return self._if()
            if keyword == "for":
                return self._for()
            if keyword == "while":
                self._advance()
                self._expect("(")
                test = self._expression()
                self._expect(")")
                return While(test, self._statement())
            if keyword in ("break", "continue"):
                self._advance()
                self._end_statement()
                return Break() if keyword == "break" else Continue()
            if keyword == "function" and self._peek().kind == "name":
                function = self._function_expression()
                return FunctionDecl(str(function.name), function)
        expr = self._expression()
        self._end_statement()
        return ExprStmt(expr)

    def _end_statement(self) -> None:
        if self._accept(";"):
            return
        if self._is("}") or self.current.kind == "eof":
            return
        # ASI: a statement may end at a line break
        previous = self.tokens[self.index - 1] if self.index else None
        if previous is not None and "\n" in self.source[previous.end : self.current.start]:
            return
        raise self._error("expected ';'")

    def _block(self) -> Block:
        self._expect("{")
        body = []
        while not self._is("}"):
            if self.current.kind == "eof":
                raise self._error("unterminated block")
            body.append(self._statement())
        self._advance()
        return Block(body)

    def _var_decl(self) -> VarDecl:
        kind = str(self._advance().value)
        declarations = []
        while True:
            name = self._expect_name()
            init = self._assignment() if self._accept("=") else None
            declarations.append((name, init))
            if not self._accept(","):
                break
        return VarDecl(kind, declarations)

    def _if(self) -> If:
        self._advance()
        self._expect("(")
        test = self._expression()
        self._expect(")")
        consequent = self._statement()
        alternate = self._statement() if self._accept("else") else None
        return If(test, consequent, alternate)

    def _for(self) -> Any:
        self._advance()
        self._expect("(")
        kind = None
        if self.current.kind == "name" and self.current.value in ("var", "let", "const"):
            kind = str(self.current.value)
            if self._peek(2).kind == "name" and self._peek(2).value in ("of", "in"):
                self._advance()
        if self.current.kind == "name" and self._peek().kind == "name" and self._peek().value in ("of", "in"):
            name = self._expect_name()
            over_keys = str(self._advance().value) == "in"
            iterable = self._expression()
            self._expect(")")
            return ForEach(kind, name, iterable, self._statement(), over_keys)

        init = None
        if not self._is(";"):
            init = self._var_decl() if kind else ExprStmt(self._expression())
        self._expect(";")
        test = None if self._is(";") else self._expression()
        self._expect(";")
        update = None if self._is(")") else self._expression()
        self._expect(")")
        return For(init, test, update, self._statement())

    # -- expressions ------------------------------------------------------

    def _expression(self) -> Any:
        expr = self._assignment()
        while self._accept(","):
            # comma operator: evaluate both, keep the right
            expr = Binary(",", expr, self._assignment())
        return expr

    def _assignment(self) -> Any:
        if self._starts_arrow():
            return self._arrow_function()
        target = self._conditional()
        token = self.current
        if token.kind == "punct" and token.value in _ASSIGN_OPS:
            if not isinstance(target, (Identifier, Member)):
                raise self._error("invalid assignment target")
            self._advance()
            return Assign(str(token.value), target, self._assignment())
        return target

    def _conditional(self) -> Any:
        test = self._binary(0)
        if self._accept("?"):
            consequent = self._assignment()
            self._expect(":")
            alternate = self._assignment()
            return Conditional(test, consequent, alternate)
        return test

    def _binary(self, level: int) -> Any:
        if level >= len(_BINARY_PRECEDENCE):
            return self._exponent()
        ops = _BINARY_PRECEDENCE[level]
        left = self._binary(level + 1)
        while self.current.kind in ("punct", "name") and self.current.value in ops:
            op = str(self._advance().value)
            right = self._binary(level + 1)
            left = Logical(op, left, right) if op in _LOGICAL_OPS else Binary(op, left, right)
        return left

    def _exponent(self) -> Any:
        base = self._unary()
        if self._accept("**"):
            return Binary("**", base, self._exponent())
        return base

    def _unary(self) -> Any:
        token = self.current
        if token.kind == "punct" and token.value in ("!", "-", "+"):
            self._advance()
            return Unary(str(token.value), self._unary())
        if token.kind == "punct" and token.value in ("++", "--"):
            self._advance()
            return Update(str(token.value), self._unary(), prefix=True)
        if self._is("typeof"):
            self._advance()
            return Unary("typeof", self._unary())
        return self._postfix()

    def _postfix(self) -> Any:
        expr = self._call_member()
        token = self.current
        if token.kind == "punct" and token.value in ("++", "--"):
            previous = self.tokens[self.index - 1]
            if "\n" not in self.source[previous.end : token.start]:
                self._advance()
                return Update(str(token.value), expr, prefix=False)
        return expr

    def _call_member(self) -> Any:
        if self._is("new"):
            self._advance()
            callee = self._primary()
            while True:
                if self._accept("."):
                    callee = Member(callee, self._property_name())
                elif self._accept("["):
                    callee = Member(callee, self._expression(), computed=True)
                    self._expect("]")
                else:
                    break
            args = self._arguments() if self._is("(") else []
            expr: Any = New(callee, args)
        else:
            expr = self._primary()

        while True:
            if self._accept("."):
                expr = Member(expr, self._property_name())
            elif self._accept("?."):
                if self._is("("):
                    expr = Call(expr, self._arguments(), optional=True)
                elif self._accept("["):
                    expr = Member(expr, self._expression(), computed=True, optional=True)
                    self._expect("]")
                else:
                    expr = Member(expr, self._property_name(), optional=True)
            elif self._accept("["):
                expr = Member(expr, self._expression(), computed=True)
                self._expect("]")
            elif self._is("("):
                expr = Call(expr, self._arguments())
            elif self.current.kind == "template":
                raise self._error("tagged templates are not supported")
            else:
                return expr

    def _property_name(self) -> str:
        token = self.current
        if token.kind != "name":
            raise self._error("expected property name")
        self._advance()
        return str(token.value)

    def _arguments(self) -> List[Any]:
        self._expect("(")
        args = []
        while not self._is(")"):
            if self._accept("..."):
                args.append(Spread(self._assignment()))
            else:
                args.append(self._assignment())
            if not self._accept(","):
                break
        self._expect(")")
        return args

    def _primary(self) -> Any:
        token = self.current
        if token.kind == "num" or token.kind == "str":
            self._advance()
            return Literal(token.value)
        if token.kind == "template":
            self._advance()
            parts: List[Any] = []
            for kind, text in token.value:
                parts.append(text if kind == "text" else Parser(text).parse_expression_only())
            return TemplateLiteral(parts)
        if token.kind == "punct":
            if token.value == "(":
                self._advance()
                expr = self._expression()
                self._expect(")")
                return expr
            if token.value == "[":
                return self._array_literal()
            if token.value == "{":
                return self._object_literal()
        if token.kind == "name":
            name = token.value
            if name == "function":
                return self._function_expression()
            self._advance()
            if name == "true":
                return Literal(True)
            if name == "false":
                return Literal(False)
            if name in ("null", "undefined"):
                return Literal(None)
            if name == "NaN":
                return Literal(float("nan"))
            if name == "Infinity":
                return Literal(float("inf"))
            if name in _RESERVED:
                self.index -= 1
                raise self._error("unexpected keyword")
            return Identifier(str(name))
        raise self._error("unexpected token")

    def _array_literal(self) -> ArrayLiteral:
        self._expect("[")
        elements = []
        while not self._is("]"):
            if self._accept("..."):
                elements.append(Spread(self._assignment()))
            else:
                elements.append(self._assignment())
            if not self._accept(","):
                break
        self._expect("]")
        return ArrayLiteral(elements)

    def _object_literal(self) -> ObjectLiteral:
        self._expect("{")
        properties: List[Any] = []
        while not self._is("}"):
            if self._accept("..."):
                properties.append(Spread(self._assignment()))
            else:
                properties.append(self._object_property())
            if not self._accept(","):
                break
        self._expect("}")
        return ObjectLiteral(properties)

    def _object_property(self) -> Property:
        token = self.current
        computed = False
        if token.kind in ("name", "str"):
            key: Any = str(token.value)
            self._advance()
        elif token.kind == "num":
            key = _numeric_key(token.value)
            self._advance()
        elif self._accept("["):
            key = self._assignment()
            computed = True
            self._expect("]")
        else:
            raise self._error("expected property key")

        if self._accept(":"):
            return Property(key, self._assignment(), computed)
        if self._is("("):
            params_start = self.current.start
            params = self._params()
            body = self._block()
            # methods are re-emitted as plain function expressions
            source = "function " + self.source[params_start : self.tokens[self.index - 1].end]
            name = key if isinstance(key, str) else None
            return Property(key, Function(params, body.body, False, source, name), computed)
        if token.kind == "name" and not computed:
            return Property(key, Identifier(key))
        raise self._error("expected ':'")

    # -- functions --------------------------------------------------------

    def _starts_arrow(self) -> bool:
        token = self.current
        if token.kind == "name" and token.value not in _RESERVED:
            return self._is("=>", self._peek())
        if not self._is("("):
            return False
        depth = 0
        offset = 0
        while True:
            tok = self._peek(offset)
            if tok.kind == "eof":
                return False
            if tok.kind == "punct" and tok.value in ("(", "[", "{"):
                depth += 1
            elif tok.kind == "punct" and tok.value in (")", "]", "}"):
                depth -= 1
                if depth == 0:
                    return self._is("=>", self._peek(offset + 1))
            offset += 1

    def _arrow_function(self) -> Function:
        start = self.current.start
        if self.current.kind == "name":
            params = [Param(self._expect_name())]
        else:
            params = self._params()
        self._expect("=>")
        if self._is("{"):
            body: Any = self._block().body
            expression_body = False
        else:
            body = self._assignment()
            expression_body = True
        source = self.source[start : self.tokens[self.index - 1].end]
        return Function(params, body, expression_body, source)

    def _function_expression(self) -> Function:
        start = self.current.start
        self._expect("function")
        name = self._expect_name() if self.current.kind == "name" else None
        params = self._params()
        body = self._block()
        source = self.source[start : self.tokens[self.index - 1].end]
        return Function(params, body.body, False, source, name)

    def _params(self) -> List[Param]:
        self._expect("(")
        params = []
        while not self._is(")"):
            rest = self._accept("...")
            name = self._expect_name()
            default = self._assignment() if self._accept("=") else None
            params.append(Param(name, default, rest))
            if not self._accept(","):
                break
        self._expect(")")
        return params


def _numeric_key(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_program(source: str) -> List[Any]:
    return Parser(source).parse_program()


def parse_expression(source: str) -> Any:
    return Parser(source).parse_expression_only()
