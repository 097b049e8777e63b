"""Tree-walking interpreter for option scripts.

Values are plain Python data: dict (object), list (array), str, int/float,
bool and None (both null and undefined). Identifier lookup only walks the
script's own scopes down to the root bindings handed in by the caller; the
interpreter never touches Python attributes, builtins or modules.
"""
from __future__ import annotations

import math
from typing import Any, Callable, Dict, Iterable, List, Optional

from viz_option.config.compiler_config import SANDBOX_MAX_LENGTH, SANDBOX_MAX_STEPS
from viz_option.sandbox import parser as ast
from viz_option.sandbox.charting import HostFunction, HostObject
from viz_option.sandbox.tokenizer import ScriptError


class _ReturnSignal(Exception):
    def __init__(self, value: Any) -> None:
        super().__init__()
        self.value = value


class _BreakSignal(Exception):
    pass


class _ContinueSignal(Exception):
    pass


class Scope:
    __slots__ = ("vars", "consts", "parent", "is_function")

    def __init__(self, parent: Optional["Scope"] = None, *, is_function: bool = False) -> None:
        self.vars: Dict[str, Any] = {}
        self.consts: set[str] = set()
        self.parent = parent
        self.is_function = is_function

    def declare(self, name: str, value: Any, *, const: bool = False) -> None:
        self.vars[name] = value
        if const:
            self.consts.add(name)
        else:
            self.consts.discard(name)

    def _owner(self, name: str) -> Optional["Scope"]:
        scope: Optional[Scope] = self
        while scope is not None:
            if name in scope.vars:
                return scope
            scope = scope.parent
        return None

    def lookup(self, name: str) -> Any:
        owner = self._owner(name)
        if owner is None:
            raise ScriptError(f"{name} is not defined")
        return owner.vars[name]

    def assign(self, name: str, value: Any) -> None:
        owner = self._owner(name)
        if owner is None:
            raise ScriptError(f"{name} is not defined")
        if name in owner.consts:
            raise ScriptError(f"assignment to constant variable {name}")
        owner.vars[name] = value

    def function_scope(self) -> "Scope":
        scope = self
        while not scope.is_function and scope.parent is not None:
            scope = scope.parent
        return scope


class ScriptFunction:
    """A function value created by script code; keeps its source for re-emission."""

    __slots__ = ("node", "closure", "interpreter")

    def __init__(self, node: ast.Function, closure: Scope, interpreter: "Interpreter") -> None:
        self.node = node
        self.closure = closure
        self.interpreter = interpreter

    @property
    def source(self) -> str:
        return self.node.source

    def __call__(self, *args: Any) -> Any:
        return self.interpreter.call_function(self, list(args))

    def __repr__(self) -> str:
        return f"ScriptFunction({self.node.name or 'anonymous'})"


# ---------------------------------------------------------------------------
# Value helpers (JavaScript-flavoured coercions)
# ---------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def normalize_number(value: float | int) -> float | int:
    """Keep ints only inside the exact double range; everything else is a float."""
    if isinstance(value, float) and math.isfinite(value) and value.is_integer() and abs(value) < 2**53:
        return int(value)
    if isinstance(value, int) and not isinstance(value, bool) and abs(value) >= 2**53:
        try:
            return float(value)
        except OverflowError:
            return math.copysign(float("inf"), value)
    return value


def _check_length(length: int) -> None:
    if length > SANDBOX_MAX_LENGTH:
        raise ScriptError(f"value length {length} exceeds the limit of {SANDBOX_MAX_LENGTH}")


def truthy(value: Any) -> bool:
    if value is None or value is False:
        return False
    if _is_number(value):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


def to_number(value: Any) -> float | int:
    if isinstance(value, bool):
        return int(value)
    if _is_number(value):
        return value
    if value is None:
        return 0
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            return normalize_number(int(text, 16) if text[:2].lower() == "0x" else float(text))
        except ValueError:
            return float("nan")
    if isinstance(value, list):
        if not value:
            return 0
        if len(value) == 1:
            return to_number(value[0])
    return float("nan")


def to_js_string(value: Any) -> str:
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, str):
        return value
    if _is_number(value):
        value = normalize_number(value)
        if isinstance(value, float):
            if math.isnan(value):
                return "NaN"
            if math.isinf(value):
                return "Infinity" if value > 0 else "-Infinity"
            return repr(value)
        return str(value)
    if isinstance(value, list):
        return ",".join("" if item is None else to_js_string(item) for item in value)
    if isinstance(value, ScriptFunction):
        return value.source
    return "[object Object]"


def property_key(value: Any) -> str:
    if _is_number(value):
        return to_js_string(value)
    return to_js_string(value) if not isinstance(value, str) else value


def _index(value: Any) -> Optional[int]:
    # negative numbers are plain property names, not offsets from the end
    if _is_number(value):
        number = normalize_number(value)
        return number if isinstance(number, int) and number >= 0 else None
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def strict_equals(left: Any, right: Any) -> bool:
    if _is_number(left) and _is_number(right):
        return left == right
    if left is None or right is None:
        return left is None and right is None
    if isinstance(left, (dict, list)) or isinstance(right, (dict, list)):
        return left is right
    return type(left) is type(right) and left == right


def loose_equals(left: Any, right: Any) -> bool:
    if left is None or right is None:
        return left is None and right is None
    if isinstance(left, bool) or isinstance(right, bool):
        return to_number(left) == to_number(right)
    if _is_number(left) and isinstance(right, str) or isinstance(left, str) and _is_number(right):
        return to_number(left) == to_number(right)
    return strict_equals(left, right)


def type_of(value: Any) -> str:
    if value is None:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if _is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (ScriptFunction, HostFunction)):
        return "function"
    return "object"


def _slice_bounds(length: int, start: Any, end: Any) -> tuple[int, int]:
    def _resolve(raw: Any, default: int) -> int:
        if raw is None:
            return default
        idx = int(to_number(raw)) if math.isfinite(to_number(raw)) else default
        if idx < 0:
            idx = max(0, length + idx)
        return min(idx, length)

    return _resolve(start, 0), _resolve(end, length)


# ---------------------------------------------------------------------------
# Interpreter
# ---------------------------------------------------------------------------


class Interpreter:
    """Execute parsed option scripts against a fixed set of root bindings."""

    def __init__(self, bindings: Dict[str, Any], *, max_steps: int = SANDBOX_MAX_STEPS) -> None:
        self.root = Scope(is_function=True)
        for name, value in bindings.items():
            self.root.declare(name, value)
        self.max_steps = max_steps
        self.steps = 0

    def _tick(self) -> None:
        self.steps += 1
        if self.steps > self.max_steps:
            raise ScriptError(f"execution budget of {self.max_steps} steps exceeded")

    # -- public entry points ----------------------------------------------

    def evaluate(self, node: Any, scope: Optional[Scope] = None) -> Any:
        return self._eval(node, scope or self.root)

    def run_body(
        self,
        statements: List[Any],
        *,
        predeclared: Iterable[str] = (),
        result_name: Optional[str] = None,
    ) -> Any:
        """Run statements as a function body and return its result.

        Names in `predeclared` are declared (as undefined) in the body scope
        before it runs. An explicit `return` wins; otherwise the value of
        `result_name` is returned.
        """
        scope = Scope(self.root, is_function=True)
        for name in predeclared:
            scope.declare(name, None)
        try:
            self._exec_list(statements, scope)
        except _ReturnSignal as signal:
            return signal.value
        except (_BreakSignal, _ContinueSignal) as exc:
            raise ScriptError("illegal break/continue outside of a loop") from exc
        except RecursionError as exc:
            raise ScriptError("script nesting is too deep") from exc
        if result_name is None:
            return None
        return scope.lookup(result_name)

    def call_function(self, fn: Any, args: List[Any]) -> Any:
        if isinstance(fn, ScriptFunction):
            return self._call_script_function(fn, args)
        if isinstance(fn, HostFunction):
            return fn(*args)
        raise ScriptError(f"{to_js_string(fn) if not isinstance(fn, HostObject) else fn.name} is not a function")

    # -- statements -------------------------------------------------------

    def _exec_list(self, statements: List[Any], scope: Scope) -> None:
        for stmt in statements:
            if isinstance(stmt, ast.FunctionDecl):
                scope.declare(stmt.name, ScriptFunction(stmt.function, scope, self))
        for stmt in statements:
            self._exec(stmt, scope)

    def _exec(self, stmt: Any, scope: Scope) -> None:
        self._tick()
        if isinstance(stmt, ast.ExprStmt):
            self._eval(stmt.expr, scope)
        elif isinstance(stmt, ast.VarDecl):
            target = scope.function_scope() if stmt.kind == "var" else scope
            for name, init in stmt.declarations:
                value = self._eval(init, scope) if init is not None else None
                if stmt.kind == "var" and init is None and name in target.vars:
                    continue
                target.declare(name, value, const=stmt.kind == "const")
        elif isinstance(stmt, ast.Return):
            raise _ReturnSignal(self._eval(stmt.value, scope) if stmt.value is not None else None)
        elif isinstance(stmt, ast.Block):
            self._exec_list(stmt.body, Scope(scope))
        elif isinstance(stmt, ast.If):
            if truthy(self._eval(stmt.test, scope)):
                self._exec(stmt.consequent, scope)
            elif stmt.alternate is not None:
                self._exec(stmt.alternate, scope)
        elif isinstance(stmt, ast.For):
            self._exec_for(stmt, scope)
        elif isinstance(stmt, ast.ForEach):
            self._exec_for_each(stmt, scope)
        elif isinstance(stmt, ast.While):
            while truthy(self._eval(stmt.test, scope)):
                self._tick()
                try:
                    self._exec(stmt.body, scope)
                except _BreakSignal:
                    break
                except _ContinueSignal:
                    continue
        elif isinstance(stmt, ast.Break):
            raise _BreakSignal()
        elif isinstance(stmt, ast.Continue):
            raise _ContinueSignal()
        elif isinstance(stmt, ast.FunctionDecl):
            return
        else:  # pragma: no cover - parser only emits the nodes above
            raise ScriptError(f"unsupported statement {type(stmt).__name__}")

    def _exec_for(self, stmt: ast.For, scope: Scope) -> None:
        loop_scope = Scope(scope)
        if stmt.init is not None:
            self._exec(stmt.init, loop_scope)
        while stmt.test is None or truthy(self._eval(stmt.test, loop_scope)):
            self._tick()
            try:
                self._exec(stmt.body, Scope(loop_scope))
            except _BreakSignal:
                break
            except _ContinueSignal:
                pass
            if stmt.update is not None:
                self._eval(stmt.update, loop_scope)

    def _exec_for_each(self, stmt: ast.ForEach, scope: Scope) -> None:
        iterable = self._eval(stmt.iterable, scope)
        if stmt.over_keys:
            if isinstance(iterable, dict):
                items: List[Any] = list(iterable.keys())
            elif isinstance(iterable, (list, str)):
                items = [str(i) for i in range(len(iterable))]
            else:
                items = []
        elif isinstance(iterable, list):
            items = list(iterable)
        elif isinstance(iterable, str):
            items = list(iterable)
        else:
            raise ScriptError(f"{to_js_string(iterable)} is not iterable")

        for item in items:
            self._tick()
            body_scope = Scope(scope)
            if stmt.kind is None:
                scope.assign(stmt.name, item)
            else:
                body_scope.declare(stmt.name, item, const=stmt.kind == "const")
            try:
                self._exec(stmt.body, body_scope)
            except _BreakSignal:
                break
            except _ContinueSignal:
                continue

    # -- expressions ------------------------------------------------------

    def _eval(self, node: Any, scope: Scope) -> Any:
        self._tick()
        handler = getattr(self, "_eval_" + type(node).__name__, None)
        if handler is None:
            raise ScriptError(f"unsupported expression {type(node).__name__}")
        return handler(node, scope)

    def _eval_Literal(self, node: ast.Literal, scope: Scope) -> Any:
        return node.value

    def _eval_Identifier(self, node: ast.Identifier, scope: Scope) -> Any:
        return scope.lookup(node.name)

    def _eval_TemplateLiteral(self, node: ast.TemplateLiteral, scope: Scope) -> str:
        return "".join(part if isinstance(part, str) else to_js_string(self._eval(part, scope)) for part in node.parts)

    def _eval_ArrayLiteral(self, node: ast.ArrayLiteral, scope: Scope) -> List[Any]:
        result: List[Any] = []
        for element in node.elements:
            if isinstance(element, ast.Spread):
                result.extend(self._spread_items(self._eval(element.argument, scope)))
            else:
                result.append(self._eval(element, scope))
        return result

    def _eval_ObjectLiteral(self, node: ast.ObjectLiteral, scope: Scope) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for prop in node.properties:
            if isinstance(prop, ast.Spread):
                value = self._eval(prop.argument, scope)
                if isinstance(value, dict):
                    result.update(value)
                elif isinstance(value, (list, str)):
                    result.update({str(i): item for i, item in enumerate(value)})
                continue
            key = property_key(self._eval(prop.key, scope)) if prop.computed else prop.key
            result[key] = self._eval(prop.value, scope)
        return result

    def _eval_Function(self, node: ast.Function, scope: Scope) -> ScriptFunction:
        return ScriptFunction(node, scope, self)

    def _eval_Member(self, node: ast.Member, scope: Scope) -> Any:
        obj = self._eval(node.obj, scope)
        if obj is None and node.optional:
            return None
        key = self._eval(node.prop, scope) if node.computed else node.prop
        return self._get_member(obj, key)

    def _eval_Call(self, node: ast.Call, scope: Scope) -> Any:
        fn = self._eval(node.callee, scope)
        if fn is None and node.optional:
            return None
        return self.call_function(fn, self._eval_args(node.args, scope))

    def _eval_New(self, node: ast.New, scope: Scope) -> Any:
        ctor = self._eval(node.callee, scope)
        if not isinstance(ctor, HostFunction) or not ctor.constructible:
            raise ScriptError("only charting constructors can be used with new")
        return ctor(*self._eval_args(node.args, scope))

    def _eval_Unary(self, node: ast.Unary, scope: Scope) -> Any:
        if node.op == "typeof":
            if isinstance(node.operand, ast.Identifier):
                try:
                    return type_of(scope.lookup(node.operand.name))
                except ScriptError:
                    return "undefined"
            return type_of(self._eval(node.operand, scope))
        value = self._eval(node.operand, scope)
        if node.op == "!":
            return not truthy(value)
        number = to_number(value)
        return normalize_number(-number) if node.op == "-" else number

    def _eval_Binary(self, node: ast.Binary, scope: Scope) -> Any:
        left = self._eval(node.left, scope)
        right = self._eval(node.right, scope)
        return self._binary(node.op, left, right)

    def _eval_Logical(self, node: ast.Logical, scope: Scope) -> Any:
        left = self._eval(node.left, scope)
        if node.op == "&&":
            return self._eval(node.right, scope) if truthy(left) else left
        if node.op == "||":
            return left if truthy(left) else self._eval(node.right, scope)
        return self._eval(node.right, scope) if left is None else left

    def _eval_Conditional(self, node: ast.Conditional, scope: Scope) -> Any:
        branch = node.consequent if truthy(self._eval(node.test, scope)) else node.alternate
        return self._eval(branch, scope)

    def _eval_Assign(self, node: ast.Assign, scope: Scope) -> Any:
        if node.op == "=":
            value = self._eval(node.value, scope)
        else:
            current = self._eval(node.target, scope)
            value = self._binary(node.op[:-1], current, self._eval(node.value, scope))
        self._store(node.target, value, scope)
        return value

    def _eval_Update(self, node: ast.Update, scope: Scope) -> Any:
        old = to_number(self._eval(node.target, scope))
        new = normalize_number(old + 1 if node.op == "++" else old - 1)
        self._store(node.target, new, scope)
        return new if node.prefix else old

    def _eval_Spread(self, node: ast.Spread, scope: Scope) -> Any:
        raise ScriptError("spread is only allowed inside literals and calls")

    # -- helpers ------------------------------------------------------------

    def _eval_args(self, args: List[Any], scope: Scope) -> List[Any]:
        values: List[Any] = []
        for arg in args:
            if isinstance(arg, ast.Spread):
                values.extend(self._spread_items(self._eval(arg.argument, scope)))
            else:
                values.append(self._eval(arg, scope))
        return values

    def _spread_items(self, value: Any) -> List[Any]:
        if isinstance(value, list):
            return list(value)
        if isinstance(value, str):
            return list(value)
        raise ScriptError(f"{to_js_string(value)} is not iterable")

    def _store(self, target: Any, value: Any, scope: Scope) -> None:
        if isinstance(target, ast.Identifier):
            scope.assign(target.name, value)
            return
        if not isinstance(target, ast.Member):
            raise ScriptError("invalid assignment target")
        obj = self._eval(target.obj, scope)
        key = self._eval(target.prop, scope) if target.computed else target.prop
        if isinstance(obj, dict):
            obj[property_key(key)] = value
            return
        if isinstance(obj, list):
            idx = _index(key)
            if idx is None:
                raise ScriptError(f"cannot set property {to_js_string(key)} of an array")
            if idx >= len(obj):
                _check_length(idx + 1)
                obj.extend([None] * (idx + 1 - len(obj)))
            obj[idx] = value
            return
        raise ScriptError(f"cannot set property {to_js_string(key)} of {type_of(obj)}")

    def _binary(self, op: str, left: Any, right: Any) -> Any:
        if op == ",":
            return right
        if op == "+":
            if isinstance(left, (str, list, dict)) or isinstance(right, (str, list, dict)):
                text = to_js_string(left) + to_js_string(right)
                _check_length(len(text))
                return text
            return normalize_number(to_number(left) + to_number(right))
        if op in ("-", "*", "/", "%", "**"):
            return self._arithmetic(op, to_number(left), to_number(right))
        if op == "===":
            return strict_equals(left, right)
        if op == "!==":
            return not strict_equals(left, right)
        if op == "==":
            return loose_equals(left, right)
        if op == "!=":
            return not loose_equals(left, right)
        if op in ("<", ">", "<=", ">="):
            return self._compare(op, left, right)
        if op == "in":
            if isinstance(right, dict):
                return property_key(left) in right
            if isinstance(right, list):
                idx = _index(left)
                return idx is not None and idx < len(right)
            raise ScriptError("cannot use 'in' on a non-object")
        raise ScriptError(f"unsupported operator {op}")

    @staticmethod
    def _arithmetic(op: str, left: float | int, right: float | int) -> float | int:
        try:
            if op == "-":
                result = left - right
            elif op == "*":
                result = left * right
            elif op == "**":
                try:
                    result = math.pow(left, right)
                except ValueError:
                    return float("nan")
            elif op == "/":
                if right == 0:
                    if left == 0 or math.isnan(left):
                        return float("nan")
                    return math.copysign(float("inf"), left) * math.copysign(1.0, right)
                result = left / right
            else:
                if right == 0 or math.isinf(left):
                    return float("nan")
                result = math.fmod(left, right)
        except OverflowError:
            return float("inf")
        return normalize_number(result)

    @staticmethod
    def _compare(op: str, left: Any, right: Any) -> bool:
        if isinstance(left, str) and isinstance(right, str):
            a: Any = left
            b: Any = right
        else:
            a = to_number(left)
            b = to_number(right)
            if math.isnan(a) or math.isnan(b):
                return False
        if op == "<":
            return a < b
        if op == ">":
            return a > b
        if op == "<=":
            return a <= b
        return a >= b

    def _call_script_function(self, fn: ScriptFunction, args: List[Any]) -> Any:
        node = fn.node
        scope = Scope(fn.closure, is_function=True)
        for idx, param in enumerate(node.params):
            if param.rest:
                scope.declare(param.name, args[idx:])
                break
            value = args[idx] if idx < len(args) else None
            if value is None and param.default is not None:
                value = self._eval(param.default, scope)
            scope.declare(param.name, value)
        if node.expression_body:
            return self._eval(node.body, scope)
        try:
            self._exec_list(node.body, scope)
        except _ReturnSignal as signal:
            return signal.value
        return None

    def _callback(self, fn: Any) -> Callable[..., Any]:
        if not isinstance(fn, (ScriptFunction, HostFunction)):
            raise ScriptError(f"{to_js_string(fn)} is not a function")
        return lambda *args: self.call_function(fn, list(args))

    # -- member access ------------------------------------------------------

    def _get_member(self, obj: Any, key: Any) -> Any:
        if obj is None:
            raise ScriptError(f"cannot read properties of null (reading '{to_js_string(key)}')")
        name = property_key(key)
        if isinstance(obj, dict):
            return obj.get(name)
        if isinstance(obj, list):
            idx = _index(key)
            if idx is not None:
                return obj[idx] if idx < len(obj) else None
            if name == "length":
                return len(obj)
            return self._array_method(obj, name)
        if isinstance(obj, str):
            idx = _index(key)
            if idx is not None:
                return obj[idx] if idx < len(obj) else None
            if name == "length":
                return len(obj)
            return _string_method(obj, name)
        if isinstance(obj, HostObject):
            return obj.get(name)
        if _is_number(obj) or isinstance(obj, bool):
            return _number_method(obj, name)
        return None

    def _array_method(self, arr: List[Any], name: str) -> Optional[HostFunction]:
        def _map(fn: Any = None, *_: Any) -> List[Any]:
            call = self._callback(fn)
            return [call(item, idx, arr) for idx, item in enumerate(list(arr))]

        def _filter(fn: Any = None, *_: Any) -> List[Any]:
            call = self._callback(fn)
            return [item for idx, item in enumerate(list(arr)) if truthy(call(item, idx, arr))]

        def _for_each(fn: Any = None, *_: Any) -> None:
            call = self._callback(fn)
            for idx, item in enumerate(list(arr)):
                call(item, idx, arr)

        def _reduce(fn: Any = None, *initial: Any) -> Any:
            call = self._callback(fn)
            items = list(arr)
            if initial:
                acc, start = initial[0], 0
            elif items:
                acc, start = items[0], 1
            else:
                raise ScriptError("reduce of empty array with no initial value")
            for idx in range(start, len(items)):
                acc = call(acc, items[idx], idx, arr)
            return acc

        def _find(fn: Any = None, *_: Any) -> Any:
            call = self._callback(fn)
            for idx, item in enumerate(list(arr)):
                if truthy(call(item, idx, arr)):
                    return item
            return None

        def _find_index(fn: Any = None, *_: Any) -> int:
            call = self._callback(fn)
            for idx, item in enumerate(list(arr)):
                if truthy(call(item, idx, arr)):
                    return idx
            return -1

        def _some(fn: Any = None, *_: Any) -> bool:
            call = self._callback(fn)
            return any(truthy(call(item, idx, arr)) for idx, item in enumerate(list(arr)))

        def _every(fn: Any = None, *_: Any) -> bool:
            call = self._callback(fn)
            return all(truthy(call(item, idx, arr)) for idx, item in enumerate(list(arr)))

        def _slice(start: Any = None, end: Any = None, *_: Any) -> List[Any]:
            lo, hi = _slice_bounds(len(arr), start, end)
            return arr[lo:hi]

        def _concat(*others: Any) -> List[Any]:
            result = list(arr)
            for other in others:
                if isinstance(other, list):
                    result.extend(other)
                else:
                    result.append(other)
            _check_length(len(result))
            return result

        def _join(sep: Any = None, *_: Any) -> str:
            glue = "," if sep is None else to_js_string(sep)
            return glue.join("" if item is None else to_js_string(item) for item in arr)

        def _includes(value: Any = None, *_: Any) -> bool:
            return any(strict_equals(item, value) for item in arr)

        def _index_of(value: Any = None, *_: Any) -> int:
            for idx, item in enumerate(arr):
                if strict_equals(item, value):
                    return idx
            return -1

        def _push(*items: Any) -> int:
            _check_length(len(arr) + len(items))
            arr.extend(items)
            return len(arr)

        def _flat_map(fn: Any = None, *_: Any) -> List[Any]:
            call = self._callback(fn)
            result: List[Any] = []
            for idx, item in enumerate(list(arr)):
                mapped = call(item, idx, arr)
                if isinstance(mapped, list):
                    result.extend(mapped)
                else:
                    result.append(mapped)
            return result

        def _reverse(*_: Any) -> List[Any]:
            arr.reverse()
            return arr

        methods: Dict[str, Callable[..., Any]] = {
            "map": _map,
            "filter": _filter,
            "forEach": _for_each,
            "reduce": _reduce,
            "find": _find,
            "findIndex": _find_index,
            "some": _some,
            "every": _every,
            "slice": _slice,
            "concat": _concat,
            "join": _join,
            "includes": _includes,
            "indexOf": _index_of,
            "push": _push,
            "flatMap": _flat_map,
            "reverse": _reverse,
        }
        fn = methods.get(name)
        return HostFunction(name, fn) if fn is not None else None


def _string_method(text: str, name: str) -> Optional[HostFunction]:
    def _slice(start: Any = None, end: Any = None, *_: Any) -> str:
        lo, hi = _slice_bounds(len(text), start, end)
        return text[lo:hi]

    def _split(sep: Any = None, *_: Any) -> List[str]:
        if sep is None:
            return [text]
        sep_text = to_js_string(sep)
        return list(text) if sep_text == "" else text.split(sep_text)

    def _pad_start(width: Any = 0, fill: Any = " ", *_: Any) -> str:
        target = int(to_number(width))
        _check_length(target)
        pad = to_js_string(fill) or " "
        missing = target - len(text)
        if missing <= 0:
            return text
        return (pad * (missing // len(pad) + 1))[:missing] + text

    methods: Dict[str, Callable[..., Any]] = {
        "toUpperCase": lambda *_: text.upper(),
        "toLowerCase": lambda *_: text.lower(),
        "trim": lambda *_: text.strip(),
        "slice": _slice,
        "split": _split,
        "includes": lambda sub=None, *_: to_js_string(sub) in text,
        "startsWith": lambda sub=None, *_: text.startswith(to_js_string(sub)),
        "endsWith": lambda sub=None, *_: text.endswith(to_js_string(sub)),
        "indexOf": lambda sub=None, *_: text.find(to_js_string(sub)),
        "replace": lambda old=None, new="", *_: text.replace(to_js_string(old), to_js_string(new), 1),
        "padStart": _pad_start,
        "toString": lambda *_: text,
    }
    fn = methods.get(name)
    return HostFunction(name, fn) if fn is not None else None


def _number_method(value: Any, name: str) -> Optional[HostFunction]:
    def _to_fixed(digits: Any = 0, *_: Any) -> str:
        places = max(0, min(100, int(to_number(digits))))
        number = to_number(value)
        if isinstance(number, float) and not math.isfinite(number):
            return to_js_string(number)
        return f"{number:.{places}f}"

    methods: Dict[str, Callable[..., Any]] = {
        "toFixed": _to_fixed,
        "toString": lambda *_: to_js_string(value),
    }
    fn = methods.get(name)
    return HostFunction(name, fn) if fn is not None else None
