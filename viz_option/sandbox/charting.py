"""Host values visible to option scripts.

Only two names are ever bound at the script root: the charting namespace
(`echarts`) and the data placeholder (`$DATA`). Everything else a script can
reach is built from literals or from the members exposed here.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from viz_option.config.compiler_config import DATA_PLACEHOLDER


class HostFunction:
    """A Python callable that scripts may call (or construct with `new`)."""

    __slots__ = ("name", "fn", "constructible")

    def __init__(self, name: str, fn: Callable[..., Any], *, constructible: bool = False) -> None:
        self.name = name
        self.fn = fn
        self.constructible = constructible

    def __call__(self, *args: Any) -> Any:
        return self.fn(*args)

    def __repr__(self) -> str:
        return f"HostFunction({self.name})"


class HostObject:
    """A read-only namespace with a fixed member table."""

    __slots__ = ("name", "members")

    def __init__(self, name: str, members: Dict[str, Any]) -> None:
        self.name = name
        self.members = dict(members)

    def get(self, key: str) -> Any:
        return self.members.get(key)

    def __repr__(self) -> str:
        return f"HostObject({self.name})"


def _arg(args: tuple, idx: int, default: Any = None) -> Any:
    return args[idx] if idx < len(args) else default


def _color_stops(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [dict(stop) for stop in value if isinstance(stop, dict)]


def _linear_gradient(*args: Any) -> Dict[str, Any]:
    return {
        "type": "linear",
        "x": _arg(args, 0, 0),
        "y": _arg(args, 1, 0),
        "x2": _arg(args, 2, 0),
        "y2": _arg(args, 3, 1),
        "colorStops": _color_stops(_arg(args, 4)),
        "global": bool(_arg(args, 5, False)),
    }


def _radial_gradient(*args: Any) -> Dict[str, Any]:
    return {
        "type": "radial",
        "x": _arg(args, 0, 0.5),
        "y": _arg(args, 1, 0.5),
        "r": _arg(args, 2, 0.5),
        "colorStops": _color_stops(_arg(args, 3)),
        "global": bool(_arg(args, 4, False)),
    }


def build_charting_namespace() -> HostObject:
    """Return the `echarts` binding: gradient constructors under `graphic`."""
    graphic = HostObject(
        "echarts.graphic",
        {
            "LinearGradient": HostFunction("LinearGradient", _linear_gradient, constructible=True),
            "RadialGradient": HostFunction("RadialGradient", _radial_gradient, constructible=True),
        },
    )
    return HostObject("echarts", {"graphic": graphic})


CHARTING_NAMESPACE = build_charting_namespace()


def sandbox_bindings(data: Optional[Any] = None) -> Dict[str, Any]:
    """Return the only two root bindings a script receives.

    Args:
        data: Value bound to the placeholder. Defaults to the placeholder
            string itself, so parsed configs keep `'$DATA'` as their source.
    """
    return {
        "echarts": CHARTING_NAMESPACE,
        DATA_PLACEHOLDER: DATA_PLACEHOLDER if data is None else data,
    }
