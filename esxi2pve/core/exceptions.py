# esxi2pve/core/exceptions.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


def _safe_int(x: Any, default: int = 1) -> int:
    try:
        return int(x)
    except (TypeError, ValueError):
        return default


def _one_line(s: str, limit: int = 600) -> str:
    s = (s or "").strip().replace("\r", " ").replace("\n", " ")
    s = " ".join(s.split())
    return s if len(s) <= limit else (s[: limit - 3] + "...")


@dataclass(eq=False)
class Esxi2PveError(Exception):
    """
    Base project error with:
      - an exit code honored by main()
      - a one-line message (what the operator sees)
      - optional cause/context for -vv output
    """
    code: int = 1
    msg: str = "error"
    cause: Optional[BaseException] = None
    context: Optional[Dict[str, Any]] = None

    def __post_init__(self) -> None:
        self.code = _safe_int(self.code, default=1)
        self.msg = _one_line(self.msg)
        super().__init__(self.msg)

    def user_message(self, *, include_context: bool = False, include_cause: bool = False) -> str:
        parts = [self.msg or self.__class__.__name__]

        if include_context and self.context:
            kv = ", ".join(f"{k}={self.context[k]!r}" for k in sorted(self.context.keys()))
            parts.append(f"[{kv}]")

        if include_cause and self.cause is not None:
            parts.append(f"(cause: {type(self.cause).__name__}: {_one_line(str(self.cause))})")

        return " ".join(parts)

    def __str__(self) -> str:
        return self.user_message(include_context=False, include_cause=False)


class Fatal(Esxi2PveError):
    """
    Operator-facing fatal error. The whole run stops and main() exits with `code`.
    """
    pass


class CommandError(Esxi2PveError):
    """
    An external tool (qm, ovftool, qemu-img, ...) exited non-zero.
    context carries argv/returncode/stderr.
    """
    pass


def format_exception_for_cli(e: BaseException, *, verbose: int = 0) -> str:
    """
    One-liner output for CLI.

    verbose=0: just message
    verbose=1: message + compact context (if any)
    verbose>=2: message + context + cause
    """
    if isinstance(e, Esxi2PveError):
        return e.user_message(
            include_context=(verbose >= 1),
            include_cause=(verbose >= 2),
        )

    if verbose >= 2:
        return f"{type(e).__name__}: {_one_line(str(e))}"
    return _one_line(str(e)) or type(e).__name__
