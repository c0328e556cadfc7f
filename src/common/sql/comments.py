"""SQL comment stripping utilities for the MariaDB dialect."""

from __future__ import annotations

import re

_EXECUTABLE_VERSION_RE = re.compile(r"M?!\d*")


def strip_sql_comments(sql: str) -> str:
    """Strip ``--``, ``#`` and ``/* */`` comments while preserving quoted text.

    MariaDB executes the body of ``/*! ... */`` and ``/*M! ... */`` comments, so
    those are unwrapped (optional version number dropped) instead of removed.
    """
    if not isinstance(sql, str) or not sql:
        return ""

    out: list[str] = []
    i = 0
    quote: str | None = None
    in_line_comment = False
    in_block_comment = False
    executable_depth = 0

    while i < len(sql):
        ch = sql[i]
        nxt = sql[i + 1] if i + 1 < len(sql) else ""

        if in_line_comment:
            if ch == "\n":
                in_line_comment = False
                out.append("\n")
            i += 1
            continue

        if in_block_comment:
            if ch == "*" and nxt == "/":
                in_block_comment = False
                out.append(" ")
                i += 2
                continue
            i += 1
            continue

        if quote is not None:
            out.append(ch)
            if ch == "\\" and quote != "`" and nxt:
                out.append(nxt)
                i += 2
                continue
            if ch == quote:
                if nxt == quote:  # Doubled quote escape
                    out.append(nxt)
                    i += 2
                    continue
                quote = None
            i += 1
            continue

        if ch in ("'", '"', "`"):
            quote = ch
            out.append(ch)
            i += 1
            continue

        if ch == "-" and nxt == "-":
            in_line_comment = True
            i += 2
            continue

        if ch == "#":
            in_line_comment = True
            i += 1
            continue

        if ch == "/" and nxt == "*":
            version = _EXECUTABLE_VERSION_RE.match(sql, i + 2)
            if version:
                executable_depth += 1
                out.append(" ")
                i = version.end()
                continue
            in_block_comment = True
            i += 2
            continue

        if ch == "*" and nxt == "/" and executable_depth > 0:
            executable_depth -= 1
            out.append(" ")
            i += 2
            continue

        out.append(ch)
        i += 1

    return "".join(out)
