"""Line positions of records in JSON and TOML lockfiles.

tomllib and json discard source positions, so these helpers scan the raw
text a second time to find where each record starts and ends. Positions
are 1-based and inclusive; records that cannot be located are left out.
"""

import re

_TABLE_HEADER = re.compile(r"^\s*\[\[?\s*([^\]]+?)\s*\]\]?\s*(?:#.*)?$")


def toml_table_spans(content: str, table: str) -> list[tuple[int, int]]:
    """Return the line span of every ``[[table]]`` element, in file order.

    An element ends before the next header that is neither a new element
    nor one of its own sub-tables (``[table.dependencies]``). Trailing blank
    lines are not part of the span.
    """
    lines = content.splitlines()
    spans: list[tuple[int, int]] = []
    start: int | None = None

    def close(first: int, end: int) -> None:
        while end > first and not lines[end - 1].strip():
            end -= 1
        spans.append((first, end))

    for number, line in enumerate(lines, start=1):
        match = _TABLE_HEADER.match(line)
        if match is None:
            continue
        name = match.group(1)
        is_element = line.lstrip().startswith("[[") and name == table
        if start is not None and (is_element or not name.startswith(f"{table}.")):
            close(start, number - 1)
            start = None
        if is_element:
            start = number

    if start is not None:
        close(start, len(lines))

    return spans


def json_member_spans(content: str, group_key: str) -> list[tuple[str | None, int, int]]:
    """Return the line span of every object inside a top-level group.

    ``group_key`` names a member of the root object. When it holds an
    object, each entry is (member key, first line, last line); when it holds
    an array, the key is None and entries follow array order.
    """
    spans: list[tuple[str | None, int, int]] = []
    depth = 0
    line = 1
    last_string: str | None = None
    pending_key: str | None = None
    group_depth: int | None = None
    member: tuple[str | None, int] | None = None
    n = len(content)
    i = 0

    while i < n:
        ch = content[i]
        if ch == '"':
            j = i + 1
            while j < n and content[j] != '"':
                j += 2 if content[j] == "\\" else 1
            last_string = content[i + 1 : j]
            i = j + 1
            continue

        if ch == "\n":
            line += 1
        elif ch == ":":
            pending_key = last_string
        elif ch == ",":
            pending_key = None
        elif ch in "{[":
            depth += 1
            if group_depth is None:
                if depth == 2 and pending_key == group_key:
                    group_depth = depth
            elif depth == group_depth + 1 and ch == "{":
                member = (pending_key, line)
            pending_key = None
        elif ch in "}]":
            if group_depth is not None:
                if depth == group_depth + 1 and member is not None:
                    spans.append((member[0], member[1], line))
                    member = None
                elif depth == group_depth:
                    break
            depth -= 1
        i += 1

    return spans
