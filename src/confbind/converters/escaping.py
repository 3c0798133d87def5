"""String escaping used by the string and JSON-like converters."""

import re

ESCAPE_CHAR = "\\"
NOT_FOUND = -1

_CONTROL_ESCAPES = {"\b": "\\b", "\t": "\\t", "\n": "\\n", "\f": "\\f", "\r": "\\r"}
_CONTROL_UNESCAPES = {"b": "\b", "t": "\t", "n": "\n", "f": "\f", "r": "\r"}

_JAVA_ESCAPES = {"\\": "\\\\", '"': '\\"', **_CONTROL_ESCAPES}
_JSON_ESCAPES = {"\\": "\\\\", '"': '\\"', "/": "\\/", **_CONTROL_ESCAPES}
_COMPACT_ESCAPES = {
    "\\": "\\\\",
    "/": "\\/",
    ",": "\\,",
    ":": "\\:",
    "}": "\\}",
    "]": "\\]",
    **_CONTROL_ESCAPES,
}

_JAVA_UNESCAPE = re.compile(r"\\(u+[0-9a-fA-F]{4}|[0-7]{1,3}|[btnfr\"'\\/])")
_COMPACT_UNESCAPE = re.compile(r"\\(u[0-9a-fA-F]{4}|[btnfr\\/,:}\]])")


def _unicode_escape(char: str) -> str:
    code = ord(char)
    if code > 0xFFFF:
        # encode as a UTF-16 surrogate pair
        code -= 0x10000
        return f"\\u{0xD800 + (code >> 10):04X}\\u{0xDC00 + (code & 0x3FF):04X}"
    return f"\\u{code:04X}"


def _escape(value: str, table: dict[str, str]) -> str:
    out = []
    for char in value:
        escaped = table.get(char)
        if escaped is not None:
            out.append(escaped)
        elif not 32 <= ord(char) < 0x7F:
            out.append(_unicode_escape(char))
        else:
            out.append(char)
    return "".join(out)


def _join_surrogates(value: str) -> str:
    if any(0xD800 <= ord(char) <= 0xDFFF for char in value):
        return value.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "surrogatepass")
    return value


def escape_java(value: str) -> str:
    """Escape quotes, backslashes, control and non-ASCII characters."""
    return _escape(value, _JAVA_ESCAPES)


def unescape_java(value: str) -> str:
    """Reverse ``escape_java``, also accepting octal and ``\\'`` escapes.

    Unknown escape sequences are kept as they are.
    """
    if ESCAPE_CHAR not in value:
        return value

    def replace(match: re.Match) -> str:
        sequence = match.group(1)
        if sequence[0] == "u":
            return chr(int(sequence[-4:], 16))
        if sequence[0].isdigit():
            code = int(sequence, 8)
            if code > 0o377:
                # octal escapes stop at \377
                return chr(int(sequence[:2], 8)) + sequence[2]
            return chr(code)
        return _CONTROL_UNESCAPES.get(sequence, sequence)

    return _join_surrogates(_JAVA_UNESCAPE.sub(replace, value))


def escape_json(value: str) -> str:
    return _escape(value, _JSON_ESCAPES)


def escape_compact(value: str) -> str:
    """Escape a scalar for the compact JSON-like notation.

    Structural characters which may terminate a scalar (``,`` ``:`` ``}``
    ``]``) are prefixed with a backslash.
    """
    return _escape(value, _COMPACT_ESCAPES)


def unescape_compact(value: str) -> str:
    if ESCAPE_CHAR not in value:
        return value

    def replace(match: re.Match) -> str:
        sequence = match.group(1)
        if sequence[0] == "u":
            return chr(int(sequence[1:], 16))
        return _CONTROL_UNESCAPES.get(sequence, sequence)

    return _join_surrogates(_COMPACT_UNESCAPE.sub(replace, value))


def not_escaped_index_of(value: str, start: int, *characters: str) -> int:
    """Find the first of ``characters`` not preceded by an odd run of backslashes.

    Args:
        value: String to search.
        start: Position to start searching from.
        characters: Single characters to look for.

    Returns:
        Index of the match, or ``NOT_FOUND``.
    """
    for index in range(max(start, 0), len(value)):
        if value[index] not in characters:
            continue
        backslashes = 0
        position = index - 1
        while position >= 0 and value[position] == ESCAPE_CHAR:
            backslashes += 1
            position -= 1
        if backslashes % 2 == 0:
            return index
    return NOT_FOUND
