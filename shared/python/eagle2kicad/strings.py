"""
Name and text conversions between EAGLE and KiCad conventions.

EAGLE marks inverted signals with ``!`` toggles and writes buses either as
vectors (``D[0..7]``) or as comma separated member lists.  KiCad uses
``~{...}`` overbars, ``{A B C}`` bus groups and a brace-token escape
scheme for characters that are reserved in net names.
"""

import re

# Characters illegal in file names on any supported platform
ILLEGAL_FILENAME_CHARS = '\\/:"<>|'

_BUS_VECTOR_RE = re.compile(r"^([^\[\]{}\s]*)\[(\d+)\.\.(\d+)\]$")

# Escape contexts
CTX_NETNAME = "netname"

_ESCAPES = {
    CTX_NETNAME: {"/": "{slash}", "\n": "", "\r": ""},
}

_TOKENS = {
    "dblquote": '"',
    "quote": "'",
    "lt": "<",
    "gt": ">",
    "backslash": "\\",
    "slash": "/",
    "bar": "|",
    "colon": ":",
    "space": " ",
    "dollar": "$",
    "tab": "\t",
    "return": "\n",
    "brace": "{",
    "": "{",
}


def escape_string(text, context):
    """Replace characters reserved in *context* with brace tokens."""
    table = _ESCAPES.get(context)
    if table is None:
        raise ValueError(f"Unknown escape context: {context}")
    return "".join(table.get(c, c) for c in text)


def unescape_string(text):
    """Expand brace tokens produced by ``escape_string``.

    ``${...}``, ``^{...}`` and ``_{...}`` (variables, super- and subscript)
    are copied through unchanged.  Unknown tokens keep their braces and are
    unescaped recursively.
    """
    out = []
    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        if c in "$^_" and i + 1 < n and text[i + 1] == "{":
            end = text.find("}", i)
            if end == -1:
                end = n - 1
            out.append(text[i:end + 1])
            i = end + 1
        elif c == "{":
            depth = 1
            j = i + 1
            while j < n:
                if text[j] == "{":
                    depth += 1
                elif text[j] == "}":
                    depth -= 1
                    if depth == 0:
                        break
                j += 1
            token = text[i + 1:j]
            if token in _TOKENS:
                out.append(_TOKENS[token])
            else:
                out.append("{" + unescape_string(token) + "}")
            i = j + 1
        else:
            out.append(c)
            i += 1
    return "".join(out)


def to_overbar_notation(text):
    """Convert ``~`` overbar toggles to KiCad's ``~{...}`` notation."""
    if text == "~":
        return text

    out = []
    in_overbar = False
    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        if c == "~":
            nxt = text[i + 1] if i + 1 < n else ""
            if nxt == "~":
                out.append("~")
                i += 2
                continue
            if nxt == "{":
                # already converted
                out.append("~")
                i += 1
                continue
            out.append("}" if in_overbar else "~{")
            in_overbar = not in_overbar
            i += 1
            continue
        if c in " })" and in_overbar:
            out.append("}")
            in_overbar = False
        out.append(c)
        i += 1

    if in_overbar:
        out.append("}")
    return "".join(out)


def escape_name(name):
    """Convert an EAGLE net or pin name to KiCad text."""
    return to_overbar_notation(name.replace("!", "~"))


def is_bus_vector(name):
    return _BUS_VECTOR_RE.match(name) is not None


def translate_bus_name(name):
    """
    Convert an EAGLE bus name to a KiCad bus name.

    ``D[0..7]`` is already a valid vector bus.  ``A,B,!C`` becomes the
    group ``{A B !C!}``: EAGLE ends an overbar at the end of each member,
    so an odd number of ``!`` gets a closing toggle.
    """
    if is_bus_vector(name):
        return name

    members = []
    for member in name.split(","):
        if not member:
            continue
        if member.count("!") % 2:
            member += "!"
        members.append(member)
    return "{" + " ".join(members) + "}"


def fix_illegal_chars(name, is_library=False):
    """Replace characters that may not appear in a symbol or library name."""
    out = []
    for c in name:
        if ord(c) < 0x20 or c in ':\\<>"/':
            out.append("_")
        elif is_library and c == " ":
            out.append("_")
        else:
            out.append(c)
    return "".join(out)


def replace_illegal_filename_chars(name, replacement="_"):
    return "".join(replacement if c in ILLEGAL_FILENAME_CHARS else c
                   for c in name)


def symbol_key(deviceset, device):
    """Library symbol name for an EAGLE device set / device pair."""
    return fix_illegal_chars((deviceset + device).replace("*", ""))
