import re
from collections.abc import Mapping, Sequence

UNSET = "_"
OUT_OF_RANGE = "__"

# "$A", "$b", ... ; trailing word characters belong to the token, but only the
# first letter picks the column ("$AB" reads column A).
# TODO: decide whether "$AB" should address column 28 before sheets rely on it.
_PLACEHOLDER = re.compile(r"\$([A-Za-z])\w*")


def normalize_name(raw: object) -> str:
    """Lookup key for the name map: drop one leading "@", trim, lowercase."""
    text = str(raw)
    if text.startswith("@"):
        text = text[1:]
    return text.strip().lower()


def display_text(value: object) -> str:
    """Cell value as text; whole floats lose their ".0"."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def resolve_name(raw_name: object, name_map: Mapping[str, str]) -> str:
    """Slack mention for a known name, the raw text otherwise, "_" when empty."""
    if not raw_name:
        return UNSET
    user_id = name_map.get(normalize_name(raw_name))
    if user_id:
        return f"<@{user_id}>"
    return display_text(raw_name)


def render(template: str, row: Sequence[object], name_map: Mapping[str, str]) -> str:
    def substitute(match: re.Match) -> str:
        index = ord(match.group(1).upper()) - ord("A")
        if index < len(row):
            return resolve_name(row[index], name_map)
        return OUT_OF_RANGE

    return _PLACEHOLDER.sub(substitute, template)
