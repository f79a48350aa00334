"""
Title normalization for exact-match comparison.

A title is first converted to a sortable form (roman numeral suffixes become
arabic numbers, numbers are zero padded, edition markers are dropped) and
then deflated into a comparison key that only keeps letters and digits.
Two titles name the same game iff their keys are equal; there is no fuzzy
distance involved.
"""

import re
import unicodedata


# Qualifiers that only count as an edition marker when followed by
# "edition"/"version", e.g. "Gold Edition" but not "Ultima Gold"
EDITION_QUALIFIERS = [
    "game of the year",
    "goty",
    "definitive",
    "deluxe",
    "digital deluxe",
    "complete",
    "ultimate",
    "enhanced",
    "special",
    "collector's",
    "collectors",
    "gold",
    "premium",
    "anniversary",
    "legendary",
    "standard",
    "limited",
    "extended",
    "platinum",
    "remastered",
]

# Markers that are an edition on their own
STANDALONE_EDITIONS = [
    "game of the year",
    "goty",
    "remastered",
    "director's cut",
    "directors cut",
]

_qualifiers = "|".join(re.escape(q) for q in EDITION_QUALIFIERS)
_standalone = "|".join(re.escape(s) for s in STANDALONE_EDITIONS)

EDITION_SUFFIX_RE = re.compile(
    r"[\s:,\-–—]*[(\[]?\s*\b(?:the\s+)?"
    rf"(?:(?:{_qualifiers})\s+(?:edition|version)|{_standalone})"
    r"\s*[)\]]?\s*$",
    re.IGNORECASE,
)

# I through XXXIX, only as a word following another word. C/L/M are left
# alone so words like "Civ" or "Mix" survive, and a lone "X" stays a letter
# ("Mega Man X" is not "Mega Man 10").
ROMAN_RE = re.compile(
    r"(?<=[\w:\-–—]\s)(?!X\b)(?P<roman>X{0,3}(?:IX|IV|V?I{0,3}))\b(?=\s|$|[:,(\[\-–—])",
    re.IGNORECASE,
)
NUMBER_RE = re.compile(r"\d+")
WHITESPACE_RE = re.compile(r"\s+")

ROMAN_VALUES = {"i": 1, "v": 5, "x": 10}


def roman_to_int(roman: str) -> int:
    """
    Convert a roman numeral made of I, V and X to an integer.

    Args:
        roman: Numeral such as "IV" or "xiii" (case-insensitive)

    Returns:
        Integer value, 0 for an empty string
    """
    total = 0
    previous = 0
    for char in reversed(roman.lower()):
        value = ROMAN_VALUES[char]
        if value < previous:
            total -= value
        else:
            total += value
            previous = value
    return total


def remove_editions(name: str) -> str:
    """
    Strip trailing edition markers, repeatedly.

    "Fallout 3: Game of the Year Edition" -> "Fallout 3"
    "Skyrim - Special Edition (Remastered)" -> "Skyrim"
    """
    previous = None
    while previous != name:
        previous = name
        name = EDITION_SUFFIX_RE.sub("", name).strip()
    return name


def convert_numbers(name: str, number_length: int = 1) -> str:
    """
    Replace roman numeral suffixes with arabic numbers and zero pad numbers.

    Only numerals standing as a word after another word are converted, so
    "Final Fantasy VII Remake" becomes "Final Fantasy 7 Remake" while
    "I Am Alive" and "Mega Man X" are left alone.

    Args:
        name: Title to convert
        number_length: Minimum width numbers are zero padded to

    Returns:
        Converted title
    """
    def roman_repl(match: re.Match) -> str:
        roman = match.group("roman")
        if not roman:
            return roman
        return str(roman_to_int(roman))

    name = ROMAN_RE.sub(roman_repl, name)
    if number_length > 1:
        name = NUMBER_RE.sub(lambda m: m.group(0).zfill(number_length), name)
    return name


def sortable_name(name: str, number_length: int = 1, remove_edition_markers: bool = True) -> str:
    """
    Convert a title to its sortable form (still human readable).

    Args:
        name: Raw title
        number_length: Minimum width numbers are zero padded to
        remove_edition_markers: Strip "Game of the Year Edition" and friends

    Returns:
        Sortable title
    """
    if not name:
        return ""

    result = WHITESPACE_RE.sub(" ", name).strip()
    if remove_edition_markers:
        result = remove_editions(result)
    return convert_numbers(result, number_length)


def deflate(name: str) -> str:
    """
    Reduce a title to its comparison key.

    Diacritics are removed, case is folded and everything that is not a
    letter or a digit (whitespace included) is dropped.
    """
    if not name:
        return ""

    decomposed = unicodedata.normalize("NFKD", name)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return "".join(c for c in stripped.casefold() if c.isalnum())


def normalize_name(raw_name: str, number_length: int = 1, remove_edition_markers: bool = True) -> str:
    """
    Comparison key for a game title.

    Args:
        raw_name: Free text title
        number_length: Minimum width numbers are zero padded to
        remove_edition_markers: Strip edition markers before deflating

    Returns:
        Comparison key (may be empty)
    """
    return deflate(sortable_name(raw_name, number_length, remove_edition_markers))


def names_match(name1: str, name2: str, number_length: int = 1, remove_edition_markers: bool = True) -> bool:
    """True when both titles produce the same non-empty comparison key."""
    key1 = normalize_name(name1, number_length, remove_edition_markers)
    if not key1:
        return False
    return key1 == normalize_name(name2, number_length, remove_edition_markers)
