"""Topical categories used to narrow retrieval.

Two independent classifiers share the :class:`Category` vocabulary:

* :func:`classify` looks at the words of a visitor's question and is used at
  query time. ``None`` means "search every category".
* :func:`classify_by_url` looks at the site section a page lives under and is
  used at ingestion time. It always returns a category.

The two can disagree (a question about "parkering" lands in traffic while the
parking-permit page lives under the care section). That mismatch is known and
left as-is.
"""

import re
from enum import StrEnum
from urllib.parse import urlsplit


class Category(StrEnum):
    BUILDING = "Bygga, bo och miljö"
    CARE = "Omsorg och stöd"
    EDUCATION = "Utbildning och förskola"
    CULTURE = "Kultur och fritid"
    TRAFFIC = "Trafik och infrastruktur"
    BUSINESS = "Näringsliv och arbete"
    MUNICIPALITY = "Kommun och politik"
    OTHER = "Övrigt"


UNKNOWN_CATEGORY_LABEL = "Okänd"


def _keywords(*words: str) -> re.Pattern[str]:
    return re.compile("|".join(re.escape(word) for word in words))


# Ordered: the first matching pattern wins.
_QUERY_PATTERNS: tuple[tuple[re.Pattern[str], Category], ...] = (
    (
        _keywords(
            "bygglov",
            "ritning",
            "bygga",
            "hus",
            "villa",
            "altan",
            "inglasning",
            "tillbyggnad",
            "fasad",
            "carport",
            "garage",
            "attefallshus",
        ),
        Category.BUILDING,
    ),
    (
        _keywords(
            "hemtjänst",
            "äldreomsorg",
            "omsorg",
            "stöd",
            "personlig assistent",
            "funktionsnedsättning",
            "lss",
            "boende",
            "vård",
        ),
        Category.CARE,
    ),
    (
        _keywords(
            "skola",
            "förskola",
            "fritids",
            "grundskola",
            "gymnasium",
            "utbildning",
            "elev",
            "lärare",
            "pedagogisk",
        ),
        Category.EDUCATION,
    ),
    (
        _keywords(
            "kultur",
            "bibliotek",
            "idrott",
            "fritid",
            "museum",
            "teater",
            "konsert",
            "sport",
            "aktivitet",
        ),
        Category.CULTURE,
    ),
    (
        _keywords(
            "trafik",
            "parkering",
            "väg",
            "gata",
            "snöröjning",
            "vinter",
            "cykel",
            "gång",
            "infart",
        ),
        Category.TRAFFIC,
    ),
    (
        _keywords(
            "företag",
            "näringsliv",
            "tillstånd",
            "serveringstillstånd",
            "etablera",
            "starta företag",
            "jobb",
            "arbete",
        ),
        Category.BUSINESS,
    ),
    (
        _keywords("kommun", "politik", "nämnd", "styrelse", "fullmäktige", "kontakt"),
        Category.MUNICIPALITY,
    ),
)

# Ordered like the site navigation; first match wins.
_URL_SECTIONS: tuple[tuple[str, Category], ...] = (
    ("utbildningochforskola", Category.EDUCATION),
    ("omsorgochstod", Category.CARE),
    ("kulturochfritid", Category.CULTURE),
    ("byggaboochmiljo", Category.BUILDING),
    ("trafikochinfrastruktur", Category.TRAFFIC),
    ("naringslivocharbete", Category.BUSINESS),
    ("kommunochpolitik", Category.MUNICIPALITY),
)


def classify(query: str) -> Category | None:
    """Map a free-text question to a category, or ``None`` to search all."""
    lowered = query.lower()
    for pattern, category in _QUERY_PATTERNS:
        if pattern.search(lowered):
            return category
    return None


def classify_by_url(url: str) -> Category:
    """Map a page URL to the category of the site section it lives under."""
    path = urlsplit(url).path.lower()
    # "omsorgochstod.3867.html" is the landing page of the "omsorgochstod" section
    segments = {segment.split(".", 1)[0] for segment in path.split("/") if segment}
    for section, category in _URL_SECTIONS:
        if section in segments:
            return category
    return Category.OTHER
