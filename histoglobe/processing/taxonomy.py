"""Keyword lexicons for the four historical categories and scoring signals.

All entries are lowercase French; matching is plain substring search on
lowercased text, so verb entries are stems ("massacr" matches "massacré",
"massacrèrent", ...).
"""

CATEGORIES = ("shock", "civilization", "struggle", "origins")

# -----------------------------
# Category keywords
# -----------------------------
SHOCK_KEYWORDS = [
    "massacre", "exécution", "pogrom", "rafle", "génocide", "attentat",
    "assassinat", "torture", "déportation", "persécution", "esclavage",
    "bombardement", "extermination", "fusillade", "noyade",
]

SHOCK_VERBS = [
    "assassin", "exécut", "massacr", "fusill", "pendu", "noyé",
    "brûlé", "tortur", "déport", "extermin",
]

CIVILIZATION_KEYWORDS = [
    "empire", "traité", "dynastie", "fondation", "couronnement",
    "proclamation", "constitution", "cathédrale", "palais", "forteresse",
    "antiquité", "romain", "pharaon", "civilisation", "royaume",
    "signature", "alliance", "armistice", "capitulation",
]

STRUGGLE_KEYWORDS = [
    "grève", "manifestation", "résistance", "insurrection", "révolte",
    "révolution", "barricade", "soulèvement", "droits civiques",
    "émancipation", "libération", "indépendance", "répression",
    "censure", "ségrégation", "occulté", "bavure", "colonisation",
]

ORIGINS_KEYWORDS = [
    "archéologie", "préhistoire", "néolithique", "paléolithique",
    "migration", "mégalithe", "grotte", "fossile", "sépulture",
    "dolmen", "menhir", "cité antique", "ruines", "vestige",
    "âge du bronze", "âge du fer",
]

# Per-category weights. Origins is kept low so incidental mentions of ruins
# or caves in geography stubs do not win the category.
SHOCK_KEYWORD_WEIGHT = 25
SHOCK_VERB_WEIGHT = 20
CIVILIZATION_WEIGHT = 12
STRUGGLE_WEIGHT = 20
ORIGINS_WEIGHT = 5

# -----------------------------
# Scoring signals
# -----------------------------
MEMORIAL_KEYWORDS = [
    "camp de concentration", "camp d'extermination", "camp de la mort",
    "déportation", "extermination", "goulag", "charnier",
    "chambre à gaz", "shoah", "holocauste", "solution finale",
]

IMPACT_KEYWORDS = [
    "victimes", "morts", "tués", "blessés", "disparus", "fusillés",
    "pendus", "noyés", "brûlés", "détenus", "prisonniers",
]

# Action-verb stem -> infinitive shown as a quiz hint. Order matters: hints
# are collected in this order.
VERB_INFINITIVES = {
    "assassin": "assassiner",
    "proclam": "proclamer",
    "envahi": "envahir",
    "sign": "signer",
    "découvr": "découvrir",
    "soulev": "se soulever",
    "conqui": "conquérir",
    "détru": "détruire",
    "incendi": "incendier",
    "bombard": "bombarder",
    "libér": "libérer",
    "occup": "occuper",
    "exécut": "exécuter",
    "massacr": "massacrer",
    "fusill": "fusiller",
    "déport": "déporter",
    "resist": "résister",
    "revolt": "se révolter",
    "fond": "fonder",
    "constru": "construire",
    "érig": "ériger",
    "bâti": "bâtir",
}

ACTION_VERBS = list(VERB_INFINITIVES)

GEO_KEYWORDS = [
    "commune de", "code postal", "montagne", "sommet", "fleuve",
    "altitude", "km²", "rivière", "affluent", "bassin versant",
    "département", "arrondissement", "canton de", "intercommunalité",
]

CHURCH_WORDS = ["église", "paroisse", "édifice", "chapelle"]

SPORT_KEYWORDS = [
    "football", "stade", "match", "olympique", "club sportif",
    "championnat", "ligue", "coupe du monde", "rugby", "tennis",
    "natation", "athlétisme", "gymnase",
]

# A stadium used as an internment site is still a memorial site.
SPORT_EXCEPTIONS = [
    "exécution", "prisonnier", "détenu", "massacre", "internement",
    "déportation", "camp", "fusillade", "mémorial",
]

# Keywords whose presence in the title earns the title bonus.
TITLE_KEYWORDS = SHOCK_KEYWORDS + CIVILIZATION_KEYWORDS + STRUGGLE_KEYWORDS

CONFLICT_KEYWORDS = SHOCK_KEYWORDS + STRUGGLE_KEYWORDS

ALL_CATEGORY_KEYWORDS = (
    SHOCK_KEYWORDS + CIVILIZATION_KEYWORDS + STRUGGLE_KEYWORDS
    + ORIGINS_KEYWORDS + IMPACT_KEYWORDS
)

# Searches run once per discovery pass to catch landmark events that
# proximity search misses.
KEYWORD_SEARCHES = [
    "massacre", "pogrom", "révolte", "insurrection",
    "bombardement", "libération", "traité", "camp de concentration",
]

ROMAN_NUMERALS = {
    "I": 1, "II": 2, "III": 3, "IV": 4, "V": 5,
    "VI": 6, "VII": 7, "VIII": 8, "IX": 9, "X": 10,
    "XI": 11, "XII": 12, "XIII": 13, "XIV": 14, "XV": 15,
    "XVI": 16, "XVII": 17, "XVIII": 18, "XIX": 19, "XX": 20, "XXI": 21,
}

BCE_SUFFIX = "av. J.-C."


def count_hits(text: str, keywords: list[str]) -> int:
    """Number of distinct keywords present in text."""
    return sum(1 for kw in keywords if kw in text)


def count_occurrences(text: str, words: list[str]) -> int:
    """Total non-overlapping occurrences of every word in text."""
    tl = text.lower()
    return sum(tl.count(w) for w in words)


def has_any(text: str, keywords: list[str]) -> bool:
    return any(kw in text for kw in keywords)


def has_action_verb(text: str) -> bool:
    return has_any(text.lower(), ACTION_VERBS)
