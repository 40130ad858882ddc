"""Static zodiac sign trait table.

Each sign maps to the descriptive vocabulary the prompt builder weaves into
its templates: personality adjectives, the sign's symbol, element, colours,
a kindred animal and an art direction.  Lookups are case-insensitive and
never fail; unknown or missing signs resolve to :data:`DEFAULT_TRAITS`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class SignTraits:
    """Descriptive vocabulary for one zodiac sign."""

    name: str
    symbol: str
    element: str
    traits: tuple[str, ...]
    colors: tuple[str, ...]
    animal: str
    art_style: str


ZODIAC_TRAITS: dict[str, SignTraits] = {
    "aries": SignTraits(
        name="Aries",
        symbol="ram",
        element="fire",
        traits=("bold", "energetic", "adventurous", "confident"),
        colors=("scarlet", "crimson"),
        animal="spirited terrier",
        art_style="dynamic brushstrokes and explosive motion",
    ),
    "taurus": SignTraits(
        name="Taurus",
        symbol="bull",
        element="earth",
        traits=("grounded", "loyal", "sensual", "patient"),
        colors=("emerald green", "soft pink"),
        animal="gentle bulldog",
        art_style="lush still life with rich textures",
    ),
    "gemini": SignTraits(
        name="Gemini",
        symbol="twins",
        element="air",
        traits=("witty", "curious", "playful", "communicative"),
        colors=("lemon yellow", "light blue"),
        animal="chatty parrot",
        art_style="playful collage with mirrored compositions",
    ),
    "cancer": SignTraits(
        name="Cancer",
        symbol="crab",
        element="water",
        traits=("nurturing", "intuitive", "loyal", "tender"),
        colors=("silver", "pearl white"),
        animal="cuddly rabbit",
        art_style="soft watercolour washes under moonlight",
    ),
    "leo": SignTraits(
        name="Leo",
        symbol="lion",
        element="fire",
        traits=("charismatic", "generous", "confident", "warm-hearted"),
        colors=("gold", "orange"),
        animal="majestic Maine Coon cat",
        art_style="baroque grandeur with radiant golden light",
    ),
    "virgo": SignTraits(
        name="Virgo",
        symbol="maiden",
        element="earth",
        traits=("thoughtful", "precise", "kind", "practical"),
        colors=("sage green", "beige"),
        animal="tidy border collie",
        art_style="fine botanical illustration with delicate detail",
    ),
    "libra": SignTraits(
        name="Libra",
        symbol="scales",
        element="air",
        traits=("charming", "graceful", "diplomatic", "romantic"),
        colors=("pastel pink", "sky blue"),
        animal="elegant Persian cat",
        art_style="harmonious art nouveau with balanced symmetry",
    ),
    "scorpio": SignTraits(
        name="Scorpio",
        symbol="scorpion",
        element="water",
        traits=("intense", "magnetic", "passionate", "mysterious"),
        colors=("deep burgundy", "black"),
        animal="sleek black cat",
        art_style="dramatic chiaroscuro with deep shadows",
    ),
    "sagittarius": SignTraits(
        name="Sagittarius",
        symbol="archer",
        element="fire",
        traits=("adventurous", "optimistic", "free-spirited", "honest"),
        colors=("royal purple", "turquoise"),
        animal="energetic husky",
        art_style="sweeping panoramic landscapes",
    ),
    "capricorn": SignTraits(
        name="Capricorn",
        symbol="sea-goat",
        element="earth",
        traits=("ambitious", "disciplined", "patient", "responsible"),
        colors=("charcoal grey", "dark brown"),
        animal="dignified mountain goat",
        art_style="classical architecture with strong geometry",
    ),
    "aquarius": SignTraits(
        name="Aquarius",
        symbol="water bearer",
        element="air",
        traits=("original", "independent", "visionary", "quirky"),
        colors=("electric blue", "violet"),
        animal="clever ferret",
        art_style="futuristic surrealism with neon accents",
    ),
    "pisces": SignTraits(
        name="Pisces",
        symbol="two fish",
        element="water",
        traits=("dreamy", "compassionate", "artistic", "gentle"),
        colors=("sea green", "lavender"),
        animal="graceful koi fish",
        art_style="dreamlike impressionism with flowing water",
    ),
}

DEFAULT_TRAITS = SignTraits(
    name="",
    symbol="stars",
    element="cosmic",
    traits=("unique", "mysterious", "radiant", "kind"),
    colors=("midnight blue", "starlight silver"),
    animal="curious cat",
    art_style="celestial dreamscape with glowing constellations",
)


def is_known_sign(sign: str | None) -> bool:
    return (sign or "").strip().lower() in ZODIAC_TRAITS


def lookup_sign(sign: str | None) -> SignTraits:
    """Return the trait set for *sign*, falling back to :data:`DEFAULT_TRAITS`.

    The fallback keeps the caller's spelling as its name so templates can
    still mention it; an empty sign is reported as ``"unknown"``.
    """
    if is_known_sign(sign):
        return ZODIAC_TRAITS[sign.strip().lower()]
    return replace(DEFAULT_TRAITS, name=(sign or "").strip() or "unknown")
