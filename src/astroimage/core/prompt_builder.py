"""Zodiac-driven prompt templates for the image generator.

A prompt is composed from the image category and the user's sun, moon and
rising signs.  Each category has one fixed template; the variable parts come
from the static sign trait table in :mod:`astroimage.core.zodiac`.

Template Overview
-----------------
========== ===========================================================
Category   Composition
========== ===========================================================
partner    Portrait of the ideal partner, traits of all three signs
celebrity  Celebrity portrait matching the chart, sun + rising traits
pet        The sun sign's animal with sun + moon temperament
tattoo     The three sign symbols and their elements as line art
city       The birth place reimagined with the chart's traits
art        Sun and moon art directions blended, dated by birth
========== ===========================================================

Whenever trait lists from several signs are concatenated, duplicates are
removed while preserving first-seen order, so a Leo sun with an Aries moon
says "confident" once.

The builder is pure and total: unknown or missing signs fall back to the
default trait set instead of raising.

Usage
-----
::

    prompt = build_prompt(ImageType.PET, user)
"""

from __future__ import annotations

from collections.abc import Iterable

from astroimage.core.models import Gender, ImageType, InterestedIn, UserProfile
from astroimage.core.zodiac import SignTraits, lookup_sign

# ---------------------------------------------------------------------------
# Fixed quality suffixes.
# One per template family; they pin the rendering style while the sign
# traits provide the variation.
# ---------------------------------------------------------------------------

_PORTRAIT_SUFFIX = (
    "Photorealistic, soft flattering light, shallow depth of field, high detail."
)
_TATTOO_SUFFIX = (
    "Fine-line tattoo flash, crisp blackwork shading, clean white background."
)
_SCENE_SUFFIX = "Cinematic composition, rich atmosphere, ultra detailed."

_SELF_NOUNS = {
    Gender.MALE: "man",
    Gender.FEMALE: "woman",
}

_PARTNER_NOUNS = {
    InterestedIn.BOYS: "man",
    InterestedIn.GIRLS: "woman",
    InterestedIn.NON_BINARY: "non-binary person",
}


def _unique(*groups: Iterable[str]) -> list[str]:
    """Concatenate *groups*, dropping repeats but keeping first-seen order."""
    return list(dict.fromkeys(item for group in groups for item in group))


def _join(items: list[str]) -> str:
    """Join words as natural English: ``a``, ``a and b``, ``a, b and c``."""
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    return f"{', '.join(items[:-1])} and {items[-1]}"


def _chart(sun: SignTraits, moon: SignTraits, rising: SignTraits) -> str:
    return f"{sun.name} sun, {moon.name} moon and {rising.name} rising"


def _partner(profile: UserProfile, sun: SignTraits, moon: SignTraits, rising: SignTraits) -> str:
    self_noun = _SELF_NOUNS.get(profile.gender, "person")
    partner_noun = _PARTNER_NOUNS.get(profile.interested_in, "person")
    traits = _unique(sun.traits, moon.traits, rising.traits)
    colors = _unique(sun.colors, rising.colors)
    return (
        f"A romantic portrait of the ideal partner for a {self_noun} with a "
        f"{_chart(sun, moon, rising)}. The partner is a {partner_noun} who is "
        f"{_join(traits)}, dressed in {_join(colors)} tones. {_PORTRAIT_SUFFIX}"
    )


def _celebrity(profile: UserProfile, sun: SignTraits, moon: SignTraits, rising: SignTraits) -> str:
    partner_noun = _PARTNER_NOUNS.get(profile.interested_in, "person")
    traits = _unique(sun.traits, rising.traits)
    return (
        f"A glamorous red-carpet portrait of a famous {partner_noun} whose star chart "
        f"is a {_chart(sun, moon, rising)}, known for being {_join(traits)}. "
        f"Magazine cover styling with {_join(_unique(sun.colors))} accents. {_PORTRAIT_SUFFIX}"
    )


def _pet(profile: UserProfile, sun: SignTraits, moon: SignTraits, rising: SignTraits) -> str:
    temperament = _unique(sun.traits[:2], moon.traits[:2])
    return (
        f"A {sun.animal} as the perfect companion for a {_chart(sun, moon, rising)}. "
        f"The pet is {_join(temperament)}, posed in a cozy home with "
        f"{_join(_unique(moon.colors))} details. {_PORTRAIT_SUFFIX}"
    )


def _tattoo(profile: UserProfile, sun: SignTraits, moon: SignTraits, rising: SignTraits) -> str:
    elements = _unique([sun.element, moon.element, rising.element])
    return (
        f"A tattoo design uniting the {sun.symbol} of {sun.name}, the {moon.symbol} "
        f"of {moon.name} and the {rising.symbol} of {rising.name}, woven with "
        f"{_join(elements)} elemental motifs and subtle {_join(_unique(sun.colors)[:1])} "
        f"highlights. {_TATTOO_SUFFIX}"
    )


def _city(profile: UserProfile, sun: SignTraits, moon: SignTraits, rising: SignTraits) -> str:
    place = (profile.birth_place or "").strip() or "a dream city"
    traits = _unique(rising.traits, sun.traits)[:4]
    colors = _unique(sun.colors, moon.colors, rising.colors)
    return (
        f"A twilight cityscape of {place} reimagined for a {_chart(sun, moon, rising)}: "
        f"a {_join(traits)} city whose skyline glows in {_join(colors)}. {_SCENE_SUFFIX}"
    )


def _art(profile: UserProfile, sun: SignTraits, moon: SignTraits, rising: SignTraits) -> str:
    born = f" born on {profile.birth_date.isoformat()}" if profile.birth_date else ""
    traits = _unique(sun.traits, moon.traits, rising.traits)
    return (
        f"An original artwork expressing the soul of a {_chart(sun, moon, rising)}{born}: "
        f"{sun.art_style}, blended with {moon.art_style}, evoking a {_join(traits[:3])} "
        f"spirit in a palette of {_join(_unique(sun.colors, moon.colors))}. {_SCENE_SUFFIX}"
    )


_TEMPLATES = {
    ImageType.PARTNER: _partner,
    ImageType.CELEBRITY: _celebrity,
    ImageType.PET: _pet,
    ImageType.TATTOO: _tattoo,
    ImageType.CITY: _city,
    ImageType.ART: _art,
}


def build_prompt(category: ImageType | str, profile: UserProfile) -> str:
    """Compile the image prompt for *category* from the user's chart.

    Args:
        category: Image category (an :class:`ImageType` or its value; the
            lookup is case-insensitive).
        profile: The user whose sun, moon and rising signs, gender,
            interest, birth place and birth date parameterise the template.

    Returns:
        A single-paragraph natural-language prompt.  When the three signs
        are known zodiac names, each canonical sign name appears in it.

    Raises:
        ValueError: If *category* is not an image category.
    """
    image_type = ImageType(category)
    sun = lookup_sign(profile.sun_sign)
    moon = lookup_sign(profile.moon_sign)
    rising = lookup_sign(profile.rising_sign)
    return _TEMPLATES[image_type](profile, sun, moon, rising)
