"""Bidirectional table of TLA+ built-in symbol spellings.

Each row is ``(glyph, canonical_ascii, *ascii_aliases)``. Every ASCII
spelling converts to the glyph; the glyph converts back to the canonical
spelling only. Every glyph is a single code point, so a Unicode spelling is
never wider than any of its ASCII counterparts.
"""

from __future__ import annotations

from tlaglyph.types import Direction


_SYMBOL_ROWS: tuple[tuple[str, ...], ...] = (
    ("≜", "=="),
    ("←", "<-"),
    ("→", "->"),
    ("↦", "|->"),
    ("⟨", "<<"),
    ("⟩", ">>"),
    ("′", "'"),
    ("⊢", "|-"),
    ("⊣", "-|"),
    ("⊨", "|="),
    ("⫤", "=|"),
    ("∧", "/\\", "\\land"),
    ("∨", "\\/", "\\lor"),
    ("⇒", "=>"),
    ("⇔", "<=>"),
    ("≡", "\\equiv"),
    ("¬", "~", "\\lnot", "\\neg"),
    ("≠", "/=", "#"),
    ("□", "[]"),
    ("◇", "<>"),
    ("↝", "~>"),
    ("⇸", "-+->"),
    ("∀", "\\A", "\\forall"),
    ("∃", "\\E", "\\exists"),
    ("∈", "\\in"),
    ("∉", "\\notin"),
    ("⊆", "\\subseteq"),
    ("⊂", "\\subset"),
    ("⊇", "\\supseteq"),
    ("⊃", "\\supset"),
    ("∩", "\\cap", "\\intersect"),
    ("∪", "\\cup", "\\union"),
    ("≤", "<=", "=<", "\\leq"),
    ("≥", ">=", "\\geq"),
    ("≪", "\\ll"),
    ("≫", "\\gg"),
    ("×", "\\X", "\\times"),
    ("÷", "\\div"),
    ("⋅", "\\cdot"),
    ("∘", "\\o", "\\circ"),
    ("∙", "\\bullet"),
    ("⋆", "\\star"),
    ("◯", "\\bigcirc"),
    ("∼", "\\sim"),
    ("≃", "\\simeq"),
    ("≍", "\\asymp"),
    ("≈", "\\approx"),
    ("≅", "\\cong"),
    ("≐", "\\doteq"),
    ("⊏", "\\sqsubset"),
    ("⊐", "\\sqsupset"),
    ("⊑", "\\sqsubseteq"),
    ("⊒", "\\sqsupseteq"),
    ("⊓", "\\sqcap"),
    ("⊔", "\\sqcup"),
    ("⊕", "(+)", "\\oplus"),
    ("⊖", "(-)", "\\ominus"),
    ("⊗", "(\\X)", "\\otimes"),
    ("⊘", "(/)", "\\oslash"),
    ("⊙", "(.)", "\\odot"),
    ("≺", "\\prec"),
    ("≻", "\\succ"),
    ("⪯", "\\preceq"),
    ("⪰", "\\succeq"),
    ("∝", "\\propto"),
    ("≀", "\\wr"),
    ("⊎", "\\uplus"),
)


def _build_tables() -> tuple[dict[str, str], dict[str, str]]:
    ascii_to_unicode: dict[str, str] = {}
    unicode_to_ascii: dict[str, str] = {}
    for glyph, canonical, *aliases in _SYMBOL_ROWS:
        if len(glyph) != 1:
            raise ValueError(f"glyph {glyph!r} must be a single code point")
        if glyph in unicode_to_ascii:
            raise ValueError(f"duplicate glyph {glyph!r}")
        unicode_to_ascii[glyph] = canonical
        for spelling in (canonical, *aliases):
            if spelling in ascii_to_unicode:
                raise ValueError(f"duplicate ASCII spelling {spelling!r}")
            ascii_to_unicode[spelling] = glyph
    return ascii_to_unicode, unicode_to_ascii


_ASCII_TO_UNICODE, _UNICODE_TO_ASCII = _build_tables()


def ascii_to_unicode(text: str) -> str | None:
    """Glyph for an ASCII built-in spelling, or None if it has none."""
    return _ASCII_TO_UNICODE.get(text)


def unicode_to_ascii(text: str) -> str | None:
    """Canonical ASCII spelling for a glyph, or None if it is not a built-in."""
    return _UNICODE_TO_ASCII.get(text)


def translate(text: str, direction: Direction) -> str | None:
    """Counterpart spelling of ``text`` in the target encoding of ``direction``.

    A miss is an expected outcome, not an error: the caller emits ``text``
    unchanged.
    """
    if direction == "TO_UNICODE":
        return ascii_to_unicode(text)
    return unicode_to_ascii(text)


def known_ascii_spellings() -> frozenset[str]:
    return frozenset(_ASCII_TO_UNICODE)


def known_glyphs() -> frozenset[str]:
    return frozenset(_UNICODE_TO_ASCII)
