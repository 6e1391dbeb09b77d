from __future__ import annotations

from dataclasses import dataclass

DEFAULT_FONT_FAMILY = "Liberation Sans"


@dataclass(frozen=True)
class FontFace:
    name: str
    file_name: str


# Keyed by the Excalidraw ``fontFamily`` id.
FONT_FACES: dict[int, FontFace] = {
    1: FontFace("Virgil", "Virgil-Regular.woff2"),
    2: FontFace("Liberation Sans", "LiberationSans-Regular.woff2"),
    3: FontFace("Cascadia Code", "CascadiaCode-Regular.woff2"),
}


@dataclass(frozen=True)
class FontSpec:
    family_id: int
    size: float

    @property
    def family(self) -> str:
        return font_family_name(self.family_id)

    def scaled(self, factor: float) -> FontSpec:
        return FontSpec(family_id=self.family_id, size=self.size * factor)


def font_family_name(family_id: int) -> str:
    face = FONT_FACES.get(family_id)
    return face.name if face else DEFAULT_FONT_FAMILY
