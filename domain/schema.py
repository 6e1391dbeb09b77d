from __future__ import annotations

DOCUMENT_TYPE = "excalidraw"
MISSING = "missing"

KNOWN_ELEMENT_TYPES = (
    "rectangle",
    "ellipse",
    "diamond",
    "line",
    "arrow",
    "freedraw",
    "text",
    "image",
    "frame",
    "magicframe",
    "iframe",
    "embeddable",
)
LINEAR_TYPES = ("line", "arrow")
FRAME_TYPES = ("frame", "magicframe")

VALID_STROKE_STYLES = ("solid", "dashed", "dotted")
VALID_FILL_STYLES = ("hachure", "cross-hatch", "solid", "zigzag")
VALID_TEXT_ALIGN = ("left", "center", "right")
VALID_VERTICAL_ALIGN = ("top", "middle", "bottom")

REQUIRED_BASE_FIELDS = (
    "id",
    "type",
    "x",
    "y",
    "width",
    "height",
    "strokeColor",
    "backgroundColor",
    "fillStyle",
    "strokeWidth",
    "strokeStyle",
    "roughness",
    "opacity",
    "seed",
)

NUMERIC_FIELDS = (
    "x",
    "y",
    "width",
    "height",
    "opacity",
    "strokeWidth",
    "roughness",
    "seed",
    "angle",
)

REQUIRED_TEXT_FIELDS = ("text", "fontSize", "fontFamily")

# Sample values shown in the remediation text for a missing text field.
TEXT_FIELD_HINTS = {
    "text": '"text": "Hello"',
    "fontSize": '"fontSize": 16',
    "fontFamily": (
        '"fontFamily": 1 (1=Virgil/hand-drawn, 2=Helvetica/sans-serif, 3=Cascadia/monospace)'
    ),
}

OPACITY_RANGE = (0, 100)
