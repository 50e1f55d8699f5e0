"""catalog-export — Strip image/option columns from product exports and keep SKU rows."""

__version__ = "0.2.0"

PREFIXES: tuple[str, ...] = (
    "Google",
    "Option1",
    "Option2",
    "Option3",
    "Image Src",
    "Image Position",
    "Variant Image",
    "Image Alt Text",
    "Unit Price",
)
"""Header prefixes whose columns are removed from every export."""

SKU_HEADER = "Variant SKU"
