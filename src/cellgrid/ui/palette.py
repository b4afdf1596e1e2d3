from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Palette:
    footer_bg: str
    footer_fg: str
    accent: str
    accent_dim: str
    focus_border: str
    panel_border: str
    header_fg: str
    header_bg: str
    header_sorted_fg: str
    cell_fg: str
    cell_empty_fg: str
    row_alt_bg: str
    gutter_fg: str
    selection_bg: str
    selection_fg: str
    anchor_bg: str
    copied_fg: str
    copied_bg: str
    editing_bg: str
    editing_fg: str
    menu_bg: str
    menu_fg: str
    filter_chip_bg: str
    filter_chip_fg: str
    status_error: str


DEFAULT = Palette(
    footer_bg="#1f2430",
    footer_fg="#d8dee9",
    accent="#5ea1ff",
    accent_dim="#4c75c6",
    focus_border="#ffa657",
    panel_border="#3b4252",
    header_fg="#d8dee9",
    header_bg="#2a3040",
    header_sorted_fg="#ffa657",
    cell_fg="#ffffff",
    cell_empty_fg="#6b7280",
    row_alt_bg="#161a22",
    gutter_fg="#8892a0",
    selection_bg="#264f78",
    selection_fg="#ffffff",
    anchor_bg="#314f76",
    copied_fg="#7ee787",
    copied_bg="#1d3b2a",
    editing_bg="#3b2f14",
    editing_fg="#ffdf5d",
    menu_bg="#2a3040",
    menu_fg="#d8dee9",
    filter_chip_bg="#1a7f37",
    filter_chip_fg="#ffffff",
    status_error="#ff7b72",
)

PALETTE = DEFAULT
