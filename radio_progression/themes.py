"""Unlockable UI themes and their point costs"""
from dataclasses import dataclass
from typing import Dict, Optional

DEFAULT_THEME = 'dynamic'

@dataclass(frozen=True)
class Theme:
    name: str
    display_name: str
    color: str
    cost: int = 0
    description: str = ""

THEMES: Dict[str, Theme] = {t.name: t for t in (
    Theme('dynamic', "Dynamic (Album Art)", '#67e8f9'),
    Theme('reggae', "Irie Vibes", '#ef4444', 200, "Red, gold, and green for the soul."),
    Theme('kente', "Kente Cloth", '#f59e0b', 100, "Vibrant patterns inspired by Ghanaian Kente."),
    Theme('sahara', "Sahara Sunset", '#ea580c', 150, "Warm oranges and deep purples."),
    Theme('naija', "Naija Green", '#16a34a', 100, "Bold greens representing Nigerian spirit."),
    Theme('galaxy', "Galaxy", '#8b5cf6', 300, "Deep space vibes."),
    Theme('cyberpunk', "Cyberpunk", '#ec4899', 300, "Neon lights and dark streets."),
    Theme('midnight', "Midnight", '#1e1b4b', 150, "Dark blue tones for night owls."),
    Theme('forest', "Forest", '#064e3b', 150, "Calm and natural greens."),
    Theme('royal', "Royal", '#4c1d95', 200, "Elegant purple and gold."),
    Theme('retro', "Retro", '#f43f5e', 200, "80s synthwave aesthetics."),
)}

def get_theme(name: str) -> Optional[Theme]:
    return THEMES.get(name)
