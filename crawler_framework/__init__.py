"""
Matrix crawler framework.

Provides the game rules built on top of the engine:
- Config (all tunable rule constants)
- Components (data-only, Pydantic models)
- Spells (fragments, logic trees, composition, effects)
- Battle (turn-based matrix combat)
- Dungeon (themed procedural levels)
- Catalog (validated fragments, themes, enemy types)
- World (the run controller)
- Save (persistence)
"""
