"""Default entity representation and serialization helpers."""

from typing import Any, Dict, Optional


class Entity(dict):
    """Flat field mapping tagged with an entity name and optional base (zone/namespace)."""

    def __init__(self, name: str, base: Optional[str] = None, fields: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(fields or {}, **kwargs)
        self.name = name
        self.base = base

    @property
    def canon(self) -> str:
        return f'{self.base}/{self.name}' if self.base else self.name

    def make(self, fields: Optional[Dict[str, Any]] = None) -> 'Entity':
        """New entity of the same kind."""
        return Entity(self.name, self.base, fields)

    def __repr__(self):
        return f'Entity({self.canon!r}, {dict(self)!r})'


def tablename(ent: Entity) -> str:
    return f'{ent.base}_{ent.name}' if ent.base else ent.name


def makeentp(ent: Entity) -> Dict[str, Any]:
    """Flat projection; keys ending in '$' are not data."""
    return {k: v for k, v in ent.items() if not k.endswith('$')}


def makeent(qent: Entity, fields: Dict[str, Any]) -> Entity:
    return qent.make(fields)


def fixquery(entp: Dict[str, Any], q: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Plain filters of q; control keys removed."""
    if not q:
        return {}
    return {k: v for k, v in q.items() if not k.endswith('$') and k != 'ids'}
